from intake.ingestion.models import IngestOutcome, RawFile
from intake.ingestion.orchestrator import IngestionOrchestrator, build_orchestrator

__all__ = ["IngestOutcome", "IngestionOrchestrator", "RawFile", "build_orchestrator"]
