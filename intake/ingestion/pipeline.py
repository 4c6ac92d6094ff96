from abc import ABC, abstractmethod
from dataclasses import dataclass

from intake.documents.models import Document
from intake.ingestion.models import RawFile


@dataclass(slots=True)
class IngestionContext:
    raw_file: RawFile
    owner_id: str
    storage_key: str = ""
    storage_path: str | None = None
    document: Document | None = None
    public_url: str | None = None


class IngestionStep(ABC):
    """One stage of the ingestion saga.

    A step either returns the (updated) context or raises a typed
    IntakeError; the orchestrator turns that error into an IngestOutcome.
    """

    @abstractmethod
    def run(self, context: IngestionContext) -> IngestionContext:
        raise NotImplementedError
