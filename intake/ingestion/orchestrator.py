import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor

from intake.config.settings import Settings
from intake.database.repositories.base import BaseDocumentsRepository
from intake.documents.exceptions import IntakeError, PersistenceError, ValidationError
from intake.documents.models import Document
from intake.ingestion.models import IngestOutcome, RawFile
from intake.ingestion.pipeline import IngestionContext, IngestionStep
from intake.ingestion.steps import (
    BuildStorageKeyStep,
    CreateRecordStep,
    DispatchNotificationStep,
    ResolvePublicUrlStep,
    UploadBlobStep,
    ValidatePayloadStep,
)
from intake.logging.logger import Log
from intake.notification.dispatcher import NotificationDispatcher
from intake.storage.base import BaseBlobStore


class IngestionOrchestrator:
    """Runs the ingestion saga for one or many files.

    Pipeline: validate -> storage key -> upload -> record -> public url -> notify.
    Upload and record creation are the only durable steps; the remaining ones
    are best effort and never turn a created document into a failure.
    """

    def __init__(self, steps: list[IngestionStep], max_workers: int = 8) -> None:
        self._steps = steps
        self._max_workers = max_workers

    def run(self, raw_file: RawFile, owner_id: str) -> IngestOutcome:
        """Run every step for one file and report the outcome without raising."""
        file_name = raw_file.original_name
        Log.info("Ingesting file", file_name=file_name, owner_id=owner_id)
        context = IngestionContext(raw_file=raw_file, owner_id=owner_id)
        try:
            for step in self._steps:
                context = step.run(context)
        except ValidationError as exc:
            Log.warning(f"Rejected upload: {exc}", file_name=file_name)
            return IngestOutcome(file_name=file_name, error=exc)
        except PersistenceError as exc:
            return IngestOutcome(
                file_name=file_name,
                error=exc,
                orphaned_storage_path=exc.orphaned_storage_path,
            )
        except IntakeError as exc:
            Log.error(f"Ingestion failed: {exc}", file_name=file_name)
            return IngestOutcome(file_name=file_name, error=exc)

        if context.document is None:
            raise RuntimeError(f"Ingestion pipeline for {file_name} finished without a document")
        return IngestOutcome(file_name=file_name, document=context.document)

    def ingest(self, raw_file: RawFile, owner_id: str) -> Document:
        """Ingest one file.

        Raises:
            ValidationError: payload missing, empty or oversized.
            StorageWriteError: the blob could not be stored; nothing was created.
            PersistenceError: the record could not be created; see
                ``orphaned_storage_path`` for the blob left behind.
        """
        return self.run(raw_file, owner_id).unwrap()

    def ingest_many(self, raw_files: Iterable[RawFile], owner_id: str) -> list[IngestOutcome]:
        """Ingest files concurrently; outcomes are independent and keep input order."""
        files = list(raw_files)
        if not files:
            return []
        workers = min(self._max_workers, len(files))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest") as executor:
            futures = [executor.submit(self.run, raw_file, owner_id) for raw_file in files]
            outcomes = [
                self._collect(future, raw_file.original_name)
                for future, raw_file in zip(futures, files)
            ]
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        Log.info(f"Batch ingested {len(outcomes) - failed}/{len(outcomes)} files", owner_id=owner_id)
        return outcomes

    @staticmethod
    def _collect(future: Future[IngestOutcome], file_name: str) -> IngestOutcome:
        """Unexpected errors stay confined to the file that raised them."""
        try:
            return future.result()
        except Exception as exc:
            Log.error(f"Ingestion crashed: {exc!r}", exc_info=True, file_name=file_name)
            return IngestOutcome(file_name=file_name, error=exc)


def build_orchestrator(
    settings: Settings,
    doc_repo: BaseDocumentsRepository,
    blob_store: BaseBlobStore,
    dispatcher: NotificationDispatcher | None,
    clock: Callable[[], float] = time.time,
) -> IngestionOrchestrator:
    """Build an IngestionOrchestrator with the standard step sequence."""
    steps: list[IngestionStep] = [
        ValidatePayloadStep(settings.max_upload_size_bytes),
        BuildStorageKeyStep(settings.storage_prefix, clock=clock),
        UploadBlobStep(blob_store),
        CreateRecordStep(doc_repo, blob_store, cleanup_orphans=settings.cleanup_orphaned_blobs),
        ResolvePublicUrlStep(blob_store),
        DispatchNotificationStep(dispatcher),
    ]
    return IngestionOrchestrator(steps, max_workers=settings.ingest_max_workers)
