import time
from collections.abc import Callable

from intake.database.repositories.base import BaseDocumentsRepository
from intake.documents.exceptions import PersistenceError, StorageDeleteError, ValidationError
from intake.documents.sanitizer import sanitize_file_name
from intake.ingestion.pipeline import IngestionContext, IngestionStep
from intake.logging.logger import Log
from intake.notification.dispatcher import NotificationDispatcher
from intake.notification.models import NotificationPayload
from intake.storage.base import BaseBlobStore


class ValidatePayloadStep(IngestionStep):
    def __init__(self, max_size_bytes: int) -> None:
        self._max_size_bytes = max_size_bytes

    def run(self, context: IngestionContext) -> IngestionContext:
        raw_file = context.raw_file
        if not context.owner_id:
            raise ValidationError("An owner id is required")
        # Postgres text columns cannot hold NUL; catch it before the upload
        if "\x00" in context.owner_id:
            raise ValidationError("Owner id contains a NUL character")
        if "\x00" in raw_file.original_name:
            raise ValidationError(f"File name {raw_file.original_name!r} contains a NUL character")
        if raw_file.declared_size is not None and raw_file.declared_size > self._max_size_bytes:
            raise ValidationError(
                f"File '{raw_file.original_name}' declares {raw_file.declared_size} bytes, "
                f"limit is {self._max_size_bytes}"
            )
        if raw_file.data is None:
            raise ValidationError("No file was provided")
        if raw_file.size_bytes == 0:
            raise ValidationError(f"File '{raw_file.original_name}' is empty")
        if raw_file.declared_size is not None and raw_file.declared_size != raw_file.size_bytes:
            raise ValidationError(
                f"File '{raw_file.original_name}' declares {raw_file.declared_size} bytes "
                f"but carries {raw_file.size_bytes}"
            )
        if raw_file.size_bytes > self._max_size_bytes:
            raise ValidationError(
                f"File '{raw_file.original_name}' is {raw_file.size_bytes} bytes, "
                f"limit is {self._max_size_bytes}"
            )
        return context


class BuildStorageKeyStep(IngestionStep):
    """Derives "{prefix}/{epoch_ms}-{sanitized name}".

    The millisecond timestamp keeps repeated uploads of the same name apart;
    two uploads of one name within the same millisecond share a key.
    """

    def __init__(self, prefix: str, clock: Callable[[], float] = time.time) -> None:
        self._prefix = prefix.strip("/")
        self._clock = clock

    def run(self, context: IngestionContext) -> IngestionContext:
        timestamp_ms = int(self._clock() * 1000)
        file_part = f"{timestamp_ms}-{sanitize_file_name(context.raw_file.original_name)}"
        context.storage_key = f"{self._prefix}/{file_part}" if self._prefix else file_part
        return context


class UploadBlobStep(IngestionStep):
    def __init__(self, blob_store: BaseBlobStore) -> None:
        self._blob_store = blob_store

    def run(self, context: IngestionContext) -> IngestionContext:
        if not context.storage_key:
            raise ValueError("IngestionContext.storage_key must be set before upload")
        context.storage_path = self._blob_store.upload(
            context.storage_key,
            context.raw_file.data or b"",
            context.raw_file.content_type,
        )
        Log.info(
            f"Uploaded {context.raw_file.size_bytes} bytes",
            path=context.storage_path,
        )
        return context


class CreateRecordStep(IngestionStep):
    """Inserts the pending record for an uploaded blob.

    Storage and database share no transaction. When the insert fails the
    blob stays behind unless ``cleanup_orphans`` is set, and the raised
    PersistenceError names the orphaned path whenever it survives.
    """

    def __init__(
        self,
        doc_repo: BaseDocumentsRepository,
        blob_store: BaseBlobStore,
        cleanup_orphans: bool = False,
    ) -> None:
        self._doc_repo = doc_repo
        self._blob_store = blob_store
        self._cleanup_orphans = cleanup_orphans

    def run(self, context: IngestionContext) -> IngestionContext:
        if context.storage_path is None:
            raise ValueError("IngestionContext.storage_path must be set before record creation")
        try:
            context.document = self._doc_repo.create(
                file_name=context.raw_file.original_name,
                storage_path=context.storage_path,
                owner_id=context.owner_id,
            )
        except PersistenceError as exc:
            orphaned_path: str | None = context.storage_path
            Log.error(f"Record creation failed after upload: {exc}", orphaned_path=orphaned_path)
            if self._cleanup_orphans and self._remove_orphan(orphaned_path):
                orphaned_path = None
            raise PersistenceError(str(exc), orphaned_storage_path=orphaned_path) from exc
        Log.info("Document record created", document_id=context.document.id)
        return context

    def _remove_orphan(self, stored_path: str) -> bool:
        try:
            self._blob_store.remove(stored_path)
        except StorageDeleteError as exc:
            Log.error(f"Orphaned blob could not be removed: {exc}", path=stored_path)
            return False
        Log.warning("Orphaned blob removed", path=stored_path)
        return True


class ResolvePublicUrlStep(IngestionStep):
    def __init__(self, blob_store: BaseBlobStore) -> None:
        self._blob_store = blob_store

    def run(self, context: IngestionContext) -> IngestionContext:
        if context.storage_path is None:
            return context
        try:
            context.public_url = self._blob_store.get_public_url(context.storage_path)
        except Exception as exc:  # noqa: BLE001
            Log.warning(f"Public URL unavailable: {exc!r}", path=context.storage_path)
            context.public_url = None
        return context


class DispatchNotificationStep(IngestionStep):
    """Hands the document to the downstream pipeline without waiting."""

    def __init__(self, dispatcher: NotificationDispatcher | None) -> None:
        self._dispatcher = dispatcher

    def run(self, context: IngestionContext) -> IngestionContext:
        document = context.document
        if document is None:
            raise ValueError("IngestionContext.document must be set before notification")
        if self._dispatcher is None:
            Log.warning(
                "Downstream webhook not configured, document stays pending",
                document_id=document.id,
            )
            return context
        payload = NotificationPayload(
            document_id=str(document.id),
            storage_path=document.storage_path,
            public_url=context.public_url,
            file_name=document.file_name,
            owner_id=document.owner_id,
        )
        try:
            self._dispatcher.dispatch(payload)
        except Exception as exc:  # noqa: BLE001
            Log.error(f"Notification could not be queued: {exc!r}", document_id=document.id)
        return context
