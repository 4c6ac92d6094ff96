class IntakeError(Exception):
    """Base exception for all document intake errors."""


class ValidationError(IntakeError):
    """Raised when caller input is missing, malformed or oversized."""


class InvalidStatusTransitionError(ValidationError):
    """Raised when a status change would move a document backwards."""


class StorageWriteError(IntakeError):
    """Raised when the blob store rejects or fails a write.

    No partial state exists when this is raised, so the whole ingestion is
    safe to retry from scratch.
    """


class StorageDeleteError(IntakeError):
    """Raised when the blob store fails to remove an existing object."""


class PersistenceError(IntakeError):
    """Raised when the relational store rejects or fails an operation.

    ``orphaned_storage_path`` is set when the failure happened after the blob
    was already uploaded. Retrying blindly would upload a second copy and
    leave this one unreferenced.
    """

    def __init__(self, message: str, orphaned_storage_path: str | None = None) -> None:
        super().__init__(message)
        self.orphaned_storage_path = orphaned_storage_path


class DocumentNotFoundError(IntakeError):
    """Raised when a status update targets a document that does not exist."""
