from abc import ABC, abstractmethod

from intake.documents.models import DeleteResult, Document, DocumentFilter, DocumentStatus


class BaseDocumentsRepository(ABC):
    """Full capability set for document metadata persistence."""

    @abstractmethod
    def create(self, file_name: str, storage_path: str, owner_id: str) -> Document:
        """Insert a new record. Status is always ``pending``.

        Raises:
            PersistenceError: on constraint violation or backend failure.
        """

    @abstractmethod
    def get_by_id(self, document_id: str) -> Document | None:
        """Return the document, or None when it does not exist."""

    @abstractmethod
    def list(self, document_filter: DocumentFilter) -> list[Document]:
        """Return documents matching the filter in the declared sort order."""

    @abstractmethod
    def delete(self, document_id: str) -> DeleteResult:
        """Remove the blob (best effort) and then the record."""

    @abstractmethod
    def update_status(self, document_id: str, new_status: DocumentStatus) -> Document:
        """Advance a document's status.

        Raises:
            DocumentNotFoundError: if the document does not exist.
            InvalidStatusTransitionError: if the change is not a forward move.
        """
