from dataclasses import dataclass

from intake.documents.models import Document


@dataclass(frozen=True)
class RawFile:
    """One file as handed over by the caller.

    ``declared_size`` is the size reported by the transport, if any; it must
    agree with the payload length.
    """

    data: bytes | None
    original_name: str
    content_type: str = "application/octet-stream"
    declared_size: int | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data) if self.data else 0


@dataclass(frozen=True)
class IngestOutcome:
    """Result of one ingestion: either a document or the error that stopped it."""

    file_name: str
    document: Document | None = None
    error: Exception | None = None
    orphaned_storage_path: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None

    def unwrap(self) -> Document:
        """Return the document or raise the recorded error."""
        if self.error is not None:
            raise self.error
        if self.document is None:
            raise RuntimeError(f"Ingestion of {self.file_name} produced no document")
        return self.document

    def to_dict(self) -> dict[str, object]:
        if self.ok and self.document is not None:
            return {"file": self.file_name, "document": self.document.to_dict()}
        result: dict[str, object] = {
            "file": self.file_name,
            "error": type(self.error).__name__,
            "message": str(self.error),
        }
        if self.orphaned_storage_path is not None:
            result["orphanedStoragePath"] = self.orphaned_storage_path
        return result
