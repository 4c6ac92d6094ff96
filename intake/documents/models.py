from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class DocumentStatus(str, Enum):
    """Lifecycle state of a document; only ever moves forward."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def can_transition_to(self, target: "DocumentStatus") -> bool:
        return target.value in _FORWARD_TRANSITIONS[self.value]

    @property
    def is_terminal(self) -> bool:
        return not _FORWARD_TRANSITIONS[self.value]


_FORWARD_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"processing"}),
    "processing": frozenset({"completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
}


class SortOrder(str, Enum):
    """Recognized orderings for document listings."""

    UPLOADED_DESC = "uploaded_desc"
    UPLOADED_ASC = "uploaded_asc"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"


class DeleteResult(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Document:
    """A stored upload and its metadata row."""

    id: UUID
    file_name: str
    storage_path: str
    owner_id: str
    status: DocumentStatus
    uploaded_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "id": str(self.id),
            "fileName": self.file_name,
            "storagePath": self.storage_path,
            "ownerId": self.owner_id,
            "status": self.status.value,
            "uploadedAt": self.uploaded_at.isoformat(),
        }


@dataclass(frozen=True)
class DocumentFilter:
    """Recognized listing options. ``None`` means the option is not applied."""

    owner_id: str | None = None
    status: DocumentStatus | None = None
    query: str | None = None
    sort: SortOrder = SortOrder.UPLOADED_DESC
