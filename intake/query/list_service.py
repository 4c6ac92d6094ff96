from collections.abc import Mapping
from enum import Enum
from typing import ClassVar

from intake.database.repositories.base import BaseDocumentsRepository
from intake.documents.exceptions import ValidationError
from intake.documents.models import DeleteResult, Document, DocumentFilter, DocumentStatus, SortOrder
from intake.logging.logger import Log


class DocumentQueryService:
    """Read and delete surface over the documents repository.

    Accepts loose option bags (as parsed from a query string) and turns them
    into a DocumentFilter. Blank values count as unset.
    """

    OPTION_ALIASES: ClassVar[dict[str, str]] = {
        "owner_id": "owner_id",
        "ownerId": "owner_id",
        "status": "status",
        "query": "query",
        "q": "query",
        "sort": "sort",
    }

    def __init__(self, doc_repo: BaseDocumentsRepository) -> None:
        self._doc_repo = doc_repo

    def list_documents(self, options: Mapping[str, object] | None = None) -> list[Document]:
        document_filter = self.build_filter(options or {})
        documents = self._doc_repo.list(document_filter)
        Log.debug(f"Listed {len(documents)} documents", sort=document_filter.sort.value)
        return documents

    def get_document(self, document_id: str) -> Document | None:
        return self._doc_repo.get_by_id(document_id)

    def delete_document(self, document_id: str) -> DeleteResult:
        return self._doc_repo.delete(document_id)

    @classmethod
    def build_filter(cls, options: Mapping[str, object]) -> DocumentFilter:
        """Translate caller options into a DocumentFilter.

        Raises:
            ValidationError: for an unknown status or sort value.
        """
        cleaned: dict[str, str] = {}
        for key, value in options.items():
            field_name = cls.OPTION_ALIASES.get(key)
            if field_name is None:
                Log.debug(f"Ignoring unknown list option '{key}'")
                continue
            text = cls._clean(value)
            if text is not None:
                cleaned[field_name] = text

        return DocumentFilter(
            owner_id=cleaned.get("owner_id"),
            status=cls._parse_status(cleaned.get("status")),
            query=cleaned.get("query"),
            sort=cls._parse_sort(cleaned.get("sort")),
        )

    @staticmethod
    def _clean(value: object) -> str | None:
        if value is None:
            return None
        if isinstance(value, Enum):
            value = value.value
        text = str(value).strip()
        return text or None

    @staticmethod
    def _parse_status(value: str | None) -> DocumentStatus | None:
        if value is None:
            return None
        try:
            return DocumentStatus(value.lower())
        except ValueError:
            allowed = [status.value for status in DocumentStatus]
            raise ValidationError(f"Unknown status '{value}'. Choose from: {allowed}") from None

    @staticmethod
    def _parse_sort(value: str | None) -> SortOrder:
        if value is None:
            return SortOrder.UPLOADED_DESC
        try:
            return SortOrder(value.lower())
        except ValueError:
            allowed = [order.value for order in SortOrder]
            raise ValidationError(f"Unknown sort '{value}'. Choose from: {allowed}") from None
