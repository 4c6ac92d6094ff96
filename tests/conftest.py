from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from intake.documents.models import Document, DocumentStatus

FIXED_EPOCH_SECONDS = 1_700_000_000.5


@pytest.fixture()
def pdf_bytes() -> bytes:
    """Small payload that looks like a PDF header."""
    return b"%PDF-1.4\n%intake test\n"


@pytest.fixture()
def fixed_clock() -> Callable[[], float]:
    return lambda: FIXED_EPOCH_SECONDS


@pytest.fixture()
def make_document() -> Callable[..., Document]:
    def _make(
        file_name: str = "report.pdf",
        storage_path: str = "public/1700000000123-report.pdf",
        owner_id: str = "user-1",
        status: DocumentStatus = DocumentStatus.PENDING,
        document_id: UUID | None = None,
    ) -> Document:
        return Document(
            id=document_id or uuid4(),
            file_name=file_name,
            storage_path=storage_path,
            owner_id=owner_id,
            status=status,
            uploaded_at=datetime(2024, 1, 1, 12, 0, tzinfo=UTC),
        )

    return _make
