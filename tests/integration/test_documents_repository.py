import uuid
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from intake.database.repositories.documents_repository import PostgresDocumentsRepository
from intake.documents.exceptions import InvalidStatusTransitionError, PersistenceError
from intake.documents.models import DeleteResult, DocumentFilter, DocumentStatus, SortOrder
from intake.storage.local_blob_store import LocalBlobStore

T1 = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
T2 = datetime(2024, 1, 2, 9, 0, tzinfo=UTC)
T3 = datetime(2024, 1, 3, 9, 0, tzinfo=UTC)


def _key(name: str) -> str:
    return f"public/{uuid.uuid4().hex}-{name}"


@pytest.mark.integration
class TestCreateAndGet:
    def test_create_returns_pending_document(
        self, repository: PostgresDocumentsRepository, owner_id: str
    ) -> None:
        doc = repository.create(
            file_name="Café.pdf", storage_path=_key("Cafe.pdf"), owner_id=owner_id
        )

        assert doc.status is DocumentStatus.PENDING
        assert doc.owner_id == owner_id
        assert doc.uploaded_at.tzinfo is not None
        assert repository.get_by_id(str(doc.id)) == doc

    def test_get_unknown_id_returns_none(self, repository: PostgresDocumentsRepository) -> None:
        assert repository.get_by_id(str(uuid.uuid4())) is None
        assert repository.get_by_id("not-a-uuid") is None

    def test_storage_path_is_unique(
        self, repository: PostgresDocumentsRepository, owner_id: str
    ) -> None:
        key = _key("a.pdf")
        repository.create(file_name="a.pdf", storage_path=key, owner_id=owner_id)

        with pytest.raises(PersistenceError):
            repository.create(file_name="a.pdf", storage_path=key, owner_id=owner_id)


@pytest.mark.integration
class TestList:
    def test_orders_by_upload_time_and_name(
        self,
        repository: PostgresDocumentsRepository,
        owner_id: str,
        set_uploaded_at: Callable[[uuid.UUID, datetime], None],
    ) -> None:
        beta = repository.create(file_name="beta.pdf", storage_path=_key("b"), owner_id=owner_id)
        alpha = repository.create(file_name="alpha.pdf", storage_path=_key("a"), owner_id=owner_id)
        gamma = repository.create(file_name="gamma.pdf", storage_path=_key("g"), owner_id=owner_id)
        set_uploaded_at(alpha.id, T1)
        set_uploaded_at(beta.id, T2)
        set_uploaded_at(gamma.id, T3)

        def names(sort: SortOrder) -> list[str]:
            docs = repository.list(DocumentFilter(owner_id=owner_id, sort=sort))
            return [doc.file_name for doc in docs]

        assert names(SortOrder.UPLOADED_DESC) == ["gamma.pdf", "beta.pdf", "alpha.pdf"]
        assert names(SortOrder.UPLOADED_ASC) == ["alpha.pdf", "beta.pdf", "gamma.pdf"]
        assert names(SortOrder.NAME_DESC) == ["gamma.pdf", "beta.pdf", "alpha.pdf"]
        assert names(SortOrder.NAME_ASC) == ["alpha.pdf", "beta.pdf", "gamma.pdf"]

    def test_equal_timestamps_keep_insertion_order(
        self,
        repository: PostgresDocumentsRepository,
        owner_id: str,
        set_uploaded_at: Callable[[uuid.UUID, datetime], None],
    ) -> None:
        first = repository.create(file_name="same.pdf", storage_path=_key("1"), owner_id=owner_id)
        second = repository.create(file_name="same.pdf", storage_path=_key("2"), owner_id=owner_id)
        set_uploaded_at(first.id, T1)
        set_uploaded_at(second.id, T1)

        docs = repository.list(DocumentFilter(owner_id=owner_id))

        assert [doc.id for doc in docs] == [first.id, second.id]

    def test_filters_by_status_and_query(
        self, repository: PostgresDocumentsRepository, owner_id: str
    ) -> None:
        invoice = repository.create(
            file_name="Invoice_March.pdf", storage_path=_key("i"), owner_id=owner_id
        )
        repository.create(file_name="notes.txt", storage_path=_key("n"), owner_id=owner_id)
        repository.update_status(str(invoice.id), DocumentStatus.PROCESSING)

        by_query = repository.list(DocumentFilter(owner_id=owner_id, query="invoice"))
        by_status = repository.list(
            DocumentFilter(owner_id=owner_id, status=DocumentStatus.PROCESSING)
        )
        literal_underscore = repository.list(DocumentFilter(owner_id=owner_id, query="e_m"))

        assert [doc.id for doc in by_query] == [invoice.id]
        assert [doc.id for doc in by_status] == [invoice.id]
        assert [doc.id for doc in literal_underscore] == [invoice.id]

    def test_other_owners_are_excluded(
        self, repository: PostgresDocumentsRepository, owner_id: str
    ) -> None:
        repository.create(file_name="mine.pdf", storage_path=_key("m"), owner_id=owner_id)

        assert repository.list(DocumentFilter(owner_id=f"{owner_id}-other")) == []


@pytest.mark.integration
class TestDelete:
    def test_delete_removes_blob_and_row(
        self,
        repository: PostgresDocumentsRepository,
        blob_store: LocalBlobStore,
        owner_id: str,
    ) -> None:
        key = blob_store.upload(_key("a.pdf"), b"%PDF", "application/pdf")
        doc = repository.create(file_name="a.pdf", storage_path=key, owner_id=owner_id)

        assert repository.delete(str(doc.id)) is DeleteResult.DELETED
        assert repository.get_by_id(str(doc.id)) is None
        # a second upload under the same key succeeds only if the blob is gone
        assert blob_store.upload(key, b"%PDF", "application/pdf") == key

    def test_delete_with_missing_blob_still_removes_row(
        self, repository: PostgresDocumentsRepository, owner_id: str
    ) -> None:
        doc = repository.create(file_name="a.pdf", storage_path=_key("a.pdf"), owner_id=owner_id)

        assert repository.delete(str(doc.id)) is DeleteResult.DELETED
        assert repository.get_by_id(str(doc.id)) is None

    def test_delete_unknown_id_is_not_found(
        self, repository: PostgresDocumentsRepository
    ) -> None:
        assert repository.delete(str(uuid.uuid4())) is DeleteResult.NOT_FOUND


@pytest.mark.integration
class TestUpdateStatus:
    def test_moves_forward_through_lifecycle(
        self, repository: PostgresDocumentsRepository, owner_id: str
    ) -> None:
        doc = repository.create(file_name="a.pdf", storage_path=_key("a"), owner_id=owner_id)

        processing = repository.update_status(str(doc.id), DocumentStatus.PROCESSING)
        completed = repository.update_status(str(doc.id), DocumentStatus.COMPLETED)

        assert processing.status is DocumentStatus.PROCESSING
        assert completed.status is DocumentStatus.COMPLETED
        assert repository.get_by_id(str(doc.id)).status is DocumentStatus.COMPLETED

    def test_rejects_moving_backward(
        self, repository: PostgresDocumentsRepository, owner_id: str
    ) -> None:
        doc = repository.create(file_name="a.pdf", storage_path=_key("a"), owner_id=owner_id)
        repository.update_status(str(doc.id), DocumentStatus.PROCESSING)

        with pytest.raises(InvalidStatusTransitionError):
            repository.update_status(str(doc.id), DocumentStatus.PENDING)

        assert repository.get_by_id(str(doc.id)).status is DocumentStatus.PROCESSING
