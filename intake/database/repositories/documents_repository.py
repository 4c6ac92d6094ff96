from typing import Any, ClassVar
from uuid import UUID

import psycopg
from psycopg.rows import dict_row

from intake.database.connection import Database
from intake.database.repositories.base import BaseDocumentsRepository
from intake.documents.exceptions import (
    DocumentNotFoundError,
    InvalidStatusTransitionError,
    PersistenceError,
    StorageDeleteError,
)
from intake.documents.models import (
    DeleteResult,
    Document,
    DocumentFilter,
    DocumentStatus,
    SortOrder,
)
from intake.logging.logger import Log
from intake.storage.base import BaseBlobStore

_COLUMNS = "id, file_name, storage_path, owner_id, status, uploaded_at"


def _parse_id(document_id: str | UUID) -> UUID | None:
    if isinstance(document_id, UUID):
        return document_id
    try:
        return UUID(str(document_id))
    except ValueError:
        return None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_document(row: dict[str, Any]) -> Document:
    return Document(
        id=row["id"],
        file_name=row["file_name"],
        storage_path=row["storage_path"],
        owner_id=row["owner_id"],
        status=DocumentStatus(row["status"]),
        uploaded_at=row["uploaded_at"],
    )


class PostgresDocumentsRepository(BaseDocumentsRepository):
    """Database operations for the documents table.

    Deleting a document also removes its blob, so the repository is bound to
    the blob store that holds the uploads.
    """

    ORDER_BY: ClassVar[dict[SortOrder, str]] = {
        SortOrder.UPLOADED_DESC: "uploaded_at DESC, seq ASC",
        SortOrder.UPLOADED_ASC: "uploaded_at ASC, seq ASC",
        SortOrder.NAME_ASC: "file_name ASC, seq ASC",
        SortOrder.NAME_DESC: "file_name DESC, seq ASC",
    }

    def __init__(self, database: Database, blob_store: BaseBlobStore) -> None:
        self._db = database
        self._blob_store = blob_store

    def create(self, file_name: str, storage_path: str, owner_id: str) -> Document:
        try:
            with self._db.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO documents (file_name, storage_path, owner_id, status)
                        VALUES (%s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (file_name, storage_path, owner_id, DocumentStatus.PENDING.value),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to create document record: {exc}") from exc

        if row is None:
            raise PersistenceError("Insert returned no row")
        return _row_to_document(row)

    def get_by_id(self, document_id: str) -> Document | None:
        parsed_id = _parse_id(document_id)
        if parsed_id is None:
            return None
        try:
            with self._db.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"SELECT {_COLUMNS} FROM documents WHERE id = %s",
                        (parsed_id,),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to fetch document {document_id}: {exc}") from exc

        if row is None:
            return None
        return _row_to_document(row)

    def list(self, document_filter: DocumentFilter) -> list[Document]:
        conditions: list[str] = []
        params: list[object] = []
        if document_filter.owner_id is not None:
            conditions.append("owner_id = %s")
            params.append(document_filter.owner_id)
        if document_filter.status is not None:
            conditions.append("status = %s")
            params.append(document_filter.status.value)
        if document_filter.query:
            conditions.append("file_name ILIKE %s ESCAPE '\\'")
            params.append(f"%{_escape_like(document_filter.query)}%")
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        order_by = self.ORDER_BY[document_filter.sort]

        try:
            with self._db.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"SELECT {_COLUMNS} FROM documents{where} ORDER BY {order_by}",
                        tuple(params),
                    )
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to list documents: {exc}") from exc

        return [_row_to_document(row) for row in rows]

    def delete(self, document_id: str) -> DeleteResult:
        document = self.get_by_id(document_id)
        if document is None:
            Log.info("Nothing to delete", document_id=document_id)
            return DeleteResult.NOT_FOUND

        try:
            self._blob_store.remove(document.storage_path)
        except StorageDeleteError as exc:
            Log.warning(
                f"Could not remove storage object: {exc}",
                document_id=document.id,
                path=document.storage_path,
            )

        try:
            with self._db.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM documents WHERE id = %s", (document.id,))
                    deleted = cur.rowcount
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to delete document {document.id}: {exc}") from exc

        if deleted == 0:
            return DeleteResult.NOT_FOUND
        Log.info("Document deleted", document_id=document.id)
        return DeleteResult.DELETED

    def update_status(self, document_id: str, new_status: DocumentStatus) -> Document:
        parsed_id = _parse_id(document_id)
        if parsed_id is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        try:
            with self._db.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        "SELECT status FROM documents WHERE id = %s FOR UPDATE",
                        (parsed_id,),
                    )
                    current = cur.fetchone()
                    if current is None:
                        raise DocumentNotFoundError(f"Document {document_id} not found")
                    current_status = DocumentStatus(current["status"])
                    if not current_status.can_transition_to(new_status):
                        raise InvalidStatusTransitionError(
                            f"Cannot move document {document_id} "
                            f"from {current_status.value} to {new_status.value}"
                        )
                    cur.execute(
                        f"UPDATE documents SET status = %s WHERE id = %s RETURNING {_COLUMNS}",
                        (new_status.value, parsed_id),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to update status of document {document_id}: {exc}"
            ) from exc

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        Log.info(
            f"Document moved {current_status.value} -> {new_status.value}",
            document_id=parsed_id,
        )
        return _row_to_document(row)
