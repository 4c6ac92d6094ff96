import os
import uuid
from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path
from typing import Any

import psycopg
import pytest

from intake.config.settings import Settings
from intake.database.connection import Database
from intake.database.repositories.documents_repository import PostgresDocumentsRepository
from intake.database.schema import create_schema
from intake.documents.exceptions import PersistenceError
from intake.storage.local_blob_store import LocalBlobStore


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "intake_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_database(test_settings: Settings) -> Generator[Database, None, None]:
    database = Database.from_settings(test_settings)
    try:
        database.open()
    except PersistenceError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one.")
    try:
        create_schema(database)
        yield database
    finally:
        database.close()


@pytest.fixture
def db_conn(integration_database: Database) -> Generator[psycopg.Connection[Any], None, None]:
    with integration_database.connection() as conn:
        yield conn


@pytest.fixture
def owner_id(integration_database: Database) -> Generator[str, None, None]:
    """A fresh owner per test; every row it owns is removed afterwards."""
    owner = f"it-{uuid.uuid4()}"
    yield owner
    with integration_database.connection() as conn:
        conn.execute("DELETE FROM documents WHERE owner_id = %s", (owner,))
        conn.commit()


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path, bucket="documents")


@pytest.fixture
def repository(
    integration_database: Database, blob_store: LocalBlobStore
) -> PostgresDocumentsRepository:
    return PostgresDocumentsRepository(integration_database, blob_store)


@pytest.fixture
def set_uploaded_at(db_conn: psycopg.Connection[Any]) -> Callable[[uuid.UUID, datetime], None]:
    def _set(document_id: uuid.UUID, uploaded_at: datetime) -> None:
        db_conn.execute(
            "UPDATE documents SET uploaded_at = %s WHERE id = %s",
            (uploaded_at, document_id),
        )
        db_conn.commit()

    return _set
