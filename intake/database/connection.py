from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool

from intake.config.settings import Settings
from intake.documents.exceptions import PersistenceError


class Database:
    """Owns one psycopg connection pool; opened and closed by the caller."""

    def __init__(
        self,
        conninfo: str,
        *,
        max_size: int = 10,
        pool_timeout_seconds: float = 10.0,
    ) -> None:
        self._pool_timeout_seconds = pool_timeout_seconds
        self._pool = ConnectionPool(
            conninfo,
            min_size=1,
            max_size=max_size,
            timeout=pool_timeout_seconds,
            open=False,
        )
        self._opened = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        conninfo = make_conninfo(
            host=settings.db_host,
            port=settings.db_port,
            dbname=settings.db_database,
            user=settings.db_username,
            password=settings.db_password,
            connect_timeout=settings.db_connect_timeout_seconds,
            options=f"-c statement_timeout={settings.db_statement_timeout_ms}",
        )
        return cls(
            conninfo,
            max_size=settings.db_pool_max_size,
            pool_timeout_seconds=settings.db_pool_timeout_seconds,
        )

    def open(self) -> None:
        """Open the pool and wait for the first connection.

        Raises:
            PersistenceError: if the database is unreachable.
        """
        try:
            self._pool.open(wait=True, timeout=self._pool_timeout_seconds)
        except psycopg.Error as exc:
            self._pool.close()
            raise PersistenceError(f"Database unavailable: {exc}") from exc
        self._opened = True

    def close(self) -> None:
        if self._opened:
            self._pool.close()
            self._opened = False

    @contextmanager
    def connection(self) -> Generator[psycopg.Connection[Any], None, None]:
        """Yield a pooled connection. Caller manages commit/rollback."""
        if not self._opened:
            raise RuntimeError("Database pool not opened. Call open() first.")
        with self._pool.connection() as conn:
            yield conn
