"""Engine and session management for the corpus database."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from afs_corpus.errors import ConflictError, StorageFailureError
from afs_corpus.store.schema import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT = 30.0


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


class Database:
    """Owns the SQLAlchemy engine and hands out transactional sessions.

    SQLite connections get foreign keys enforced, a Unicode-aware `casefold()`
    SQL function, and WAL journaling for file databases so readers never
    block the writer.
    """

    def __init__(self, url: str, *, echo: bool = False):
        self.url = make_url(url)
        connect_args = {}
        if self.is_sqlite:
            connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
            self._ensure_parent_dir()
        self.engine: Engine = create_engine(self.url, echo=echo, connect_args=connect_args)
        if self.is_sqlite:
            event.listen(self.engine, "connect", self._on_sqlite_connect)
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    @property
    def is_file_database(self) -> bool:
        return self.is_sqlite and self.url.database not in (None, "", ":memory:")

    def _ensure_parent_dir(self) -> None:
        if self.is_file_database:
            Path(self.url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    def _on_sqlite_connect(self, dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        if self.is_file_database:
            cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()
        dbapi_connection.create_function("casefold", 1, _casefold, deterministic=True)

    def create_all(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except OperationalError as e:
            raise StorageFailureError(f"Could not create corpus schema: {e}") from e

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session_scope(self, *, write: bool = False) -> Iterator[Session]:
        """Yield a session; commit on success when `write`, always roll back on error."""
        session = self._session_factory()
        try:
            yield session
            if write:
                session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ConflictError(f"Concurrent revision conflict: {e.orig}") from e
        except OperationalError as e:
            session.rollback()
            logger.error("Database operation failed: %s", e)
            raise StorageFailureError(f"Corpus storage unavailable: {e.orig}") from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()
