"""Database engine and session management for the graph store.

This module provides:
- Database: explicitly constructed handle owning one SQLite engine
- open_database: construct + create schema in one step
- Session helpers: read sessions and commit-or-rollback transactions

There is no module-level handle; callers create one Database per graph and
pass it to the stores.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from codegraph.core.errors import StoreError

# Registers the tables on SQLModel.metadata
from codegraph.store import models as _models  # noqa: F401

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

MEMORY_PATH = ":memory:"
DEFAULT_BUSY_TIMEOUT_MS = 30000


class Database:
    """SQLite handle for one code graph.

    ``db_path=None`` (or ``":memory:"``) keeps the graph in-process on a
    single shared connection; a file path uses WAL mode.
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        *,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ) -> None:
        if db_path is None or str(db_path) == MEMORY_PATH:
            self.db_path: Path | None = None
        else:
            self.db_path = Path(db_path)
        self._busy_timeout_ms = busy_timeout_ms
        self._closed = False
        self.engine = self._create_engine()

    @property
    def in_memory(self) -> bool:
        return self.db_path is None

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        return f"Database({str(self.db_path) if self.db_path else MEMORY_PATH!r})"

    def _create_engine(self) -> Engine:
        if self.db_path is None:
            engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(
                f"sqlite:///{self.db_path}",
                connect_args={"check_same_thread": False},
                pool_pre_ping=True,
            )
        event.listen(
            engine,
            "connect",
            _make_pragma_hook(busy_timeout_ms=self._busy_timeout_ms, wal=not self.in_memory),
        )
        return engine

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError.closed(str(self.db_path or MEMORY_PATH))

    def create_all(self) -> None:
        """Create all tables and indexes. Safe to call repeatedly."""
        self._check_open()
        SQLModel.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables. Use with caution."""
        self._check_open()
        SQLModel.metadata.drop_all(self.engine)

    def reset(self) -> None:
        """Drop and recreate every table, leaving an empty graph."""
        self.drop_all()
        self.create_all()
        logger.debug("database_reset", db_path=str(self.db_path or MEMORY_PATH))

    def close(self) -> None:
        """Dispose the engine. Any later use raises StoreError."""
        if self._closed:
            return
        self.engine.dispose()
        self._closed = True
        logger.debug("database_closed", db_path=str(self.db_path or MEMORY_PATH))

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session for reads."""
        self._check_open()
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    @contextmanager
    def transaction(self, session: Session | None = None) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on exception.

        Passing an outer ``session`` joins it instead: nothing is committed
        here and the outer owner decides the outcome.
        """
        if session is not None:
            yield session
            return

        self._check_open()
        with Session(self.engine, expire_on_commit=False) as new_session:
            try:
                yield new_session
                new_session.commit()
            except Exception:
                new_session.rollback()
                raise


def open_database(
    db_path: Path | str | None = None,
    *,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> Database:
    """Open a graph database and make sure its schema exists."""
    db = Database(db_path, busy_timeout_ms=busy_timeout_ms)
    db.create_all()
    logger.debug("database_opened", db_path=str(db.db_path or MEMORY_PATH))
    return db


def _make_pragma_hook(*, busy_timeout_ms: int, wal: bool) -> Callable[[Any, Any], None]:
    def _configure_pragmas(dbapi_conn: Any, _connection_record: Any) -> None:
        """Configure SQLite for cascading deletes and concurrent readers."""
        cursor = dbapi_conn.cursor()
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return _configure_pragmas
