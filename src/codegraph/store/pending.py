"""Staged cross-file edges.

The file processor can only resolve names defined in the file it is
processing. Edges whose target lives elsewhere are staged here, keyed by
their (stored) source entity and the target's name, and linked once the
whole directory has been indexed. Rows disappear with their source entity.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import col, select

from codegraph.store.models import (
    Entity,
    NewPendingEdge,
    PendingEdge,
    RelationshipType,
    _dump_metadata,
)

if TYPE_CHECKING:
    from sqlmodel import Session

    from codegraph.store.database import Database

_TABLE = PendingEdge.__table__  # type: ignore[attr-defined]


class PendingEdgeStore:
    """CRUD over the ``pending_edges`` table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def stage(self, items: list[NewPendingEdge], *, session: Session | None = None) -> int:
        """Stage edges, ignoring ones already staged. Returns rows added."""
        added = 0
        with self._db.transaction(session) as s:
            for item in items:
                stmt = (
                    sqlite_insert(_TABLE)
                    .values(
                        source_id=item.source_id,
                        target_name=item.target_name,
                        type=RelationshipType(item.type).value,
                        metadata=_dump_metadata(item.metadata),
                    )
                    .on_conflict_do_nothing(index_elements=["source_id", "target_name", "type"])
                )
                added += int(s.execute(stmt).rowcount)  # type: ignore[attr-defined]
        return added

    def list_all(self) -> list[PendingEdge]:
        with self._db.session() as s:
            return list(s.exec(select(PendingEdge).order_by(col(PendingEdge.id))).all())

    def find_by_file(self, file_path: str) -> list[PendingEdge]:
        """Edges staged from entities defined in ``file_path``."""
        stmt = (
            select(PendingEdge)
            .join(Entity, col(Entity.id) == col(PendingEdge.source_id))
            .where(Entity.file_path == file_path)
            .order_by(col(PendingEdge.id))
        )
        with self._db.session() as s:
            return list(s.exec(stmt).all())

    def find_by_target_names(self, names: Iterable[str]) -> list[PendingEdge]:
        wanted = set(names)
        if not wanted:
            return []
        stmt = (
            select(PendingEdge)
            .where(col(PendingEdge.target_name).in_(wanted))
            .order_by(col(PendingEdge.id))
        )
        with self._db.session() as s:
            return list(s.exec(stmt).all())

    def count(self) -> int:
        with self._db.session() as s:
            return int(s.exec(select(func.count()).select_from(PendingEdge)).one())
