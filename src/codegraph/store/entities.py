"""Entity persistence.

Read operations are pure lookups. Absent rows surface as None, False or an
empty list, never as an exception.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import delete, func
from sqlmodel import col, select

from codegraph.core.logging import get_logger
from codegraph.store.models import (
    Entity,
    EntityType,
    NewEntity,
    RecentFile,
    _dump_metadata,
)

if TYPE_CHECKING:
    from sqlmodel import Session

    from codegraph.store.database import Database

log = get_logger("store.entities")

# Stay well under SQLite's bound-parameter limit
_IN_CHUNK = 500


def _like_pattern(name: str) -> str:
    """Translate a ``*`` wildcard name into a LIKE pattern, escaping ``%`` and ``_``."""
    escaped = name.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%")


class EntityStore:
    """CRUD over the ``entities`` table.

    Deleting an entity cascades to every relationship touching it; the
    cascade is enforced by SQLite foreign keys, so it is atomic with the
    delete itself.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, entity: NewEntity, *, session: Session | None = None) -> Entity:
        """Persist a new entity, assigning its id and timestamps."""
        now = time.time()
        row = Entity(
            type=EntityType(entity.type).value,
            name=entity.name,
            file_path=entity.file_path,
            start_line=entity.start_line,
            end_line=entity.end_line,
            language=entity.language,
            metadata_json=_dump_metadata(entity.metadata),
            created_at=now,
            updated_at=now,
        )
        with self._db.transaction(session) as s:
            s.add(row)
            s.flush()
        return row

    def find_by_id(self, entity_id: str) -> Entity | None:
        with self._db.session() as s:
            return s.get(Entity, entity_id)

    def find_by_ids(self, entity_ids: list[str]) -> dict[str, Entity]:
        """Bulk lookup; ids that do not exist are simply absent from the map."""
        wanted = list(set(entity_ids))
        found: dict[str, Entity] = {}
        with self._db.session() as s:
            for i in range(0, len(wanted), _IN_CHUNK):
                stmt = select(Entity).where(col(Entity.id).in_(wanted[i : i + _IN_CHUNK]))
                found.update((row.id, row) for row in s.exec(stmt).all())
        return found

    def find_by_name(self, name: str) -> list[Entity]:
        with self._db.session() as s:
            stmt = select(Entity).where(Entity.name == name).order_by(
                col(Entity.file_path), col(Entity.start_line)
            )
            return list(s.exec(stmt).all())

    def find_by_names(self, names: Iterable[str]) -> list[Entity]:
        """Every entity whose name is in ``names``, ordered by file and line."""
        wanted = list(set(names))
        found: list[Entity] = []
        with self._db.session() as s:
            for i in range(0, len(wanted), _IN_CHUNK):
                stmt = select(Entity).where(col(Entity.name).in_(wanted[i : i + _IN_CHUNK]))
                found.extend(s.exec(stmt).all())
        found.sort(key=lambda e: (e.file_path, e.start_line))
        return found

    def find_by_file(self, file_path: str) -> list[Entity]:
        with self._db.session() as s:
            stmt = select(Entity).where(Entity.file_path == file_path).order_by(
                col(Entity.start_line)
            )
            return list(s.exec(stmt).all())

    def find_by_type(self, entity_type: EntityType | str) -> list[Entity]:
        with self._db.session() as s:
            stmt = (
                select(Entity)
                .where(Entity.type == EntityType(entity_type).value)
                .order_by(col(Entity.file_path), col(Entity.start_line))
            )
            return list(s.exec(stmt).all())

    def search(
        self,
        *,
        name: str | None = None,
        entity_type: EntityType | str | None = None,
        file_path: str | None = None,
        limit: int | None = None,
    ) -> list[Entity]:
        """Filtered lookup; ``name`` accepts ``*`` wildcards."""
        stmt = select(Entity)
        if name is not None:
            if "*" in name:
                stmt = stmt.where(col(Entity.name).like(_like_pattern(name), escape="\\"))
            else:
                stmt = stmt.where(Entity.name == name)
        if entity_type is not None:
            stmt = stmt.where(Entity.type == EntityType(entity_type).value)
        if file_path is not None:
            stmt = stmt.where(Entity.file_path == file_path)
        stmt = stmt.order_by(col(Entity.file_path), col(Entity.start_line))
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._db.session() as s:
            return list(s.exec(stmt).all())

    def get_all(self) -> list[Entity]:
        with self._db.session() as s:
            stmt = select(Entity).order_by(col(Entity.file_path), col(Entity.start_line))
            return list(s.exec(stmt).all())

    def delete(self, entity_id: str, *, session: Session | None = None) -> bool:
        """Delete one entity. Returns False if it did not exist."""
        with self._db.transaction(session) as s:
            result = s.execute(delete(Entity).where(col(Entity.id) == entity_id))
        return int(result.rowcount) > 0  # type: ignore[attr-defined]

    def delete_by_file(self, file_path: str, *, session: Session | None = None) -> int:
        """Delete every entity defined in ``file_path``; returns how many."""
        with self._db.transaction(session) as s:
            result = s.execute(delete(Entity).where(col(Entity.file_path) == file_path))
        count = int(result.rowcount)  # type: ignore[attr-defined]
        if count:
            log.debug("entities_deleted", file_path=file_path, count=count)
        return count

    def count(self) -> int:
        with self._db.session() as s:
            return int(s.exec(select(func.count()).select_from(Entity)).one())

    def count_by_type(self) -> dict[str, int]:
        """Counts for every entity type, zeros included."""
        counts = {t.value: 0 for t in EntityType}
        with self._db.session() as s:
            rows = s.exec(select(Entity.type, func.count()).group_by(Entity.type)).all()
        for entity_type, n in rows:
            counts[entity_type] = int(n)
        return counts

    def get_recent_files(self, limit: int = 10) -> list[RecentFile]:
        """Files ordered by their most recent entity write, newest first."""
        last_updated = func.max(Entity.updated_at)
        stmt = (
            select(Entity.file_path, func.count(), last_updated)
            .group_by(Entity.file_path)
            .order_by(last_updated.desc(), col(Entity.file_path))
            .limit(limit)
        )
        with self._db.session() as s:
            rows = s.exec(stmt).all()
        return [
            RecentFile(file_path=path, entity_count=int(n), last_updated=float(ts))
            for path, n, ts in rows
        ]
