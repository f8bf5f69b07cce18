"""Relationship persistence.

Invariants enforced by the schema:
- (source_id, target_id, type) is unique
- both endpoints must exist (foreign keys)
- deleting either endpoint deletes the edge (ON DELETE CASCADE)

``create`` surfaces violations as StoreError. ``create_batch`` silently
drops duplicate triples, both within the batch and against stored rows,
but a missing endpoint aborts the whole batch.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, or_
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from codegraph.core.errors import StoreError
from codegraph.core.logging import get_logger
from codegraph.store.models import (
    NewRelationship,
    Relationship,
    RelationshipType,
    _dump_metadata,
    _new_id,
)

if TYPE_CHECKING:
    from sqlmodel import Session

    from codegraph.store.database import Database

log = get_logger("store.relationships")

_TABLE = Relationship.__table__  # type: ignore[attr-defined]


def _is_unique_violation(error: IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(error.orig)


def _is_fk_violation(error: IntegrityError) -> bool:
    return "FOREIGN KEY constraint failed" in str(error.orig)


class RelationshipStore:
    """CRUD over the ``relationships`` table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, new: NewRelationship, *, session: Session | None = None) -> Relationship:
        """Insert one edge.

        Raises:
            StoreError: STORE_CONSTRAINT_VIOLATION if the triple already
                exists, STORE_MISSING_ENDPOINT if either entity is absent.
        """
        row = Relationship(
            source_id=new.source_id,
            target_id=new.target_id,
            type=RelationshipType(new.type).value,
            metadata_json=_dump_metadata(new.metadata),
            created_at=time.time(),
        )
        try:
            with self._db.transaction(session) as s:
                s.add(row)
                s.flush()
        except IntegrityError as e:
            raise self._translate(e, new) from e
        return row

    def create_batch(
        self,
        items: list[NewRelationship],
        *,
        session: Session | None = None,
    ) -> list[Relationship]:
        """Insert many edges, skipping duplicate triples.

        Returns only the rows actually inserted, in input order.

        Raises:
            StoreError: STORE_MISSING_ENDPOINT if any item references an
                entity that does not exist. Nothing from the batch is kept.
        """
        if not items:
            return []

        created: list[Relationship] = []
        seen: set[tuple[str, str, str]] = set()
        now = time.time()
        current: NewRelationship | None = None
        try:
            with self._db.transaction(session) as s:
                for item in items:
                    triple = item.triple
                    if triple in seen:
                        continue
                    seen.add(triple)
                    current = item
                    row = Relationship(
                        id=_new_id(),
                        source_id=item.source_id,
                        target_id=item.target_id,
                        type=triple[2],
                        metadata_json=_dump_metadata(item.metadata),
                        created_at=now,
                    )
                    stmt = (
                        sqlite_insert(_TABLE)
                        .values(
                            {
                                "id": row.id,
                                "source_id": row.source_id,
                                "target_id": row.target_id,
                                "type": row.type,
                                "metadata": row.metadata_json,
                                "created_at": row.created_at,
                            }
                        )
                        .on_conflict_do_nothing(index_elements=["source_id", "target_id", "type"])
                    )
                    result = s.execute(stmt)
                    if int(result.rowcount) > 0:  # type: ignore[attr-defined]
                        created.append(row)
        except IntegrityError as e:
            if current is None:
                raise StoreError.constraint_violation("relationships", str(e.orig)) from e
            raise self._translate(e, current) from e

        dropped = len(items) - len(created)
        if dropped:
            log.debug("relationship_duplicates_dropped", count=dropped, inserted=len(created))
        return created

    @staticmethod
    def _translate(error: IntegrityError, new: NewRelationship) -> StoreError:
        if _is_fk_violation(error):
            return StoreError.missing_endpoint(new.source_id, new.target_id)
        if _is_unique_violation(error):
            return StoreError.constraint_violation(
                "relationships",
                "duplicate (source_id, target_id, type)",
                source_id=new.source_id,
                target_id=new.target_id,
                type=RelationshipType(new.type).value,
            )
        return StoreError.constraint_violation("relationships", str(error.orig))

    def find_by_id(self, relationship_id: str) -> Relationship | None:
        with self._db.session() as s:
            return s.get(Relationship, relationship_id)

    def find_by_source(self, source_id: str) -> list[Relationship]:
        with self._db.session() as s:
            stmt = (
                select(Relationship)
                .where(Relationship.source_id == source_id)
                .order_by(col(Relationship.created_at), col(Relationship.id))
            )
            return list(s.exec(stmt).all())

    def find_by_target(self, target_id: str) -> list[Relationship]:
        with self._db.session() as s:
            stmt = (
                select(Relationship)
                .where(Relationship.target_id == target_id)
                .order_by(col(Relationship.created_at), col(Relationship.id))
            )
            return list(s.exec(stmt).all())

    def find_by_type(self, rel_type: RelationshipType | str) -> list[Relationship]:
        with self._db.session() as s:
            stmt = select(Relationship).where(
                Relationship.type == RelationshipType(rel_type).value
            )
            return list(s.exec(stmt).all())

    def find_between(self, source_id: str, target_id: str) -> list[Relationship]:
        """Every edge from source to target, whatever its type."""
        with self._db.session() as s:
            stmt = select(Relationship).where(
                Relationship.source_id == source_id,
                Relationship.target_id == target_id,
            )
            return list(s.exec(stmt).all())

    def delete(self, relationship_id: str, *, session: Session | None = None) -> bool:
        with self._db.transaction(session) as s:
            result = s.execute(
                delete(Relationship).where(col(Relationship.id) == relationship_id)
            )
        return int(result.rowcount) > 0  # type: ignore[attr-defined]

    def delete_by_entity(self, entity_id: str, *, session: Session | None = None) -> int:
        """Delete edges where the entity is source or target."""
        with self._db.transaction(session) as s:
            result = s.execute(
                delete(Relationship).where(
                    or_(
                        col(Relationship.source_id) == entity_id,
                        col(Relationship.target_id) == entity_id,
                    )
                )
            )
        return int(result.rowcount)  # type: ignore[attr-defined]

    def count(self) -> int:
        with self._db.session() as s:
            return int(s.exec(select(func.count()).select_from(Relationship)).one())

    def count_by_type(self) -> dict[str, int]:
        """Counts for every relationship type, zeros included."""
        counts = {t.value: 0 for t in RelationshipType}
        with self._db.session() as s:
            rows = s.exec(
                select(Relationship.type, func.count()).group_by(Relationship.type)
            ).all()
        for rel_type, n in rows:
            counts[rel_type] = int(n)
        return counts
