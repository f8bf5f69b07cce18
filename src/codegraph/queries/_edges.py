"""Bulk edge lookups shared by the traversal queries."""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import TYPE_CHECKING

from sqlmodel import col, select

from codegraph.store.models import Entity, Relationship, RelationshipType

if TYPE_CHECKING:
    from codegraph.store.database import Database

# "Depends on": importing alone is not usage
USAGE_TYPES: tuple[RelationshipType, ...] = (
    RelationshipType.CALLS,
    RelationshipType.EXTENDS,
    RelationshipType.IMPLEMENTS,
)

DEPENDENCY_TYPES: tuple[RelationshipType, ...] = (*USAGE_TYPES, RelationshipType.IMPORTS)

# SQLite caps bound parameters per statement
_CHUNK = 500


def _values(types: Iterable[RelationshipType]) -> list[str]:
    return [t.value for t in types]


def _chunks(ids: Collection[str]) -> Iterable[list[str]]:
    items = sorted(ids)
    for i in range(0, len(items), _CHUNK):
        yield items[i : i + _CHUNK]


def incoming(
    db: Database, target_ids: Collection[str], types: Iterable[RelationshipType]
) -> list[Relationship]:
    """Edges pointing at any of ``target_ids``."""
    wanted = _values(types)
    edges: list[Relationship] = []
    with db.session() as s:
        for chunk in _chunks(target_ids):
            stmt = (
                select(Relationship)
                .where(col(Relationship.target_id).in_(chunk))
                .where(col(Relationship.type).in_(wanted))
                .order_by(col(Relationship.created_at), col(Relationship.id))
            )
            edges.extend(s.exec(stmt).all())
    return edges


def outgoing(
    db: Database, source_ids: Collection[str], types: Iterable[RelationshipType]
) -> list[Relationship]:
    """Edges leaving any of ``source_ids``."""
    wanted = _values(types)
    edges: list[Relationship] = []
    with db.session() as s:
        for chunk in _chunks(source_ids):
            stmt = (
                select(Relationship)
                .where(col(Relationship.source_id).in_(chunk))
                .where(col(Relationship.type).in_(wanted))
                .order_by(col(Relationship.created_at), col(Relationship.id))
            )
            edges.extend(s.exec(stmt).all())
    return edges


def all_edges(db: Database, types: Iterable[RelationshipType]) -> list[Relationship]:
    with db.session() as s:
        stmt = select(Relationship).where(col(Relationship.type).in_(_values(types)))
        return list(s.exec(stmt).all())


def entities_by_id(db: Database, ids: Collection[str]) -> dict[str, Entity]:
    found: dict[str, Entity] = {}
    with db.session() as s:
        for chunk in _chunks(ids):
            rows = s.exec(select(Entity).where(col(Entity.id).in_(chunk))).all()
            found.update((row.id, row) for row in rows)
    return found


def sort_key(entity: Entity) -> tuple[str, int, str]:
    return (entity.file_path, entity.start_line, entity.name)
