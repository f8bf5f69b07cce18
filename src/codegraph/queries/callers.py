"""Direct dependency lookups by entity name.

Names are not unique, so every entity carrying the name contributes.
Results are deduplicated by logical identity (name, file, start line):
repeated parses can leave several rows for the same construct.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from codegraph.queries._edges import USAGE_TYPES, entities_by_id, incoming, outgoing, sort_key
from codegraph.store.entities import EntityStore

if TYPE_CHECKING:
    from codegraph.store.database import Database
    from codegraph.store.models import Entity

Direction = Literal["callers", "callees"]


def find_related_entities(db: Database, name: str, direction: Direction) -> list[Entity]:
    """Entities on the other end of usage edges touching ``name``."""
    targets = EntityStore(db).find_by_name(name)
    if not targets:
        return []

    ids = {e.id for e in targets}
    if direction == "callers":
        related_ids = [r.source_id for r in incoming(db, ids, USAGE_TYPES)]
    else:
        related_ids = [r.target_id for r in outgoing(db, ids, USAGE_TYPES)]

    rows = entities_by_id(db, set(related_ids))
    seen: set[tuple[str, str, int]] = set()
    related: list[Entity] = []
    for entity_id in related_ids:
        entity = rows.get(entity_id)
        if entity is None or entity.logical_key in seen:
            continue
        seen.add(entity.logical_key)
        related.append(entity)
    related.sort(key=sort_key)
    return related


def what_calls(db: Database, name: str) -> list[Entity]:
    """Entities that call, extend or implement anything named ``name``."""
    return find_related_entities(db, name, "callers")


def what_does_call(db: Database, name: str) -> list[Entity]:
    """Entities that anything named ``name`` calls, extends or implements."""
    return find_related_entities(db, name, "callees")
