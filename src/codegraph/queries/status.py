"""Graph overview and entity search."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codegraph.core.errors import QueryError
from codegraph.queries.results import GraphStatus
from codegraph.store.entities import EntityStore
from codegraph.store.files import FileStore
from codegraph.store.models import EntityType
from codegraph.store.relationships import RelationshipStore

if TYPE_CHECKING:
    from codegraph.store.database import Database
    from codegraph.store.models import Entity


def graph_status(db: Database, recent_limit: int = 10) -> GraphStatus:
    entities = EntityStore(db)
    relationships = RelationshipStore(db)
    return GraphStatus(
        entity_count=entities.count(),
        relationship_count=relationships.count(),
        file_count=FileStore(db).count(),
        entities_by_type=entities.count_by_type(),
        relationships_by_type=relationships.count_by_type(),
        recent_files=[
            {
                "file_path": f.file_path,
                "entity_count": f.entity_count,
                "last_updated": f.last_updated,
            }
            for f in entities.get_recent_files(recent_limit)
        ],
    )


def find_entities(
    db: Database,
    name: str | None = None,
    entity_type: str | None = None,
    file_path: str | None = None,
    limit: int | None = 50,
) -> list[Entity]:
    """Look entities up by name (``*`` wildcards allowed), type and file.

    Raises:
        QueryError: For an unknown entity type or a non-positive limit.
    """
    if entity_type is not None and entity_type not in {t.value for t in EntityType}:
        raise QueryError.invalid_parameter("entity_type", entity_type, "unknown entity type")
    if limit is not None and limit < 1:
        raise QueryError.invalid_parameter("limit", limit, "must be at least 1")
    return EntityStore(db).search(
        name=name, entity_type=entity_type, file_path=file_path, limit=limit
    )
