"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides an in-memory graph plus small builders for entities and edges.
"""

import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from codegraph.store.database import Database, open_database  # noqa: E402
from codegraph.store.entities import EntityStore  # noqa: E402
from codegraph.store.models import (  # noqa: E402
    Entity,
    EntityType,
    NewEntity,
    NewRelationship,
    Relationship,
    RelationshipType,
)
from codegraph.store.pending import PendingEdgeStore  # noqa: E402
from codegraph.store.relationships import RelationshipStore  # noqa: E402

MakeEntity = Callable[..., Entity]
Link = Callable[..., Relationship]


@pytest.fixture
def db() -> Iterator[Database]:
    """Fresh in-memory graph with the schema created."""
    database = open_database()
    yield database
    database.close()


@pytest.fixture
def entity_store(db: Database) -> EntityStore:
    return EntityStore(db)


@pytest.fixture
def relationship_store(db: Database) -> RelationshipStore:
    return RelationshipStore(db)


@pytest.fixture
def pending_store(db: Database) -> PendingEdgeStore:
    return PendingEdgeStore(db)


@pytest.fixture
def make_entity(entity_store: EntityStore) -> MakeEntity:
    """Create an entity with sensible defaults; override any field by keyword."""

    def _make(
        name: str,
        file_path: str = "/src/app/module.ts",
        type: EntityType | str = EntityType.FUNCTION,  # noqa: A002
        start_line: int = 1,
        end_line: int | None = None,
        language: str = "typescript",
        metadata: dict[str, Any] | None = None,
    ) -> Entity:
        return entity_store.create(
            NewEntity(
                type=type,
                name=name,
                file_path=file_path,
                start_line=start_line,
                end_line=end_line if end_line is not None else start_line + 2,
                language=language,
                metadata=metadata,
            )
        )

    return _make


@pytest.fixture
def link(relationship_store: RelationshipStore) -> Link:
    """Create ``source -> target`` with the given type (default: calls)."""

    def _link(
        source: Entity,
        target: Entity,
        type: RelationshipType | str = RelationshipType.CALLS,  # noqa: A002
        metadata: dict[str, Any] | None = None,
    ) -> Relationship:
        return relationship_store.create(
            NewRelationship(source_id=source.id, target_id=target.id, type=type, metadata=metadata)
        )

    return _link
