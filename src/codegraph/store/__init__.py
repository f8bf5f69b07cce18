"""Graph persistence: entities, relationships, file records and metrics."""

from codegraph.store.database import Database, open_database
from codegraph.store.entities import EntityStore
from codegraph.store.files import FileStore
from codegraph.store.incremental import (
    DeleteResult,
    IncrementalUpdater,
    compute_file_hash,
    compute_file_hash_from_path,
)
from codegraph.store.metrics import MetricsStore, instrumented
from codegraph.store.models import (
    Entity,
    EntityType,
    FileRecord,
    NewEntity,
    NewPendingEdge,
    NewRelationship,
    PendingEdge,
    Relationship,
    RelationshipType,
)
from codegraph.store.pending import PendingEdgeStore
from codegraph.store.relationships import RelationshipStore

__all__ = [
    "Database",
    "DeleteResult",
    "Entity",
    "EntityStore",
    "EntityType",
    "FileRecord",
    "FileStore",
    "IncrementalUpdater",
    "MetricsStore",
    "NewEntity",
    "NewPendingEdge",
    "NewRelationship",
    "PendingEdge",
    "PendingEdgeStore",
    "Relationship",
    "RelationshipStore",
    "RelationshipType",
    "compute_file_hash",
    "compute_file_hash_from_path",
    "instrumented",
    "open_database",
]
