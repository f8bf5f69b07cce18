"""SQLModel definitions for the code graph.

Single source of truth for all table schemas.

Tables:
- entities: code constructs (functions, classes, methods, ...)
- relationships: directed, typed edges between entities
- pending_edges: candidate edges awaiting a target in another file
- files: content hashes driving incremental re-indexing
- tool_calls / parse_stats: operational metrics

Lifecycle: relationships reference entities with ON DELETE CASCADE on both
endpoints, so removing an entity removes every edge touching it. Pending
edges cascade from their source entity the same way.
"""

import json
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import Column, ForeignKey, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from codegraph.core.logging import get_logger

log = get_logger("store.models")


# ============================================================================
# ENUMS
# ============================================================================


class EntityType(str, Enum):
    """Closed set of entity kinds."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    MODULE = "module"
    TYPE = "type"
    VARIABLE = "variable"
    FILE = "file"


class RelationshipType(str, Enum):
    """Closed set of edge kinds.

    CONTAINS is structural; every other kind expresses a dependency of the
    source on the target.
    """

    CALLS = "calls"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    IMPORTS = "imports"
    CONTAINS = "contains"


def _new_id() -> str:
    return str(uuid.uuid4())


def _dump_metadata(metadata: dict[str, Any] | None) -> str | None:
    if not metadata:
        return None
    return json.dumps(metadata, sort_keys=True, default=str)


def _load_metadata(raw: str | None, *, owner: str) -> dict[str, Any]:
    if raw is None:
        return {}
    try:
        result = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("metadata_unparseable", owner=owner)
        return {}
    if not isinstance(result, dict):
        log.warning("metadata_not_a_mapping", owner=owner)
        return {}
    return result


# ============================================================================
# GRAPH TABLES
# ============================================================================


class Entity(SQLModel, table=True):
    """A named code construct with a source location.

    ``id`` is the physical identity. The logical identity
    (name, file_path, start_line) may repeat across re-parses.
    """

    __tablename__ = "entities"

    id: str = Field(default_factory=_new_id, primary_key=True)
    type: str = Field(index=True)
    name: str = Field(index=True)
    file_path: str = Field(index=True)
    start_line: int
    end_line: int
    language: str
    # SQLModel reserves ``metadata`` for the table registry
    metadata_json: str | None = Field(
        default=None, sa_column=Column("metadata", Text, nullable=True)
    )
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)

    def get_metadata(self) -> dict[str, Any]:
        """Parse metadata JSON to dict."""
        return _load_metadata(self.metadata_json, owner=f"entity:{self.id}")

    @property
    def logical_key(self) -> tuple[str, str, int]:
        return (self.name, self.file_path, self.start_line)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "file_path": self.file_path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "language": self.language,
            "metadata": self.get_metadata(),
        }


class Relationship(SQLModel, table=True):
    """Directed, typed edge between two entities."""

    __tablename__ = "relationships"
    __table_args__ = (
        UniqueConstraint("source_id", "target_id", "type", name="uq_relationship_triple"),
    )

    id: str = Field(default_factory=_new_id, primary_key=True)
    source_id: str = Field(
        sa_column=Column(
            String, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    target_id: str = Field(
        sa_column=Column(
            String, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    type: str = Field(index=True)
    metadata_json: str | None = Field(
        default=None, sa_column=Column("metadata", Text, nullable=True)
    )
    created_at: float = Field(default_factory=time.time)

    def get_metadata(self) -> dict[str, Any]:
        """Parse metadata JSON to dict."""
        return _load_metadata(self.metadata_json, owner=f"relationship:{self.id}")

    @property
    def triple(self) -> tuple[str, str, str]:
        return (self.source_id, self.target_id, self.type)


class PendingEdge(SQLModel, table=True):
    """A candidate edge whose target was not defined in the source's file.

    Kept for as long as its source entity exists, so cross-file edges can
    be re-linked after the target's file is replaced.
    """

    __tablename__ = "pending_edges"
    __table_args__ = (
        UniqueConstraint("source_id", "target_name", "type", name="uq_pending_edge"),
    )

    id: int | None = Field(default=None, primary_key=True)
    source_id: str = Field(
        sa_column=Column(
            String, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    target_name: str = Field(index=True)
    type: str
    metadata_json: str | None = Field(
        default=None, sa_column=Column("metadata", Text, nullable=True)
    )

    def get_metadata(self) -> dict[str, Any]:
        return _load_metadata(self.metadata_json, owner=f"pending_edge:{self.id}")


class FileRecord(SQLModel, table=True):
    """Content fingerprint of a tracked source file."""

    __tablename__ = "files"

    id: str = Field(default_factory=_new_id, primary_key=True)
    file_path: str = Field(unique=True, index=True)
    content_hash: str = Field(index=True)
    language: str
    updated_at: float = Field(default_factory=time.time)


# ============================================================================
# METRICS TABLES
# ============================================================================


class ToolCall(SQLModel, table=True):
    """One recorded tool invocation."""

    __tablename__ = "tool_calls"

    id: int | None = Field(default=None, primary_key=True)
    project_id: str = Field(index=True)
    tool_name: str = Field(index=True)
    timestamp: float = Field(default_factory=time.time, index=True)
    latency_ms: float
    success: bool
    error_type: str | None = None
    input_summary: str | None = None
    output_size: int | None = None


class ParseStat(SQLModel, table=True):
    """Summary of one directory indexing run."""

    __tablename__ = "parse_stats"

    id: int | None = Field(default=None, primary_key=True)
    project_id: str = Field(index=True)
    timestamp: float = Field(default_factory=time.time, index=True)
    files_total: int
    files_success: int
    files_error: int
    entities_extracted: int
    relationships_extracted: int
    duration_ms: float


# ============================================================================
# WRITE INPUTS
# ============================================================================


@dataclass
class NewEntity:
    """Entity as produced by an extractor, before it has an id."""

    type: EntityType | str
    name: str
    file_path: str
    start_line: int
    end_line: int
    language: str
    metadata: dict[str, Any] | None = None


@dataclass
class NewRelationship:
    """Edge between two stored entities, before it has an id."""

    source_id: str
    target_id: str
    type: RelationshipType | str
    metadata: dict[str, Any] | None = None

    @property
    def triple(self) -> tuple[str, str, str]:
        return (self.source_id, self.target_id, RelationshipType(self.type).value)


@dataclass
class RecentFile:
    """A file ranked by when its entities were last written."""

    file_path: str
    entity_count: int
    last_updated: float


@dataclass
class NewPendingEdge:
    """Candidate edge from a stored entity to a name defined elsewhere."""

    source_id: str
    target_name: str
    type: RelationshipType | str
    metadata: dict[str, Any] | None = None
