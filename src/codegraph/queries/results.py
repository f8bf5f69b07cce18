"""Result types returned by the graph queries.

Every result has ``to_dict()`` producing plain JSON-ready data for the CLI.
"Nothing found" is always an empty result, never an exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from codegraph.config.models import Confidence
from codegraph.store.metadata import ExportType
from codegraph.store.models import Entity


# =============================================================================
# Blast radius
# =============================================================================


@dataclass(frozen=True, slots=True)
class AffectedEntity:
    entity: Entity
    depth: int

    def to_dict(self) -> dict[str, Any]:
        return {"entity": self.entity.to_dict(), "depth": self.depth}


@dataclass(frozen=True, slots=True)
class BlastRadiusSummary:
    total_affected: int = 0
    max_depth: int = 0
    direct_dependents: int = 0
    depth_limit: int = 0
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_affected": self.total_affected,
            "max_depth": self.max_depth,
            "direct_dependents": self.direct_dependents,
            "depth_limit": self.depth_limit,
            "truncated": self.truncated,
        }


@dataclass
class BlastRadiusResult:
    """Entities that transitively depend on a file.

    ``depth`` counts hops from the file: immediate dependents are depth 1.
    """

    source_file: str
    source_entities: list[Entity] = field(default_factory=list)
    affected_entities: list[AffectedEntity] = field(default_factory=list)
    summary: BlastRadiusSummary = field(default_factory=BlastRadiusSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_file": self.source_file,
            "source_entities": [e.to_dict() for e in self.source_entities],
            "affected_entities": [a.to_dict() for a in self.affected_entities],
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# Circular dependencies
# =============================================================================


@dataclass(frozen=True, slots=True)
class Cycle:
    """Entities around one cycle; ``relationship_types[i]`` leads from entity i to i+1."""

    entities: list[Entity]
    relationship_types: list[str]

    @property
    def length(self) -> int:
        return len(self.entities)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relationship_types": list(self.relationship_types),
            "length": self.length,
        }


@dataclass(frozen=True, slots=True)
class CycleSummary:
    total_cycles: int = 0
    entities_in_cycles: int = 0
    shortest_cycle: int = 0
    longest_cycle: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cycles": self.total_cycles,
            "entities_in_cycles": self.entities_in_cycles,
            "shortest_cycle": self.shortest_cycle,
            "longest_cycle": self.longest_cycle,
        }


@dataclass
class CycleResult:
    cycles: list[Cycle] = field(default_factory=list)
    summary: CycleSummary = field(default_factory=CycleSummary)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_cycles": self.has_cycles,
            "cycles": [c.to_dict() for c in self.cycles],
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# Dead code
# =============================================================================


@dataclass(frozen=True, slots=True)
class UnusedEntity:
    entity: Entity
    confidence: Confidence
    reason: str
    outgoing_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity.to_dict(),
            "confidence": self.confidence,
            "reason": self.reason,
            "outgoing_count": self.outgoing_count,
        }


@dataclass
class DeadCodeSummary:
    total_unused: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_confidence: dict[str, int] = field(
        default_factory=lambda: {"high": 0, "medium": 0, "low": 0}
    )
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_unused": self.total_unused,
            "by_type": dict(self.by_type),
            "by_confidence": dict(self.by_confidence),
            "truncated": self.truncated,
        }


@dataclass
class DeadCodeResult:
    unused_entities: list[UnusedEntity] = field(default_factory=list)
    summary: DeadCodeSummary = field(default_factory=DeadCodeSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "unused_entities": [u.to_dict() for u in self.unused_entities],
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# Exports and status
# =============================================================================


@dataclass(frozen=True, slots=True)
class ExportedEntity:
    entity: Entity
    export_type: ExportType
    signature: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "entity": self.entity.to_dict(),
            "export_type": self.export_type,
        }
        if self.signature is not None:
            data["signature"] = self.signature
        return data


@dataclass
class ExportsResult:
    file_path: str
    exports: list[ExportedEntity] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.exports)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "exports": [e.to_dict() for e in self.exports],
            "total_count": self.total_count,
        }


@dataclass
class GraphStatus:
    """Size of the graph and the most recently written files."""

    entity_count: int = 0
    relationship_count: int = 0
    file_count: int = 0
    entities_by_type: dict[str, int] = field(default_factory=dict)
    relationships_by_type: dict[str, int] = field(default_factory=dict)
    recent_files: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_count": self.entity_count,
            "relationship_count": self.relationship_count,
            "file_count": self.file_count,
            "entities_by_type": dict(self.entities_by_type),
            "relationships_by_type": dict(self.relationships_by_type),
            "recent_files": list(self.recent_files),
        }
