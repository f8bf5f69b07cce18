"""Graph Query Engine.

Each query is a plain function taking a Database; GraphQueries bundles
them with configured defaults.
"""

from codegraph.queries.blast_radius import blast_radius
from codegraph.queries.callers import what_calls, what_does_call
from codegraph.queries.cycles import find_circular_dependencies
from codegraph.queries.dead_code import find_dead_code
from codegraph.queries.engine import GraphQueries
from codegraph.queries.exports import get_exports
from codegraph.queries.results import (
    AffectedEntity,
    BlastRadiusResult,
    Cycle,
    CycleResult,
    DeadCodeResult,
    ExportedEntity,
    ExportsResult,
    GraphStatus,
    UnusedEntity,
)
from codegraph.queries.status import find_entities, graph_status

__all__ = [
    "AffectedEntity",
    "BlastRadiusResult",
    "Cycle",
    "CycleResult",
    "DeadCodeResult",
    "ExportedEntity",
    "ExportsResult",
    "GraphQueries",
    "GraphStatus",
    "UnusedEntity",
    "blast_radius",
    "find_circular_dependencies",
    "find_dead_code",
    "find_entities",
    "get_exports",
    "graph_status",
    "what_calls",
    "what_does_call",
]
