"""Blast radius: who is affected, transitively, by changing a file.

Breadth-first over incoming dependency edges, one layer per hop. Depth is
1-indexed: entities that depend directly on the file's entities are depth
1. The visited set starts with the file's own entities, so they are never
reported and cycles terminate naturally.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from codegraph.core.errors import QueryError
from codegraph.core.logging import get_logger
from codegraph.queries._edges import DEPENDENCY_TYPES, entities_by_id, incoming
from codegraph.queries.results import AffectedEntity, BlastRadiusResult, BlastRadiusSummary
from codegraph.store.entities import EntityStore

if TYPE_CHECKING:
    from codegraph.store.database import Database
    from codegraph.store.models import Entity

log = get_logger("queries.blast_radius")

DEFAULT_MAX_DEPTH = 5
MAX_DEPTH_LIMIT = 20


def _validate(file_path: str, max_depth: int, depth_limit: int) -> None:
    if not file_path or not file_path.strip():
        raise QueryError.invalid_parameter("file_path", file_path, "must not be empty")
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise QueryError.invalid_parameter("max_depth", max_depth, "must be an integer")
    if max_depth < 1:
        raise QueryError.invalid_parameter("max_depth", max_depth, "must be at least 1")
    if max_depth > depth_limit:
        raise QueryError.invalid_parameter(
            "max_depth", max_depth, f"must not exceed {depth_limit}"
        )


def _source_entities(store: EntityStore, file_path: str) -> tuple[str, list[Entity]]:
    entities = store.find_by_file(file_path)
    if entities:
        return file_path, entities
    path = Path(file_path)
    if not path.is_absolute():
        absolute = str(path.resolve())
        entities = store.find_by_file(absolute)
        if entities:
            return absolute, entities
    return file_path, []


def blast_radius(
    db: Database,
    file_path: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    depth_limit: int = MAX_DEPTH_LIMIT,
) -> BlastRadiusResult:
    """Entities that transitively depend on the entities defined in ``file_path``.

    Args:
        db: Graph database.
        file_path: File whose entities form the source set. A relative path
            that matches nothing is retried as an absolute path.
        max_depth: Number of hops to follow (1 = direct dependents only).
        depth_limit: Largest ``max_depth`` accepted.

    Raises:
        QueryError: For an empty path or an out-of-range depth. Raised
            before any traversal.
    """
    _validate(file_path, max_depth, depth_limit)

    source_file, sources = _source_entities(EntityStore(db), file_path)
    result = BlastRadiusResult(source_file=source_file, source_entities=sources)
    if not sources:
        result.summary = BlastRadiusSummary(depth_limit=max_depth)
        return result

    visited = {e.id for e in sources}
    frontier = set(visited)
    depths: dict[str, int] = {}
    depth = 0
    while frontier and depth < max_depth:
        depth += 1
        layer: set[str] = set()
        for edge in incoming(db, frontier, DEPENDENCY_TYPES):
            if edge.source_id not in visited:
                visited.add(edge.source_id)
                layer.add(edge.source_id)
                depths[edge.source_id] = depth
        frontier = layer

    truncated = bool(frontier) and any(
        edge.source_id not in visited for edge in incoming(db, frontier, DEPENDENCY_TYPES)
    )

    rows = entities_by_id(db, depths.keys())
    affected = [AffectedEntity(rows[i], d) for i, d in depths.items() if i in rows]
    affected.sort(key=lambda a: (a.depth, a.entity.file_path, a.entity.start_line, a.entity.name))
    result.affected_entities = affected
    result.summary = BlastRadiusSummary(
        total_affected=len(affected),
        max_depth=max((a.depth for a in affected), default=0),
        direct_dependents=sum(1 for a in affected if a.depth == 1),
        depth_limit=max_depth,
        truncated=truncated,
    )
    log.debug(
        "blast_radius_computed",
        file_path=source_file,
        affected=len(affected),
        max_depth=result.summary.max_depth,
    )
    return result
