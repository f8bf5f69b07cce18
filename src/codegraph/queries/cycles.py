"""Circular dependency detection.

Iterative depth-first search over outgoing dependency edges (calls,
imports, extends, implements). An edge back to a node still on the DFS
path closes a cycle. Self-loops are ignored.

Cycles are deduplicated by a signature of logical keys (file, name) rotated
to the smallest rotation, so the same loop reached from another start
point, or through duplicate rows left by re-parses, is reported once.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator
from typing import TYPE_CHECKING, TypeVar

from codegraph.core.errors import QueryError
from codegraph.core.logging import get_logger
from codegraph.queries._edges import DEPENDENCY_TYPES, all_edges, sort_key
from codegraph.queries.results import Cycle, CycleResult, CycleSummary
from codegraph.store.entities import EntityStore

if TYPE_CHECKING:
    from codegraph.store.database import Database
    from codegraph.store.models import Entity

log = get_logger("queries.cycles")

DEFAULT_MAX_CYCLES = 100

Signature = tuple[tuple[str, str], ...]


def _canonical_offset(keys: list[tuple[str, str]]) -> int:
    """Index at which the rotation of ``keys`` is lexicographically smallest."""
    n = len(keys)
    return min(range(n), key=lambda i: keys[i:] + keys[:i])


T = TypeVar("T")


def _rotate(items: list[T], offset: int) -> list[T]:
    return items[offset:] + items[:offset]


class _Search:
    def __init__(self, entities: dict[str, Entity], adjacency: dict[str, list[tuple[str, str]]]):
        self.entities = entities
        self.adjacency = adjacency
        self.visited: set[str] = set()

    def cycles_from(self, start: str) -> Iterator[tuple[list[str], list[str]]]:
        """Yield (entity ids, edge types) for each back edge found from ``start``."""
        if start in self.visited:
            return
        path: list[str] = [start]
        path_types: list[str] = []
        on_path: dict[str, int] = {start: 0}
        stack: list[Iterator[tuple[str, str]]] = [iter(self.adjacency.get(start, ()))]
        self.visited.add(start)

        while stack:
            step = next(stack[-1], None)
            if step is None:
                stack.pop()
                done = path.pop()
                del on_path[done]
                if path_types:
                    path_types.pop()
                continue

            target, rel_type = step
            if target in on_path:
                index = on_path[target]
                yield path[index:], [*path_types[index:], rel_type]
            elif target not in self.visited:
                self.visited.add(target)
                on_path[target] = len(path)
                path.append(target)
                path_types.append(rel_type)
                stack.append(iter(self.adjacency.get(target, ())))


def find_circular_dependencies(
    db: Database,
    start_entity_name: str | None = None,
    max_cycles: int = DEFAULT_MAX_CYCLES,
) -> CycleResult:
    """Find dependency cycles in the graph.

    Args:
        db: Graph database.
        start_entity_name: Only search from entities with this name and
            only keep cycles that contain one of them.
        max_cycles: Stop after this many distinct cycles (0 = no limit).

    Raises:
        QueryError: If ``max_cycles`` is negative.
    """
    if isinstance(max_cycles, bool) or not isinstance(max_cycles, int) or max_cycles < 0:
        raise QueryError.invalid_parameter("max_cycles", max_cycles, "must be an integer >= 0")

    store = EntityStore(db)
    entities = {e.id: e for e in store.get_all()}

    if start_entity_name is not None:
        starts = [e for e in entities.values() if e.name == start_entity_name]
        if not starts:
            return CycleResult()
    else:
        starts = list(entities.values())
    starts.sort(key=sort_key)

    adjacency: dict[str, list[tuple[str, str]]] = defaultdict(list)
    for edge in all_edges(db, DEPENDENCY_TYPES):
        if edge.source_id == edge.target_id:
            continue
        if edge.source_id in entities and edge.target_id in entities:
            adjacency[edge.source_id].append((edge.target_id, edge.type))
    for targets in adjacency.values():
        targets.sort(key=lambda t: (sort_key(entities[t[0]]), t[1]))

    search = _Search(entities, adjacency)
    found: dict[Signature, Cycle] = {}
    limit_reached = False
    for start in starts:
        for ids, types in search.cycles_from(start.id):
            keys = [(entities[i].file_path, entities[i].name) for i in ids]
            offset = _canonical_offset(keys)
            signature = tuple(_rotate(keys, offset))
            if signature in found:
                continue
            found[signature] = Cycle(
                entities=[entities[i] for i in _rotate(ids, offset)],
                relationship_types=_rotate(types, offset),
            )
            if max_cycles and len(found) >= max_cycles:
                limit_reached = True
                break
        if limit_reached:
            break

    cycles = list(found.values())
    if start_entity_name is not None:
        cycles = [c for c in cycles if any(e.name == start_entity_name for e in c.entities)]

    lengths = [c.length for c in cycles]
    summary = CycleSummary(
        total_cycles=len(cycles),
        entities_in_cycles=len({e.id for c in cycles for e in c.entities}),
        shortest_cycle=min(lengths, default=0),
        longest_cycle=max(lengths, default=0),
    )
    log.debug("cycles_found", total=summary.total_cycles, limit_reached=limit_reached)
    return CycleResult(cycles=cycles, summary=summary)
