"""Cross-file edge resolution.

After a directory run, every staged edge is matched against the names
defined anywhere in the graph:

1. a definition in the source's own file wins (last one by line);
2. otherwise a single definition anywhere in the graph is used;
3. a name defined in several other files is ambiguous and left staged,
   as is a name defined nowhere.

Staged rows are kept after linking. Replacing a file cascades away the
edges that pointed into it, and the next link pass restores them against
the new entity ids; ``create_batch`` drops the ones that still exist.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from codegraph.core.logging import get_logger
from codegraph.store.entities import EntityStore
from codegraph.store.models import NewRelationship
from codegraph.store.pending import PendingEdgeStore
from codegraph.store.relationships import RelationshipStore

if TYPE_CHECKING:
    from codegraph.store.database import Database
    from codegraph.store.models import Entity, PendingEdge

log = get_logger("graph.linker")


@dataclass
class LinkResult:
    """Totals for one link pass."""

    considered: int = 0
    created: int = 0
    ambiguous: int = 0
    missing: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "considered": self.considered,
            "created": self.created,
            "ambiguous": self.ambiguous,
            "missing": self.missing,
        }


def pick_target(source_file: str, matches: list[Entity]) -> Entity | None:
    """Choose the definition a staged edge from ``source_file`` refers to."""
    local = [m for m in matches if m.file_path == source_file]
    if local:
        return max(local, key=lambda m: m.start_line)
    if len(matches) == 1:
        return matches[0]
    return None


class CrossFileLinker:
    def __init__(self, db: Database) -> None:
        self._db = db
        self.entities = EntityStore(db)
        self.pending = PendingEdgeStore(db)
        self.relationships = RelationshipStore(db)

    def link(self, target_names: Iterable[str] | None = None) -> LinkResult:
        """Turn staged edges into relationships where the target is unambiguous.

        Args:
            target_names: Only consider edges staged against these names.
                None considers every staged edge.
        """
        staged = (
            self.pending.list_all()
            if target_names is None
            else self.pending.find_by_target_names(target_names)
        )
        result = LinkResult(considered=len(staged))
        if not staged:
            return result

        sources = self.entities.find_by_ids([p.source_id for p in staged])
        matches: dict[str, list[Entity]] = defaultdict(list)
        for entity in self.entities.find_by_names({p.target_name for p in staged}):
            matches[entity.name].append(entity)

        edges: list[NewRelationship] = []
        for edge in staged:
            source = sources.get(edge.source_id)
            if source is None:
                continue
            found = matches.get(edge.target_name, [])
            target = pick_target(source.file_path, found)
            if target is None:
                if found:
                    result.ambiguous += 1
                else:
                    result.missing += 1
                continue
            edges.append(self._relationship(edge, target))

        result.created = len(self.relationships.create_batch(edges))
        log.debug("cross_file_linked", **result.to_dict())
        return result

    @staticmethod
    def _relationship(edge: PendingEdge, target: Entity) -> NewRelationship:
        return NewRelationship(
            source_id=edge.source_id,
            target_id=target.id,
            type=edge.type,
            metadata=edge.get_metadata() or None,
        )
