"""GraphQueries: every graph query behind one object, with configured defaults."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from codegraph.config.models import Confidence, QueryConfig
from codegraph.queries.blast_radius import blast_radius
from codegraph.queries.callers import what_calls, what_does_call
from codegraph.queries.cycles import find_circular_dependencies
from codegraph.queries.dead_code import find_dead_code
from codegraph.queries.exports import get_exports
from codegraph.queries.status import find_entities, graph_status

if TYPE_CHECKING:
    from codegraph.queries.results import (
        BlastRadiusResult,
        CycleResult,
        DeadCodeResult,
        ExportsResult,
        GraphStatus,
    )
    from codegraph.store.database import Database
    from codegraph.store.models import Entity


class GraphQueries:
    """Query facade over one graph database.

    Arguments left as None fall back to ``QueryConfig``.
    """

    def __init__(self, db: Database, config: QueryConfig | None = None) -> None:
        self.db = db
        self.config = config or QueryConfig()

    def what_calls(self, name: str) -> list[Entity]:
        return what_calls(self.db, name)

    def what_does_call(self, name: str) -> list[Entity]:
        return what_does_call(self.db, name)

    def blast_radius(self, file_path: str, max_depth: int | None = None) -> BlastRadiusResult:
        return blast_radius(
            self.db,
            file_path,
            self.config.blast_radius_default_depth if max_depth is None else max_depth,
            depth_limit=self.config.blast_radius_max_depth,
        )

    def find_circular_dependencies(
        self, start_entity_name: str | None = None, max_cycles: int | None = None
    ) -> CycleResult:
        return find_circular_dependencies(
            self.db,
            start_entity_name,
            self.config.max_cycles_default if max_cycles is None else max_cycles,
        )

    def find_dead_code(
        self,
        *,
        entity_types: Iterable[str] | None = None,
        include_tests: bool | None = None,
        min_confidence: Confidence | None = None,
        max_results: int | None = None,
    ) -> DeadCodeResult:
        cfg = self.config
        return find_dead_code(
            self.db,
            entity_types=cfg.dead_code_entity_types if entity_types is None else entity_types,
            include_tests=cfg.dead_code_include_tests if include_tests is None else include_tests,
            min_confidence=min_confidence or cfg.dead_code_min_confidence,
            max_results=cfg.dead_code_max_results if max_results is None else max_results,
        )

    def get_exports(self, file_path: str) -> ExportsResult:
        return get_exports(self.db, file_path)

    def find_entities(
        self,
        name: str | None = None,
        entity_type: str | None = None,
        file_path: str | None = None,
        limit: int | None = 50,
    ) -> list[Entity]:
        return find_entities(self.db, name, entity_type, file_path, limit)

    def graph_status(self, recent_limit: int = 10) -> GraphStatus:
        return graph_status(self.db, recent_limit)
