"""Dead code detection.

An entity is unused when nothing calls, extends or implements it.
Importing is not usage. Entry-point files, test files and framework
lifecycle hooks are never reported.

Confidence:
- high: unused and not exported
- medium: unused but exported, so it may be used from outside the graph
- low: reserved for heuristics below medium; accepted as a threshold
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from typing import TYPE_CHECKING, get_args

from codegraph.config.models import Confidence
from codegraph.core.errors import QueryError
from codegraph.core.logging import get_logger
from codegraph.queries._edges import USAGE_TYPES, incoming, outgoing
from codegraph.queries.results import DeadCodeResult, DeadCodeSummary, UnusedEntity
from codegraph.store.entities import EntityStore
from codegraph.store.metadata import is_exported
from codegraph.store.models import EntityType, RelationshipType

if TYPE_CHECKING:
    from codegraph.store.database import Database
    from codegraph.store.models import Entity

log = get_logger("queries.dead_code")

DEFAULT_ENTITY_TYPES: tuple[str, ...] = ("function", "class", "method")

_CONFIDENCE_ORDER: dict[str, int] = {"high": 2, "medium": 1, "low": 0}

TEST_FILE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"\.test\.[jt]sx?$",
        r"\.spec\.[jt]sx?$",
        r"_test\.[jt]sx?$",
        r"_spec\.[jt]sx?$",
        r"_spec\.rb$",
        r"_test\.rb$",
        r"(^|/)__tests__/",
        r"(^|/)tests?/",
        r"(^|/)spec/",
    )
)

ENTRY_POINT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"(^|/)index\.[jt]sx?$",
        r"(^|/)main\.[jt]sx?$",
        r"(^|/)app\.[jt]sx?$",
        r"(^|/)__init__\.py$",
    )
)

LIFECYCLE_METHODS: frozenset[str] = frozenset(
    {
        "constructor",
        "initialize",
        # React
        "componentDidMount",
        "componentDidUpdate",
        "componentWillUnmount",
        "shouldComponentUpdate",
        "getDerivedStateFromProps",
        "getSnapshotBeforeUpdate",
        "componentDidCatch",
        "render",
        # Angular
        "ngOnInit",
        "ngOnDestroy",
        "ngOnChanges",
        "ngDoCheck",
        "ngAfterContentInit",
        "ngAfterContentChecked",
        "ngAfterViewInit",
        "ngAfterViewChecked",
        # Vue
        "setup",
        "created",
        "mounted",
        "updated",
        "unmounted",
        "beforeCreate",
        "beforeMount",
        "beforeUpdate",
        "beforeUnmount",
    }
)

REASON_EXPORTED = "No incoming calls, but exported (might be used externally)"
REASON_NOT_EXPORTED = "No incoming calls and not exported"


def _posix(path: str) -> str:
    return path.replace("\\", "/")


def is_test_path(file_path: str) -> bool:
    path = _posix(file_path)
    return any(p.search(path) for p in TEST_FILE_PATTERNS)


def is_entry_point(file_path: str) -> bool:
    path = _posix(file_path)
    return any(p.search(path) for p in ENTRY_POINT_PATTERNS)


def is_lifecycle_name(name: str) -> bool:
    return name in LIFECYCLE_METHODS


def meets_confidence(confidence: str, min_confidence: str) -> bool:
    return _CONFIDENCE_ORDER[confidence] >= _CONFIDENCE_ORDER[min_confidence]


def _validate(
    entity_types: Iterable[str], min_confidence: str, max_results: int | None
) -> list[str]:
    if min_confidence not in get_args(Confidence):
        raise QueryError.invalid_parameter(
            "min_confidence", min_confidence, "must be one of high, medium, low"
        )
    if max_results is not None and (
        isinstance(max_results, bool) or not isinstance(max_results, int) or max_results < 1
    ):
        raise QueryError.invalid_parameter("max_results", max_results, "must be an integer >= 1")
    types = []
    for t in entity_types:
        try:
            types.append(EntityType(t).value)
        except ValueError as e:
            raise QueryError.invalid_parameter("entity_types", t, "unknown entity type") from e
    return types


def find_dead_code(
    db: Database,
    *,
    entity_types: Iterable[str] | None = None,
    include_tests: bool = False,
    min_confidence: Confidence = "high",
    max_results: int | None = None,
) -> DeadCodeResult:
    """Report entities with no incoming usage edges.

    Results are ordered by confidence (high first), then file path and
    start line, and only then capped at ``max_results``.

    Raises:
        QueryError: For an unknown confidence level or entity type, or a
            non-positive ``max_results``.
    """
    types = _validate(
        DEFAULT_ENTITY_TYPES if entity_types is None else entity_types,
        min_confidence,
        max_results,
    )

    store = EntityStore(db)
    candidates: list[Entity] = []
    for entity_type in dict.fromkeys(types):
        for entity in store.find_by_type(entity_type):
            if is_entry_point(entity.file_path):
                continue
            if not include_tests and is_test_path(entity.file_path):
                continue
            if is_lifecycle_name(entity.name):
                continue
            candidates.append(entity)

    ids = {e.id for e in candidates}
    used = {r.target_id for r in incoming(db, ids, USAGE_TYPES)}
    calls_out = Counter(r.source_id for r in outgoing(db, ids, (RelationshipType.CALLS,)))

    unused: list[UnusedEntity] = []
    for entity in candidates:
        if entity.id in used:
            continue
        if is_exported(entity.get_metadata()):
            confidence: Confidence = "medium"
            reason = REASON_EXPORTED
        else:
            confidence = "high"
            reason = REASON_NOT_EXPORTED
        if not meets_confidence(confidence, min_confidence):
            continue
        unused.append(
            UnusedEntity(
                entity=entity,
                confidence=confidence,
                reason=reason,
                outgoing_count=calls_out.get(entity.id, 0),
            )
        )

    unused.sort(
        key=lambda u: (
            -_CONFIDENCE_ORDER[u.confidence],
            u.entity.file_path,
            u.entity.start_line,
            u.entity.name,
        )
    )
    truncated = max_results is not None and len(unused) > max_results
    if max_results is not None:
        unused = unused[:max_results]

    summary = DeadCodeSummary(
        total_unused=len(unused),
        by_type=dict(Counter(u.entity.type for u in unused)),
        truncated=truncated,
    )
    for u in unused:
        summary.by_confidence[u.confidence] += 1

    log.debug("dead_code_found", total=summary.total_unused, truncated=truncated)
    return DeadCodeResult(unused_entities=unused, summary=summary)
