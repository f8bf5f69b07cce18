"""Operational metrics: tool-call latencies and indexing run statistics.

Metrics are a side channel. ``instrumented`` records every call but a
failure to record is only logged, never raised into the caller.
"""

from __future__ import annotations

import functools
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from codegraph.core.errors import CodeGraphError
from codegraph.core.logging import get_logger
from codegraph.store.models import ParseStat, ToolCall

if TYPE_CHECKING:
    from codegraph.store.database import Database

log = get_logger("store.metrics")

_MAX_INPUT_SUMMARY = 200
_SECRET_FIELDS = ("apikey", "api_key", "token", "password", "secret", "auth", "credential")


@dataclass(frozen=True, slots=True)
class ToolCallSummary:
    tool_name: str
    call_count: int
    success_count: int
    error_count: int
    success_rate: float
    p50_latency_ms: float
    p95_latency_ms: float
    p99_latency_ms: float
    avg_latency_ms: float


@dataclass(frozen=True, slots=True)
class ParseStatsSummary:
    total_parse_runs: int
    total_files_processed: int
    total_files_success: int
    total_files_error: int
    total_entities_extracted: int
    total_relationships_extracted: int
    avg_duration_ms: float


@dataclass(frozen=True, slots=True)
class ToolUsage:
    tool_name: str
    call_count: int
    avg_latency_ms: float


def percentile(sorted_values: list[float], pct: float) -> float:
    """Linear-interpolated percentile over an ascending list (0 if empty)."""
    if not sorted_values:
        return 0.0
    index = (pct / 100) * (len(sorted_values) - 1)
    lower = int(index)
    upper = min(lower + 1, len(sorted_values) - 1)
    weight = index - lower
    if weight == 0:
        return float(sorted_values[lower])
    return sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: "[REDACTED]" if any(s in str(k).lower() for s in _SECRET_FIELDS) else _redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(v) for v in value]
    return value


def sanitize_input(value: Any) -> str:
    """Compact JSON summary of tool input with secrets redacted, max 200 chars."""
    text = json.dumps(_redact(value), default=str, sort_keys=True)
    if len(text) > _MAX_INPUT_SUMMARY:
        return text[: _MAX_INPUT_SUMMARY - 3] + "..."
    return text


def classify_error(error: BaseException) -> str:
    if isinstance(error, CodeGraphError):
        return error.error_name
    return type(error).__name__


class MetricsStore:
    """Reads and writes the ``tool_calls`` and ``parse_stats`` tables."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def insert_tool_call(
        self,
        project_id: str,
        tool_name: str,
        latency_ms: float,
        success: bool,
        error_type: str | None = None,
        input_summary: str | None = None,
        output_size: int | None = None,
    ) -> ToolCall:
        row = ToolCall(
            project_id=project_id,
            tool_name=tool_name,
            latency_ms=latency_ms,
            success=success,
            error_type=error_type,
            input_summary=input_summary,
            output_size=output_size,
        )
        with self._db.transaction() as s:
            s.add(row)
            s.flush()
        return row

    def query_tool_calls(
        self, project_id: str | None = None, tool_name: str | None = None
    ) -> list[ToolCall]:
        stmt = select(ToolCall)
        if project_id is not None:
            stmt = stmt.where(ToolCall.project_id == project_id)
        if tool_name is not None:
            stmt = stmt.where(ToolCall.tool_name == tool_name)
        stmt = stmt.order_by(col(ToolCall.timestamp).desc(), col(ToolCall.id).desc())
        with self._db.session() as s:
            return list(s.exec(stmt).all())

    def insert_parse_stats(
        self,
        project_id: str,
        files_total: int,
        files_success: int,
        files_error: int,
        entities_extracted: int,
        relationships_extracted: int,
        duration_ms: float,
    ) -> ParseStat:
        row = ParseStat(
            project_id=project_id,
            files_total=files_total,
            files_success=files_success,
            files_error=files_error,
            entities_extracted=entities_extracted,
            relationships_extracted=relationships_extracted,
            duration_ms=duration_ms,
        )
        with self._db.transaction() as s:
            s.add(row)
            s.flush()
        return row

    def query_parse_stats(self, project_id: str | None = None) -> list[ParseStat]:
        stmt = select(ParseStat)
        if project_id is not None:
            stmt = stmt.where(ParseStat.project_id == project_id)
        stmt = stmt.order_by(col(ParseStat.timestamp).desc(), col(ParseStat.id).desc())
        with self._db.session() as s:
            return list(s.exec(stmt).all())

    def get_tool_call_summary(
        self, project_id: str | None = None, tool_name: str | None = None
    ) -> list[ToolCallSummary]:
        """Per-tool counts and latency percentiles, busiest tool first."""
        by_tool: dict[str, list[ToolCall]] = {}
        for call in self.query_tool_calls(project_id, tool_name):
            by_tool.setdefault(call.tool_name, []).append(call)

        summaries = []
        for name, calls in by_tool.items():
            latencies = sorted(c.latency_ms for c in calls)
            successes = sum(1 for c in calls if c.success)
            summaries.append(
                ToolCallSummary(
                    tool_name=name,
                    call_count=len(calls),
                    success_count=successes,
                    error_count=len(calls) - successes,
                    success_rate=successes / len(calls),
                    p50_latency_ms=percentile(latencies, 50),
                    p95_latency_ms=percentile(latencies, 95),
                    p99_latency_ms=percentile(latencies, 99),
                    avg_latency_ms=sum(latencies) / len(latencies),
                )
            )
        summaries.sort(key=lambda s: (-s.call_count, s.tool_name))
        return summaries

    def get_parse_stats_summary(self, project_id: str | None = None) -> ParseStatsSummary:
        runs = self.query_parse_stats(project_id)
        return ParseStatsSummary(
            total_parse_runs=len(runs),
            total_files_processed=sum(r.files_total for r in runs),
            total_files_success=sum(r.files_success for r in runs),
            total_files_error=sum(r.files_error for r in runs),
            total_entities_extracted=sum(r.entities_extracted for r in runs),
            total_relationships_extracted=sum(r.relationships_extracted for r in runs),
            avg_duration_ms=sum(r.duration_ms for r in runs) / len(runs) if runs else 0.0,
        )

    def get_tool_usage_ranking(
        self, project_id: str | None = None, limit: int = 10
    ) -> list[ToolUsage]:
        ranking = [
            ToolUsage(
                tool_name=s.tool_name, call_count=s.call_count, avg_latency_ms=s.avg_latency_ms
            )
            for s in self.get_tool_call_summary(project_id)
        ]
        return ranking[:limit]


def _output_size(result: Any) -> int | None:
    if result is None:
        return None
    if isinstance(result, str):
        return len(result)
    try:
        return len(json.dumps(result, default=str))
    except (TypeError, ValueError):
        return None


P = ParamSpec("P")
R = TypeVar("R")


def instrumented(
    metrics: MetricsStore | None,
    tool_name: str,
    project_id: str,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Record latency, outcome, input summary and output size of each call.

    Exceptions from the wrapped function are re-raised unchanged.
    ``metrics=None`` leaves the function unwrapped.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        if metrics is None:
            return fn

        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            success = False
            error_type: str | None = None
            result: Any = None
            try:
                result = fn(*args, **kwargs)
                success = True
                return result
            except Exception as e:
                error_type = classify_error(e)
                raise
            finally:
                latency_ms = (time.perf_counter() - start) * 1000
                try:
                    metrics.insert_tool_call(
                        project_id,
                        tool_name,
                        round(latency_ms, 3),
                        success,
                        error_type,
                        sanitize_input(kwargs or list(args)),
                        _output_size(result) if success else None,
                    )
                except (SQLAlchemyError, CodeGraphError) as record_error:
                    log.error(
                        "metrics_record_failed",
                        tool_name=tool_name,
                        error=str(record_error),
                    )

        return wrapper

    return decorator
