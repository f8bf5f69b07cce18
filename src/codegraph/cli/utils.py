"""Shared plumbing for cg commands: config, database handle, output."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import click

from codegraph.config.loader import load_config, resolve_db_path
from codegraph.config.models import CodeGraphConfig
from codegraph.core.errors import CodeGraphError
from codegraph.core.logging import (
    begin_tool_call,
    configure_logging,
    end_tool_call,
    get_logger,
    log_file_path,
)
from codegraph.store.database import Database, open_database
from codegraph.store.metrics import MetricsStore, instrumented

log = get_logger("cli")


@dataclass
class GraphContext:
    """Everything a command needs to touch the graph."""

    repo_root: Path
    config: CodeGraphConfig
    db: Database
    metrics: MetricsStore | None
    project_id: str


F = TypeVar("F", bound=Callable[..., Any])


def graph_options(fn: F) -> F:
    """Add the ``--db`` and ``--json`` options every graph command accepts."""
    fn = click.option("--json", "as_json", is_flag=True, help="Output as JSON")(fn)
    fn = click.option(
        "--db",
        "db_path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Graph database file (default: .codegraph/graph.db)",
    )(fn)
    return fn


def _console_level() -> str:
    ctx = click.get_current_context(silent=True)
    obj = ctx.find_root().obj if ctx is not None else None
    return "DEBUG" if isinstance(obj, dict) and obj.get("verbose") else "WARNING"


@contextmanager
def open_graph(db_path: Path | None, repo_root: Path | None = None) -> Iterator[GraphContext]:
    """Load config, apply its logging outputs, open the graph database, close it afterwards."""
    repo_root = (repo_root or Path.cwd()).resolve()
    try:
        config = load_config(repo_root)
        configure_logging(config.logging, console_level=_console_level())
        path = db_path if db_path is not None else resolve_db_path(repo_root, config)
        db = open_database(path, busy_timeout_ms=config.database.busy_timeout_ms)
    except CodeGraphError as e:
        raise click.ClickException(str(e)) from e

    try:
        yield GraphContext(
            repo_root=repo_root,
            config=config,
            db=db,
            metrics=MetricsStore(db) if config.metrics.enabled else None,
            project_id=config.metrics.project_id or repo_root.name,
        )
    finally:
        db.close()


def run_tool(
    graph: GraphContext,
    tool_name: str,
    fn: Callable[..., dict[str, Any]],
    **kwargs: Any,
) -> dict[str, Any]:
    """Run one tool call under a call id, recording it in the metrics store.

    CodeGraphError becomes a ClickException so the user sees a clean message,
    plus a pointer to the log file when one is configured.
    """
    call_id = begin_tool_call(tool_name)
    try:
        return instrumented(graph.metrics, tool_name, graph.project_id)(fn)(**kwargs)
    except CodeGraphError as e:
        log.info("tool_failed", error=e.error_name, message=e.message)
        raise click.ClickException(_with_log_hint(str(e), call_id)) from e
    finally:
        end_tool_call()


def _with_log_hint(message: str, call_id: str) -> str:
    path = log_file_path()
    if path is None:
        return message
    return f"{message}\nSee {path} for details (call_id={call_id})."


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def entity_label(entity: dict[str, Any]) -> str:
    return f"{entity['type']} {entity['name']}"


def entity_location(entity: dict[str, Any]) -> str:
    return f"{entity['file_path']}:{entity['start_line']}"
