"""Graph query commands: callers, callees, blast-radius, cycles, dead-code, exports, find."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from codegraph.cli.utils import (
    echo_json,
    entity_label,
    entity_location,
    graph_options,
    open_graph,
    run_tool,
)
from codegraph.core.progress import pluralize, status
from codegraph.queries.engine import GraphQueries
from codegraph.store.models import EntityType

_ENTITY_TYPES = [t.value for t in EntityType]


def _entity_table(title: str, entities: list[dict[str, Any]]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Entity")
    table.add_column("Location", style="dim")
    for entity in entities:
        table.add_row(entity_label(entity), entity_location(entity))
    return table


def _print_entities(title: str, entities: list[dict[str, Any]], empty: str) -> None:
    if not entities:
        status(empty, style="info")
        return
    Console().print(_entity_table(title, entities))


@click.command("callers")
@click.argument("name")
@graph_options
def callers_command(name: str, db_path: Path | None, as_json: bool) -> None:
    """Show what calls, extends or implements NAME."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _callers(name: str) -> dict[str, Any]:
            found = queries.what_calls(name)
            return {"name": name, "callers": [e.to_dict() for e in found]}

        data = run_tool(graph, "what_calls", _callers, name=name)

    if as_json:
        echo_json(data)
    else:
        _print_entities(f"Callers of {name}", data["callers"], f"Nothing calls {name}")


@click.command("callees")
@click.argument("name")
@graph_options
def callees_command(name: str, db_path: Path | None, as_json: bool) -> None:
    """Show what NAME calls, extends or implements."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _callees(name: str) -> dict[str, Any]:
            found = queries.what_does_call(name)
            return {"name": name, "callees": [e.to_dict() for e in found]}

        data = run_tool(graph, "what_does_call", _callees, name=name)

    if as_json:
        echo_json(data)
    else:
        _print_entities(f"Called by {name}", data["callees"], f"{name} calls nothing")


@click.command("blast-radius")
@click.argument("file_path")
@click.option("--depth", type=int, default=None, help="Hops to follow (default from config)")
@graph_options
def blast_radius_command(
    file_path: str, depth: int | None, db_path: Path | None, as_json: bool
) -> None:
    """Show every entity affected by a change to FILE_PATH."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _blast_radius(file_path: str, max_depth: int | None) -> dict[str, Any]:
            return queries.blast_radius(file_path, max_depth).to_dict()

        data = run_tool(graph, "blast_radius", _blast_radius, file_path=file_path, max_depth=depth)

    if as_json:
        echo_json(data)
        return

    summary = data["summary"]
    if not data["source_entities"]:
        status(f"No entities found in {file_path}", style="warning")
        return
    if not data["affected_entities"]:
        status(f"Nothing depends on {file_path}", style="success")
        return

    table = Table(title=f"Blast radius of {data['source_file']}", show_header=True)
    table.add_column("Depth", justify="right")
    table.add_column("Entity")
    table.add_column("Location", style="dim")
    for affected in data["affected_entities"]:
        entity = affected["entity"]
        table.add_row(str(affected["depth"]), entity_label(entity), entity_location(entity))
    Console().print(table)
    status(
        f"{pluralize(summary['total_affected'], 'entity', 'entities')} affected, "
        f"{summary['direct_dependents']} direct, max depth {summary['max_depth']}",
        style="info",
    )
    if summary["truncated"]:
        status("More dependents exist beyond the depth limit", style="warning")


@click.command("cycles")
@click.option("--entity", "entity_name", default=None, help="Only cycles through this name")
@click.option("--max", "max_cycles", type=int, default=None, help="Stop after N cycles (0 = all)")
@graph_options
def cycles_command(
    entity_name: str | None, max_cycles: int | None, db_path: Path | None, as_json: bool
) -> None:
    """Find circular dependencies."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _cycles(start_entity_name: str | None, max_cycles: int | None) -> dict[str, Any]:
            return queries.find_circular_dependencies(start_entity_name, max_cycles).to_dict()

        data = run_tool(
            graph, "find_circular_dependencies", _cycles,
            start_entity_name=entity_name, max_cycles=max_cycles,
        )

    if as_json:
        echo_json(data)
        return
    if not data["has_cycles"]:
        status("No circular dependencies", style="success")
        return

    console = Console()
    for i, cycle in enumerate(data["cycles"], 1):
        names = [e["name"] for e in cycle["entities"]]
        chain = " -> ".join([*names, names[0]])
        console.print(f"{i}. {chain}  [dim]({', '.join(cycle['relationship_types'])})[/dim]")
    summary = data["summary"]
    status(
        f"{pluralize(summary['total_cycles'], 'cycle')} "
        f"({summary['shortest_cycle']}-{summary['longest_cycle']} entities each)",
        style="warning",
    )


@click.command("dead-code")
@click.option(
    "--min-confidence",
    type=click.Choice(["high", "medium", "low"]),
    default=None,
    help="Lowest confidence to report (default from config)",
)
@click.option("--include-tests", is_flag=True, help="Also report test files")
@click.option(
    "--type", "entity_types", multiple=True, type=click.Choice(_ENTITY_TYPES),
    help="Entity types to check (repeatable)",
)
@click.option("--limit", type=int, default=None, help="Maximum results")
@graph_options
def dead_code_command(
    min_confidence: str | None,
    include_tests: bool,
    entity_types: tuple[str, ...],
    limit: int | None,
    db_path: Path | None,
    as_json: bool,
) -> None:
    """Find entities nothing uses."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _dead_code(
            entity_types: list[str] | None,
            include_tests: bool | None,
            min_confidence: str | None,
            max_results: int | None,
        ) -> dict[str, Any]:
            return queries.find_dead_code(
                entity_types=entity_types,
                include_tests=include_tests,
                min_confidence=min_confidence,  # type: ignore[arg-type]
                max_results=max_results,
            ).to_dict()

        data = run_tool(
            graph, "find_dead_code", _dead_code,
            entity_types=list(entity_types) or None,
            include_tests=include_tests or None,
            min_confidence=min_confidence,
            max_results=limit,
        )

    if as_json:
        echo_json(data)
        return
    if not data["unused_entities"]:
        status("No dead code found", style="success")
        return

    table = Table(title="Possibly unused", show_header=True)
    table.add_column("Confidence")
    table.add_column("Entity")
    table.add_column("Location", style="dim")
    for unused in data["unused_entities"]:
        entity = unused["entity"]
        table.add_row(unused["confidence"], entity_label(entity), entity_location(entity))
    Console().print(table)
    summary = data["summary"]
    status(f"{pluralize(summary['total_unused'], 'entity', 'entities')} unused", style="warning")
    if summary["truncated"]:
        status("Results truncated; raise --limit to see more", style="info")


@click.command("exports")
@click.argument("file_path")
@graph_options
def exports_command(file_path: str, db_path: Path | None, as_json: bool) -> None:
    """List the exported entities of FILE_PATH."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _exports(file_path: str) -> dict[str, Any]:
            return queries.get_exports(file_path).to_dict()

        data = run_tool(graph, "get_exports", _exports, file_path=file_path)

    if as_json:
        echo_json(data)
        return
    if not data["exports"]:
        status(f"No exports in {file_path}", style="info")
        return

    table = Table(title=f"Exports of {file_path}", show_header=True)
    table.add_column("Export")
    table.add_column("Entity")
    table.add_column("Signature", style="dim")
    for export in data["exports"]:
        table.add_row(
            export["export_type"], entity_label(export["entity"]), export.get("signature", "")
        )
    Console().print(table)


@click.command("find")
@click.argument("name")
@click.option("--type", "entity_type", type=click.Choice(_ENTITY_TYPES), default=None)
@click.option("--file", "file_path", default=None, help="Only entities defined in this file")
@click.option("--limit", type=int, default=50, show_default=True)
@graph_options
def find_command(
    name: str,
    entity_type: str | None,
    file_path: str | None,
    limit: int,
    db_path: Path | None,
    as_json: bool,
) -> None:
    """Look up entities by NAME (``*`` wildcards allowed)."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _find(
            name: str, entity_type: str | None, file_path: str | None, limit: int
        ) -> dict[str, Any]:
            found = queries.find_entities(name, entity_type, file_path, limit)
            return {"name": name, "entities": [e.to_dict() for e in found]}

        data = run_tool(
            graph, "find_entities", _find,
            name=name, entity_type=entity_type, file_path=file_path, limit=limit,
        )

    if as_json:
        echo_json(data)
    else:
        _print_entities(f"Entities matching {name}", data["entities"], f"No entity named {name}")
