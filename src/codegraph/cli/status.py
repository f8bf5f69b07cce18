"""cg status command - show graph size and recently indexed files."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from codegraph.cli.utils import echo_json, graph_options, open_graph, run_tool
from codegraph.queries.engine import GraphQueries


@click.command("status")
@click.option("--recent", type=int, default=10, show_default=True, help="Recent files to list")
@graph_options
def status_command(recent: int, db_path: Path | None, as_json: bool) -> None:
    """Show entity and relationship counts."""
    with open_graph(db_path) as graph:
        queries = GraphQueries(graph.db, graph.config.query)

        def _status(recent_limit: int) -> dict[str, Any]:
            return queries.graph_status(recent_limit).to_dict()

        data = run_tool(graph, "graph_status", _status, recent_limit=recent)
        db_label = str(graph.db.db_path or ":memory:")

    if as_json:
        echo_json({"database": db_label, **data})
        return

    console = Console()
    console.print(f"Database: {db_label}")
    console.print(
        f"Files: {data['file_count']}  Entities: {data['entity_count']}  "
        f"Relationships: {data['relationship_count']}"
    )

    counts = Table(show_header=True, header_style="bold")
    counts.add_column("Kind")
    counts.add_column("Type")
    counts.add_column("Count", justify="right")
    for name, n in data["entities_by_type"].items():
        if n:
            counts.add_row("entity", name, str(n))
    for name, n in data["relationships_by_type"].items():
        if n:
            counts.add_row("relationship", name, str(n))
    if counts.row_count:
        console.print(counts)

    if data["recent_files"]:
        recent_table = Table(title="Recently indexed", show_header=True)
        recent_table.add_column("File")
        recent_table.add_column("Entities", justify="right")
        recent_table.add_column("Updated", style="dim")
        for f in data["recent_files"]:
            updated = datetime.fromtimestamp(f["last_updated"]).strftime("%Y-%m-%d %H:%M:%S")
            recent_table.add_row(f["file_path"], str(f["entity_count"]), updated)
        console.print(recent_table)
