"""cg metrics command - tool-call latencies and indexing history."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from codegraph.cli.utils import echo_json, graph_options, open_graph
from codegraph.core.progress import status
from codegraph.store.metrics import MetricsStore


@click.command("metrics")
@click.option("--project", "project_id", default=None, help="Only this project (default: all)")
@click.option("--tool", "tool_name", default=None, help="Only this tool")
@graph_options
def metrics_command(
    project_id: str | None, tool_name: str | None, db_path: Path | None, as_json: bool
) -> None:
    """Show recorded tool-call and indexing metrics."""
    with open_graph(db_path) as graph:
        store = graph.metrics or MetricsStore(graph.db)
        tools = store.get_tool_call_summary(project_id, tool_name)
        parses = store.get_parse_stats_summary(project_id)

    if as_json:
        echo_json({"tools": [asdict(t) for t in tools], "parse_stats": asdict(parses)})
        return
    if not tools and not parses.total_parse_runs:
        status("No metrics recorded yet", style="info")
        return

    console = Console()
    if tools:
        table = Table(title="Tool calls", show_header=True, header_style="bold")
        table.add_column("Tool")
        table.add_column("Calls", justify="right")
        table.add_column("Success", justify="right")
        table.add_column("p50 ms", justify="right")
        table.add_column("p95 ms", justify="right")
        table.add_column("p99 ms", justify="right")
        for t in tools:
            table.add_row(
                t.tool_name,
                str(t.call_count),
                f"{t.success_rate:.0%}",
                f"{t.p50_latency_ms:.1f}",
                f"{t.p95_latency_ms:.1f}",
                f"{t.p99_latency_ms:.1f}",
            )
        console.print(table)
    if parses.total_parse_runs:
        console.print(
            f"Index runs: {parses.total_parse_runs}  files: {parses.total_files_processed} "
            f"({parses.total_files_error} failed)  entities: {parses.total_entities_extracted}  "
            f"avg {parses.avg_duration_ms:.0f} ms"
        )
