"""cg index command - build or refresh the graph for a directory."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from codegraph.cli.utils import echo_json, graph_options, open_graph, run_tool
from codegraph.core.progress import pluralize, progress_callback, status
from codegraph.graph.indexer import DirectoryIndexer


@click.command("index")
@click.argument(
    "directory",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--ext", "extensions", multiple=True, help="Only index these extensions (repeatable)")
@click.option("--ignore", "ignore", multiple=True, help="Extra glob to skip (repeatable)")
@graph_options
def index_command(
    directory: Path,
    extensions: tuple[str, ...],
    ignore: tuple[str, ...],
    db_path: Path | None,
    as_json: bool,
) -> None:
    """Index DIRECTORY into the code graph.

    Unchanged files are skipped; files that disappeared are removed.
    """
    root = directory.resolve()
    with open_graph(db_path, repo_root=root) as graph:
        indexer = DirectoryIndexer(graph.db, graph.config.index, metrics=graph.metrics)

        def _index(root: str, extensions: list[str] | None, ignore: list[str]) -> dict[str, Any]:
            if as_json:
                return indexer.index_directory(
                    root, extensions, ignore, project_id=graph.project_id
                ).to_dict()
            with progress_callback("Indexing") as on_progress:
                return indexer.index_directory(
                    root, extensions, ignore, on_progress=on_progress, project_id=graph.project_id
                ).to_dict()

        if not as_json:
            status(f"Indexing {root}", style="none")
        data = run_tool(
            graph, "index_directory", _index,
            root=str(root), extensions=list(extensions) or None, ignore=list(ignore),
        )

    if as_json:
        echo_json(data)
        return

    status(
        f"{pluralize(data['parsed'], 'file')} parsed, {data['skipped']} unchanged, "
        f"{data['removed']} removed",
        style="success",
    )
    status(
        f"{pluralize(data['entities'], 'entity', 'entities')}, "
        f"{pluralize(data['relationships'], 'relationship')}, "
        f"{data['cross_file_relationships']} linked across files",
        style="info",
    )
    if data["failed"]:
        status(f"{pluralize(data['failed'], 'file')} failed", style="error")
        for error in data["errors"]:
            status(f"{error['file_path']}: {error['error']}", style="info", indent=2)
