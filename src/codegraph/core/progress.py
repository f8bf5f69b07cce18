"""User-facing progress feedback for CLI operations.

Design principles:
- Progress bar only if iterating >100 items on a TTY
- Single line updates, no spam
- Graceful degradation in non-TTY (CI, pipes)
- Suppress structlog console output while a bar is live

Usage::

    from codegraph.core.progress import progress_callback, status

    status("Discovering files...")

    with progress_callback("Indexing") as on_progress:
        indexer.index_directory(root, on_progress=on_progress)

    status("Ready", style="success")  # ✓ Ready
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

_PROGRESS_THRESHOLD = 100

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

_suppress_console_logs = threading.local()


def is_console_suppressed() -> bool:
    """Check if console logging is currently suppressed."""
    return getattr(_suppress_console_logs, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Suppress structlog console output; file handlers still receive logs."""
    _suppress_console_logs.active = True
    try:
        yield
    finally:
        _suppress_console_logs.active = False


def _get_logger() -> BoundLogger:
    from codegraph.core.logging import get_logger

    return get_logger("progress")


def _is_tty() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{message}", highlight=False)
    _get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 file" / "3 files" style phrases."""
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


@contextmanager
def progress_callback(
    desc: str,
    *,
    unit: str = "files",
    force: bool = False,
) -> Iterator[Callable[[int, int, str], None]]:
    """Yield an ``on_progress(current, total, path)`` callback backed by a bar.

    The bar is only drawn on a TTY once the total exceeds 100 items
    (or force=True); otherwise progress is logged at DEBUG.
    """
    log = _get_logger()
    if not _is_tty():

        def _log_only(current: int, total: int, path: str) -> None:  # noqa: ARG001
            if current == total:
                log.debug("progress_done", desc=desc, total=total)

        yield _log_only
        return

    with (
        suppress_console_logs(),
        Progress(
            TextColumn("    {task.description}:"),
            BarColumn(bar_width=25, style="cyan", complete_style="cyan"),
            TaskProgressColumn(),
            TextColumn("{task.completed}/{task.total} {task.fields[unit]}"),
            console=_console,
            transient=True,
        ) as pbar,
    ):
        task_id: TaskID | None = None

        def _advance(current: int, total: int, path: str) -> None:  # noqa: ARG001
            nonlocal task_id
            if not force and total <= _PROGRESS_THRESHOLD:
                return
            if task_id is None:
                task_id = pbar.add_task(desc, total=total, unit=unit)
            pbar.update(task_id, completed=current)

        yield _advance
