"""structlog setup for the cg CLI and library code.

Every event passes through the stdlib root logger, so each configured
output (stderr, stdout or a file) gets its own level and renderer. Tool
calls bind a short call id and the tool name into structlog's context
variables; every event logged during the call carries both.

Console outputs go quiet while a Rich progress bar is on screen.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from codegraph.config.models import LoggingConfig, LogOutputConfig

_CONSOLES = ("stderr", "stdout")

# First file output of the active configuration
_log_file: Path | None = None


def log_file_path() -> Path | None:
    """File the CLI points users at when a command fails, if one is configured."""
    return _log_file


def begin_tool_call(tool_name: str, call_id: str | None = None) -> str:
    """Tag subsequent events with ``call_id`` (generated if omitted) and the tool name."""
    call_id = call_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(call_id=call_id, tool=tool_name)
    return call_id


def current_call_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("call_id")


def end_tool_call() -> None:
    structlog.contextvars.unbind_contextvars("call_id", "tool")


def _level(name: str | None, default: int = logging.INFO) -> int:
    if not name:
        return default
    return logging.getLevelNamesMapping().get(name.upper(), default)


class ConsoleSuppressingFilter(logging.Filter):
    """Drops records while a progress display owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from codegraph.core.progress import is_console_suppressed

        return not is_console_suppressed()


_SHARED: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
]


def _formatter(output: LogOutputConfig) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in _CONSOLES and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=_SHARED)


def _handler(output: LogOutputConfig) -> logging.Handler:
    if output.destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if output.destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(output.destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def configure_logging(
    config: LoggingConfig | None = None,
    *,
    level: str = "INFO",
    json_format: bool = False,
    console_level: str | None = None,
) -> None:
    """(Re)configure logging.

    Args:
        config: Outputs to install. Without one, a single stderr output at
            ``level`` is used, rendered as JSON if ``json_format``.
        console_level: Overrides the level of stderr/stdout outputs only,
            so ``cg -v`` can raise console verbosity without touching files.
    """
    global _log_file
    from codegraph.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level.upper(),  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    base = _level(config.level)
    installed: list[logging.Handler] = []
    _log_file = None
    for output in config.outputs:
        is_console = output.destination in _CONSOLES
        handler = _handler(output)
        if is_console:
            handler.addFilter(ConsoleSuppressingFilter())
            handler.setLevel(_level(console_level or output.level, base))
        else:
            handler.setLevel(_level(output.level, base))
            if _log_file is None:
                _log_file = Path(output.destination)
        handler.setFormatter(_formatter(output))
        installed.append(handler)

    lowest = min((h.level for h in installed), default=base)
    structlog.configure(
        processors=[*_SHARED, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(lowest),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in root.handlers:
        if isinstance(old, logging.FileHandler):
            old.close()
    root.handlers.clear()
    for handler in installed:
        root.addHandler(handler)
    root.setLevel(lowest)
    # SQLAlchemy echoes every statement at INFO when its logger is enabled
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
