"""Core module exports."""

from codegraph.core.errors import (
    CodeGraphError,
    ConfigError,
    ErrorCode,
    IndexingError,
    InternalError,
    QueryError,
    StoreError,
)
from codegraph.core.logging import (
    begin_tool_call,
    configure_logging,
    current_call_id,
    end_tool_call,
    get_logger,
    log_file_path,
)
from codegraph.core.progress import progress_callback, status

__all__ = [
    # Errors
    "CodeGraphError",
    "ConfigError",
    "ErrorCode",
    "IndexingError",
    "InternalError",
    "QueryError",
    "StoreError",
    # Logging
    "begin_tool_call",
    "configure_logging",
    "current_call_id",
    "end_tool_call",
    "get_logger",
    "log_file_path",
    # Progress
    "progress_callback",
    "status",
]
