"""Config module exports."""

from codegraph.config.loader import load_config, resolve_db_path
from codegraph.config.models import (
    CodeGraphConfig,
    DatabaseConfig,
    IndexConfig,
    LoggingConfig,
    MetricsConfig,
    QueryConfig,
)

__all__ = [
    "load_config",
    "resolve_db_path",
    "CodeGraphConfig",
    "DatabaseConfig",
    "IndexConfig",
    "LoggingConfig",
    "MetricsConfig",
    "QueryConfig",
]
