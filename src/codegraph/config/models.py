"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODEGRAPH__SECTION__KEY)
3. Repo YAML (.codegraph/config.yaml)
4. Global YAML (~/.config/codegraph/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CODEGRAPH__<SECTION>__<KEY>=<VALUE>

Examples:
    CODEGRAPH__LOGGING__LEVEL=DEBUG
    CODEGRAPH__DATABASE__PATH=/tmp/graph.db
    CODEGRAPH__QUERY__BLAST_RADIUS_DEFAULT_DEPTH=3
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Confidence = Literal["high", "medium", "low"]

DEFAULT_DB_PATH = ".codegraph/graph.db"


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODEGRAPH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every file decision during indexing.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DatabaseConfig(BaseModel):
    """Graph store configuration.

    Env vars:
        CODEGRAPH__DATABASE__PATH: SQLite file, relative to the repo root
        CODEGRAPH__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
    """

    path: str = Field(
        default=DEFAULT_DB_PATH,
        description="SQLite file holding the graph. ':memory:' keeps it in-process.",
    )
    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks.",
    )

    @field_validator("busy_timeout_ms")
    @classmethod
    def validate_busy_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"busy_timeout_ms must be >= 0, got {v}")
        return v


class IndexConfig(BaseModel):
    """Directory indexing configuration.

    Env vars:
        CODEGRAPH__INDEX__MAX_FILE_SIZE_MB: Skip files larger than this
    """

    extensions: list[str] | None = Field(
        default=None,
        description="Restrict indexing to these extensions (e.g. ['.ts']). "
        "Default: every extension with a known grammar.",
    )
    ignore: list[str] = Field(
        default_factory=list,
        description="Extra glob patterns to skip. 'name/' skips a directory, "
        "'!name' re-includes a directory excluded by default.",
    )
    max_file_size_mb: int = Field(
        default=10,
        description="Skip files larger than this (MB).",
    )

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]


class QueryConfig(BaseModel):
    """Query defaults and hard limits.

    Env vars:
        CODEGRAPH__QUERY__BLAST_RADIUS_DEFAULT_DEPTH: Default traversal depth
        CODEGRAPH__QUERY__BLAST_RADIUS_MAX_DEPTH: Largest depth accepted
        CODEGRAPH__QUERY__MAX_CYCLES_DEFAULT: Cycle search cap (0 = unlimited)
    """

    blast_radius_default_depth: int = Field(default=5, ge=1)
    blast_radius_max_depth: int = Field(
        default=20,
        ge=1,
        description="Largest max_depth accepted by blast radius queries.",
    )
    max_cycles_default: int = Field(default=100, ge=0)
    dead_code_min_confidence: Confidence = "high"
    dead_code_include_tests: bool = False
    dead_code_entity_types: list[str] = Field(
        default_factory=lambda: ["function", "class", "method"]
    )
    dead_code_max_results: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_depths(self) -> "QueryConfig":
        if self.blast_radius_default_depth > self.blast_radius_max_depth:
            raise ValueError(
                "blast_radius_default_depth must not exceed blast_radius_max_depth"
            )
        return self


class MetricsConfig(BaseModel):
    """Tool-call metrics configuration.

    Env vars:
        CODEGRAPH__METRICS__ENABLED: Record CLI tool calls and parse stats
        CODEGRAPH__METRICS__PROJECT_ID: Project tag for recorded rows
    """

    enabled: bool = Field(default=True)
    project_id: str | None = Field(
        default=None,
        description="Project tag for metrics rows. Default: repo directory name.",
    )


class CodeGraphConfig(BaseModel):
    """Root configuration for codegraph.

    All settings can be configured via:
    1. Environment variables: CODEGRAPH__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
