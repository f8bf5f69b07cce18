"""codegraph error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Store
- 4xxx: Query
- 5xxx: Indexing
- 9xxx: Internal

"Not found" is never an error: lookups return None, False or an empty
collection instead.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Store (3xxx)
    STORE_CONSTRAINT_VIOLATION = 3001
    STORE_MISSING_ENDPOINT = 3002
    STORE_CLOSED = 3003

    # Query (4xxx)
    QUERY_INVALID_PARAMETER = 4001

    # Indexing (5xxx)
    INDEX_DIRECTORY_NOT_FOUND = 5001
    INDEX_NOT_A_DIRECTORY = 5002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_TIMEOUT = 9002


@dataclass(frozen=True, slots=True)
class CodeGraphError(Exception):
    """Base error with structured context for tool responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeGraphError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class StoreError(CodeGraphError):
    """Persistence errors that callers must handle."""

    @classmethod
    def constraint_violation(cls, table: str, reason: str, **details: Any) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_CONSTRAINT_VIOLATION,
            message=f"Constraint violation on {table}: {reason}",
            details={"table": table, "reason": reason, **details},
        )

    @classmethod
    def missing_endpoint(cls, source_id: str, target_id: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_MISSING_ENDPOINT,
            message=f"Relationship endpoint does not exist: {source_id} -> {target_id}",
            details={"source_id": source_id, "target_id": target_id},
        )

    @classmethod
    def closed(cls, db_path: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_CLOSED,
            message=f"Database handle is closed: {db_path}",
            details={"db_path": db_path},
        )


class QueryError(CodeGraphError):
    """Malformed queries, rejected before any traversal starts."""

    @classmethod
    def invalid_parameter(cls, name: str, value: Any, reason: str) -> "QueryError":
        return cls(
            code=ErrorCode.QUERY_INVALID_PARAMETER,
            message=f"Invalid parameter '{name}': {reason}",
            details={"parameter": name, "value": str(value), "reason": reason},
        )


class IndexingError(CodeGraphError):
    """Directory-level indexing errors."""

    @classmethod
    def directory_not_found(cls, path: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_DIRECTORY_NOT_FOUND,
            message=f"Directory not found: {path}",
            details={"path": path},
        )

    @classmethod
    def not_a_directory(cls, path: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_NOT_A_DIRECTORY,
            message=f"Path is not a directory: {path}",
            details={"path": path},
        )


class InternalError(CodeGraphError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
