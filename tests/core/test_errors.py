"""Tests for error types and codes."""

import pytest

from codegraph.core.errors import (
    CodeGraphError,
    ConfigError,
    ErrorCode,
    IndexingError,
    InternalError,
    QueryError,
    StoreError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.STORE_CONSTRAINT_VIOLATION, 3000),
            (ErrorCode.STORE_MISSING_ENDPOINT, 3000),
            (ErrorCode.QUERY_INVALID_PARAMETER, 4000),
            (ErrorCode.INDEX_DIRECTORY_NOT_FOUND, 5000),
            (ErrorCode.INTERNAL_ERROR, 9000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        assert expected_range <= code.value < expected_range + 1000


class TestCodeGraphError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = CodeGraphError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_includes_code_and_name(self) -> None:
        """String form carries numeric code and symbolic name."""
        error = InternalError.unexpected("boom")
        assert str(error) == "[9001] INTERNAL_ERROR: Internal error: boom"

    def test_given_error_when_raised_then_catchable_as_base(self) -> None:
        """Subclasses are caught by the base class."""
        with pytest.raises(CodeGraphError):
            raise QueryError.invalid_parameter("max_depth", 0, "must be at least 1")


class TestFactories:
    """Classmethod constructors fill codes and details."""

    def test_config_parse_error(self) -> None:
        error = ConfigError.parse_error("/x/config.yaml", "bad indent")
        assert error.code == ErrorCode.CONFIG_PARSE_ERROR
        assert error.details == {"path": "/x/config.yaml", "reason": "bad indent"}

    def test_store_missing_endpoint(self) -> None:
        error = StoreError.missing_endpoint("a", "b")
        assert error.code == ErrorCode.STORE_MISSING_ENDPOINT
        assert error.details == {"source_id": "a", "target_id": "b"}

    def test_store_constraint_violation_merges_details(self) -> None:
        error = StoreError.constraint_violation("relationships", "duplicate", type="calls")
        assert error.details == {"table": "relationships", "reason": "duplicate", "type": "calls"}

    def test_query_invalid_parameter_stringifies_value(self) -> None:
        error = QueryError.invalid_parameter("max_depth", 0, "must be at least 1")
        assert error.details["value"] == "0"
        assert error.error_name == "QUERY_INVALID_PARAMETER"

    def test_indexing_errors(self) -> None:
        assert IndexingError.directory_not_found("/nope").code == ErrorCode.INDEX_DIRECTORY_NOT_FOUND
        assert IndexingError.not_a_directory("/f.ts").code == ErrorCode.INDEX_NOT_A_DIRECTORY
