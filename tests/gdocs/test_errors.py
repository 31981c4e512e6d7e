"""
Unit tests for Google Docs structured error handling.

These tests verify that error messages are correctly structured,
contain all required fields, and provide actionable guidance.
"""

import json
import pytest
from gdocs.errors import (
    ConflictingRangesError,
    DocsEngineError,
    DocsErrorBuilder,
    ErrorCode,
    ErrorContext,
    InvalidRangeError,
    NotFoundError,
    OutOfBoundsError,
    RemoteUnavailableError,
    StructuralMismatchError,
    StructuredError,
    format_error,
)


class TestErrorCode:
    """Tests for ErrorCode enum."""

    def test_error_codes_are_strings(self):
        """All error codes should be string values."""
        for code in ErrorCode:
            assert isinstance(code.value, str)
            assert code.value.isupper()

    def test_taxonomy_codes_exist(self):
        """Every failure the engine reports has a code."""
        expected_codes = [
            "DOCUMENT_NOT_FOUND",
            "TAB_NOT_FOUND",
            "SEARCH_TEXT_NOT_FOUND",
            "INVALID_OCCURRENCE",
            "HEADING_NOT_FOUND",
            "TABLE_NOT_FOUND",
            "ROW_OUT_OF_BOUNDS",
            "COLUMN_OUT_OF_BOUNDS",
            "STRUCTURAL_MISMATCH",
            "CONFLICTING_RANGES",
            "REMOTE_UNAVAILABLE",
        ]
        for code in expected_codes:
            assert hasattr(ErrorCode, code), f"Missing error code: {code}"


class TestStructuredError:
    """Tests for StructuredError dataclass."""

    def test_basic_error_creation(self):
        """Can create a basic structured error."""
        error = StructuredError(
            code="TEST_ERROR", message="Test message", suggestion="Test suggestion"
        )
        assert error.error is True
        assert error.code == "TEST_ERROR"
        assert error.suggestion == "Test suggestion"

    def test_to_dict_excludes_empty_fields(self):
        """to_dict leaves out empty reason, suggestion and context values."""
        error = StructuredError(
            code="TEST",
            message="Test",
            context=ErrorContext(received={"row": 5}),
        )
        result = error.to_dict()
        assert "reason" not in result
        assert "suggestion" not in result
        assert result["context"] == {"received": {"row": 5}}

    def test_format_error_is_json(self):
        """format_error returns parseable JSON."""
        error = DocsErrorBuilder.empty_search_text()
        parsed = json.loads(format_error(error))
        assert parsed["error"] is True
        assert parsed["code"] == "EMPTY_SEARCH_TEXT"


class TestExceptionHierarchy:
    """Tests for the exception classes."""

    @pytest.mark.parametrize("exc_class", [
        NotFoundError,
        OutOfBoundsError,
        StructuralMismatchError,
        ConflictingRangesError,
        InvalidRangeError,
        RemoteUnavailableError,
    ])
    def test_all_errors_share_base(self, exc_class):
        """Callers can catch every engine failure at once."""
        error = exc_class(DocsErrorBuilder.empty_search_text())
        assert isinstance(error, DocsEngineError)
        assert str(error) == "Search text cannot be empty"

    def test_exception_exposes_code_and_json(self):
        """The structured error travels with the exception."""
        error = NotFoundError(DocsErrorBuilder.document_not_found("abc"))
        assert error.code == "DOCUMENT_NOT_FOUND"
        assert json.loads(error.to_json())["message"] == "Document 'abc' was not found"

    def test_remote_status_code(self):
        """RemoteUnavailableError carries the HTTP status."""
        error = RemoteUnavailableError(
            DocsErrorBuilder.remote_unavailable("documents.get", "forbidden", status_code=403)
        )
        assert error.status_code == 403
        assert "Expired or revoked credentials" in error.error.context.possible_causes


class TestDocsErrorBuilder:
    """Tests for DocsErrorBuilder messages."""

    def test_row_out_of_bounds_names_extents(self):
        """Bounds errors name the real row count."""
        error = DocsErrorBuilder.row_out_of_bounds(5, 1)
        assert error.code == "ROW_OUT_OF_BOUNDS"
        assert "Table has 1 rows (0-0)" in error.message
        assert error.context.received == {"row": 5}

    def test_column_out_of_bounds_names_extents(self):
        """Column errors name the row's cell count."""
        error = DocsErrorBuilder.column_out_of_bounds(0, 4, 3)
        assert "Row 0 has 3 columns (0-2)" in error.message

    def test_invalid_occurrence_reports_matches(self):
        """Occurrence errors state requested vs found."""
        error = DocsErrorBuilder.invalid_occurrence(5, 3, "test")
        assert error.context.occurrences_found == 3
        assert "Occurrence 5 requested but only 3 found" in error.message

    def test_heading_not_found_lists_headings(self):
        """Available headings are listed, capped at ten."""
        headings = [f"H{i}" for i in range(15)]
        error = DocsErrorBuilder.heading_not_found("Missing", headings)
        assert error.context.available_headings == headings[:10]

    def test_conflicting_ranges_context(self):
        """Both conflicting edits are reported."""
        first = {"kind": "delete", "start_index": 5, "end_index": 10}
        second = {"kind": "style", "start_index": 8, "end_index": 12}
        error = DocsErrorBuilder.conflicting_ranges(first, second)
        assert error.context.conflicting == [first, second]
        assert "delete 5-10" in error.message

    def test_structural_mismatch_names_region(self):
        """The region containing the index is described."""
        error = DocsErrorBuilder.structural_mismatch(9, "table", 8, 24)
        assert error.code == "STRUCTURAL_MISMATCH"
        assert "non-paragraph structural region" in error.message

    def test_invalid_index_range(self):
        """Inverted ranges name both ends."""
        error = DocsErrorBuilder.invalid_index_range(10, 5)
        assert error.message == "start_index (10) must be less than end_index (5)"
