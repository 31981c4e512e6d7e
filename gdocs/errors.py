"""
Google Docs Error Handling

This module provides structured, actionable errors for document range
resolution. Every failure the engine reports carries a StructuredError so
callers can render a precise message (requested vs. actual bounds, requested
occurrence vs. matches found) for both humans and AI agents.

Expected outcomes (NotFoundError, OutOfBoundsError) are kept distinct from
infrastructure failures (RemoteUnavailableError).
"""
import json
import logging
from enum import Enum
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for Google Docs range resolution."""

    # Lookup errors
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    TAB_NOT_FOUND = "TAB_NOT_FOUND"
    SEARCH_TEXT_NOT_FOUND = "SEARCH_TEXT_NOT_FOUND"
    INVALID_OCCURRENCE = "INVALID_OCCURRENCE"
    HEADING_NOT_FOUND = "HEADING_NOT_FOUND"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    PARAGRAPH_NOT_FOUND = "PARAGRAPH_NOT_FOUND"

    # Bounds errors
    ROW_OUT_OF_BOUNDS = "ROW_OUT_OF_BOUNDS"
    COLUMN_OUT_OF_BOUNDS = "COLUMN_OUT_OF_BOUNDS"

    # Structure errors
    STRUCTURAL_MISMATCH = "STRUCTURAL_MISMATCH"
    CONFLICTING_RANGES = "CONFLICTING_RANGES"

    # Parameter errors
    EMPTY_SEARCH_TEXT = "EMPTY_SEARCH_TEXT"
    INVALID_INDEX_RANGE = "INVALID_INDEX_RANGE"
    INVALID_PARAM_VALUE = "INVALID_PARAM_VALUE"

    # Remote errors
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"


@dataclass
class ErrorContext:
    """Additional context for error messages."""
    received: Optional[Dict[str, Any]] = None
    expected: Optional[Dict[str, Any]] = None
    actual: Optional[Dict[str, Any]] = None
    available_headings: Optional[List[str]] = None
    available_tabs: Optional[List[str]] = None
    occurrences_found: Optional[int] = None
    conflicting: Optional[List[Dict[str, Any]]] = None
    status_code: Optional[int] = None
    possible_causes: Optional[List[str]] = None


@dataclass
class StructuredError:
    """
    Structured error response with actionable guidance.

    Attributes:
        error: Always True for error responses
        code: Machine-readable error code from ErrorCode enum
        message: Human-readable error description
        reason: Explanation of why this error occurred
        suggestion: Actionable advice on how to fix the issue
        context: Additional context like received values and actual bounds
    """
    error: bool = True
    code: str = ""
    message: str = ""
    reason: str = ""
    suggestion: str = ""
    context: Optional[ErrorContext] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {
            "error": self.error,
            "code": self.code,
            "message": self.message,
        }

        if self.reason:
            result["reason"] = self.reason
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.context:
            ctx = asdict(self.context)
            ctx = {k: v for k, v in ctx.items() if v is not None}
            if ctx:
                result["context"] = ctx

        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class DocsEngineError(Exception):
    """Base class for every failure raised by the resolution engine."""

    def __init__(self, error: StructuredError):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> str:
        return self.error.code

    def to_json(self) -> str:
        return self.error.to_json()


class NotFoundError(DocsEngineError):
    """The requested text, heading, tab, table, paragraph or document is absent."""


class OutOfBoundsError(DocsEngineError):
    """A row or column lies beyond the extents of the table."""


class StructuralMismatchError(DocsEngineError):
    """An index resolves inside a region that cannot be addressed as requested."""


class ConflictingRangesError(DocsEngineError):
    """Two edits in one batch overlap."""


class InvalidRangeError(DocsEngineError):
    """A range or target parameter is malformed."""


class RemoteUnavailableError(DocsEngineError):
    """The document service could not be reached or refused the call."""

    @property
    def status_code(self) -> Optional[int]:
        if self.error.context:
            return self.error.context.status_code
        return None


class DocsErrorBuilder:
    """
    Builder for creating structured error messages.

    Usage:
        raise NotFoundError(DocsErrorBuilder.heading_not_found("Intro", ["Summary"]))
    """

    @staticmethod
    def document_not_found(document_id: str) -> StructuredError:
        """Error when the document does not exist or is not visible."""
        return StructuredError(
            code=ErrorCode.DOCUMENT_NOT_FOUND.value,
            message=f"Document '{document_id}' was not found",
            reason="The document ID may be incorrect or you may not have access to this document.",
            suggestion="Verify the document ID is correct. You can find the ID in the document's URL: "
                       "docs.google.com/document/d/{document_id}/edit",
            context=ErrorContext(
                received={"document_id": document_id},
                possible_causes=[
                    "Document ID is incorrect",
                    "Document was deleted",
                    "You don't have permission to access this document",
                ]
            )
        )

    @staticmethod
    def tab_not_found(tab_id: str, available_tabs: List[str]) -> StructuredError:
        """Error when a tab ID does not exist in the document."""
        return StructuredError(
            code=ErrorCode.TAB_NOT_FOUND.value,
            message=f"Tab '{tab_id}' was not found in the document",
            reason="No tab or child tab of the document has this tab ID.",
            suggestion="Use one of the available tab IDs, or omit the tab to use the first tab.",
            context=ErrorContext(
                received={"tab_id": tab_id},
                available_tabs=available_tabs
            )
        )

    @staticmethod
    def empty_search_text() -> StructuredError:
        """Error when search text is empty."""
        return StructuredError(
            code=ErrorCode.EMPTY_SEARCH_TEXT.value,
            message="Search text cannot be empty",
            reason="An empty string was provided for the search parameter, which would match nothing.",
            suggestion="Provide a non-empty search string to locate text in the document."
        )

    @staticmethod
    def search_text_not_found(search_text: str) -> StructuredError:
        """Error when search text is not found in document."""
        return StructuredError(
            code=ErrorCode.SEARCH_TEXT_NOT_FOUND.value,
            message=f"Could not find '{search_text}' in the document",
            reason="The exact text was not found in the document content. Search is case-sensitive.",
            suggestion="Check spelling and capitalization, or try a shorter, unique phrase.",
            context=ErrorContext(
                received={"search": search_text},
                occurrences_found=0
            )
        )

    @staticmethod
    def invalid_occurrence(
        occurrence: int,
        total_found: int,
        search_text: str
    ) -> StructuredError:
        """Error when requested occurrence doesn't exist."""
        return StructuredError(
            code=ErrorCode.INVALID_OCCURRENCE.value,
            message=f"Occurrence {occurrence} requested but only {total_found} found for '{search_text}'",
            reason=f"The document contains {total_found} instance(s) of the search text, "
                   f"but occurrence {occurrence} was requested.",
            suggestion=f"Use occurrence between 1 and {total_found}, or -1 for the last occurrence.",
            context=ErrorContext(
                received={"occurrence": occurrence, "search": search_text},
                expected={"occurrence": f"1 to {total_found} (or -1 for last)"},
                occurrences_found=total_found
            )
        )

    @staticmethod
    def heading_not_found(heading: str, available_headings: List[str]) -> StructuredError:
        """Error when a heading is not found in the document."""
        return StructuredError(
            code=ErrorCode.HEADING_NOT_FOUND.value,
            message=f"Heading '{heading}' not found in document",
            reason="No paragraph styled as a title or heading has exactly this text.",
            suggestion="Check spelling of the heading text. Matching ignores surrounding whitespace only.",
            context=ErrorContext(
                received={"heading": heading},
                available_headings=available_headings[:10]
            )
        )

    @staticmethod
    def table_not_found(table_start_index: int, table_starts: List[int]) -> StructuredError:
        """Error when no table starts at the given index."""
        return StructuredError(
            code=ErrorCode.TABLE_NOT_FOUND.value,
            message=f"No table found at index {table_start_index}",
            reason="Tables are identified by the exact start index of the table element.",
            suggestion="Read the document structure to find table start indices.",
            context=ErrorContext(
                received={"table_start_index": table_start_index},
                actual={"table_start_indices": table_starts}
            )
        )

    @staticmethod
    def row_out_of_bounds(row: int, row_count: int) -> StructuredError:
        """Error when a row index is outside the table."""
        return StructuredError(
            code=ErrorCode.ROW_OUT_OF_BOUNDS.value,
            message=f"Row index {row} out of bounds. Table has {row_count} rows (0-{row_count - 1}).",
            reason="Row indices are 0-based and must be less than the table's row count.",
            suggestion=f"Use a row index between 0 and {row_count - 1}.",
            context=ErrorContext(
                received={"row": row},
                actual={"row_count": row_count}
            )
        )

    @staticmethod
    def column_out_of_bounds(row: int, column: int, column_count: int) -> StructuredError:
        """Error when a column index is outside the row."""
        return StructuredError(
            code=ErrorCode.COLUMN_OUT_OF_BOUNDS.value,
            message=f"Column index {column} out of bounds. Row {row} has {column_count} columns "
                    f"(0-{column_count - 1}).",
            reason="Column indices are 0-based and must be less than the row's cell count.",
            suggestion=f"Use a column index between 0 and {column_count - 1}.",
            context=ErrorContext(
                received={"row": row, "column": column},
                actual={"column_count": column_count}
            )
        )

    @staticmethod
    def paragraph_not_found(index: int, document_end: int) -> StructuredError:
        """Error when no block contains the index at all."""
        return StructuredError(
            code=ErrorCode.PARAGRAPH_NOT_FOUND.value,
            message=f"Could not find paragraph containing index {index}",
            reason=f"Index {index} is outside every element of the document (document ends at {document_end}).",
            suggestion=f"Use an index between 1 and {max(document_end - 1, 1)}.",
            context=ErrorContext(
                received={"index": index},
                actual={"document_end": document_end}
            )
        )

    @staticmethod
    def structural_mismatch(
        index: int,
        element_type: str,
        start_index: int,
        end_index: int
    ) -> StructuredError:
        """Error when an index lies inside a block that is not a paragraph."""
        return StructuredError(
            code=ErrorCode.STRUCTURAL_MISMATCH.value,
            message=f"Index {index} falls in a non-paragraph structural region "
                    f"({element_type} {start_index}-{end_index})",
            reason="The index lies inside a document element that holds no paragraph at that position.",
            suggestion="Target an index inside paragraph text, or locate the paragraph by searching for its text.",
            context=ErrorContext(
                received={"index": index},
                actual={"element_type": element_type, "start_index": start_index, "end_index": end_index}
            )
        )

    @staticmethod
    def missing_block_boundary(edit_kind: str, start_index: int, end_index: int) -> StructuredError:
        """Error when a paragraph-level edit targets a range without block boundaries."""
        return StructuredError(
            code=ErrorCode.STRUCTURAL_MISMATCH.value,
            message=f"Range {start_index}-{end_index} has no paragraph boundary for {edit_kind}",
            reason="Paragraph-level edits need the boundary of the enclosing paragraph, "
                   "including its trailing newline.",
            suggestion="Resolve the target with the paragraph edit kind so its paragraph is located.",
            context=ErrorContext(
                received={"edit_kind": edit_kind, "start_index": start_index, "end_index": end_index}
            )
        )

    @staticmethod
    def invalid_index_range(start_index: int, end_index: int) -> StructuredError:
        """Error when start_index >= end_index."""
        return StructuredError(
            code=ErrorCode.INVALID_INDEX_RANGE.value,
            message=f"start_index ({start_index}) must be less than end_index ({end_index})",
            reason="The start of a range must come before its end.",
            suggestion="Pass an end index greater than the start index.",
            context=ErrorContext(
                received={"start_index": start_index, "end_index": end_index}
            )
        )

    @staticmethod
    def invalid_param_value(param_name: str, received_value: Any, valid_values: List[str]) -> StructuredError:
        """Error when a parameter has an invalid value."""
        return StructuredError(
            code=ErrorCode.INVALID_PARAM_VALUE.value,
            message=f"Invalid value for '{param_name}': {received_value!r}",
            reason=f"'{param_name}' must be one of the accepted values.",
            suggestion=f"Use one of: {', '.join(valid_values)}",
            context=ErrorContext(
                received={param_name: received_value},
                expected={param_name: valid_values}
            )
        )

    @staticmethod
    def conflicting_ranges(first: Dict[str, Any], second: Dict[str, Any]) -> StructuredError:
        """Error when two edits of one batch overlap."""
        return StructuredError(
            code=ErrorCode.CONFLICTING_RANGES.value,
            message=f"Edits overlap: {first['kind']} {first['start_index']}-{first['end_index']} and "
                    f"{second['kind']} {second['start_index']}-{second['end_index']}",
            reason="Overlapping edits in one batch would invalidate each other's indices.",
            suggestion="Combine the edits into one, or submit them in separate batches after re-resolving.",
            context=ErrorContext(conflicting=[first, second])
        )

    @staticmethod
    def remote_unavailable(operation: str, detail: str, status_code: Optional[int] = None) -> StructuredError:
        """Error when the document service call fails."""
        causes = ["Network or TLS failure", "Expired or revoked credentials", "Service-side error"]
        if status_code in (401, 403):
            causes = ["Expired or revoked credentials", "The authenticated user lacks access to this document"]
        return StructuredError(
            code=ErrorCode.REMOTE_UNAVAILABLE.value,
            message=f"Google Docs API call '{operation}' failed: {detail}",
            reason="The document service could not complete the request.",
            suggestion="Check credentials and connectivity, then retry the call.",
            context=ErrorContext(
                status_code=status_code,
                possible_causes=causes
            )
        )


def format_error(error: StructuredError) -> str:
    """
    Format a StructuredError for return to the user.

    Returns a JSON string that can be parsed by both humans and AI agents.
    """
    return error.to_json()
