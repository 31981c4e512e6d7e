"""
Google Docs Helper Functions

This module provides the text-level building blocks of range resolution:
flattening a document tree into text segments, mapping offsets in the
concatenated visible text back to true document indices, searching for
the Nth occurrence of a string, and building the raw batchUpdate requests
that edits are submitted as.
"""
import bisect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from gdocs.docs_model import (
    Block,
    Paragraph,
    Table,
    utf16_len,
)
from gdocs.docs_ranges import RangeKind, ResolvedRange

logger = logging.getLogger(__name__)


class OperationType(str, Enum):
    """Type of document modification operation."""
    INSERT = "insert"
    DELETE = "delete"
    FORMAT = "format"


def calculate_position_shift(
    operation_type: OperationType,
    start_index: int,
    end_index: Optional[int],
    text_length: int
) -> Tuple[int, Dict[str, int]]:
    """
    Calculate the position shift caused by a document operation.

    Args:
        operation_type: Type of operation performed
        start_index: Start position of the operation
        end_index: End position (for delete operations)
        text_length: Length of inserted text in UTF-16 units (0 for delete, format)

    Returns:
        Tuple of (position_shift, affected_range)
        - position_shift: How much positions after the operation shifted
        - affected_range: {"start": x, "end": y} of the affected area
    """
    if operation_type == OperationType.INSERT:
        # Insert: all positions >= start_index shift by text_length
        shift = text_length
        affected_range = {"start": start_index, "end": start_index + text_length}

    elif operation_type == OperationType.DELETE:
        # Delete: all positions >= end_index shift by -(end_index - start_index)
        deleted_length = (end_index or start_index) - start_index
        shift = -deleted_length
        affected_range = {"start": start_index, "end": start_index}

    else:
        # Format: no position shift
        shift = 0
        affected_range = {"start": start_index, "end": end_index or start_index}

    return shift, affected_range


# =============================================================================
# Tree flattening and logical text index
# =============================================================================


@dataclass(frozen=True)
class TextSegment:
    """Visible text of one run with the document range it occupies."""
    text: str
    start_index: int
    end_index: int


def extract_document_segments(blocks: List[Block]) -> List[TextSegment]:
    """
    Flatten blocks into text segments in document order.

    Descends into table cells. Blocks without text runs (section breaks,
    tables of contents, inline objects) emit nothing.

    Args:
        blocks: Top-level blocks of a body, or the content of a table cell

    Returns:
        List of TextSegment, empty for an empty or absent tree
    """
    segments: List[TextSegment] = []

    def extract_from_blocks(items: List[Block]) -> None:
        """Recursively extract text from blocks."""
        for block in items:
            if isinstance(block, Paragraph):
                for run in block.runs:
                    if run.text:
                        segments.append(TextSegment(run.text, run.start_index, run.end_index))
            elif isinstance(block, Table):
                for row in block.rows:
                    for cell in row:
                        extract_from_blocks(list(cell.content))

    extract_from_blocks(blocks or [])
    return segments


class LogicalTextIndex:
    """
    Concatenated visible text of a document with a translation table back
    to document indices.

    Logical offsets index into `text` (Python characters). Runs are not
    contiguous in document space, so every mapping goes through the segment
    that contains the offset.
    """

    def __init__(self, segments: List[TextSegment]):
        self.segments = list(segments)
        self._starts: List[int] = []
        self._ends: List[int] = []
        parts = []
        position = 0
        for segment in self.segments:
            self._starts.append(position)
            position += len(segment.text)
            self._ends.append(position)
            parts.append(segment.text)
        self.text = "".join(parts)

        logger.debug(
            f"LogicalTextIndex built from {len(self.segments)} segments, {len(self.text)} characters"
        )

    def find_occurrences(self, needle: str) -> Iterator[int]:
        """
        Yield logical start offsets of needle, left to right.

        The next scan starts one character after the previous match start, so
        overlapping matches are each reported ("aa" occurs twice in "aaa").
        """
        if not needle:
            return
        pos = 0
        while True:
            found = self.text.find(needle, pos)
            if found == -1:
                return
            yield found
            pos = found + 1

    def _document_index(self, segment_pos: int, logical_offset: int) -> int:
        segment = self.segments[segment_pos]
        prefix = segment.text[:logical_offset - self._starts[segment_pos]]
        return segment.start_index + utf16_len(prefix)

    def to_document_range(self, logical_start: int, logical_end: int) -> Optional[Tuple[int, int]]:
        """
        Map a logical [start, end) range to document indices.

        The start maps through the segment containing logical_start, the end
        through the segment whose text ends at or after logical_end; a match
        may span several segments.

        Returns:
            (start_index, end_index), or None if either end cannot be mapped
        """
        if logical_start < 0 or logical_end <= logical_start or logical_end > len(self.text):
            return None

        start_pos = bisect.bisect_right(self._starts, logical_start) - 1
        if start_pos < 0 or logical_start >= self._ends[start_pos]:
            return None

        end_pos = bisect.bisect_left(self._ends, logical_end)
        if end_pos >= len(self.segments) or logical_end <= self._starts[end_pos]:
            return None

        return (
            self._document_index(start_pos, logical_start),
            self._document_index(end_pos, logical_end),
        )


def _iter_mapped_matches(
    index: LogicalTextIndex,
    search_text: str
) -> Iterator[Tuple[int, int]]:
    for logical_start in index.find_occurrences(search_text):
        mapped = index.to_document_range(logical_start, logical_start + len(search_text))
        if mapped is None:
            logger.warning(
                f"Failed to map match of '{search_text}' at logical offset {logical_start} "
                f"to document indices, skipping"
            )
            continue
        yield mapped


def find_text_range(
    segments: List[TextSegment],
    search_text: str,
    occurrence: int = 1
) -> Optional[ResolvedRange]:
    """
    Find the Nth occurrence of text and return its document range.

    Matching is case-sensitive and overlap-permissive. A match that cannot
    be mapped to document indices is skipped and not counted.

    Args:
        segments: Segments from extract_document_segments
        search_text: Text to search for
        occurrence: Which occurrence to find (1=first, 2=second, -1=last)

    Returns:
        ResolvedRange of kind MATCH, or None if not found
    """
    if not search_text or occurrence == 0 or occurrence < -1:
        return None

    index = LogicalTextIndex(segments)
    found_count = 0
    last = None
    for doc_start, doc_end in _iter_mapped_matches(index, search_text):
        found_count += 1
        last = (doc_start, doc_end)
        if found_count == occurrence:
            break
    else:
        if occurrence != -1 or last is None:
            logger.info(
                f"Occurrence {occurrence} of '{search_text}' not found ({found_count} found)"
            )
            return None

    doc_start, doc_end = last
    logger.debug(f"Mapped '{search_text}' occurrence {occurrence} to range {doc_start}-{doc_end}")
    return ResolvedRange(
        start_index=doc_start,
        end_index=doc_end,
        kind=RangeKind.MATCH,
        description=f"occurrence {occurrence} of '{search_text}'",
    )


def find_all_text_ranges(segments: List[TextSegment], search_text: str) -> List[ResolvedRange]:
    """
    Find all occurrences of text in document order.

    Args:
        segments: Segments from extract_document_segments
        search_text: Text to search for

    Returns:
        List of ResolvedRange of kind MATCH
    """
    if not search_text:
        return []

    index = LogicalTextIndex(segments)
    return [
        ResolvedRange(
            start_index=doc_start,
            end_index=doc_end,
            kind=RangeKind.MATCH,
            description=f"occurrence {n} of '{search_text}'",
        )
        for n, (doc_start, doc_end) in enumerate(_iter_mapped_matches(index, search_text), start=1)
    ]


def count_occurrences(segments: List[TextSegment], search_text: str) -> int:
    """Number of mappable occurrences of text, used for error context."""
    return len(find_all_text_ranges(segments, search_text))


# =============================================================================
# Request builders
# =============================================================================

PARAGRAPH_ALIGNMENTS = ("START", "CENTER", "END", "JUSTIFIED")

NAMED_STYLE_TYPES = (
    "NORMAL_TEXT", "TITLE", "SUBTITLE",
    "HEADING_1", "HEADING_2", "HEADING_3", "HEADING_4", "HEADING_5", "HEADING_6",
)


def _parse_color(color_str: str) -> Dict[str, Any]:
    """
    Parse a color string (hex or named) to Google Docs API color format.

    Args:
        color_str: Color as hex (#FF0000, #F00) or a common color name

    Returns:
        Dictionary with rgbColor format for Google Docs API
    """
    # Handle hex colors
    if color_str.startswith('#'):
        hex_color = color_str.lstrip('#')
        # Handle short hex (#F00 -> #FF0000)
        if len(hex_color) == 3:
            hex_color = ''.join(c*2 for c in hex_color)
        if len(hex_color) != 6:
            raise ValueError(f"Invalid hex color: {color_str}")
        try:
            r = int(hex_color[0:2], 16) / 255.0
            g = int(hex_color[2:4], 16) / 255.0
            b = int(hex_color[4:6], 16) / 255.0
        except ValueError:
            raise ValueError(f"Invalid hex color: {color_str}") from None
        return {'color': {'rgbColor': {'red': r, 'green': g, 'blue': b}}}

    named_colors = {
        'red': (1.0, 0.0, 0.0),
        'green': (0.0, 1.0, 0.0),
        'blue': (0.0, 0.0, 1.0),
        'yellow': (1.0, 1.0, 0.0),
        'black': (0.0, 0.0, 0.0),
        'white': (1.0, 1.0, 1.0),
        'gray': (0.5, 0.5, 0.5),
        'grey': (0.5, 0.5, 0.5),
    }
    color_lower = color_str.lower()
    if color_lower in named_colors:
        r, g, b = named_colors[color_lower]
        return {'color': {'rgbColor': {'red': r, 'green': g, 'blue': b}}}

    raise ValueError(f"Unknown color format: {color_str}. Use hex (#FF0000) or named colors.")


def build_text_style(
    bold: bool = None,
    italic: bool = None,
    underline: bool = None,
    strikethrough: bool = None,
    font_size: float = None,
    font_family: str = None,
    link: str = None,
    foreground_color: str = None,
    background_color: str = None,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Build text style object for Google Docs API requests.

    Returns:
        Tuple of (text_style_dict, list_of_field_names)
    """
    text_style = {}
    fields = []

    if bold is not None:
        text_style['bold'] = bold
        fields.append('bold')

    if italic is not None:
        text_style['italic'] = italic
        fields.append('italic')

    if underline is not None:
        text_style['underline'] = underline
        fields.append('underline')

    if strikethrough is not None:
        text_style['strikethrough'] = strikethrough
        fields.append('strikethrough')

    if font_size is not None:
        text_style['fontSize'] = {'magnitude': font_size, 'unit': 'PT'}
        fields.append('fontSize')

    if font_family is not None:
        text_style['weightedFontFamily'] = {'fontFamily': font_family}
        fields.append('weightedFontFamily')

    if link is not None:
        # Empty string removes the link
        text_style['link'] = {'url': link} if link else None
        fields.append('link')

    if foreground_color is not None:
        text_style['foregroundColor'] = _parse_color(foreground_color)
        fields.append('foregroundColor')

    if background_color is not None:
        text_style['backgroundColor'] = _parse_color(background_color)
        fields.append('backgroundColor')

    return text_style, fields


def build_paragraph_style(
    alignment: str = None,
    indent_start: float = None,
    indent_end: float = None,
    space_above: float = None,
    space_below: float = None,
    named_style_type: str = None,
    keep_with_next: bool = None,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Build paragraph style object for Google Docs API requests.

    Dimensions are in points.

    Returns:
        Tuple of (paragraph_style_dict, list_of_field_names)
    """
    paragraph_style = {}
    fields = []

    if alignment is not None:
        if alignment not in PARAGRAPH_ALIGNMENTS:
            raise ValueError(f"Invalid alignment: {alignment}. Use one of {', '.join(PARAGRAPH_ALIGNMENTS)}.")
        paragraph_style['alignment'] = alignment
        fields.append('alignment')

    for name, key in (
        (indent_start, 'indentStart'),
        (indent_end, 'indentEnd'),
        (space_above, 'spaceAbove'),
        (space_below, 'spaceBelow'),
    ):
        if name is not None:
            paragraph_style[key] = {'magnitude': name, 'unit': 'PT'}
            fields.append(key)

    if named_style_type is not None:
        if named_style_type not in NAMED_STYLE_TYPES:
            raise ValueError(f"Invalid named style type: {named_style_type}")
        paragraph_style['namedStyleType'] = named_style_type
        fields.append('namedStyleType')

    if keep_with_next is not None:
        paragraph_style['keepWithNext'] = keep_with_next
        fields.append('keepWithNext')

    return paragraph_style, fields


def create_insert_text_request(index: int, text: str) -> Dict[str, Any]:
    """
    Create an insertText request for Google Docs API.

    Args:
        index: Position to insert text
        text: Text to insert

    Returns:
        Dictionary representing the insertText request
    """
    return {
        'insertText': {
            'location': {'index': index},
            'text': text
        }
    }


def create_delete_range_request(start_index: int, end_index: int) -> Dict[str, Any]:
    """
    Create a deleteContentRange request for Google Docs API.

    Args:
        start_index: Start position of content to delete
        end_index: End position of content to delete

    Returns:
        Dictionary representing the deleteContentRange request
    """
    return {
        'deleteContentRange': {
            'range': {
                'startIndex': start_index,
                'endIndex': end_index
            }
        }
    }


def create_format_text_request(start_index: int, end_index: int, **style: Any) -> Optional[Dict[str, Any]]:
    """
    Create an updateTextStyle request for Google Docs API.

    Args:
        start_index: Start position of text to format
        end_index: End position of text to format
        **style: Keyword arguments accepted by build_text_style

    Returns:
        Dictionary representing the updateTextStyle request, or None if no styles provided
    """
    text_style, fields = build_text_style(**style)

    if not fields:
        return None

    return {
        'updateTextStyle': {
            'range': {
                'startIndex': start_index,
                'endIndex': end_index
            },
            'textStyle': text_style,
            'fields': ','.join(fields)
        }
    }


def create_paragraph_style_request(start_index: int, end_index: int, **style: Any) -> Optional[Dict[str, Any]]:
    """
    Create an updateParagraphStyle request for Google Docs API.

    Args:
        start_index: Start of the paragraph range (include the trailing newline
            to reach empty paragraphs)
        end_index: End of the paragraph range
        **style: Keyword arguments accepted by build_paragraph_style

    Returns:
        Dictionary representing the updateParagraphStyle request, or None if no styles provided
    """
    paragraph_style, fields = build_paragraph_style(**style)

    if not fields:
        return None

    return {
        'updateParagraphStyle': {
            'range': {
                'startIndex': start_index,
                'endIndex': end_index
            },
            'paragraphStyle': paragraph_style,
            'fields': ','.join(fields)
        }
    }
