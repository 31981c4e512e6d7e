"""
Google Docs Document Structure Resolution

This module resolves positional and structural targets against a parsed
document tree: the paragraph containing an index, the boundaries of a
table cell, and the extent of the section under a heading.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from gdocs.docs_model import (
    Block,
    Paragraph,
    Table,
    TableCell,
    block_type_name,
    utf16_len,
)
from gdocs.errors import (
    DocsErrorBuilder,
    NotFoundError,
    OutOfBoundsError,
    StructuralMismatchError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableCellRange:
    """
    Boundaries of one table cell.

    content_end excludes the newline every cell ends with; paragraph_end
    includes it so paragraph styles can reach an empty cell.
    """
    cell_start: int
    cell_end: int
    content_start: int
    content_end: int
    paragraph_end: int

    @property
    def is_empty(self) -> bool:
        return self.content_end == self.content_start


@dataclass(frozen=True)
class SectionRange:
    """A heading and the content that belongs to it."""
    heading: str
    level: int
    heading_start: int
    heading_end: int
    section_end: int


def get_document_end(blocks: list[Block]) -> int:
    """End index of the last block, or 1 for an empty body."""
    if not blocks:
        return 1
    return blocks[-1].end_index


def _paragraph_heading_text(paragraph: Paragraph) -> str:
    text = paragraph.text
    if text.endswith("\n"):
        text = text[:-1]
    return text.strip()


def _find_paragraph(
    blocks: list[Block], index: int
) -> tuple[Optional[Paragraph], Optional[Block]]:
    """
    Recursive containment search.

    Returns:
        (paragraph, None) when found, otherwise (None, innermost non-paragraph
        block containing the index, or None when no block contains it)
    """
    for block in blocks:
        if not (block.start_index <= index < block.end_index):
            continue

        if isinstance(block, Paragraph):
            return block, None

        if isinstance(block, Table):
            logger.debug(f"Index {index} is within a table, searching cells...")
            for row in block.rows:
                for cell in row:
                    if cell.start_index <= index < cell.end_index:
                        paragraph, region = _find_paragraph(list(cell.content), index)
                        if paragraph is not None:
                            return paragraph, None
                        return None, region or block

        # The index is inside this element but not in a paragraph
        return None, block

    return None, None


def find_containing_paragraph(blocks: list[Block], index: int) -> Paragraph:
    """
    Find the paragraph containing a document index, descending into tables.

    Args:
        blocks: Top-level blocks of the body
        index: Position within the document

    Returns:
        The innermost paragraph whose range contains index

    Raises:
        StructuralMismatchError: If index lies in a block but in no paragraph
        NotFoundError: If no block contains index
    """
    paragraph, region = _find_paragraph(blocks, index)

    if paragraph is not None:
        logger.info(
            f"Found paragraph containing index {index}, range: "
            f"{paragraph.start_index}-{paragraph.end_index}"
        )
        return paragraph

    if region is not None:
        logger.warning(
            f"Index {index} is within element ({region.start_index}-{region.end_index}) "
            f"but not in a paragraph"
        )
        raise StructuralMismatchError(
            DocsErrorBuilder.structural_mismatch(
                index, block_type_name(region), region.start_index, region.end_index
            )
        )

    raise NotFoundError(DocsErrorBuilder.paragraph_not_found(index, get_document_end(blocks)))


def iter_tables(blocks: list[Block]) -> Iterator[Table]:
    """Yield every table in document order, including tables nested in cells."""
    for block in blocks:
        if isinstance(block, Table):
            yield block
            for row in block.rows:
                for cell in row:
                    yield from iter_tables(list(cell.content))


def _cell_content_bounds(cell: TableCell) -> tuple[int, int]:
    content_start = cell.start_index
    content_end = cell.start_index

    paragraphs = [b for b in cell.content if isinstance(b, Paragraph)]
    if paragraphs:
        first_elements = paragraphs[0].elements
        if first_elements:
            content_start = first_elements[0].start_index
        last_elements = paragraphs[-1].elements
        if last_elements:
            content_end = last_elements[-1].end_index

    return content_start, content_end


def get_table_cell_range(
    blocks: list[Block],
    table_start_index: int,
    row: int,
    column: int
) -> TableCellRange:
    """
    Get the boundaries of a table cell.

    The table is identified by the exact start index of the table element,
    since a document may hold sibling and nested tables.

    Args:
        blocks: Top-level blocks of the body
        table_start_index: Start index of the table element itself
        row: 0-based row index
        column: 0-based column index

    Returns:
        TableCellRange with cell, content and paragraph boundaries

    Raises:
        NotFoundError: If no table starts at table_start_index
        OutOfBoundsError: If row or column is outside the table
    """
    table = None
    table_starts = []
    for candidate in iter_tables(blocks):
        table_starts.append(candidate.start_index)
        if candidate.start_index == table_start_index:
            table = candidate
            break

    if table is None:
        raise NotFoundError(DocsErrorBuilder.table_not_found(table_start_index, table_starts))

    if row < 0 or row >= table.row_count:
        raise OutOfBoundsError(DocsErrorBuilder.row_out_of_bounds(row, table.row_count))

    column_count = table.column_count(row)
    if column < 0 or column >= column_count:
        raise OutOfBoundsError(DocsErrorBuilder.column_out_of_bounds(row, column, column_count))

    cell = table.rows[row][column]
    content_start, content_end = _cell_content_bounds(cell)

    # Paragraph styles can reach an empty paragraph only if the range includes its newline
    paragraph_end = content_end
    if content_end > content_start:
        content_end -= 1

    cell_range = TableCellRange(
        cell_start=cell.start_index,
        cell_end=cell.end_index,
        content_start=content_start,
        content_end=content_end,
        paragraph_end=paragraph_end,
    )
    logger.info(
        f"Found cell ({row}, {column}): cell={cell_range.cell_start}-{cell_range.cell_end}, "
        f"content={content_start}-{content_end}, paragraphEnd={paragraph_end}"
    )
    return cell_range


def get_all_headings(blocks: list[Block]) -> list[dict[str, Any]]:
    """
    Get all top-level headings with their positions and levels.

    Args:
        blocks: Top-level blocks of the body

    Returns:
        List of heading dictionaries with text, level, and position info
    """
    return [
        {
            "text": _paragraph_heading_text(block),
            "level": block.heading_level,
            "style": block.named_style,
            "start_index": block.start_index,
            "end_index": block.end_index,
        }
        for block in blocks
        if isinstance(block, Paragraph) and block.heading_level is not None
    ]


def find_section_range(blocks: list[Block], heading_text: str) -> SectionRange:
    """
    Find a section by its heading text.

    The first title or heading paragraph whose trimmed text equals
    heading_text starts the section. It extends over following blocks up to,
    not including, the next heading of the same or higher rank (smaller
    level number). TITLE and SUBTITLE have rank 0.

    Args:
        blocks: Top-level blocks of the body
        heading_text: Exact heading text (surrounding whitespace ignored)

    Returns:
        SectionRange for the section

    Raises:
        NotFoundError: If no heading matches
    """
    wanted = heading_text.strip()

    for i, block in enumerate(blocks):
        if not isinstance(block, Paragraph):
            continue
        level = block.heading_level
        if level is None or _paragraph_heading_text(block) != wanted:
            continue

        section_end = block.end_index
        for following in blocks[i + 1:]:
            if isinstance(following, Paragraph):
                next_level = following.heading_level
                if next_level is not None and next_level <= level:
                    break
            section_end = following.end_index

        section = SectionRange(
            heading=_paragraph_heading_text(block),
            level=level,
            heading_start=block.start_index,
            heading_end=block.end_index,
            section_end=section_end,
        )
        logger.info(
            f"Found section '{wanted}' (level {level}): heading={section.heading_start}-"
            f"{section.heading_end}, sectionEnd={section_end}"
        )
        return section

    available = [h["text"] for h in get_all_headings(blocks)]
    raise NotFoundError(DocsErrorBuilder.heading_not_found(heading_text, available))


def _utf16_to_char_offset(text: str, units: int) -> int:
    """Convert a UTF-16 offset within text to a Python character offset."""
    count = 0
    for i, char in enumerate(text):
        if count >= units:
            return i
        count += 2 if ord(char) > 0xFFFF else 1
    return len(text)


def extract_text_in_range(blocks: list[Block], start_index: int, end_index: int) -> str:
    """
    Extract the visible text addressed by a document range.

    Walks runs directly, independent of the logical text index, so it can
    verify ranges produced by search.

    Args:
        blocks: Blocks to read (descends into tables)
        start_index: Starting position (inclusive)
        end_index: Ending position (exclusive)

    Returns:
        All run text inside the range, in document order
    """
    text_parts = []

    for block in blocks:
        # Skip elements completely outside our range
        if block.end_index <= start_index or block.start_index >= end_index:
            continue

        if isinstance(block, Paragraph):
            for run in block.runs:
                if run.end_index <= start_index or run.start_index >= end_index:
                    continue
                units = utf16_len(run.text)
                lo = _utf16_to_char_offset(run.text, max(0, start_index - run.start_index))
                hi = _utf16_to_char_offset(run.text, min(units, end_index - run.start_index))
                if lo < hi:
                    text_parts.append(run.text[lo:hi])

        elif isinstance(block, Table):
            for row in block.rows:
                for cell in row:
                    text_parts.append(extract_text_in_range(list(cell.content), start_index, end_index))

    return "".join(text_parts)
