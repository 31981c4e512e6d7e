"""
Edit targets, resolved ranges and range classification.

A target describes *what* the caller wants to edit ("the 2nd occurrence of
this text", "cell (1, 2) of the table at 14"). Resolution turns it into a
ResolvedRange in document index space. Classification then picks the
boundary a given kind of edit must use:

- text insertion and deletion use the content boundary, which excludes the
  trailing newline of a paragraph or cell;
- paragraph-level style uses the block boundary, which includes it, so an
  empty paragraph can still be styled;
- character style on a text match uses the match itself.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from gdocs.errors import DocsErrorBuilder, StructuralMismatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExplicitRange:
    start_index: int
    end_index: int


@dataclass(frozen=True)
class TextSearch:
    text: str
    occurrence: int = 1  # 1-based; -1 selects the last occurrence


@dataclass(frozen=True)
class PositionWithin:
    index: int


@dataclass(frozen=True)
class TableCellTarget:
    table_start_index: int
    row: int
    column: int


@dataclass(frozen=True)
class SectionTarget:
    heading_text: str


TargetSpec = Union[ExplicitRange, TextSearch, PositionWithin, TableCellTarget, SectionTarget]


class RangeKind(str, Enum):
    """Boundary semantics of a resolved range."""
    CONTENT = "content"
    BLOCK = "block"
    MATCH = "match"


class EditKind(str, Enum):
    """Kind of edit a range is resolved for."""
    INSERT_TEXT = "insert_text"
    DELETE_TEXT = "delete_text"
    TEXT_STYLE = "text_style"
    PARAGRAPH_STYLE = "paragraph_style"


@dataclass(frozen=True)
class ResolvedRange:
    """
    A target resolved to document indices.

    start_index/end_index hold the content boundary (or the match boundary for
    text searches). block_start/block_end hold the enclosing block boundary
    including its trailing newline, when the target identifies a block.
    """
    start_index: int
    end_index: int
    kind: RangeKind
    block_start: Optional[int] = None
    block_end: Optional[int] = None
    description: str = ""

    @property
    def has_block_boundary(self) -> bool:
        return self.block_start is not None and self.block_end is not None

    @property
    def length(self) -> int:
        return self.end_index - self.start_index

    def to_dict(self) -> dict:
        result = {
            "start_index": self.start_index,
            "end_index": self.end_index,
            "kind": self.kind.value,
        }
        if self.has_block_boundary:
            result["block_start"] = self.block_start
            result["block_end"] = self.block_end
        if self.description:
            result["description"] = self.description
        return result


def classify_range(resolved: ResolvedRange, edit_kind: EditKind) -> ResolvedRange:
    """
    Select the boundary an edit of the given kind must use.

    Args:
        resolved: Range produced by target resolution
        edit_kind: The edit that will be applied to the range

    Returns:
        ResolvedRange whose start/end are the boundary to edit

    Raises:
        StructuralMismatchError: If a paragraph style edit targets a range with
            no block boundary
    """
    edit_kind = EditKind(edit_kind)

    if edit_kind == EditKind.PARAGRAPH_STYLE:
        if not resolved.has_block_boundary:
            raise StructuralMismatchError(
                DocsErrorBuilder.missing_block_boundary(
                    edit_kind.value, resolved.start_index, resolved.end_index
                )
            )
        return replace(
            resolved,
            start_index=resolved.block_start,
            end_index=resolved.block_end,
            kind=RangeKind.BLOCK,
        )

    if resolved.kind == RangeKind.MATCH:
        # Matches are edited exactly as found
        return resolved

    # start/end already exclude the trailing newline of the block
    return replace(resolved, kind=RangeKind.CONTENT)
