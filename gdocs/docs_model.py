"""
Google Docs Document Model

Typed, read-only view of a Google Docs body. The API returns loosely shaped
JSON where every node is a dict with optional keys; this module turns that
into a closed set of block and inline variants so walkers can dispatch on
type instead of probing for optional fields.

Every node keeps the half-open [start_index, end_index) range assigned by the
service. Index space is counted in UTF-16 code units.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from gdocs.errors import DocsErrorBuilder, NotFoundError

logger = logging.getLogger(__name__)


# Named paragraph styles mapped to heading rank (lower number = higher rank)
HEADING_TYPES = {
    "TITLE": 0,
    "SUBTITLE": 0,
    "HEADING_1": 1,
    "HEADING_2": 2,
    "HEADING_3": 3,
    "HEADING_4": 4,
    "HEADING_5": 5,
    "HEADING_6": 6,
}

# Inline paragraph elements that occupy index space without carrying text
INLINE_ELEMENT_TYPES = (
    "inlineObjectElement",
    "pageBreak",
    "columnBreak",
    "footnoteReference",
    "horizontalRule",
    "equation",
    "person",
    "richLink",
    "autoText",
)


def utf16_len(text: str) -> int:
    """Length of a string in UTF-16 code units (characters beyond the BMP count twice)."""
    return sum(2 if ord(char) > 0xFFFF else 1 for char in text)


@dataclass(frozen=True)
class TextRun:
    """Leaf span of literal text inside a paragraph."""
    text: str
    start_index: int
    end_index: int


@dataclass(frozen=True)
class InlineElement:
    """Non-text inline element (image, page break, footnote reference, ...)."""
    element_type: str
    start_index: int
    end_index: int


ParagraphElement = Union[TextRun, InlineElement]


@dataclass(frozen=True)
class Paragraph:
    start_index: int
    end_index: int
    elements: tuple[ParagraphElement, ...] = ()
    named_style: Optional[str] = None

    @property
    def runs(self) -> list[TextRun]:
        return [e for e in self.elements if isinstance(e, TextRun)]

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def heading_level(self) -> Optional[int]:
        return HEADING_TYPES.get(self.named_style) if self.named_style else None


@dataclass(frozen=True)
class TableCell:
    start_index: int
    end_index: int
    content: tuple["Block", ...] = ()


@dataclass(frozen=True)
class Table:
    start_index: int
    end_index: int
    rows: tuple[tuple[TableCell, ...], ...] = ()

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_count(self, row: int) -> int:
        return len(self.rows[row])


@dataclass(frozen=True)
class SectionBreak:
    start_index: int
    end_index: int


@dataclass(frozen=True)
class TableOfContents:
    start_index: int
    end_index: int


Block = Union[Paragraph, Table, SectionBreak, TableOfContents]


def block_type_name(block: Block) -> str:
    """Short type name used in log lines and error context."""
    if isinstance(block, Paragraph):
        return "paragraph"
    if isinstance(block, Table):
        return "table"
    if isinstance(block, SectionBreak):
        return "section_break"
    if isinstance(block, TableOfContents):
        return "table_of_contents"
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def _parse_paragraph_element(element: dict[str, Any]) -> Optional[ParagraphElement]:
    start_idx = element.get("startIndex", 0)
    if "textRun" in element:
        text = element["textRun"].get("content", "")
        end_idx = element.get("endIndex", start_idx + utf16_len(text))
        return TextRun(text=text, start_index=start_idx, end_index=end_idx)

    for element_type in INLINE_ELEMENT_TYPES:
        if element_type in element:
            return InlineElement(
                element_type=element_type,
                start_index=start_idx,
                end_index=element.get("endIndex", start_idx + 1),
            )
    return None


def _parse_element(element: dict[str, Any]) -> Optional[Block]:
    """
    Parse a single structural element.

    Args:
        element: Element data from document content

    Returns:
        Parsed block, or None for element kinds the engine does not model
    """
    # The leading section break of a body carries no startIndex
    start_idx = element.get("startIndex", 0)
    end_idx = element.get("endIndex", 0)

    if "paragraph" in element:
        paragraph = element["paragraph"]
        elements = []
        for para_element in paragraph.get("elements", []):
            parsed = _parse_paragraph_element(para_element)
            if parsed is not None:
                elements.append(parsed)
        named_style = paragraph.get("paragraphStyle", {}).get("namedStyleType")
        return Paragraph(
            start_index=start_idx,
            end_index=end_idx,
            elements=tuple(elements),
            named_style=named_style,
        )

    if "table" in element:
        rows = []
        for row in element["table"].get("tableRows", []):
            cells = []
            for cell in row.get("tableCells", []):
                cells.append(TableCell(
                    start_index=cell.get("startIndex", 0),
                    end_index=cell.get("endIndex", 0),
                    content=tuple(parse_body_content(cell.get("content", []))),
                ))
            rows.append(tuple(cells))
        return Table(start_index=start_idx, end_index=end_idx, rows=tuple(rows))

    if "sectionBreak" in element:
        return SectionBreak(start_index=start_idx, end_index=end_idx)

    if "tableOfContents" in element:
        return TableOfContents(start_index=start_idx, end_index=end_idx)

    return None


def parse_body_content(content: list[dict[str, Any]]) -> list[Block]:
    """
    Parse a body (or table cell) content list into blocks, in document order.

    Args:
        content: The 'content' array of a body, table cell, header or footer

    Returns:
        List of blocks; unknown element kinds are skipped
    """
    blocks = []
    for element in content or []:
        block = _parse_element(element)
        if block is None:
            logger.debug(f"Skipping unsupported element with keys {sorted(element.keys())}")
            continue
        blocks.append(block)
    return blocks


def get_all_tabs(doc_data: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Flatten the document's tab tree in display order.

    Args:
        doc_data: Raw document data fetched with includeTabsContent=True

    Returns:
        List of dicts with tab_id, title, level (0 for top-level) and the raw tab
    """
    all_tabs = []

    def add_current_and_child_tabs(tab: dict[str, Any], level: int) -> None:
        props = tab.get("tabProperties", {})
        all_tabs.append({
            "tab_id": props.get("tabId"),
            "title": props.get("title", ""),
            "level": level,
            "tab": tab,
        })
        for child in tab.get("childTabs", []):
            add_current_and_child_tabs(child, level + 1)

    for tab in doc_data.get("tabs", []):
        add_current_and_child_tabs(tab, 0)
    return all_tabs


def find_tab_by_id(doc_data: dict[str, Any], tab_id: str) -> Optional[dict[str, Any]]:
    """Find a tab (searching child tabs too) by its ID."""
    for entry in get_all_tabs(doc_data):
        if entry["tab_id"] == tab_id:
            return entry["tab"]
    return None


def get_body_for_tab(doc_data: dict[str, Any], tab_id: str = None) -> dict[str, Any]:
    """
    Get the body content for a specific tab in a document.

    For multi-tab documents fetched with includeTabsContent=True, this extracts
    the body of the requested tab. If tab_id is None, returns the default
    tab's body (either root body for legacy format or first tab's body).

    Args:
        doc_data: Raw document data from Google Docs API
        tab_id: Optional tab ID to get body for. If None, uses default/first tab.

    Returns:
        Body dictionary with 'content' array (empty dict if the document has none)

    Raises:
        NotFoundError: If tab_id is given and no such tab exists
    """
    tabs = doc_data.get("tabs", [])

    if tab_id is not None:
        tab = find_tab_by_id(doc_data, tab_id)
        if tab is None:
            available = [t["tab_id"] for t in get_all_tabs(doc_data) if t["tab_id"]]
            raise NotFoundError(DocsErrorBuilder.tab_not_found(tab_id, available))
        return tab.get("documentTab", {}).get("body", {})

    if tabs:
        return tabs[0].get("documentTab", {}).get("body", {})

    return doc_data.get("body", {})


def parse_document(doc_data: dict[str, Any], tab_id: str = None) -> list[Block]:
    """
    Parse the body of a fetched document (or one of its tabs) into blocks.

    Args:
        doc_data: Raw document data from Google Docs API
        tab_id: Optional tab ID for multi-tab documents

    Returns:
        Top-level blocks of the body; empty for an empty or absent body
    """
    body = get_body_for_tab(doc_data, tab_id)
    return parse_body_content(body.get("content", []))
