"""
Unit tests for the typed Google Docs document model.

Covers parsing of API JSON into blocks, heading levels, UTF-16 lengths
and tab selection.
"""
import pytest

from gdocs.docs_model import (
    InlineElement,
    Paragraph,
    SectionBreak,
    Table,
    TableOfContents,
    TextRun,
    block_type_name,
    find_tab_by_id,
    get_all_tabs,
    get_body_for_tab,
    parse_body_content,
    parse_document,
    utf16_len,
)
from gdocs.errors import ErrorCode, NotFoundError

from doc_builders import (
    create_mock_document,
    create_mock_paragraph,
    create_mock_section_break,
    create_mock_tabbed_document,
    sectioned_document,
    table_document,
)


class TestUtf16Len:
    """Tests for utf16_len."""

    def test_ascii(self):
        """ASCII characters are one unit each."""
        assert utf16_len("hello") == 5

    def test_astral_characters_count_twice(self):
        """Characters outside the BMP take a surrogate pair."""
        assert utf16_len("😀") == 2
        assert utf16_len("a😀b") == 4

    def test_bmp_non_ascii(self):
        """Accented and CJK characters inside the BMP are one unit."""
        assert utf16_len("é漢") == 2


class TestParseBodyContent:
    """Tests for parse_body_content and parse_document."""

    def test_parses_paragraphs_and_section_break(self):
        """The leading section break and paragraphs become typed blocks."""
        blocks = parse_document(sectioned_document())

        assert isinstance(blocks[0], SectionBreak)
        assert blocks[0].start_index == 0
        assert blocks[0].end_index == 1
        assert all(isinstance(b, Paragraph) for b in blocks[1:])
        assert blocks[1].text == "Intro\n"
        assert blocks[1].named_style == "HEADING_1"

    def test_parses_tables_recursively(self):
        """Table rows hold cells whose content is parsed as blocks."""
        blocks = parse_document(table_document())
        table = blocks[2]

        assert isinstance(table, Table)
        assert (table.start_index, table.end_index) == (8, 24)
        assert table.row_count == 2
        assert table.column_count(0) == 2
        cell = table.rows[0][1]
        assert (cell.start_index, cell.end_index) == (13, 17)
        assert cell.content[0].text == "bc\n"

    def test_inline_elements_keep_index_space(self):
        """Inline objects occupy index space without contributing text."""
        content = [{
            "startIndex": 1,
            "endIndex": 4,
            "paragraph": {
                "elements": [
                    {"startIndex": 1, "endIndex": 2, "inlineObjectElement": {"inlineObjectId": "img"}},
                    {"startIndex": 2, "endIndex": 4, "textRun": {"content": "a\n"}},
                ]
            },
        }]
        paragraph = parse_body_content(content)[0]

        assert isinstance(paragraph.elements[0], InlineElement)
        assert paragraph.elements[0].element_type == "inlineObjectElement"
        assert paragraph.runs == [TextRun("a\n", 2, 4)]
        assert paragraph.text == "a\n"

    def test_table_of_contents(self):
        """A table of contents block is recognised."""
        blocks = parse_body_content([{"startIndex": 1, "endIndex": 20, "tableOfContents": {"content": []}}])
        assert isinstance(blocks[0], TableOfContents)
        assert block_type_name(blocks[0]) == "table_of_contents"

    def test_unknown_elements_are_skipped(self):
        """Element kinds the engine does not model are dropped."""
        blocks = parse_body_content([{"startIndex": 1, "endIndex": 2, "somethingNew": {}}])
        assert blocks == []

    def test_empty_document(self):
        """A missing body parses to no blocks."""
        assert parse_document({}) == []
        assert parse_body_content(None) == []


class TestHeadingLevel:
    """Tests for Paragraph.heading_level."""

    @pytest.mark.parametrize("style,level", [
        ("TITLE", 0),
        ("SUBTITLE", 0),
        ("HEADING_1", 1),
        ("HEADING_3", 3),
        ("HEADING_6", 6),
    ])
    def test_heading_styles(self, style, level):
        """Titles rank 0, headings rank by their number."""
        paragraph = parse_body_content([create_mock_paragraph("X", 1, style)])[0]
        assert paragraph.heading_level == level

    def test_normal_text_is_not_a_heading(self):
        """Normal paragraphs have no heading level."""
        paragraph = parse_body_content([create_mock_paragraph("X", 1)])[0]
        assert paragraph.heading_level is None


class TestTabs:
    """Tests for tab lookup in multi-tab documents."""

    def setup_method(self):
        self.doc = create_mock_tabbed_document([
            ("t.first", "First", [create_mock_section_break(), create_mock_paragraph("One", 1)], [
                ("t.child", "Child", [create_mock_section_break(), create_mock_paragraph("Nested", 1)], []),
            ]),
            ("t.second", "Second", [create_mock_section_break(), create_mock_paragraph("Two", 1)], []),
        ])

    def test_get_all_tabs_flattens_children(self):
        """Child tabs are listed after their parent with a deeper level."""
        tabs = get_all_tabs(self.doc)
        assert [(t["tab_id"], t["level"]) for t in tabs] == [
            ("t.first", 0), ("t.child", 1), ("t.second", 0)
        ]

    def test_find_child_tab(self):
        """Child tabs can be found by ID."""
        tab = find_tab_by_id(self.doc, "t.child")
        assert tab["tabProperties"]["title"] == "Child"
        assert find_tab_by_id(self.doc, "t.missing") is None

    def test_default_tab_is_first(self):
        """Without a tab ID the first tab's body is used."""
        blocks = parse_document(self.doc)
        assert blocks[1].text == "One\n"

    def test_selected_tab(self):
        """A tab ID selects that tab's body."""
        blocks = parse_document(self.doc, "t.second")
        assert blocks[1].text == "Two\n"

    def test_unknown_tab_raises_not_found(self):
        """An unknown tab ID is reported with the available tabs."""
        with pytest.raises(NotFoundError) as exc_info:
            get_body_for_tab(self.doc, "t.missing")

        assert exc_info.value.code == ErrorCode.TAB_NOT_FOUND.value
        assert exc_info.value.error.context.available_tabs == ["t.first", "t.child", "t.second"]

    def test_legacy_document_uses_root_body(self):
        """Documents fetched without tabs use the root body."""
        doc = create_mock_document([create_mock_paragraph("Root", 1)])
        assert get_body_for_tab(doc)["content"][0]["startIndex"] == 1
