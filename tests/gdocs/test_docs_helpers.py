"""
Unit tests for the request builders and position shift helpers.
"""
import pytest

from gdocs.docs_helpers import (
    OperationType,
    build_paragraph_style,
    build_text_style,
    calculate_position_shift,
    create_delete_range_request,
    create_format_text_request,
    create_paragraph_style_request,
)


class TestCalculatePositionShift:
    """Tests for calculate_position_shift."""

    def test_insert_shifts_forward(self):
        """Inserting moves later positions by the inserted length."""
        shift, affected = calculate_position_shift(OperationType.INSERT, 10, None, 5)
        assert shift == 5
        assert affected == {"start": 10, "end": 15}

    def test_delete_shifts_back(self):
        """Deleting moves later positions back by the deleted length."""
        shift, affected = calculate_position_shift(OperationType.DELETE, 10, 18, 0)
        assert shift == -8
        assert affected == {"start": 10, "end": 10}

    def test_format_does_not_shift(self):
        """Styling leaves positions unchanged."""
        shift, affected = calculate_position_shift(OperationType.FORMAT, 3, 7, 0)
        assert shift == 0
        assert affected == {"start": 3, "end": 7}


class TestBuildTextStyle:
    """Tests for build_text_style."""

    def test_fields_follow_arguments(self):
        """Only given styles are set, in a fixed order."""
        style, fields = build_text_style(bold=True, italic=False, font_size=12)
        assert style == {"bold": True, "italic": False, "fontSize": {"magnitude": 12, "unit": "PT"}}
        assert fields == ["bold", "italic", "fontSize"]

    def test_named_and_short_hex_colors(self):
        """Named colors and #RGB are expanded to rgbColor."""
        style, _ = build_text_style(foreground_color="blue", background_color="#0F0")
        assert style["foregroundColor"]["color"]["rgbColor"] == {"red": 0.0, "green": 0.0, "blue": 1.0}
        assert style["backgroundColor"]["color"]["rgbColor"] == {"red": 0.0, "green": 1.0, "blue": 0.0}

    @pytest.mark.parametrize("color", ["#12", "#GGGGGG", "chartreuse-ish"])
    def test_invalid_colors(self, color):
        """Unparseable colors raise ValueError."""
        with pytest.raises(ValueError):
            build_text_style(foreground_color=color)

    def test_link(self):
        """Links are wrapped in a url object."""
        style, fields = build_text_style(link="https://example.com")
        assert style["link"] == {"url": "https://example.com"}
        assert fields == ["link"]

    def test_no_styles(self):
        """Nothing set produces no fields and no request."""
        assert build_text_style() == ({}, [])
        assert create_format_text_request(1, 5) is None


class TestBuildParagraphStyle:
    """Tests for build_paragraph_style."""

    def test_alignment_and_spacing(self):
        """Dimensions are points."""
        style, fields = build_paragraph_style(alignment="CENTER", space_above=6)
        assert style == {"alignment": "CENTER", "spaceAbove": {"magnitude": 6, "unit": "PT"}}
        assert fields == ["alignment", "spaceAbove"]

    def test_named_style(self):
        """Named styles are accepted by name."""
        style, _ = build_paragraph_style(named_style_type="HEADING_2")
        assert style["namedStyleType"] == "HEADING_2"

    def test_invalid_alignment(self):
        """Unknown alignments are rejected."""
        with pytest.raises(ValueError):
            build_paragraph_style(alignment="MIDDLE")

    def test_invalid_named_style(self):
        """Unknown named styles are rejected."""
        with pytest.raises(ValueError):
            build_paragraph_style(named_style_type="HEADING_9")

    def test_no_styles(self):
        """Nothing set produces no request."""
        assert create_paragraph_style_request(1, 5) is None


class TestRequestBuilders:
    """Tests for request dictionaries."""

    def test_delete_range_request(self):
        """deleteContentRange carries the half-open range."""
        assert create_delete_range_request(3, 9) == {
            "deleteContentRange": {"range": {"startIndex": 3, "endIndex": 9}}
        }

    def test_paragraph_style_request(self):
        """updateParagraphStyle lists its fields."""
        request = create_paragraph_style_request(12, 13, alignment="END", keep_with_next=True)
        assert request["updateParagraphStyle"]["fields"] == "alignment,keepWithNext"
        assert request["updateParagraphStyle"]["range"] == {"startIndex": 12, "endIndex": 13}
