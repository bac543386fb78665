"""Unit tests for paragraph anchors."""

import pytest
from pydantic import ValidationError

from editguard.guards.anchors import (
    extract_anchored_paragraphs,
    extract_anchors,
    generate_anchor_id,
    get_text_before_anchors,
    inject_anchors,
    replace_anchored_paragraphs,
    should_apply_anchors,
    split_all_paragraphs,
    split_into_paragraphs,
    strip_anchors,
    validate_anchors,
)
from editguard.models.anchors import AnchorValidationResult


THREE_PARAGRAPHS = (
    "First paragraph of the post.\n\n"
    "Second paragraph, a little longer.\n\n"
    "Third paragraph closes it."
)


class TestInjectAnchors:
    """Anchor injection."""

    def test_sequential_one_based_anchors(self):
        anchored = inject_anchors(THREE_PARAGRAPHS)

        assert anchored.anchor_ids == ["<<P1>>", "<<P2>>", "<<P3>>"]
        assert anchored.paragraph_count == 3

    def test_anchor_on_own_line(self):
        anchored = inject_anchors("First paragraph.\n\nSecond paragraph.")

        assert anchored.anchored_text == "<<P1>>\nFirst paragraph.\n\n<<P2>>\nSecond paragraph."

    def test_short_paragraphs_dropped(self):
        """Test paragraphs under 10 characters get no anchor."""
        anchored = inject_anchors("Long enough paragraph.\n\nOk\n\nAnother long paragraph.")

        assert anchored.anchor_ids == ["<<P1>>", "<<P2>>"]
        assert "Ok" not in anchored.anchored_text

    def test_floor_is_inclusive(self):
        assert split_into_paragraphs("1234567890\n\n123456789") == ["1234567890"]

    def test_generate_anchor_id(self):
        assert generate_anchor_id(12) == "<<P12>>"

    def test_empty_content(self):
        anchored = inject_anchors("")

        assert anchored.anchor_ids == []
        assert anchored.anchored_text == ""


class TestShouldApplyAnchors:

    def test_two_paragraphs(self):
        assert should_apply_anchors("First paragraph.\n\nSecond paragraph.")

    def test_single_paragraph(self):
        assert not should_apply_anchors("Only one paragraph here.")

    def test_second_paragraph_too_short(self):
        assert not should_apply_anchors("Only one paragraph here.\n\nshort")


class TestExtractAnchors:

    def test_order_of_appearance(self):
        assert extract_anchors("<<P2>> text <<P1>>") == ["<<P2>>", "<<P1>>"]

    def test_duplicates_kept(self):
        assert extract_anchors("<<P1>>\na\n<<P1>>\nb") == ["<<P1>>", "<<P1>>"]

    def test_exact_token_format(self):
        """Test only <<P + digits + >> counts as an anchor."""
        assert extract_anchors("<< P1 >> <<p1>> <<P>> <<P3>>") == ["<<P3>>"]


class TestValidateAnchors:
    """Structural validation of model output."""

    def test_echoed_output_is_valid(self):
        anchored = inject_anchors(THREE_PARAGRAPHS)

        result = validate_anchors(anchored.anchored_text, anchored.anchor_ids)

        assert result.valid
        assert result.error is None

    def test_missing_anchor(self):
        """Test a dropped paragraph is reported with order still preserved."""
        output = "<<P1>>\nFirst\n\n<<P3>>\nThird"

        result = validate_anchors(output, ["<<P1>>", "<<P2>>", "<<P3>>"])

        assert not result.valid
        assert result.missing == ["<<P2>>"]
        assert result.extra == []
        assert result.order_preserved

    def test_reorder(self):
        result = validate_anchors("<<P2>>\nB\n\n<<P1>>\nA", ["<<P1>>", "<<P2>>"])

        assert not result.valid
        assert not result.order_preserved
        assert result.missing == []

    def test_extra_anchor(self):
        result = validate_anchors("<<P1>>\nA\n\n<<P2>>\nB\n\n<<P3>>\nC", ["<<P1>>", "<<P2>>"])

        assert not result.valid
        assert result.extra == ["<<P3>>"]
        assert "Extra anchors" in result.error

    def test_duplicate_breaks_order(self):
        result = validate_anchors("<<P1>>\nA\n\n<<P2>>\nB\n\n<<P1>>\nA again", ["<<P1>>", "<<P2>>"])

        assert not result.valid
        assert not result.order_preserved

    def test_reorder_detected_with_missing(self):
        result = validate_anchors("<<P3>>\nC\n\n<<P1>>\nA", ["<<P1>>", "<<P2>>", "<<P3>>"])

        assert result.missing == ["<<P2>>"]
        assert not result.order_preserved

    def test_valid_result_with_missing_anchors_rejected(self):
        """Test a result claiming validity alongside missing anchors cannot be built."""
        with pytest.raises(ValidationError):
            AnchorValidationResult(valid=True, missing=["<<P1>>"])


class TestStripAnchors:

    def test_roundtrip(self):
        """Test stripping injected anchors gives back the paragraphs."""
        anchored = inject_anchors(THREE_PARAGRAPHS)

        assert strip_anchors(anchored.anchored_text) == THREE_PARAGRAPHS

    def test_roundtrip_drops_short_paragraphs(self):
        anchored = inject_anchors("Long enough paragraph.\n\nOk\n\nAnother long paragraph.")

        assert strip_anchors(anchored.anchored_text) == "Long enough paragraph.\n\nAnother long paragraph."

    def test_inline_anchor_removed(self):
        assert strip_anchors("<<P1>> Hello there") == "Hello there"


class TestAnchoredParagraphs:
    """Mapping a completion back onto source paragraphs."""

    def test_extract_anchored_paragraphs(self):
        paragraphs = extract_anchored_paragraphs("<<P1>>\n  First  \n\n<<P2>>\nSecond")

        assert paragraphs == {"<<P1>>": "First", "<<P2>>": "Second"}

    def test_text_before_first_anchor_is_not_a_paragraph(self):
        paragraphs = extract_anchored_paragraphs("Here is the polished version:\n\n<<P1>>\nFirst")

        assert paragraphs == {"<<P1>>": "First"}

    def test_get_text_before_anchors(self):
        assert get_text_before_anchors("Sure! Here you go:\n\n<<P1>>\nFirst") == "Sure! Here you go:"
        assert get_text_before_anchors("<<P1>>\nFirst") == ""
        assert get_text_before_anchors("no anchors at all") == ""

    def test_split_all_paragraphs_keeps_short_ones(self):
        assert split_all_paragraphs("Sale!\n\n  \n\nLong enough paragraph.\n") == ["Sale!", "Long enough paragraph."]

    def test_short_paragraphs_kept_from_source(self):
        """Test paragraphs that never carried an anchor survive the rewrite unchanged."""
        source = "Sale!\n\nOur planner app syncs tasks.\n\nReports show progress for teams.\n\nMua ngay!"
        output = (
            "<<P1>>\nOur planner app now syncs tasks.\n\n"
            "<<P2>>\nReports show progress for whole teams."
        )

        merged = replace_anchored_paragraphs(split_all_paragraphs(source), output)

        assert merged == [
            "Sale!",
            "Our planner app now syncs tasks.",
            "Reports show progress for whole teams.",
            "Mua ngay!",
        ]

    def test_preamble_is_ignored(self):
        source = "First paragraph of the post.\n\nSecond paragraph, a little longer."
        output = "Here is the polished version:\n\n" + inject_anchors(source).anchored_text

        merged = replace_anchored_paragraphs(split_all_paragraphs(source), output)

        assert merged == ["First paragraph of the post.", "Second paragraph, a little longer."]
