"""Unit tests for canon extraction."""

import pytest

from editguard.canon.extractor import (
    SECTION_MARKERS,
    TONE_RULES,
    canon_debug_summary,
    detect_block_role,
    detect_section_marker,
    detect_tone,
    extract_canon_from_draft,
    looks_like_cta,
)


class TestExtractWithMarkers:
    """Drafts that label their sections explicitly."""

    def test_markdown_heading_markers(self, marked_draft):
        """Test ## Hook / ## Body / ## CTA split the draft."""
        canon = extract_canon_from_draft(marked_draft, "d1")

        assert canon.hook.text == "Ra mắt bộ sưu tập mùa thu"
        assert canon.cta.text == "Đặt hàng ngay hôm nay!"
        assert [b.text for b in canon.body.blocks] == [
            "Chất liệu len mềm, giữ ấm tốt.",
            "- Màu be\n- Màu nâu",
        ]

    def test_block_roles(self, marked_draft):
        """Test body blocks get structural roles."""
        canon = extract_canon_from_draft(marked_draft, "d1")

        assert [b.role for b in canon.body.blocks] == ["paragraph", "list"]

    def test_label_markers(self):
        """Test 'Hook:' style labels on their own line."""
        text = "Hook:\nMột câu mở\nBody:\nNội dung chính ở đây\nCTA:\nGọi ngay"
        canon = extract_canon_from_draft(text, "d1")

        assert canon.hook.text == "Một câu mở"
        assert canon.body.text == "Nội dung chính ở đây"
        assert canon.cta.text == "Gọi ngay"

    def test_bold_and_vietnamese_markers(self):
        """Test **Hook** and ## Mở đầu markers."""
        text = "## Mở đầu\nXin chào cả nhà\n\n**Body**\nThân bài\n\n**CTA**\nBình luận bên dưới"
        canon = extract_canon_from_draft(text, "d1")

        assert canon.hook.text == "Xin chào cả nhà"
        assert canon.body.text == "Thân bài"
        assert canon.cta.text == "Bình luận bên dưới"

    def test_text_before_first_marker_goes_to_body(self):
        """Test lines before any marker are body content."""
        text = "Lời dẫn trước\n## CTA\nLiên hệ ngay"
        canon = extract_canon_from_draft(text, "d1")

        assert canon.hook.text == ""
        assert canon.body.text == "Lời dẫn trước"
        assert canon.cta.text == "Liên hệ ngay"


class TestExtractParagraphHeuristic:
    """Drafts without any section marker."""

    def test_first_paragraph_is_hook_last_cta(self, plain_draft):
        """Test hook / body / CTA split by paragraphs."""
        canon = extract_canon_from_draft(plain_draft, "d1")

        assert canon.hook.text == "Bạn đã bao giờ mất cả buổi sáng chỉ để tìm một file cũ?"
        assert canon.cta.text == "Inbox ngay để nhận bản dùng thử miễn phí 👇"
        assert len(canon.body.blocks) == 2

    def test_no_cta_when_last_paragraph_is_plain(self, english_draft):
        """Test everything after the hook is body when the ending is not a CTA."""
        canon = extract_canon_from_draft(english_draft, "d1")

        assert canon.hook.text == "Our new planner keeps every project in one place."
        assert canon.cta.text == ""
        assert len(canon.body.blocks) == 2
        assert canon.body.blocks[1].text.startswith("Reports show progress")

    def test_single_paragraph_is_hook(self):
        """Test a one-paragraph draft has only a hook."""
        canon = extract_canon_from_draft("Chỉ một đoạn duy nhất thôi.", "d1")

        assert canon.hook.text == "Chỉ một đoạn duy nhất thôi."
        assert canon.body.blocks == ()
        assert canon.cta.text == ""

    def test_two_paragraphs_with_cta(self):
        """Test two paragraphs where the second is a CTA give an empty body."""
        canon = extract_canon_from_draft("Tin vui cho bạn!\n\nNhắn tin cho shop nhé 📩", "d1")

        assert canon.hook.text == "Tin vui cho bạn!"
        assert canon.cta.text == "Nhắn tin cho shop nhé 📩"
        assert canon.body.blocks == ()


class TestExtractDegenerateInput:
    """Empty input never raises."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t\n"])
    def test_empty_input_gives_empty_canon(self, text):
        """Test empty/whitespace draft yields an empty canon at revision 1."""
        canon = extract_canon_from_draft(text, "d1")

        assert canon.is_empty
        assert canon.meta.revision == 1
        assert canon.meta.draft_id == "d1"

    def test_fresh_canon_is_unlocked(self, plain_draft):
        """Test extraction clears every lock flag."""
        canon = extract_canon_from_draft(plain_draft, "d1")

        assert not canon.hook.locked
        assert not canon.cta.locked
        assert not canon.tone.locked
        assert not any(b.locked for b in canon.body.blocks)


class TestBlockIds:
    """Block ids are deterministic correlation keys."""

    def test_ids_are_stable_across_extractions(self, plain_draft):
        """Test re-extracting the same text gives the same ids."""
        first = extract_canon_from_draft(plain_draft, "d1")
        second = extract_canon_from_draft(plain_draft, "d2")

        assert [b.id for b in first.body.blocks] == [b.id for b in second.body.blocks]

    def test_ids_include_position(self, plain_draft):
        """Test ids end with the block index."""
        canon = extract_canon_from_draft(plain_draft, "d1")

        assert canon.body.blocks[0].id.endswith("_0")
        assert canon.body.blocks[1].id.endswith("_1")
        assert canon.body.blocks[0].id.startswith("blk_")


class TestDetectBlockRole:
    """Structural role classification."""

    @pytest.mark.parametrize("text,role", [
        ("# Tiêu đề", "heading"),
        ("### Sub heading", "heading"),
        ("- item", "list"),
        ("* item", "list"),
        ("1. first", "list"),
        ("> quoted", "quote"),
        ('"Quoted speech"', "quote"),
        ("Plain paragraph", "paragraph"),
        ("   ", "other"),
    ])
    def test_roles(self, text, role):
        assert detect_block_role(text) == role

    def test_hash_without_space_is_paragraph(self):
        """Test a hashtag is not a heading."""
        assert detect_block_role("#sale hôm nay") == "paragraph"


class TestDetectTone:
    """Tone families are evaluated in a fixed priority order."""

    def test_priority_order(self):
        """Test the documented tie-break order."""
        assert TONE_RULES.order == ["professional", "formal", "casual", "friendly"]

    def test_professional(self):
        assert detect_tone("Kính gửi quý khách hàng") == "professional"

    def test_formal(self):
        assert detect_tone("Thưa quý vị") == "formal"

    def test_casual(self):
        assert detect_tone("Đi cà phê chill nè") == "casual"

    def test_friendly(self):
        assert detect_tone("Chào bạn, hôm nay thế nào?") == "friendly"

    def test_neutral_default(self):
        assert detect_tone("Sản phẩm có ba màu.") == "neutral"

    def test_first_family_wins(self):
        """Test professional beats casual when both match."""
        assert detect_tone("Trân trọng cảm ơn nha 🔥") == "professional"


class TestMarkersAndCta:
    """Marker and CTA-like helpers."""

    def test_marker_order(self):
        assert SECTION_MARKERS.order == ["hook", "body", "cta"]

    @pytest.mark.parametrize("line,marker", [
        ("## Hook", "hook"),
        ("hook:", "hook"),
        ("## Dòng mở", "hook"),
        ("## Nội dung", "body"),
        ("**CTA**", "cta"),
        ("## Kết luận", "cta"),
        ("Hook là phần quan trọng", None),
    ])
    def test_detect_section_marker(self, line, marker):
        assert detect_section_marker(line) == marker

    def test_looks_like_cta(self):
        assert looks_like_cta("Liên hệ hotline để được tư vấn")
        assert looks_like_cta("Xem chi tiết 👇")
        assert not looks_like_cta("Sản phẩm có ba màu.")


def test_canon_debug_summary(plain_canon):
    """Test summary shows locks, block count and revision."""
    assert canon_debug_summary(plain_canon) == "Canon: Hook🔒 | CTA🔒 | Tone🔒 | Body(2) | Rev 1"
