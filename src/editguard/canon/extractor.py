"""Canon extraction: parse a raw draft into hook, body blocks, CTA and tone.

Two parsing strategies are used:

1. Section markers. Lines such as ``## Hook``, ``Hook:``, ``**CTA**`` or the
   Vietnamese ``## Mở đầu`` switch the current section. Lines seen before the
   first marker belong to the body.
2. Paragraph heuristic, used only when no marker appears anywhere. The first
   paragraph is the hook; when there are at least two paragraphs and the last
   one reads like a call-to-action it becomes the CTA; everything in between
   is body.

Extraction never raises. Empty or whitespace-only input gives an empty canon
at revision 1.
"""

import re
from datetime import datetime
from typing import Optional

from editguard.models.canon import (
    BodyBlock,
    BodyBlockRole,
    Canon,
    CanonBody,
    CanonMeta,
    SectionContent,
    ToneId,
    ToneState,
    utc_now,
)
from editguard.rules import PatternRule, RuleTable, compile_all, any_pattern, normalize_for_matching
from editguard.utils.ids import generate_block_id
from editguard.utils.logging import get_logger


logger = get_logger(__name__)

PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")

# Header-style markers only; a marker line carries no content of its own
SECTION_MARKERS: RuleTable[str] = RuleTable([
    PatternRule.compile(
        "hook",
        r"^#+\s*hook\s*$",
        r"^hook:\s*$",
        r"^\*\*hook\*\*\s*$",
        r"^#+\s*mở\s*đầu\s*$",
        r"^#+\s*dòng\s*mở\s*$",
        r"^#+\s*headline\s*$",
    ),
    PatternRule.compile(
        "body",
        r"^#+\s*body\s*$",
        r"^body:\s*$",
        r"^\*\*body\*\*\s*$",
        r"^#+\s*nội\s*dung\s*$",
        r"^#+\s*content\s*$",
    ),
    PatternRule.compile(
        "cta",
        r"^#+\s*cta\s*$",
        r"^cta:\s*$",
        r"^\*\*cta\*\*\s*$",
        r"^call\s*to\s*action\s*$",
        r"^#+\s*kết\s*luận\s*$",
        r"^#+\s*kêu\s*gọi\s*$",
    ),
])

# Contact / order / urgency wording that marks a closing paragraph as a CTA
CTA_LIKE_PATTERNS = compile_all(
    r"liên\s*hệ",
    r"đặt\s*hàng",
    r"mua\s*ngay",
    r"gọi\s*ngay",
    r"inbox",
    r"dm\s*ngay",
    r"link\s*in\s*bio",
    r"comment",
    r"bình\s*luận",
    r"nhắn\s*tin",
    r"đăng\s*ký",
    r"tham\s*gia",
    r"click",
    r"👇|⬇️|📩|📞|💬",
)

# Evaluated in this order; the first family that matches wins
TONE_RULES: RuleTable[ToneId] = RuleTable([
    PatternRule.compile(
        "professional",
        r"kính\s*gửi",
        r"trân\s*trọng",
        r"xin\s*chào",
        r"quý\s*khách",
        r"chuyên\s*nghiệp",
    ),
    PatternRule.compile(
        "formal",
        r"thưa\b",
        r"\bngài\b",
        r"quý\s*vị",
    ),
    PatternRule.compile(
        "casual",
        r"\bnè\b|\bnha\b|\bhen\b|\bnhé\b",
        r"bạn\s*ơi",
        r"\bchill\b",
        r"\bvibe\b",
        r"✨|🔥|💪|😊|🎉",
    ),
    PatternRule.compile(
        "friendly",
        r"bạn\s*thân\s*mến",
        r"chào\s*bạn",
        r"cảm\s*ơn\s*bạn",
    ),
])


def detect_section_marker(line: str) -> Optional[str]:
    """Return 'hook', 'body' or 'cta' if the line is a section marker."""
    return SECTION_MARKERS.first_match(normalize_for_matching(line).strip())


def looks_like_cta(text: str) -> bool:
    """True when text reads like a call-to-action (contact, order, urgency, pointer emoji)."""
    return any_pattern(CTA_LIKE_PATTERNS, normalize_for_matching(text).strip())


def detect_block_role(text: str) -> BodyBlockRole:
    """Classify a body block by its leading characters."""
    trimmed = text.strip()

    if re.match(r"^#+\s", trimmed):
        return "heading"
    if re.match(r"^[-*]\s", trimmed) or re.match(r"^\d+\.\s", trimmed):
        return "list"
    if trimmed.startswith(">") or trimmed.startswith('"'):
        return "quote"
    if trimmed:
        return "paragraph"

    return "other"


def detect_tone(text: str) -> ToneId:
    """Classify tone: professional, formal, casual, friendly, else neutral."""
    return TONE_RULES.first_match(normalize_for_matching(text), default="neutral")


def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines, dropping whitespace-only paragraphs (kept untrimmed)."""
    return [p for p in PARAGRAPH_SPLIT.split(text) if p.strip()]


def build_body_blocks(lines: list[str]) -> tuple[BodyBlock, ...]:
    """Group body lines into blocks separated by blank lines."""
    blocks: list[BodyBlock] = []
    current: list[str] = []

    def flush() -> None:
        block_text = "\n".join(current).strip()
        if block_text:
            blocks.append(
                BodyBlock(
                    id=generate_block_id(block_text, len(blocks)),
                    text=block_text,
                    role=detect_block_role(block_text),
                    locked=False,
                )
            )

    for line in lines:
        if line.strip() == "":
            if current:
                flush()
                current = []
        else:
            current.append(line)

    if current:
        flush()

    return tuple(blocks)


def empty_canon(draft_id: str, now: Optional[datetime] = None) -> Canon:
    now = now or utc_now()
    return Canon(meta=CanonMeta(draft_id=draft_id, created_at=now, updated_at=now, revision=1))


def extract_canon_from_draft(text: str, draft_id: str) -> Canon:
    """
    Extract a Canon from draft text.

    Args:
        text: Raw draft content
        draft_id: Id of the draft the canon belongs to

    Returns:
        Canon at revision 1 with every lock flag cleared

    Example:
        >>> canon = extract_canon_from_draft("Big news!\\n\\nWe shipped it.\\n\\nInbox us 👇", "d1")
        >>> canon.hook.text, canon.cta.text
        ("Big news!", "Inbox us 👇")
    """
    now = utc_now()

    if not text or not text.strip():
        return empty_canon(draft_id, now)

    hook_lines: list[str] = []
    body_lines: list[str] = []
    cta_lines: list[str] = []
    sections = {"hook": hook_lines, "body": body_lines, "cta": cta_lines}
    current = body_lines
    has_markers = False

    for line in text.split("\n"):
        marker = detect_section_marker(line)
        if marker is not None:
            current = sections[marker]
            has_markers = True
            continue
        current.append(line)

    if not has_markers:
        paragraphs = split_paragraphs(text)
        if not paragraphs:
            return empty_canon(draft_id, now)

        hook_lines = [paragraphs[0]]
        cta_lines = []
        rest = paragraphs[1:]
        if len(paragraphs) >= 2 and looks_like_cta(paragraphs[-1]):
            cta_lines = [paragraphs[-1]]
            rest = paragraphs[1:-1]

        # Re-insert blank separators so each paragraph stays its own block
        body_lines = []
        for paragraph in rest:
            body_lines.extend(paragraph.split("\n"))
            body_lines.append("")

    canon = Canon(
        hook=SectionContent(text="\n".join(hook_lines).strip()),
        cta=SectionContent(text="\n".join(cta_lines).strip()),
        tone=ToneState(id=detect_tone(text)),
        body=CanonBody(blocks=build_body_blocks(body_lines)),
        meta=CanonMeta(draft_id=draft_id, created_at=now, updated_at=now, revision=1),
    )

    logger.debug(
        "canon_extracted",
        draft_id=draft_id,
        has_markers=has_markers,
        hook_chars=len(canon.hook.text),
        body_blocks=len(canon.body.blocks),
        cta_chars=len(canon.cta.text),
        tone=canon.tone.id,
    )

    return canon


def extract_canon_from_sections(hook: str, body: str, cta: str, draft_id: str) -> Canon:
    """
    Build a Canon from text already assigned to hook, body and CTA.

    No marker or paragraph heuristic runs; body blocks are split on blank
    lines and tone is detected over the whole text.

    Returns:
        Canon at revision 1 with every lock flag cleared
    """
    now = utc_now()
    full_text = "\n\n".join(part.strip() for part in (hook, body, cta) if part.strip())

    return Canon(
        hook=SectionContent(text=hook.strip()),
        cta=SectionContent(text=cta.strip()),
        tone=ToneState(id=detect_tone(full_text)),
        body=CanonBody(blocks=build_body_blocks(body.split("\n"))),
        meta=CanonMeta(draft_id=draft_id, created_at=now, updated_at=now, revision=1),
    )


def canon_debug_summary(canon: Canon) -> str:
    """One-line summary of lock state, e.g. 'Canon: Hook🔒 | CTA | Tone🔒 | Body(3) | Rev 2'."""
    parts = [
        "Hook🔒" if canon.hook.locked else "Hook",
        "CTA🔒" if canon.cta.locked else "CTA",
        "Tone🔒" if canon.tone.locked else "Tone",
        f"Body({len(canon.body.blocks)})",
    ]
    return f"Canon: {' | '.join(parts)} | Rev {canon.meta.revision}"
