"""Compare canon snapshots and report drift."""

import re
from typing import Optional

from editguard.canon.extractor import extract_canon_from_draft
from editguard.models.canon import BodyChange, Canon, CanonDiff, CanonSection, TextChange, ToneChange
from editguard.rules import PatternRule, RuleTable, normalize_for_matching
from editguard.utils.logging import get_logger


logger = get_logger(__name__)

# Word-set Jaccard similarity at or above this counts as "unchanged"
SIMILARITY_THRESHOLD = 0.8

SECTION_MENTIONS: RuleTable[CanonSection] = RuleTable([
    PatternRule.compile("HOOK", r"hook|mở đầu|dòng mở|headline|tiêu đề|câu mở"),
    PatternRule.compile("CTA", r"cta|call to action|kêu gọi|liên hệ|kết luận|đoạn cuối"),
    PatternRule.compile("TONE", r"tone|giọng|phong cách|style|văn phong"),
    PatternRule.compile("BODY", r"body|nội dung|thân bài|content|đoạn giữa"),
])


def normalize_text(text: str) -> str:
    return re.sub(r"\s+", " ", text.strip().lower())


def texts_are_similar(a: str, b: str, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    """Jaccard similarity of the two word sets, after normalization, meets threshold."""
    norm_a = normalize_text(a)
    norm_b = normalize_text(b)

    if norm_a == norm_b:
        return True
    if not norm_a or not norm_b:
        return False

    words_a = set(norm_a.split(" "))
    words_b = set(norm_b.split(" "))
    return len(words_a & words_b) / len(words_a | words_b) >= threshold


def instruction_mentions_section(instruction: str, section: CanonSection) -> bool:
    """True when the instruction names the section explicitly (vi or en wording)."""
    normalized = normalize_for_matching(instruction)
    for rule in SECTION_MENTIONS.rules:
        if rule.result == section:
            return rule.matches(normalized)
    return False


def diff_canons(prev: Canon, new: Canon) -> CanonDiff:
    """
    Report which sections differ between two canon snapshots.

    Hook and CTA are compared by word-set similarity, tone by id and the body
    position by position. A change counts as a locked change only when the
    section (or, for the body, the block at that position) was locked in prev.
    """
    changed: list[CanonSection] = []
    locked_changed = False

    hook_change: Optional[TextChange] = None
    if not texts_are_similar(prev.hook.text, new.hook.text):
        changed.append("HOOK")
        hook_change = TextChange(old_text=prev.hook.text, new_text=new.hook.text)
        locked_changed = locked_changed or prev.hook.locked

    cta_change: Optional[TextChange] = None
    if not texts_are_similar(prev.cta.text, new.cta.text):
        changed.append("CTA")
        cta_change = TextChange(old_text=prev.cta.text, new_text=new.cta.text)
        locked_changed = locked_changed or prev.cta.locked

    tone_change: Optional[ToneChange] = None
    if prev.tone.id != new.tone.id:
        changed.append("TONE")
        tone_change = ToneChange(old_tone=prev.tone.id, new_tone=new.tone.id)
        locked_changed = locked_changed or prev.tone.locked

    prev_blocks = prev.body.blocks
    new_texts = [normalize_text(b.text) for b in new.body.blocks]
    added = removed = modified = 0
    body_locked_changed = False

    for i in range(max(len(prev_blocks), len(new_texts))):
        if i >= len(prev_blocks):
            added += 1
        elif i >= len(new_texts):
            removed += 1
            body_locked_changed = body_locked_changed or prev_blocks[i].locked
        elif normalize_text(prev_blocks[i].text) != new_texts[i]:
            modified += 1
            body_locked_changed = body_locked_changed or prev_blocks[i].locked

    body_change: Optional[BodyChange] = None
    if added or removed or modified:
        changed.append("BODY")
        body_change = BodyChange(added_blocks=added, removed_blocks=removed, modified_blocks=modified)
        locked_changed = locked_changed or body_locked_changed

    diff = CanonDiff(
        changed_sections=changed,
        hook=hook_change,
        cta=cta_change,
        tone=tone_change,
        body=body_change,
        locked_section_changed=locked_changed,
    )

    if locked_changed:
        logger.warning(
            "locked_section_changed",
            draft_id=prev.meta.draft_id,
            changed_sections=changed,
        )

    return diff


def compute_canon_diff(prev: Canon, new_text: str) -> CanonDiff:
    """Extract a canon from new_text and diff it against prev."""
    return diff_canons(prev, extract_canon_from_draft(new_text, prev.meta.draft_id))


def should_require_canon_approval(canon: Canon, diff: CanonDiff, instruction: Optional[str] = None) -> bool:
    """
    Decide whether an edit needs explicit user approval before it is applied.

    Approval is needed when a locked section changed, or when the instruction
    names a locked section that changed.
    """
    if diff.locked_section_changed:
        return True

    if not instruction:
        return False

    locked_flags = {
        "HOOK": canon.hook.locked,
        "CTA": canon.cta.locked,
        "TONE": canon.tone.locked,
    }
    for section, locked in locked_flags.items():
        if locked and section in diff.changed_sections and instruction_mentions_section(instruction, section):
            return True

    return False
