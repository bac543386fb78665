"""Scope resolution: map a free-text edit instruction to the section it may touch.

Detection order:

1. Structured multi-section instructions that label hook, body and CTA
   (``Hook:``, ``Body:``, ``CTA:`` or ``Mở bài:``, ``Thân bài:``, ``Kết:``):
   FULL, HIGH confidence, explicit.
2. Per-target keyword families for the instruction language, in the order
   HOOK, CTA, BODY, TONE, FULL. First family that matches wins, HIGH.
3. Generic phrases with no object ("viết hay hơn", "make it better"): FULL, LOW.
4. Anything else: FULL, MEDIUM.
"""

import re
from typing import Iterable, Optional, Sequence

from editguard.models.canon import CanonSection
from editguard.models.scope import (
    EditorialOpType,
    EditScopeContract,
    EditTarget,
    EditTargetDetection,
    Language,
    ScopeGate,
)
from editguard.rules import PatternRule, RuleTable, compile_all, any_pattern, normalize_for_matching
from editguard.utils.logging import get_logger


logger = get_logger(__name__)

# Instructions longer than this are treated as explicit enough to never gate
GATE_MAX_INSTRUCTION_LENGTH = 140

# Generic-phrase check for is_ambiguous_edit_instruction only applies to short text
AMBIGUOUS_MAX_LENGTH = 30

# An instruction is structured only when it labels each of these sections
STRUCTURED_REQUIRED_SECTIONS: frozenset[CanonSection] = frozenset({"HOOK", "BODY", "CTA"})

VI_TARGET_RULES: RuleTable[EditTarget] = RuleTable([
    PatternRule.compile(
        "HOOK",
        r"\bhook\b",
        r"\bmở\s*bài\b",
        r"\bphần\s*mở\b",
        r"\bcâu\s*mở\b",
        r"\btitle\b",
        r"\btiêu\s*đề\b",
        r"\bdòng\s*đầu\b",
        r"\bcâu\s*đầu\b",
    ),
    PatternRule.compile(
        "CTA",
        r"\bcta\b",
        r"\bcall\s*to\s*action\b",
        r"\bkêu\s*gọi\b",
        r"\bhành\s*động\b",
        r"\bchốt\s*đơn\b",
        r"\bliên\s*hệ\b",
        r"\bđặt\s*hàng\b",
        r"\bmua\s*ngay\b",
    ),
    PatternRule.compile(
        "BODY",
        r"\bbody\b",
        r"\bthân\s*bài\b",
        r"\bphần\s*thân\b",
        r"\bnội\s*dung\s*chính\b",
        r"\bđoạn\s*giữa\b",
        r"\bbullet\b",
        r"\bdanh\s*sách\b",
        r"\bchi\s*tiết\b",
        r"\bviết\s*lại\s*thân\b",
    ),
    PatternRule.compile(
        "TONE",
        r"\btone\b",
        r"\bgiọng\b",
        r"\bphong\s*cách\b",
        r"\bpremium\b",
        r"\bsalesy\b",
        r"\bgen\s*z\b",
        r"\bchuyên\s*nghiệp\b",
        r"\bsang\s*hơn\b",
        r"\btrẻ\s*trung\b",
    ),
    PatternRule.compile(
        "FULL",
        r"\btoàn\s*bài\b",
        r"\bcả\s*bài\b",
        r"\bviết\s*lại\s*toàn\b",
        r"\blàm\s*lại\s*bài\b",
        r"\bfull\b",
        r"\bhoàn\s*toàn\b",
        r"\btừ\s*đầu\b",
    ),
])

EN_TARGET_RULES: RuleTable[EditTarget] = RuleTable([
    PatternRule.compile(
        "HOOK",
        r"\bhook\b",
        r"\bopening\b",
        r"\bintro\b",
        r"\bheadline\b",
        r"\btitle\b",
        r"\bfirst\s*line\b",
    ),
    PatternRule.compile(
        "CTA",
        r"\bcta\b",
        r"\bcall\s*to\s*action\b",
        r"\bclosing\b",
        r"\bending\b",
    ),
    PatternRule.compile(
        "BODY",
        r"\bbody\b",
        r"\bmain\s*content\b",
        r"\bmiddle\b",
        r"\bbullet\s*points?\b",
        r"\bdetails\b",
    ),
    PatternRule.compile(
        "TONE",
        r"\btone\b",
        r"\bstyle\b",
        r"\bvoice\b",
        r"\bpremium\b",
        r"\bprofessional\b",
        r"\bcasual\b",
        r"\bless\s*salesy\b",
        r"\bmore\s*formal\b",
    ),
    PatternRule.compile(
        "FULL",
        r"\bfull\s*(post|content)?\b",
        r"\bentire\b",
        r"\bwhole\b",
        r"\brewrite\s*everything\b",
        r"\bfrom\s*scratch\b",
    ),
])

TARGET_RULES: dict[str, RuleTable[EditTarget]] = {"vi": VI_TARGET_RULES, "en": EN_TARGET_RULES}

# Whole-instruction generic phrases with no section object
AMBIGUOUS_PATTERNS = compile_all(
    r"^viết\s*(lại|hay\s*hơn|tốt\s*hơn)$",
    r"^chỉnh\s*lại$",
    r"^chỉnh\s*sửa$",
    r"^sửa\s*lại$",
    r"^tối\s*ưu$",
    r"^ngắn\s*(hơn|lại|gọn)$",
    r"^rút\s*gọn$",
    r"^dài\s*hơn$",
    r"^cải\s*thiện$",
    r"^hay\s*hơn$",
    r"^tốt\s*hơn$",
    r"^make\s*it\s*better$",
    r"^write\s*(it\s*)?better$",
    r"^improve$",
    r"^rewrite$",
    r"^fix\s*it$",
    r"^shorter$",
    r"^longer$",
    r"^better$",
    r"^optimize$",
    r"^polish$",
    r"^refine$",
)

STRUCTURED_MARKERS: RuleTable[CanonSection] = RuleTable([
    PatternRule.compile("HOOK", r"\bHook:", r"\bMở bài:"),
    PatternRule.compile("BODY", r"\bBody:", r"\bThân bài:"),
    PatternRule.compile("CTA", r"\bCTA:", r"\bKết:"),
])

LOCKED_SECTIONS_BY_TARGET: dict[str, tuple[CanonSection, ...]] = {
    "HOOK": ("BODY", "CTA"),
    "BODY": ("HOOK", "CTA"),
    "CTA": ("HOOK", "BODY"),
    "TONE": (),
    "FULL": (),
}

ALLOWED_OPS_BY_TARGET: dict[str, tuple[EditorialOpType, ...]] = {
    "HOOK": ("MICRO_POLISH", "TRIM", "SECTION_REWRITE"),
    "BODY": ("MICRO_POLISH", "TRIM", "FLOW_SMOOTHING", "CLARITY_IMPROVE", "BODY_REWRITE"),
    "CTA": ("MICRO_POLISH", "TRIM", "SECTION_REWRITE"),
    "TONE": ("MICRO_POLISH", "FLOW_SMOOTHING", "CLARITY_IMPROVE"),
    "FULL": ("MICRO_POLISH", "TRIM", "FLOW_SMOOTHING", "CLARITY_IMPROVE", "BODY_REWRITE", "FULL_REWRITE"),
}

TARGET_REASONS: dict[str, dict[str, str]] = {
    "HOOK": {"vi": "Chỉnh hook", "en": "Edit hook"},
    "BODY": {"vi": "Chỉnh thân bài", "en": "Edit body"},
    "CTA": {"vi": "Chỉnh CTA", "en": "Edit CTA"},
    "TONE": {"vi": "Chỉnh tone", "en": "Edit tone"},
    "FULL": {"vi": "Chỉnh toàn bài", "en": "Edit full post"},
}

REASONS: dict[str, dict[str, str]] = {
    "empty": {"vi": "Không có lệnh", "en": "No instruction"},
    "structured": {"vi": "Lệnh có cấu trúc rõ ràng", "en": "Structured instruction"},
    "ambiguous": {"vi": "Lệnh chung, cần chọn phạm vi", "en": "General instruction, scope needed"},
    "default": {"vi": "Mặc định chỉnh toàn bài", "en": "Default to full edit"},
    "user_picked": {"vi": "Người dùng đã chọn", "en": "User selected"},
    "no_canon": {"vi": "Chưa có nội dung gốc", "en": "No existing content"},
}


def has_structured_markers(text: str) -> bool:
    """True when the instruction labels hook, body and CTA (Vietnamese labels count)."""
    return STRUCTURED_REQUIRED_SECTIONS.issubset(STRUCTURED_MARKERS.all_matches(normalize_for_matching(text)))


def matches_ambiguous_phrase(text: str) -> bool:
    normalized = normalize_for_matching(text).strip()
    return any_pattern(AMBIGUOUS_PATTERNS, normalized)


def is_ambiguous_edit_instruction(text: str) -> bool:
    """Short generic instruction such as 'improve' or 'viết lại' with no section named."""
    return len(text.strip()) <= AMBIGUOUS_MAX_LENGTH and matches_ambiguous_phrase(text)


def detect_edit_target_from_instruction(text: str, lang: Language = "vi") -> EditTargetDetection:
    """
    Detect which section an instruction targets.

    Args:
        text: User instruction
        lang: 'vi' or 'en'; selects the keyword families

    Returns:
        EditTargetDetection; target is None only for an empty instruction
    """
    trimmed = text.strip()

    if not trimmed:
        return EditTargetDetection(
            target=None,
            confidence="LOW",
            reason=REASONS["empty"][lang],
            source="HEURISTIC",
        )

    if has_structured_markers(trimmed):
        return EditTargetDetection(
            target="FULL",
            confidence="HIGH",
            reason=REASONS["structured"][lang],
            source="EXPLICIT_INSTRUCTION",
        )

    normalized = normalize_for_matching(trimmed)
    rule = TARGET_RULES[lang].first_rule(normalized)
    if rule is not None:
        return EditTargetDetection(
            target=rule.result,
            confidence="HIGH",
            reason=TARGET_REASONS[rule.result][lang],
            source="EXPLICIT_INSTRUCTION",
            matched_patterns=rule.matched_patterns(normalized),
        )

    if matches_ambiguous_phrase(trimmed):
        return EditTargetDetection(
            target="FULL",
            confidence="LOW",
            reason=REASONS["ambiguous"][lang],
            source="HEURISTIC",
        )

    return EditTargetDetection(
        target="FULL",
        confidence="MEDIUM",
        reason=REASONS["default"][lang],
        source="HEURISTIC",
    )


def get_locked_sections_for_target(target: EditTarget) -> list[CanonSection]:
    return list(LOCKED_SECTIONS_BY_TARGET[target])


def get_allowed_ops_for_target(target: EditTarget) -> list[EditorialOpType]:
    return list(ALLOWED_OPS_BY_TARGET[target])


def merge_locked_sections(
    target: EditTarget, canon_locks: Iterable[CanonSection]
) -> list[CanonSection]:
    """Ordered union of target-implied locks and canon locks, minus the target."""
    merged: list[CanonSection] = []
    for section in (*get_locked_sections_for_target(target), *canon_locks):
        if section != target and section not in merged:
            merged.append(section)
    return merged


def build_edit_scope_contract(
    instruction: str,
    lang: Language = "vi",
    active_canon_locks: Sequence[CanonSection] = (),
    has_active_canon: bool = False,
    user_picked_target: Optional[EditTarget] = None,
) -> EditScopeContract:
    """
    Build the scope contract for an edit.

    Args:
        instruction: User instruction
        lang: Instruction language
        active_canon_locks: Sections locked in the active canon
        has_active_canon: Whether there is an existing draft to protect
        user_picked_target: Target the user chose explicitly, if any

    Returns:
        EditScopeContract whose locked_sections never include its target
    """
    if user_picked_target is not None:
        contract = EditScopeContract(
            target=user_picked_target,
            locked_sections=merge_locked_sections(user_picked_target, active_canon_locks),
            allowed_ops=get_allowed_ops_for_target(user_picked_target),
            source="USER_PICKED",
            confidence="HIGH",
            reason=REASONS["user_picked"][lang],
        )
    elif not has_active_canon:
        contract = EditScopeContract(
            target="FULL",
            locked_sections=[],
            allowed_ops=get_allowed_ops_for_target("FULL"),
            source="HEURISTIC",
            confidence="LOW",
            reason=REASONS["no_canon"][lang],
        )
    else:
        detection = detect_edit_target_from_instruction(instruction, lang)
        target = detection.target or "FULL"
        contract = EditScopeContract(
            target=target,
            locked_sections=merge_locked_sections(target, active_canon_locks),
            allowed_ops=get_allowed_ops_for_target(target),
            source=detection.source,
            confidence=detection.confidence,
            reason=detection.reason,
        )

    logger.debug(
        "scope_contract_built",
        target=contract.target,
        locked_sections=contract.locked_sections,
        source=contract.source,
        confidence=contract.confidence,
    )
    return contract


def resolve_scope_gate(instruction: str, has_active_canon: bool, lang: Language = "vi") -> ScopeGate:
    """
    Decide whether the user must pick a scope before the model is called.

    Never gates an empty instruction, one longer than 140 characters, a
    structured multi-section instruction, or an edit with no active canon.
    Gates LOW confidence detections, and MEDIUM ones that match a known
    generic phrase.
    """
    trimmed = instruction.strip()

    if not trimmed or len(trimmed) > GATE_MAX_INSTRUCTION_LENGTH:
        return ScopeGate(requires_user_pick=False)
    if has_structured_markers(trimmed) or not has_active_canon:
        return ScopeGate(requires_user_pick=False)

    detection = detect_edit_target_from_instruction(trimmed, lang)

    gate = detection.confidence == "LOW" or (
        detection.confidence == "MEDIUM" and matches_ambiguous_phrase(trimmed)
    )
    if not gate:
        return ScopeGate(requires_user_pick=False)

    logger.info("scope_pick_required", instruction_length=len(trimmed), confidence=detection.confidence)
    return ScopeGate(
        requires_user_pick=True,
        suggested=build_edit_scope_contract(trimmed, lang, has_active_canon=True),
    )


def should_gate_for_scope_pick(instruction: str, has_active_canon: bool, lang: Language = "vi") -> bool:
    """Boolean form of resolve_scope_gate."""
    return resolve_scope_gate(instruction, has_active_canon, lang).requires_user_pick
