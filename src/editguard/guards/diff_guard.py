"""Rewrite intensity limits for anchored full rewrites.

Runs only on output that already passed anchor validation. Each anchored
paragraph is compared with its source, checking in this order:

1. length growth            (LENGTH_EXCEEDED)
2. sentence replacement     (SENTENCE_REPLACEMENT_EXCEEDED)
3. CTA / urgency injection  (CTA_ADDED)
4. keyword retention        (KEYWORDS_LOST)

The first failing check names the paragraph's failure, and the first failing
paragraph in anchor order decides the overall verdict.

The thresholds are fixed behaviour, not settings.
"""

import re
from typing import Optional

from editguard.guards.anchors import extract_anchored_paragraphs
from editguard.models.diff import DiffFailReason, ParagraphDiffAnalysis, RewriteDiffResult
from editguard.models.scope import Language
from editguard.rules import any_pattern, compile_all
from editguard.utils.logging import get_logger


logger = get_logger(__name__)

MAX_LENGTH_RATIO = 1.5
MAX_SENTENCE_REPLACEMENT_RATIO = 0.4
MIN_KEYWORD_PRESERVATION_RATIO = 0.6

# A rewritten sentence survives when some source sentence overlaps it by more than this
SENTENCE_SIMILARITY_THRESHOLD = 0.5

MIN_KEYWORD_LENGTH = 4

CTA_PATTERNS = compile_all(
    # Vietnamese
    r"liên hệ ngay",
    r"đăng ký ngay",
    r"mua ngay",
    r"gọi ngay",
    r"nhắn tin ngay",
    r"đặt hàng ngay",
    r"inbox ngay",
    r"hotline",
    r"số điện thoại",
    r"zalo",
    r"hành động ngay",
    r"chỉ còn",
    r"số lượng có hạn",
    r"ưu đãi.*hết hạn",
    r"giảm giá.*%",
    r"khuyến mãi",
    r"miễn phí",
    r"tặng ngay",
    # English
    r"call now",
    r"buy now",
    r"order now",
    r"register now",
    r"sign up now",
    r"contact us",
    r"limited time",
    r"limited offer",
    r"act now",
    r"don't miss",
    r"hurry",
    r"only \d+ left",
    r"\d+% off",
    r"free shipping",
    r"click here",
)

STOP_WORDS = frozenset({
    # Vietnamese
    "được", "những", "không", "trong", "người", "nhưng", "cũng", "như",
    "này", "khi", "đang", "sẽ", "để", "với", "các", "một", "có", "là",
    "và", "của", "cho", "từ", "đến", "về", "trên", "dưới", "theo",
    "qua", "lại", "nên", "vì", "nếu", "thì", "mà", "hoặc", "hay",
    # English
    "the", "and", "for", "are", "but", "not", "you", "all", "can",
    "had", "her", "was", "one", "our", "out", "has", "have", "been",
    "would", "could", "should", "their", "what", "there", "when",
    "which", "will", "with", "this", "that", "from", "they", "were",
    "your", "more", "some", "than", "them", "into", "other", "then",
})

SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
NON_WORD = re.compile(r"[^\w\s]|_")

FAIL_MESSAGES: dict[str, dict[str, str]] = {
    "REWRITE_DIFF_EXCEEDED": {
        "vi": "Bài viết lại khác quá nhiều so với bản gốc",
        "en": "Rewritten content differs too much from original",
    },
    "LENGTH_EXCEEDED": {
        "vi": "Độ dài tăng quá 50% so với bản gốc",
        "en": "Length increased more than 50% from original",
    },
    "SENTENCE_REPLACEMENT_EXCEEDED": {
        "vi": "Quá nhiều câu mới (>40%) so với bản gốc",
        "en": "Too many new sentences (>40%) compared to original",
    },
    "CTA_ADDED": {
        "vi": "Thêm CTA/lời kêu gọi mà bản gốc không có",
        "en": "Added CTA/call-to-action that original did not have",
    },
    "KEYWORDS_LOST": {
        "vi": "Mất quá nhiều từ khóa chính của bản gốc",
        "en": "Lost too many core keywords from original",
    },
}


def split_into_sentences(text: str) -> list[str]:
    return [s.strip() for s in SENTENCE_SPLIT.split(text) if s.strip()]


def extract_keywords(text: str) -> set[str]:
    """Lowercased words of 4+ characters with punctuation removed and stop words dropped."""
    words = NON_WORD.sub(" ", text.lower()).split()
    return {w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS}


def has_cta(text: str) -> bool:
    return any_pattern(CTA_PATTERNS, text)


def sentence_similarity(first: str, second: str) -> float:
    """Shared words divided by the larger word set (case-insensitive)."""
    words_a = set(first.lower().split())
    words_b = set(second.lower().split())

    if not words_a or not words_b:
        return 0.0

    return len(words_a & words_b) / max(len(words_a), len(words_b))


def calculate_sentence_replacement_ratio(original: list[str], rewritten: list[str]) -> float:
    """Share of rewritten sentences with no sufficiently similar source sentence."""
    if not rewritten:
        return 0.0

    replaced = sum(
        1 for sentence in rewritten
        if not any(sentence_similarity(source, sentence) > SENTENCE_SIMILARITY_THRESHOLD for source in original)
    )
    return replaced / len(rewritten)


def calculate_keyword_preservation(original: set[str], rewritten: set[str]) -> float:
    if not original:
        return 1.0
    return len(original & rewritten) / len(original)


def analyze_paragraph(anchor_id: str, original: str, rewritten: str) -> ParagraphDiffAnalysis:
    """Run the four checks on one paragraph pair."""
    length_ratio = len(rewritten) / len(original) if original else 1.0

    sentence_replacement_ratio = calculate_sentence_replacement_ratio(
        split_into_sentences(original),
        split_into_sentences(rewritten),
    )

    cta_added = not has_cta(original) and has_cta(rewritten)

    keywords_preserved_ratio = calculate_keyword_preservation(
        extract_keywords(original),
        extract_keywords(rewritten),
    )

    fail_reason: Optional[DiffFailReason] = None
    fail_detail: Optional[str] = None

    if length_ratio > MAX_LENGTH_RATIO:
        fail_reason = "LENGTH_EXCEEDED"
        fail_detail = f"Length increased {length_ratio * 100:.0f}% (max {MAX_LENGTH_RATIO * 100:.0f}%)"
    elif sentence_replacement_ratio > MAX_SENTENCE_REPLACEMENT_RATIO:
        fail_reason = "SENTENCE_REPLACEMENT_EXCEEDED"
        fail_detail = (
            f"{sentence_replacement_ratio * 100:.0f}% sentences replaced "
            f"(max {MAX_SENTENCE_REPLACEMENT_RATIO * 100:.0f}%)"
        )
    elif cta_added:
        fail_reason = "CTA_ADDED"
        fail_detail = "CTA/urgency added where source had none"
    elif keywords_preserved_ratio < MIN_KEYWORD_PRESERVATION_RATIO:
        fail_reason = "KEYWORDS_LOST"
        fail_detail = (
            f"Only {keywords_preserved_ratio * 100:.0f}% keywords preserved "
            f"(min {MIN_KEYWORD_PRESERVATION_RATIO * 100:.0f}%)"
        )

    return ParagraphDiffAnalysis(
        anchor_id=anchor_id,
        original=original,
        rewritten=rewritten,
        length_ratio=length_ratio,
        sentence_replacement_ratio=sentence_replacement_ratio,
        cta_added=cta_added,
        keywords_preserved_ratio=keywords_preserved_ratio,
        passed=fail_reason is None,
        fail_reason=fail_reason,
        fail_detail=fail_detail,
    )


def validate_rewrite_diff(anchored_source: str, anchored_output: str) -> RewriteDiffResult:
    """
    Compare an anchored rewrite with its anchored source, paragraph by paragraph.

    Args:
        anchored_source: Source text as produced by inject_anchors
        anchored_output: Model completion (must already pass validate_anchors)

    Returns:
        RewriteDiffResult, failing on the first failing paragraph in anchor order
    """
    source = extract_anchored_paragraphs(anchored_source)
    output = extract_anchored_paragraphs(anchored_output)

    analysis = [
        analyze_paragraph(anchor_id, text, output.get(anchor_id, ""))
        for anchor_id, text in source.items()
    ]

    for paragraph in analysis:
        logger.debug(
            "diff_guard_paragraph",
            anchor_id=paragraph.anchor_id,
            length_ratio=round(paragraph.length_ratio, 3),
            sentence_replacement_ratio=round(paragraph.sentence_replacement_ratio, 3),
            cta_added=paragraph.cta_added,
            keywords_preserved_ratio=round(paragraph.keywords_preserved_ratio, 3),
        )

    failed = next((p for p in analysis if not p.passed), None)
    if failed is not None:
        logger.warning("diff_guard_failed", anchor_id=failed.anchor_id, reason=failed.fail_reason)
        return RewriteDiffResult(
            ok=False,
            reason=failed.fail_reason,
            details=f"{failed.anchor_id}: {failed.fail_detail}",
            paragraph_analysis=analysis,
        )

    return RewriteDiffResult(ok=True, paragraph_analysis=analysis)


def get_diff_guard_error_message(result: RewriteDiffResult, lang: Language = "vi") -> str:
    """Localized message for a failed diff guard result ('' when ok)."""
    if result.ok:
        return ""
    return FAIL_MESSAGES[result.reason or "REWRITE_DIFF_EXCEEDED"][lang]
