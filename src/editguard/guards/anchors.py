"""Paragraph anchors for full-document rewrites.

Before a full rewrite is sent to the model every substantial paragraph of the
source is prefixed with an anchor line (<<P1>>, <<P2>>, ...). The completion
must echo every anchor, in the same order, with none added or removed. This
catches merged, split, dropped and reordered paragraphs.

Validation always runs on the anchor-bearing completion; stripped text is for
display only.
"""

import re
from typing import Optional, Sequence

from editguard.models.anchors import AnchoredContent, AnchorValidationResult
from editguard.utils.logging import get_logger


logger = get_logger(__name__)

ANCHOR_PREFIX = "<<P"
ANCHOR_SUFFIX = ">>"
ANCHOR_PATTERN = re.compile(r"<<P(\d+)>>")

# Paragraphs shorter than this (after trimming) are noise and get no anchor
MIN_PARAGRAPH_LENGTH = 10

PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def split_all_paragraphs(content: str) -> list[str]:
    """Trimmed, non-empty paragraphs, short ones included."""
    paragraphs = (p.strip() for p in PARAGRAPH_SPLIT.split(content))
    return [p for p in paragraphs if p]


def split_into_paragraphs(content: str) -> list[str]:
    """Trimmed paragraphs of at least MIN_PARAGRAPH_LENGTH characters."""
    return [p for p in split_all_paragraphs(content) if len(p) >= MIN_PARAGRAPH_LENGTH]


def generate_anchor_id(index: int) -> str:
    """Anchor token for a 1-based paragraph index."""
    return f"{ANCHOR_PREFIX}{index}{ANCHOR_SUFFIX}"


def inject_anchors(content: str) -> AnchoredContent:
    """
    Prefix each substantial paragraph with its anchor on its own line.

    Args:
        content: Source text

    Returns:
        AnchoredContent with paragraphs rejoined by blank lines

    Example:
        >>> inject_anchors("First paragraph.\\n\\nSecond paragraph.").anchored_text
        "<<P1>>\\nFirst paragraph.\\n\\n<<P2>>\\nSecond paragraph."
    """
    paragraphs = split_into_paragraphs(content)
    anchor_ids = [generate_anchor_id(i) for i in range(1, len(paragraphs) + 1)]
    anchored = [f"{anchor}\n{paragraph}" for anchor, paragraph in zip(anchor_ids, paragraphs)]

    return AnchoredContent(
        anchored_text="\n\n".join(anchored),
        anchor_ids=anchor_ids,
        paragraph_count=len(paragraphs),
    )


def should_apply_anchors(content: str) -> bool:
    """Anchor only content with two or more substantial paragraphs."""
    return len(split_into_paragraphs(content)) >= 2


def extract_anchors(output: str) -> list[str]:
    """Anchor tokens in order of appearance, duplicates kept."""
    return [match.group(0) for match in ANCHOR_PATTERN.finditer(output)]


def validate_anchors(output: str, expected: list[str]) -> AnchorValidationResult:
    """
    Check that output preserves the expected anchors.

    Args:
        output: Model completion, with anchors
        expected: Anchor ids from inject_anchors, in order

    Returns:
        AnchorValidationResult. Order is compared over the anchors present in
        both lists, so a reorder is still reported when anchors are also
        missing. A duplicated anchor breaks order. There is no partial credit.
    """
    found = extract_anchors(output)
    expected_set = set(expected)
    found_set = set(found)

    missing = [a for a in expected if a not in found_set]
    extra = [a for a in found if a not in expected_set]

    expected_in_order = [a for a in expected if a in found_set]
    found_in_order = [a for a in found if a in expected_set]
    order_preserved = expected_in_order == found_in_order

    valid = not missing and not extra and order_preserved

    error = None
    if not valid:
        errors = []
        if missing:
            errors.append(f"Missing anchors: {', '.join(missing)}")
        if extra:
            errors.append(f"Extra anchors: {', '.join(extra)}")
        if not order_preserved:
            errors.append("Anchor order changed")
        error = ". ".join(errors)
        logger.warning(
            "anchor_validation_failed",
            missing=missing,
            extra=extra,
            order_preserved=order_preserved,
        )

    return AnchorValidationResult(
        valid=valid,
        expected=list(expected),
        found=found,
        missing=missing,
        extra=extra,
        order_preserved=order_preserved,
        error=error,
    )


def strip_anchors(output: str) -> str:
    """Remove anchor tokens and the blank lines they leave behind."""
    without_tokens = ANCHOR_PATTERN.sub("", output)
    return re.sub(r"^\s*\n", "\n", without_tokens, flags=re.MULTILINE).strip()


def extract_anchored_paragraphs(content: str) -> dict[str, str]:
    """
    Map each anchor to the trimmed text that follows it, in anchor order.

    Text before the first anchor belongs to no paragraph and is left out.
    """
    result: dict[str, str] = {}
    current: Optional[str] = None

    for part in re.split(r"(<<P\d+>>)", content):
        if ANCHOR_PATTERN.fullmatch(part):
            current = part
        elif current is not None:
            result[current] = part.strip()
            current = None

    return result


def get_text_before_anchors(output: str) -> str:
    """Trimmed text ahead of the first anchor (a model preamble), '' when there is none."""
    match = ANCHOR_PATTERN.search(output)
    if match is None:
        return ""
    return output[:match.start()].strip()


def replace_anchored_paragraphs(paragraphs: Sequence[str], output: str) -> list[str]:
    """
    Swap each anchored source paragraph for its rewritten text.

    Args:
        paragraphs: Every paragraph of the source, in order, as returned by
            split_all_paragraphs (short ones included)
        output: Completion that passed validate_anchors

    Returns:
        One entry per source paragraph. Paragraphs below MIN_PARAGRAPH_LENGTH
        never carried an anchor and come back unchanged; anchored ones take the
        text that follows their anchor in output.
    """
    rewritten = extract_anchored_paragraphs(output)
    result: list[str] = []
    index = 0

    for paragraph in paragraphs:
        if len(paragraph) < MIN_PARAGRAPH_LENGTH:
            result.append(paragraph)
            continue
        index += 1
        result.append(rewritten.get(generate_anchor_id(index), paragraph))

    return result
