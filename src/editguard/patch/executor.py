"""Patch execution for scoped edits.

A scoped edit touches exactly one section. The model is asked to answer with
protocol blocks:

    [PATCH]
    TARGET: HOOK|BODY|CTA
    ACTION: REPLACE|APPEND|PREPEND
    CONTENT:
    <free text>
    [/PATCH]

validate_patch_only_output() checks those blocks against the contract and
apply_patches() merges them into the canon without touching any other section.
"""

import re
from typing import Optional, Sequence

from editguard.canon.extractor import detect_block_role
from editguard.exceptions import UnknownSectionError
from editguard.models.canon import BodyBlock, Canon, CanonSection, utc_now
from editguard.models.patch import (
    EditPatchMeta,
    Patch,
    PatchAction,
    PatchOnlyContract,
    PatchTarget,
    PatchValidationResult,
)
from editguard.models.scope import EditScopeContract
from editguard.rules import PatternRule, RuleTable
from editguard.utils.ids import generate_block_id
from editguard.utils.logging import get_logger


logger = get_logger(__name__)

PATCH_BLOCK_PATTERN = re.compile(
    r"\[PATCH\]\s*\n?"
    r"TARGET:\s*(HOOK|BODY|CTA|TONE)\s*\n?"
    r"ACTION:\s*(REPLACE|APPEND|PREPEND)\s*\n?"
    r"CONTENT:\s*\n?"
    r"(.*?)\[/PATCH\]",
    re.IGNORECASE | re.DOTALL,
)

PATCH_SEPARATOR = "\n\n"

# Section words used to tell a full-post answer from a single-section one.
# Matching is deliberately loose ("content" also hits "contents").
MULTI_SECTION_MARKERS: RuleTable[str] = RuleTable([
    PatternRule.compile("HOOK", r"🎣|hook|mở bài|opening"),
    PatternRule.compile("BODY", r"📝|body|thân bài|content"),
    PatternRule.compile("CTA", r"🎯|cta|kêu gọi|call.to.action"),
])

SECTIONS_TO_PRESERVE: dict[str, tuple[CanonSection, ...]] = {
    "HOOK": ("BODY", "CTA"),
    "BODY": ("HOOK", "CTA"),
    "CTA": ("HOOK", "BODY"),
    # Tone touches every section but their structure stays
    "TONE": ("HOOK", "BODY", "CTA"),
}


def get_sections_to_preserve(target: PatchTarget) -> list[CanonSection]:
    return list(SECTIONS_TO_PRESERVE[target])


def build_edit_patch_meta(contract: EditScopeContract) -> Optional[EditPatchMeta]:
    """
    Build patch metadata for a scoped edit.

    Args:
        contract: Resolved scope contract

    Returns:
        EditPatchMeta in PATCH mode, or None when the target is FULL
    """
    if contract.target == "FULL":
        return None

    preserve = get_sections_to_preserve(contract.target)
    for section in contract.locked_sections:
        if section != contract.target and section not in preserve:
            preserve.append(section)

    return EditPatchMeta(
        target=contract.target,
        mode="PATCH",
        preserve_sections=preserve,
        allow_partial_output=True,
    )


def build_output_contract_from_meta(meta: Optional[EditPatchMeta]) -> Optional[PatchOnlyContract]:
    """Map PATCH-mode metadata 1:1 to a PatchOnlyContract; None for FULL or missing meta."""
    if meta is None or meta.mode != "PATCH":
        return None

    return PatchOnlyContract(
        targets=[meta.target],
        default_action="REPLACE",
    )


def detect_multiple_sections(output: str) -> bool:
    """True when output mentions at least two of hook / body / CTA."""
    return len(MULTI_SECTION_MARKERS.all_matches(output)) >= 2


def validate_patch_only_output(output: str, contract: PatchOnlyContract) -> PatchValidationResult:
    """
    Validate model output against a patch-only contract.

    Every [PATCH] block is parsed in document order. A block whose target is
    not in the contract is rejected. When no block is found at all and the
    contract has a single target, the whole output is taken as that target's
    content (was_full_rewrite=True), unless it looks like a multi-section post,
    in which case the output is rejected as a full rewrite.

    Args:
        output: Raw model completion
        contract: Contract the model was given

    Returns:
        PatchValidationResult; valid only with no errors and at least one patch
    """
    patches: list[Patch] = []
    errors: list[str] = []
    rejected: list[str] = []
    found_blocks = False

    for match in PATCH_BLOCK_PATTERN.finditer(output):
        found_blocks = True
        target = match.group(1).upper()
        action = match.group(2).upper()
        content = match.group(3).strip()

        if target not in contract.targets:
            errors.append(
                f"Patch target {target} not allowed by contract. Allowed: {', '.join(contract.targets)}"
            )
            rejected.append(target)
            logger.warning("patch_target_rejected", target=target, allowed=contract.targets)
            continue

        patches.append(Patch(target=target, action=action, content=content))

    was_full_rewrite = not found_blocks and bool(output.strip())

    if was_full_rewrite:
        if len(contract.targets) == 1 and not detect_multiple_sections(output):
            patches.append(
                Patch(target=contract.targets[0], action=contract.default_action, content=output.strip())
            )
            logger.info("patch_fallback_single_target", target=contract.targets[0])
        else:
            errors.append(
                "Output appears to be a full rewrite instead of [PATCH] blocks. Expected patch-only format."
            )
            logger.warning("patch_full_rewrite_detected", targets=contract.targets)

    return PatchValidationResult(
        valid=not errors and bool(patches),
        patches=patches,
        errors=errors,
        was_full_rewrite=was_full_rewrite,
        rejected_targets=rejected,
        raw_output=output,
    )


def apply_patch_action(original: str, content: str, action: PatchAction) -> str:
    if action == "APPEND":
        return f"{original}{PATCH_SEPARATOR}{content}" if original else content
    if action == "PREPEND":
        return f"{content}{PATCH_SEPARATOR}{original}" if original else content
    return content


def _patched_body(canon: Canon, content: str, action: PatchAction) -> tuple[BodyBlock, ...]:
    text = apply_patch_action(canon.body.text, content, action)
    if not text:
        return ()
    locked = canon.body.blocks[0].locked if canon.body.blocks else False
    return (
        BodyBlock(
            id=generate_block_id(text, 0),
            text=text,
            role=detect_block_role(text),
            locked=locked,
        ),
    )


def apply_patches(canon: Canon, patches: Sequence[Patch]) -> Canon:
    """
    Apply patches to a canon.

    Patches are applied in order, each on top of the previous one. REPLACE
    overwrites the section; APPEND/PREPEND join with a blank line. A BODY patch
    collapses the body into a single block. TONE patches carry no text and
    leave the canon content unchanged. Sections not named by any patch are
    left as they are.

    Returns:
        New canon with revision incremented by exactly 1 for the whole call
    """
    updated = canon

    for patch in patches:
        if patch.target == "HOOK":
            updated = updated.model_copy(
                update={"hook": updated.hook.model_copy(
                    update={"text": apply_patch_action(updated.hook.text, patch.content, patch.action)}
                )}
            )
        elif patch.target == "CTA":
            updated = updated.model_copy(
                update={"cta": updated.cta.model_copy(
                    update={"text": apply_patch_action(updated.cta.text, patch.content, patch.action)}
                )}
            )
        elif patch.target == "BODY":
            updated = updated.model_copy(
                update={"body": updated.body.model_copy(
                    update={"blocks": _patched_body(updated, patch.content, patch.action)}
                )}
            )
        elif patch.target != "TONE":
            raise UnknownSectionError(patch.target)

    logger.info(
        "patches_applied",
        draft_id=canon.meta.draft_id,
        targets=[p.target for p in patches],
        revision=canon.meta.revision + 1,
    )

    return updated.model_copy(
        update={"meta": canon.meta.model_copy(
            update={"updated_at": utc_now(), "revision": canon.meta.revision + 1}
        )}
    )


def merge_edit_patch(canon: Canon, new_text: str, target: PatchTarget) -> Canon:
    """Replace one section with new_text (legacy single-text flow, always REPLACE)."""
    return apply_patches(canon, [Patch(target=target, action="REPLACE", content=new_text.strip())])


def reconstruct_text_from_canon(canon: Canon) -> str:
    """Join non-empty hook, body blocks and CTA with blank lines."""
    parts: list[str] = []

    if canon.hook.text.strip():
        parts.append(canon.hook.text.strip())

    body_text = "\n\n".join(b.text.strip() for b in canon.body.blocks if b.text.strip())
    if body_text:
        parts.append(body_text)

    if canon.cta.text.strip():
        parts.append(canon.cta.text.strip())

    return "\n\n".join(parts)


def get_edit_patch_debug_summary(meta: Optional[EditPatchMeta]) -> str:
    if meta is None:
        return "No patch"
    return (
        f"PATCH:{meta.target} | Preserve:{','.join(meta.preserve_sections)} "
        f"| Partial:{str(meta.allow_partial_output).lower()}"
    )


def get_output_contract_debug_summary(contract: Optional[PatchOnlyContract]) -> str:
    if contract is None:
        return "No contract (FULL_ARTICLE mode)"
    return f"PATCH_ONLY: targets=[{','.join(contract.targets)}] action={contract.default_action}"
