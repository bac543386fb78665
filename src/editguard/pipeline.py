"""Edit pipeline: plan an edit before the model call, judge the completion after.

    plan = plan_edit(canon, "viết lại hook cho mạnh hơn")
    # ... send plan.source_text (+ plan.output_contract) to the model ...
    result = evaluate_completion(plan, completion)
    if result.validated:
        canon = result.merged_canon

Scoped targets (HOOK, BODY, CTA) run in PATCH mode against a patch-only output
contract. FULL and TONE run in REWRITE mode, guarded by paragraph anchors and
the rewrite diff guard.
"""

import threading
from typing import Optional

from editguard.canon.differ import compute_canon_diff, diff_canons
from editguard.canon.extractor import extract_canon_from_draft
from editguard.canon.locks import (
    apply_canon_locks,
    get_locked_sections,
    reapply_locked_sections,
    update_canon_from_sections,
    update_canon_from_text,
    update_section_lock,
)
from editguard.exceptions import EditInProgressError, NoPendingEditError
from editguard.guards.anchors import (
    get_text_before_anchors,
    inject_anchors,
    replace_anchored_paragraphs,
    should_apply_anchors,
    split_all_paragraphs,
    validate_anchors,
)
from editguard.guards.diff_guard import validate_rewrite_diff
from editguard.models.canon import Canon, CanonSection, LockPolicy
from editguard.models.result import EditPlan, GuardResult
from editguard.models.scope import EditTarget, Language
from editguard.patch.executor import (
    apply_patches,
    build_edit_patch_meta,
    build_output_contract_from_meta,
    reconstruct_text_from_canon,
    validate_patch_only_output,
)
from editguard.scope.resolver import build_edit_scope_contract
from editguard.utils.logging import get_logger


logger = get_logger(__name__)

PATCH_TARGETS = frozenset({"HOOK", "BODY", "CTA"})


def plan_edit(
    canon: Canon,
    instruction: str,
    language: Language = "vi",
    user_picked_target: Optional[EditTarget] = None,
) -> Optional[EditPlan]:
    """
    Decide scope and output mode for one edit.

    Args:
        canon: Current canon of the draft
        instruction: User instruction
        language: Instruction language
        user_picked_target: Scope the user chose after a scope gate, if any

    Returns:
        EditPlan, or None for a blank instruction
    """
    if not instruction.strip():
        logger.info("edit_plan_skipped", draft_id=canon.meta.draft_id, reason="empty_instruction")
        return None

    scope = build_edit_scope_contract(
        instruction,
        lang=language,
        active_canon_locks=get_locked_sections(canon),
        has_active_canon=not canon.is_empty,
        user_picked_target=user_picked_target,
    )

    if scope.target in PATCH_TARGETS:
        meta = build_edit_patch_meta(scope)
        plan = EditPlan(
            base_canon=canon,
            instruction=instruction,
            language=language,
            scope=scope,
            mode="PATCH",
            patch_meta=meta,
            output_contract=build_output_contract_from_meta(meta),
            source_text=reconstruct_text_from_canon(canon),
        )
    else:
        source = reconstruct_text_from_canon(canon)
        anchors = inject_anchors(source) if should_apply_anchors(source) else None
        plan = EditPlan(
            base_canon=canon,
            instruction=instruction,
            language=language,
            scope=scope,
            mode="REWRITE",
            source_text=anchors.anchored_text if anchors else source,
            anchors=anchors,
        )

    logger.info(
        "edit_plan_created",
        draft_id=canon.meta.draft_id,
        target=scope.target,
        mode=plan.mode,
        anchored=plan.anchors is not None,
        locked_sections=scope.locked_sections,
    )
    return plan


def _rejected(plan: EditPlan, result: GuardResult) -> GuardResult:
    logger.warning(
        "completion_rejected",
        draft_id=plan.base_canon.meta.draft_id,
        reason_code=result.reason_code,
        sub_reason=result.sub_reason,
        retryable=result.retryable,
    )
    return result


def _accepted(plan: EditPlan, result: GuardResult) -> GuardResult:
    logger.info(
        "completion_accepted",
        draft_id=plan.base_canon.meta.draft_id,
        mode=plan.mode,
        changed_sections=result.canon_diff.changed_sections if result.canon_diff else [],
        locks_reapplied=result.locks_reapplied,
        was_full_rewrite=result.was_full_rewrite,
    )
    return result


def _evaluate_patch(plan: EditPlan, completion: str) -> GuardResult:
    validation = validate_patch_only_output(completion, plan.output_contract)

    if validation.rejected_targets:
        return _rejected(plan, GuardResult.rejected(
            "PATCH_TARGET_NOT_ALLOWED",
            rejected_targets=validation.rejected_targets,
            errors=validation.errors,
        ))

    if not validation.valid:
        return _rejected(plan, GuardResult.rejected("FULL_REWRITE_DETECTED", errors=validation.errors))

    merged = apply_patches(plan.base_canon, validation.patches)
    return _accepted(plan, GuardResult(
        validated=True,
        merged_canon=merged,
        merged_text=reconstruct_text_from_canon(merged),
        canon_diff=diff_canons(plan.base_canon, merged),
        was_full_rewrite=validation.was_full_rewrite,
    ))


def _section_paragraphs(canon: Canon) -> list[tuple[CanonSection, str]]:
    """Paragraphs of reconstruct_text_from_canon(canon), each tagged with its section."""
    parts: list[tuple[CanonSection, str]] = [("HOOK", canon.hook.text)]
    parts.extend(("BODY", block.text) for block in canon.body.blocks)
    parts.append(("CTA", canon.cta.text))
    return [(section, paragraph) for section, text in parts for paragraph in split_all_paragraphs(text)]


def _merge_anchored_rewrite(base: Canon, completion: str) -> dict[str, str]:
    """
    Put each rewritten paragraph back into the section its source paragraph came from.

    Paragraphs too short to be anchored are kept from the base. Text outside
    the anchored paragraphs is dropped.
    """
    layout = _section_paragraphs(base)
    rewritten = replace_anchored_paragraphs([paragraph for _, paragraph in layout], completion)

    sections: dict[str, list[str]] = {"HOOK": [], "BODY": [], "CTA": []}
    for (section, _), text in zip(layout, rewritten):
        if text.strip():
            sections[section].append(text.strip())

    return {section: "\n\n".join(paragraphs) for section, paragraphs in sections.items()}


def _merge_unanchored_rewrite(base: Canon, candidate: str) -> tuple[Canon, bool]:
    drift = compute_canon_diff(base, candidate)
    if drift.locked_section_changed and (
        ("HOOK" in drift.changed_sections and base.hook.locked)
        or ("CTA" in drift.changed_sections and base.cta.locked)
    ):
        return update_canon_from_text(base, reapply_locked_sections(base, candidate)), True
    return update_canon_from_text(base, candidate), False


def _evaluate_rewrite(plan: EditPlan, completion: str) -> GuardResult:
    base = plan.base_canon
    diagnostics: dict = {}

    if plan.anchors is None:
        merged, locks_reapplied = _merge_unanchored_rewrite(base, completion.strip())
    else:
        anchor_result = validate_anchors(completion, plan.anchors.anchor_ids)
        if not anchor_result.valid:
            return _rejected(plan, GuardResult.rejected(
                "REWRITE_ANCHOR_MISMATCH",
                missing=anchor_result.missing,
                extra=anchor_result.extra,
                order_preserved=anchor_result.order_preserved,
                error=anchor_result.error,
            ))

        diff_result = validate_rewrite_diff(plan.anchors.anchored_text, completion)
        if not diff_result.ok:
            return _rejected(plan, GuardResult.rejected(
                "REWRITE_DIFF_EXCEEDED",
                sub_reason=diff_result.reason,
                details=diff_result.details,
            ))

        preamble = get_text_before_anchors(completion)
        if preamble:
            diagnostics["dropped_preamble"] = preamble
            logger.info("rewrite_preamble_dropped", draft_id=base.meta.draft_id, chars=len(preamble))

        sections = _merge_anchored_rewrite(base, completion)
        merged = update_canon_from_sections(base, sections["HOOK"], sections["BODY"], sections["CTA"])

        drift = diff_canons(base, merged)
        locks_reapplied = False
        if base.hook.locked and "HOOK" in drift.changed_sections:
            sections["HOOK"] = base.hook.text
            locks_reapplied = True
        if base.cta.locked and "CTA" in drift.changed_sections:
            sections["CTA"] = base.cta.text
            locks_reapplied = True
        if locks_reapplied:
            merged = update_canon_from_sections(base, sections["HOOK"], sections["BODY"], sections["CTA"])

    if locks_reapplied:
        logger.info("locked_sections_reapplied", draft_id=base.meta.draft_id)

    return _accepted(plan, GuardResult(
        validated=True,
        merged_canon=merged,
        merged_text=reconstruct_text_from_canon(merged),
        canon_diff=diff_canons(base, merged),
        locks_reapplied=locks_reapplied,
        diagnostics=diagnostics,
    ))



def evaluate_completion(plan: EditPlan, completion: str) -> GuardResult:
    """
    Judge a model completion against its plan and merge it when it passes.

    Guards never raise for a misbehaving completion; every outcome is a
    GuardResult. In REWRITE mode the anchor check always runs before the diff
    guard, and locked hook/CTA text is restored locally instead of rejecting.

    Args:
        plan: Plan returned by plan_edit for this edit
        completion: Raw model output

    Returns:
        GuardResult with merged_canon set when validated
    """
    if not completion.strip():
        return _rejected(plan, GuardResult.rejected("EMPTY_COMPLETION"))

    if plan.mode == "PATCH":
        return _evaluate_patch(plan, completion)
    return _evaluate_rewrite(plan, completion)


class EditSession:
    """
    Owns the canon of one draft across edit round-trips.

    Mutations are serialised with a lock and at most one edit may be pending
    at a time. The canon only changes when a completion is validated or a
    lock is changed explicitly.

    Example:
        >>> session = EditSession.from_draft(text, "draft-1")
        >>> plan = session.begin_edit("rút gọn thân bài")
        >>> result = session.submit_completion(model_output)
    """

    def __init__(self, canon: Canon, language: Language = "vi"):
        self._canon = canon
        self._language = language
        self._pending: Optional[EditPlan] = None
        self._lock = threading.Lock()

    @classmethod
    def from_draft(
        cls,
        text: str,
        draft_id: str,
        policy: LockPolicy = "default",
        language: Language = "vi",
    ) -> "EditSession":
        canon = apply_canon_locks(extract_canon_from_draft(text, draft_id), policy)
        return cls(canon, language=language)

    @property
    def canon(self) -> Canon:
        return self._canon

    @property
    def pending(self) -> Optional[EditPlan]:
        return self._pending

    @property
    def text(self) -> str:
        return reconstruct_text_from_canon(self._canon)

    def begin_edit(self, instruction: str, user_picked_target: Optional[EditTarget] = None) -> Optional[EditPlan]:
        """
        Plan an edit and hold it as pending.

        Returns:
            The plan, or None for a blank instruction (nothing is held)

        Raises:
            EditInProgressError: If another edit is still pending
        """
        with self._lock:
            if self._pending is not None:
                raise EditInProgressError(self._canon.meta.draft_id)

            plan = plan_edit(self._canon, instruction, self._language, user_picked_target)
            self._pending = plan
            return plan

    def submit_completion(self, completion: str) -> GuardResult:
        """
        Evaluate the completion for the pending edit and apply it when validated.

        The pending edit is cleared whatever the verdict; a retry starts a new
        edit.

        Raises:
            NoPendingEditError: If no edit was started
        """
        with self._lock:
            if self._pending is None:
                raise NoPendingEditError(self._canon.meta.draft_id)

            plan = self._pending
            self._pending = None

            result = evaluate_completion(plan, completion)
            if result.validated and result.merged_canon is not None:
                self._canon = result.merged_canon
            return result

    def cancel_edit(self) -> None:
        with self._lock:
            self._pending = None

    def set_lock(self, section: CanonSection, locked: bool) -> Canon:
        with self._lock:
            self._canon = update_section_lock(self._canon, section, locked)
            return self._canon

    def apply_lock_policy(self, policy: LockPolicy) -> Canon:
        with self._lock:
            self._canon = apply_canon_locks(self._canon, policy)
            return self._canon
