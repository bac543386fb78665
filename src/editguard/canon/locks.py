"""Lock management for canon sections.

Product rule behind the default policy: the body is mutable, the framing
(hook, CTA, tone) is protected.
"""

from editguard.canon.extractor import extract_canon_from_draft, extract_canon_from_sections
from editguard.exceptions import UnknownSectionError
from editguard.models.canon import (
    CANON_SECTIONS,
    Canon,
    CanonConstraints,
    CanonLockState,
    CanonSection,
    LockPolicy,
    utc_now,
)
from editguard.utils.logging import get_logger


logger = get_logger(__name__)


def _with_locks(canon: Canon, hook: bool, cta: bool, tone: bool, body: bool) -> Canon:
    return canon.model_copy(
        update={
            "hook": canon.hook.model_copy(update={"locked": hook}),
            "cta": canon.cta.model_copy(update={"locked": cta}),
            "tone": canon.tone.model_copy(update={"locked": tone}),
            "body": canon.body.model_copy(
                update={"blocks": tuple(b.model_copy(update={"locked": body}) for b in canon.body.blocks)}
            ),
            "meta": canon.meta.model_copy(update={"updated_at": utc_now()}),
        }
    )


def apply_canon_locks(canon: Canon, policy: LockPolicy = "default") -> Canon:
    """
    Apply a lock policy to a canon.

    Args:
        canon: Current canon
        policy: 'default' (lock hook/CTA/tone, unlock body), 'lock_all',
            'unlock_all' or 'custom' (keep current flags)

    Returns:
        New canon with the policy applied. Revision is unchanged; lock changes
        are not content mutations.
    """
    if policy == "default":
        updated = _with_locks(canon, hook=True, cta=True, tone=True, body=False)
    elif policy == "lock_all":
        updated = _with_locks(canon, hook=True, cta=True, tone=True, body=True)
    elif policy == "unlock_all":
        updated = _with_locks(canon, hook=False, cta=False, tone=False, body=False)
    elif policy == "custom":
        updated = canon.model_copy(update={"meta": canon.meta.model_copy(update={"updated_at": utc_now()})})
    else:
        raise ValueError(f"Unknown lock policy: {policy!r}")

    logger.info("canon_locks_applied", draft_id=canon.meta.draft_id, policy=policy)
    return updated


def update_section_lock(canon: Canon, section: CanonSection, locked: bool) -> Canon:
    """
    Flip the lock of exactly one section.

    For BODY every block is set to the new state.

    Raises:
        UnknownSectionError: If section is not HOOK, BODY, CTA or TONE
    """
    if section not in CANON_SECTIONS:
        raise UnknownSectionError(section)

    update: dict = {"meta": canon.meta.model_copy(update={"updated_at": utc_now()})}
    if section == "HOOK":
        update["hook"] = canon.hook.model_copy(update={"locked": locked})
    elif section == "CTA":
        update["cta"] = canon.cta.model_copy(update={"locked": locked})
    elif section == "TONE":
        update["tone"] = canon.tone.model_copy(update={"locked": locked})
    else:
        update["body"] = canon.body.model_copy(
            update={"blocks": tuple(b.model_copy(update={"locked": locked}) for b in canon.body.blocks)}
        )

    logger.info("section_lock_updated", draft_id=canon.meta.draft_id, section=section, locked=locked)
    return canon.model_copy(update=update)


def reapply_locked_sections(canon: Canon, candidate_text: str) -> str:
    """
    Restore locked hook/CTA text into a candidate draft without a model call.

    The candidate is re-extracted; hook and CTA come from the original canon
    where locked (and non-empty), otherwise from the candidate. The body always
    comes from the candidate. Non-empty parts are joined with a blank line.

    Args:
        canon: Canon holding the locked sections
        candidate_text: Model output that may have changed locked sections

    Returns:
        Merged draft text
    """
    candidate = extract_canon_from_draft(candidate_text, canon.meta.draft_id)

    parts: list[str] = []

    if canon.hook.locked and canon.hook.text:
        parts.append(canon.hook.text)
    elif candidate.hook.text:
        parts.append(candidate.hook.text)

    body_text = candidate.body.text
    if body_text:
        parts.append(body_text)

    if canon.cta.locked and canon.cta.text:
        parts.append(canon.cta.text)
    elif candidate.cta.text:
        parts.append(candidate.cta.text)

    return "\n\n".join(p for p in parts if p.strip())


def update_canon_from_text(canon: Canon, text: str) -> Canon:
    """
    Replace canon content with an accepted draft text.

    Section lock flags are kept. Block locks are carried over by block id, and
    by position when the id changed. Block ids are a best-effort correlation
    key, so a heavily edited block can inherit the wrong lock or none.

    Returns:
        New canon with revision incremented by exactly 1
    """
    return _carry_locks(canon, extract_canon_from_draft(text, canon.meta.draft_id))


def update_canon_from_sections(canon: Canon, hook: str, body: str, cta: str) -> Canon:
    """
    Replace canon content with text already split into hook, body and CTA.

    Used for anchored rewrites, where every paragraph keeps its source section
    and no re-detection is wanted. Locks carry over as in
    update_canon_from_text.

    Returns:
        New canon with revision incremented by exactly 1
    """
    return _carry_locks(canon, extract_canon_from_sections(hook, body, cta, canon.meta.draft_id))


def _carry_locks(canon: Canon, fresh: Canon) -> Canon:
    locks_by_id = {b.id: b.locked for b in canon.body.blocks}
    previous = canon.body.blocks

    blocks = []
    for index, block in enumerate(fresh.body.blocks):
        if block.id in locks_by_id:
            locked = locks_by_id[block.id]
        elif index < len(previous):
            locked = previous[index].locked
        else:
            locked = False
        blocks.append(block.model_copy(update={"locked": locked}))

    return canon.model_copy(
        update={
            "hook": fresh.hook.model_copy(update={"locked": canon.hook.locked}),
            "cta": fresh.cta.model_copy(update={"locked": canon.cta.locked}),
            "tone": fresh.tone.model_copy(update={"locked": canon.tone.locked}),
            "body": fresh.body.model_copy(update={"blocks": tuple(blocks)}),
            "meta": canon.meta.model_copy(
                update={"updated_at": utc_now(), "revision": canon.meta.revision + 1}
            ),
        }
    )


def get_canon_lock_state(canon: Canon) -> CanonLockState:
    return CanonLockState(
        hook_locked=canon.hook.locked,
        cta_locked=canon.cta.locked,
        tone_locked=canon.tone.locked,
        body_locked_blocks={b.id: b.locked for b in canon.body.blocks},
    )


def get_canon_constraints(canon: Canon) -> CanonConstraints:
    return CanonConstraints(
        preserve_hook=canon.hook.locked,
        preserve_cta=canon.cta.locked,
        preserve_tone=canon.tone.locked,
    )


def get_locked_sections(canon: Canon) -> list[CanonSection]:
    """
    Sections currently locked, in HOOK, BODY, CTA, TONE order.

    BODY counts only when it has blocks and every one of them is locked.
    """
    sections: list[CanonSection] = []
    if canon.hook.locked:
        sections.append("HOOK")
    if canon.body.blocks and all(b.locked for b in canon.body.blocks):
        sections.append("BODY")
    if canon.cta.locked:
        sections.append("CTA")
    if canon.tone.locked:
        sections.append("TONE")
    return sections
