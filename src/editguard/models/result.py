"""Pipeline boundary models: edit plans and guard verdicts."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from editguard.models.anchors import AnchoredContent
from editguard.models.canon import Canon, CanonDiff
from editguard.models.patch import EditPatchMeta, PatchOnlyContract
from editguard.models.scope import EditScopeContract, Language


ReasonCode = Literal[
    "REWRITE_ANCHOR_MISMATCH",
    "REWRITE_DIFF_EXCEEDED",
    "PATCH_TARGET_NOT_ALLOWED",
    "FULL_REWRITE_DETECTED",
    "EMPTY_COMPLETION",
]

ViolationKind = Literal["STRUCTURAL", "INTENSITY", "SCOPE", "DEGENERATE"]

EditMode = Literal["PATCH", "REWRITE"]

# Reason code -> violation family
VIOLATION_KINDS: dict[str, ViolationKind] = {
    "REWRITE_ANCHOR_MISMATCH": "STRUCTURAL",
    "REWRITE_DIFF_EXCEEDED": "INTENSITY",
    "PATCH_TARGET_NOT_ALLOWED": "SCOPE",
    "FULL_REWRITE_DETECTED": "SCOPE",
    "EMPTY_COMPLETION": "DEGENERATE",
}

# Scope violations need a retry or an explicit user override; the rest can simply be retried
RETRYABLE_KINDS: frozenset[str] = frozenset({"STRUCTURAL", "INTENSITY", "DEGENERATE"})


class EditPlan(BaseModel):
    """Everything decided before the model call for one edit round-trip."""

    base_canon: Canon

    instruction: str

    language: Language = "vi"

    scope: EditScopeContract

    mode: EditMode

    patch_meta: Optional[EditPatchMeta] = None

    output_contract: Optional[PatchOnlyContract] = Field(
        default=None,
        description="Present in PATCH mode; None for rewrites"
    )

    source_text: str = Field(..., description="Draft text the model sees (anchored in REWRITE mode when possible)")

    anchors: Optional[AnchoredContent] = None

    model_config = {"frozen": True}


class GuardResult(BaseModel):
    """Verdict on one model completion."""

    validated: bool

    merged_canon: Optional[Canon] = None

    merged_text: Optional[str] = None

    reason_code: Optional[ReasonCode] = None

    sub_reason: Optional[str] = Field(
        default=None,
        description="Diff guard sub-reason (LENGTH_EXCEEDED, ...) for REWRITE_DIFF_EXCEEDED"
    )

    violation: Optional[ViolationKind] = None

    retryable: bool = False

    canon_diff: Optional[CanonDiff] = Field(default=None, description="Drift of the merged canon from the base")

    locks_reapplied: bool = Field(default=False, description="Locked hook/CTA text was restored locally")

    was_full_rewrite: bool = False

    diagnostics: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def rejected(
        cls,
        reason_code: ReasonCode,
        sub_reason: Optional[str] = None,
        **diagnostics: Any,
    ) -> "GuardResult":
        kind = VIOLATION_KINDS[reason_code]
        return cls(
            validated=False,
            reason_code=reason_code,
            sub_reason=sub_reason,
            violation=kind,
            retryable=kind in RETRYABLE_KINDS,
            diagnostics=diagnostics,
        )

    model_config = {"frozen": True}
