"""Edit scope models: what an instruction is allowed to touch."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from editguard.models.canon import CanonSection


EditTarget = Literal["HOOK", "BODY", "CTA", "TONE", "FULL"]
ScopeDecisionSource = Literal["EXPLICIT_INSTRUCTION", "HEURISTIC", "USER_PICKED"]
ScopeConfidence = Literal["HIGH", "MEDIUM", "LOW"]
Language = Literal["vi", "en"]

EditorialOpType = Literal[
    "MICRO_POLISH",
    "FLOW_SMOOTHING",
    "CLARITY_IMPROVE",
    "TRIM",
    "SECTION_REWRITE",
    "BODY_REWRITE",
    "FULL_REWRITE",
]


class EditTargetDetection(BaseModel):
    """Result of reading an edit target out of an instruction."""

    target: Optional[EditTarget] = Field(
        default=None,
        description="Detected target (None only when the instruction is empty)"
    )

    confidence: ScopeConfidence

    reason: str

    source: ScopeDecisionSource

    matched_patterns: list[str] = Field(default_factory=list, description="Patterns that decided the target")

    model_config = {"frozen": True}


class EditScopeContract(BaseModel):
    """What will be edited, and what must stay frozen."""

    target: EditTarget = Field(..., description="Section the edit may change")

    locked_sections: list[CanonSection] = Field(
        default_factory=list,
        description="Sections that must not change; never includes the target"
    )

    allowed_ops: list[EditorialOpType] = Field(default_factory=list)

    source: ScopeDecisionSource

    confidence: ScopeConfidence

    reason: str = ""

    model_config = {"frozen": True}


class ScopeGate(BaseModel):
    """Whether the user has to pick a scope before the model is called."""

    requires_user_pick: bool

    suggested: Optional[EditScopeContract] = Field(
        default=None,
        description="Contract that would be used if the user does not pick"
    )

    model_config = {"frozen": True}
