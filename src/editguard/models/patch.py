"""Patch models for scoped (single-section) edits."""

from typing import Literal

from pydantic import BaseModel, Field

from editguard.models.canon import CanonSection


PatchTarget = Literal["HOOK", "BODY", "CTA", "TONE"]
PatchAction = Literal["REPLACE", "APPEND", "PREPEND"]
EditPatchMode = Literal["PATCH", "FULL"]


class EditPatchMeta(BaseModel):
    """Patch metadata injected into the outbound model request."""

    target: PatchTarget

    mode: EditPatchMode = "PATCH"

    preserve_sections: list[CanonSection] = Field(default_factory=list)

    allow_partial_output: bool = True

    model_config = {"frozen": True}


class PatchOnlyContract(BaseModel):
    """Output contract: the model may only emit [PATCH] blocks for these targets."""

    mode: Literal["PATCH_ONLY"] = "PATCH_ONLY"

    targets: list[PatchTarget] = Field(..., min_length=1)

    preserve_other_sections: Literal[True] = True

    default_action: PatchAction = "REPLACE"

    model_config = {"frozen": True}


class Patch(BaseModel):
    """A single-target, single-action content change."""

    target: PatchTarget

    action: PatchAction

    content: str

    model_config = {"frozen": True}


class PatchValidationResult(BaseModel):
    """Outcome of checking model output against a PatchOnlyContract."""

    valid: bool

    patches: list[Patch] = Field(default_factory=list)

    errors: list[str] = Field(default_factory=list)

    was_full_rewrite: bool = Field(
        default=False,
        description="No [PATCH] blocks were found; output was taken (or rejected) as a whole"
    )

    rejected_targets: list[str] = Field(
        default_factory=list,
        description="Targets named by [PATCH] blocks that the contract does not allow"
    )

    raw_output: str = ""
