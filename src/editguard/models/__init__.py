"""Pydantic data models for editguard."""

from editguard.models.anchors import AnchoredContent, AnchorValidationResult
from editguard.models.canon import (
    BodyBlock,
    Canon,
    CanonBody,
    CanonDiff,
    CanonMeta,
    SectionContent,
    ToneState,
)
from editguard.models.diff import ParagraphDiffAnalysis, RewriteDiffResult
from editguard.models.patch import EditPatchMeta, Patch, PatchOnlyContract, PatchValidationResult
from editguard.models.result import EditPlan, GuardResult
from editguard.models.scope import EditScopeContract, EditTargetDetection, ScopeGate

__all__ = [
    "AnchoredContent",
    "AnchorValidationResult",
    "BodyBlock",
    "Canon",
    "CanonBody",
    "CanonDiff",
    "CanonMeta",
    "EditPatchMeta",
    "EditPlan",
    "EditScopeContract",
    "EditTargetDetection",
    "GuardResult",
    "ParagraphDiffAnalysis",
    "Patch",
    "PatchOnlyContract",
    "PatchValidationResult",
    "RewriteDiffResult",
    "ScopeGate",
    "SectionContent",
    "ToneState",
]
