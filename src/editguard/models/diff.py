"""Diff guard models: per-paragraph rewrite intensity."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


DiffFailReason = Literal[
    "REWRITE_DIFF_EXCEEDED",
    "LENGTH_EXCEEDED",
    "SENTENCE_REPLACEMENT_EXCEEDED",
    "CTA_ADDED",
    "KEYWORDS_LOST",
]


class ParagraphDiffAnalysis(BaseModel):
    """Quantitative comparison of one anchored paragraph."""

    anchor_id: str

    original: str

    rewritten: str

    length_ratio: float = Field(..., description="len(rewritten) / len(original)")

    sentence_replacement_ratio: float = Field(..., ge=0.0, le=1.0)

    cta_added: bool

    keywords_preserved_ratio: float = Field(..., ge=0.0, le=1.0)

    passed: bool

    fail_reason: Optional[DiffFailReason] = None

    fail_detail: Optional[str] = Field(default=None, description="Human-readable explanation of the failure")

    model_config = {"frozen": True}


class RewriteDiffResult(BaseModel):
    """Overall diff guard verdict; fails on the first failing paragraph."""

    ok: bool

    reason: Optional[DiffFailReason] = None

    details: Optional[str] = None

    paragraph_analysis: list[ParagraphDiffAnalysis] = Field(default_factory=list)

    model_config = {"frozen": True}
