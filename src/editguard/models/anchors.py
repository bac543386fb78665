"""Anchor models for full-document rewrites."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class AnchoredContent(BaseModel):
    """Source text with <<Pn>> anchors injected before each paragraph."""

    anchored_text: str

    anchor_ids: list[str] = Field(default_factory=list, description="Anchors in order, no duplicates")

    paragraph_count: int = 0

    model_config = {"frozen": True}


class AnchorValidationResult(BaseModel):
    """Structural comparison of expected anchors against model output."""

    valid: bool

    expected: list[str] = Field(default_factory=list)

    found: list[str] = Field(default_factory=list, description="Anchors in output order, duplicates kept")

    missing: list[str] = Field(default_factory=list)

    extra: list[str] = Field(default_factory=list)

    order_preserved: bool = True

    error: Optional[str] = None

    @model_validator(mode="after")
    def _valid_matches_checks(self) -> "AnchorValidationResult":
        if self.valid != (not self.missing and not self.extra and self.order_preserved):
            raise ValueError("valid must equal (no missing, no extra, order preserved)")
        return self

    model_config = {"frozen": True}
