"""Canon models: the structured Hook / Body / CTA / Tone view of a draft."""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field


CanonSection = Literal["HOOK", "BODY", "CTA", "TONE"]
BodyBlockRole = Literal["paragraph", "list", "quote", "heading", "other"]
ToneId = Literal["professional", "casual", "friendly", "formal", "neutral", "unknown"]
LockPolicy = Literal["default", "lock_all", "unlock_all", "custom"]

CANON_SECTIONS: tuple[str, ...] = ("HOOK", "BODY", "CTA", "TONE")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BodyBlock(BaseModel):
    """A single block of body content."""

    id: str = Field(
        ...,
        description="Correlation key derived from block content and position (not a content hash guarantee)"
    )

    text: str = Field(..., description="Block content")

    role: BodyBlockRole = Field(default="paragraph", description="Structural role of the block")

    locked: bool = Field(default=False, description="Whether this block must not be changed")

    model_config = {"frozen": True}


class SectionContent(BaseModel):
    """Text of a framing section (hook or CTA) with its lock flag."""

    text: str = Field(default="", description="Section text")

    locked: bool = Field(default=False, description="Whether this section must not be changed")

    model_config = {"frozen": True}


class ToneState(BaseModel):
    """Detected tone label with its lock flag."""

    id: ToneId = Field(default="neutral", description="Detected tone")

    locked: bool = Field(default=False, description="Whether tone must not be changed")

    model_config = {"frozen": True}


class CanonBody(BaseModel):
    """Ordered body blocks."""

    blocks: tuple[BodyBlock, ...] = Field(default=(), description="Body blocks in document order")

    @property
    def text(self) -> str:
        """Body blocks joined by blank lines."""
        return "\n\n".join(b.text for b in self.blocks)

    model_config = {"frozen": True}


class CanonMeta(BaseModel):
    """Bookkeeping for a Canon."""

    draft_id: str = Field(..., description="Draft this canon was extracted from")

    created_at: datetime = Field(default_factory=utc_now, description="When the canon was first extracted")

    updated_at: datetime = Field(default_factory=utc_now, description="Last change (content or locks)")

    revision: int = Field(
        default=1,
        ge=1,
        description="Incremented by exactly 1 on every accepted content mutation"
    )

    model_config = {"frozen": True}


class Canon(BaseModel):
    """Structural snapshot of a draft.

    Canons are immutable. Functions that change one return a new Canon, so
    a caller holding an older snapshot never observes a later edit.
    """

    hook: SectionContent = Field(default_factory=SectionContent, description="Opening / headline")

    cta: SectionContent = Field(default_factory=SectionContent, description="Call-to-action / closing")

    tone: ToneState = Field(default_factory=ToneState, description="Detected tone")

    body: CanonBody = Field(default_factory=CanonBody, description="Body content blocks")

    meta: CanonMeta = Field(..., description="Draft id, timestamps and revision")

    @property
    def is_empty(self) -> bool:
        return not self.hook.text and not self.cta.text and not self.body.blocks

    model_config = {"frozen": True}


class CanonLockState(BaseModel):
    """Flat view of which parts of a Canon are locked."""

    hook_locked: bool
    cta_locked: bool
    tone_locked: bool
    body_locked_blocks: dict[str, bool] = Field(default_factory=dict)


class CanonConstraints(BaseModel):
    """Preservation flags handed to prompt construction."""

    preserve_hook: bool
    preserve_cta: bool
    preserve_tone: bool


class TextChange(BaseModel):
    """Before/after text of a changed section."""

    old_text: str
    new_text: str


class ToneChange(BaseModel):
    """Before/after tone of a changed canon."""

    old_tone: ToneId
    new_tone: ToneId


class BodyChange(BaseModel):
    """Positional block counts for a changed body."""

    added_blocks: int = 0
    removed_blocks: int = 0
    modified_blocks: int = 0


class CanonDiff(BaseModel):
    """Which sections changed between two canon snapshots."""

    changed_sections: list[CanonSection] = Field(default_factory=list)

    hook: Optional[TextChange] = None

    cta: Optional[TextChange] = None

    tone: Optional[ToneChange] = None

    body: Optional[BodyChange] = None

    locked_section_changed: bool = Field(
        default=False,
        description="True if any section that was locked in the previous snapshot changed"
    )

    @property
    def changed(self) -> bool:
        return bool(self.changed_sections)
