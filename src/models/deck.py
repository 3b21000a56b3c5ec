"""
Deck Models for the Slide Deck Generator

Immutable Pydantic models that flow through the generation pipeline:
DeckRequest -> PlanResult (SlidePrompts) -> SlideArtifacts -> GenerationOutcome.
"""

import base64
import uuid
from enum import Enum
from typing import Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

CacheKey = Tuple[str, str]


class DeckRequest(BaseModel):
    """A (product, audience) pair asking for one deck."""

    model_config = ConfigDict(frozen=True)

    product_name: str = Field(..., description="Company or product the deck is about")
    audience: str = Field("", description="Target audience, may be empty")

    @field_validator("product_name")
    @classmethod
    def _require_product(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please provide a company or product name.")
        return value

    @field_validator("audience", mode="before")
    @classmethod
    def _trim_audience(cls, value: Optional[str]) -> str:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @property
    def cache_key(self) -> CacheKey:
        """Request identity: case-insensitive (product, audience)."""
        return (self.product_name.lower(), self.audience.lower())


class SlidePrompt(BaseModel):
    """One rendered image instruction at a fixed deck position."""

    model_config = ConfigDict(frozen=True)

    position: int = Field(..., ge=0, description="0 = cover, 1..N = topic slides")
    text: str = Field(..., description="Full instruction sent to the image model")
    subject: str = Field("", description="Topic subject, empty for the cover")

    @property
    def is_cover(self) -> bool:
        return self.position == 0


class PlanResult(BaseModel):
    """Ordered prompts for one deck, cover first."""

    model_config = ConfigDict(frozen=True)

    prompts: Tuple[SlidePrompt, ...]
    used_fallback: bool = False
    fallback_reason: Optional[str] = None

    @property
    def subjects(self) -> Tuple[str, ...]:
        return tuple(p.subject for p in self.prompts if not p.is_cover)


class SlideArtifact(BaseModel):
    """A rendered slide image."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    position: int = Field(..., ge=0)
    image_bytes: bytes = Field(..., repr=False)
    mime_type: str = "image/jpeg"
    alt_text: str = Field(..., description="Prompt text the image was rendered from")

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.image_bytes).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class IssueKind(str, Enum):
    """Non-fatal issues recorded on an outcome"""
    FALLBACK_TOPICS = "fallback_topics"
    SLIDE_FAILED = "slide_failed"


class GenerationIssue(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    kind: IssueKind
    message: str
    position: Optional[int] = None


class GenerationOutcome(BaseModel):
    """
    Result of one generate call.

    The deck may be shorter than total_requested when some positions failed;
    surviving slides stay in ascending position order.
    """

    model_config = ConfigDict(frozen=True)

    deck: Tuple[SlideArtifact, ...]
    total_requested: int = Field(..., ge=0)
    fallback_notice: Optional[str] = None
    partial_failure_count: int = Field(0, ge=0)
    first_failure_message: Optional[str] = None
    issues: Tuple[GenerationIssue, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.partial_failure_count == 0

    @property
    def positions(self) -> Tuple[int, ...]:
        return tuple(slide.position for slide in self.deck)


class ChatTurn(BaseModel):
    """A single line of the assistant transcript."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"turn_{uuid.uuid4().hex[:8]}")
    role: Literal["user", "model"]
    text: str
