"""
WebSocket Message Protocol Models

Server -> client messages for the deck generator. Each message type maps
directly to one frontend UI component: chat bubble, progress bar, slide grid
or error banner.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from src.models.deck import GenerationOutcome


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 with 'Z' suffix for UTC.

    Frontend JavaScript requires 'Z' suffix to correctly parse as UTC.
    """
    if dt.tzinfo is None:
        return dt.isoformat() + 'Z'
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def _message_id() -> str:
    return f"msg_{uuid.uuid4().hex[:8]}"


class MessageType(str, Enum):
    """Enum for all server message types"""
    CHAT_MESSAGE = "chat_message"
    STATUS_UPDATE = "status_update"
    DECK_UPDATE = "deck_update"
    ERROR = "error"


class StatusLevel(str, Enum):
    """Status levels for status updates"""
    IDLE = "idle"
    PLANNING = "planning"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class ChatPayload(BaseModel):
    """Payload for chat messages displayed in the chat window"""
    text: str = Field(..., description="Message text")
    format: Literal["markdown", "plain"] = Field("markdown", description="Text format type")


class StatusPayload(BaseModel):
    """Payload for progress updates"""
    status: StatusLevel = Field(..., description="Current status level")
    text: str = Field(..., description="Status message text")
    completed: Optional[int] = Field(None, description="Slides finished so far")
    total: Optional[int] = Field(None, description="Slides requested")
    progress: Optional[int] = Field(None, description="Progress percentage (0-100)")


class SlidePayload(BaseModel):
    """One slide of the image grid"""
    position: int = Field(..., description="0 = cover")
    src: str = Field(..., description="Image as a data URI")
    alt: str = Field(..., description="Prompt the image was rendered from")


class DeckPayload(BaseModel):
    """Payload for a finished deck"""
    product_name: str
    audience: str = ""
    slides: List[SlidePayload]
    total_requested: int
    fallback_notice: Optional[str] = Field(None, description="Informational banner text")
    partial_failure_count: int = 0
    first_failure_message: Optional[str] = None
    warning: Optional[str] = Field(None, description="Dismissible warning for partial failures")


class ErrorPayload(BaseModel):
    """Payload for error messages"""
    code: str = Field(..., description="Machine readable error code")
    message: str = Field(..., description="User facing message")


class BaseMessage(BaseModel):
    """Base message envelope for all message types"""

    model_config = ConfigDict(use_enum_values=True)

    message_id: str = Field(default_factory=_message_id)
    session_id: str = Field(..., description="Session identifier")
    timestamp: datetime = Field(default_factory=utc_now, description="Message timestamp (UTC)")
    type: MessageType
    role: Literal["user", "assistant"] = "assistant"

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class ChatMessage(BaseMessage):
    type: Literal[MessageType.CHAT_MESSAGE] = MessageType.CHAT_MESSAGE
    payload: ChatPayload


class StatusUpdate(BaseMessage):
    type: Literal[MessageType.STATUS_UPDATE] = MessageType.STATUS_UPDATE
    payload: StatusPayload


class DeckUpdate(BaseMessage):
    type: Literal[MessageType.DECK_UPDATE] = MessageType.DECK_UPDATE
    payload: DeckPayload


class ErrorMessage(BaseMessage):
    type: Literal[MessageType.ERROR] = MessageType.ERROR
    payload: ErrorPayload


StreamlinedMessage = Union[ChatMessage, StatusUpdate, DeckUpdate, ErrorMessage]

PARTIAL_FAILURE_WARNING = "Some slides could not be generated. Displayed slides are ready to download."


def create_chat_message(
    session_id: str,
    text: str,
    role: Literal["user", "assistant"] = "assistant",
    format: Literal["markdown", "plain"] = "markdown"
) -> ChatMessage:
    """Helper function to create a chat message"""
    return ChatMessage(
        session_id=session_id,
        role=role,
        payload=ChatPayload(text=text, format=format)
    )


def create_status_update(
    session_id: str,
    status: StatusLevel,
    text: str,
    completed: Optional[int] = None,
    total: Optional[int] = None
) -> StatusUpdate:
    """Helper function to create a status update; progress is derived from completed/total."""
    progress = None
    if completed is not None and total:
        progress = round(completed * 100 / total)
    return StatusUpdate(
        session_id=session_id,
        payload=StatusPayload(
            status=status,
            text=text,
            completed=completed,
            total=total,
            progress=progress
        )
    )


def build_deck_payload(product_name: str, audience: str, outcome: GenerationOutcome) -> DeckPayload:
    """Convert an outcome into the grid payload shared by HTTP and WebSocket."""
    return DeckPayload(
        product_name=product_name,
        audience=audience,
        slides=[
            SlidePayload(position=slide.position, src=slide.data_uri, alt=slide.alt_text)
            for slide in outcome.deck
        ],
        total_requested=outcome.total_requested,
        fallback_notice=outcome.fallback_notice,
        partial_failure_count=outcome.partial_failure_count,
        first_failure_message=outcome.first_failure_message,
        warning=None if outcome.is_complete else PARTIAL_FAILURE_WARNING
    )


def create_deck_update(
    session_id: str,
    product_name: str,
    audience: str,
    outcome: GenerationOutcome
) -> DeckUpdate:
    """Helper function to create a deck update"""
    return DeckUpdate(
        session_id=session_id,
        payload=build_deck_payload(product_name, audience, outcome)
    )


def create_error_message(session_id: str, code: str, message: str) -> ErrorMessage:
    """Helper function to create an error message"""
    return ErrorMessage(
        session_id=session_id,
        payload=ErrorPayload(code=code, message=message)
    )
