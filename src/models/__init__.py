"""
Models Package for the Slide Deck Generator

Contains all Pydantic models for deck requests, plans, outcomes and
WebSocket messages.
"""

from .deck import (
    CacheKey,
    DeckRequest,
    SlidePrompt,
    PlanResult,
    SlideArtifact,
    IssueKind,
    GenerationIssue,
    GenerationOutcome,
    ChatTurn
)

from .websocket_messages import (
    MessageType,
    StatusLevel,
    ChatMessage,
    StatusUpdate,
    DeckUpdate,
    ErrorMessage,
    DeckPayload,
    SlidePayload
)

__all__ = [
    # Deck pipeline models
    'CacheKey',
    'DeckRequest',
    'SlidePrompt',
    'PlanResult',
    'SlideArtifact',
    'IssueKind',
    'GenerationIssue',
    'GenerationOutcome',
    'ChatTurn',

    # WebSocket messages
    'MessageType',
    'StatusLevel',
    'ChatMessage',
    'StatusUpdate',
    'DeckUpdate',
    'ErrorMessage',
    'DeckPayload',
    'SlidePayload'
]
