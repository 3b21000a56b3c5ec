"""
Error taxonomy for deck generation.

Only EmptyDeckError and ConfigurationError are meant to reach callers of the
pipeline; the others are recovered into outcome metadata where they occur.
"""

from typing import List, Optional


class DeckGenerationError(Exception):
    """Base exception for deck generation errors."""
    pass


class ConfigurationError(DeckGenerationError):
    """Raised when the upstream credential or project configuration is missing."""
    pass


class PlanningError(DeckGenerationError):
    """Raised when topic planning yields no usable subjects."""

    def __init__(self, message: str, upstream_failed: bool = False):
        self.message = message
        self.upstream_failed = upstream_failed
        super().__init__(message)


class RenderError(DeckGenerationError):
    """Raised when a single slide image could not be produced."""

    def __init__(self, position: int, message: str):
        self.position = position
        self.message = message
        super().__init__(f"Slide {position} failed: {message}")


class EmptyDeckError(DeckGenerationError):
    """Raised when every slide of a deck failed to render."""

    def __init__(self, failures: Optional[List[RenderError]] = None):
        self.failures = failures or []
        super().__init__("No slides were generated")


class ChatError(DeckGenerationError):
    """Raised when the assistant's upstream chat turn fails."""
    pass
