"""
Core Module for the Slide Deck Generator

Contains the generation pipeline: topic planning, slide rendering, the
bounded-concurrency orchestrator and the session cache.
"""

from .exceptions import (
    DeckGenerationError,
    ConfigurationError,
    PlanningError,
    RenderError,
    EmptyDeckError,
    ChatError
)
from .topic_planner import TopicPlanner, parse_subjects, FALLBACK_SUBJECTS
from .slide_renderer import SlideRenderer
from .session_cache import SessionCache
from .orchestrator import GenerationOrchestrator, GenerationState

__all__ = [
    # Errors
    'DeckGenerationError',
    'ConfigurationError',
    'PlanningError',
    'RenderError',
    'EmptyDeckError',
    'ChatError',

    # Pipeline
    'TopicPlanner',
    'parse_subjects',
    'FALLBACK_SUBJECTS',
    'SlideRenderer',
    'SessionCache',
    'GenerationOrchestrator',
    'GenerationState',
]
