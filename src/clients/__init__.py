"""
Clients Package for the Slide Deck Generator

Contains the upstream Gemini / Imagen client.
"""

from .gemini_client import GeminiClient

__all__ = [
    'GeminiClient'
]
