"""
In-memory deck cache for the lifetime of the process.

Entries are complete GenerationOutcomes keyed by normalized request identity.
There is no TTL, eviction or persistence.
"""

from typing import Dict, Optional

from src.models.deck import CacheKey, GenerationOutcome
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class SessionCache:
    """Maps request identity -> last complete GenerationOutcome."""

    def __init__(self):
        self._entries: Dict[CacheKey, GenerationOutcome] = {}

    def get(self, key: CacheKey) -> Optional[GenerationOutcome]:
        outcome = self._entries.get(key)
        if outcome is not None:
            logger.debug(f"Cache hit for {key}")
        return outcome

    def put(self, key: CacheKey, outcome: GenerationOutcome) -> None:
        self._entries[key] = outcome
        logger.debug(f"Cached deck for {key} ({len(outcome.deck)} slides)")

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
