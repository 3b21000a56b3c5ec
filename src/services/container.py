"""
Application wiring.

Everything stateful (upstream client, session cache, orchestrator, shared
assistant) is created once by build_services() and passed explicitly to the
HTTP and WebSocket layers.
"""

from dataclasses import dataclass
from typing import Optional

from config.settings import Settings
from src.core.orchestrator import GenerationOrchestrator
from src.core.session_cache import SessionCache
from src.core.slide_renderer import SlideRenderer
from src.core.topic_planner import TopicPlanner
from src.services.chat_assistant import ChatAssistant
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class DeckServices:
    """Explicitly constructed dependencies of the service."""
    upstream: object
    cache: SessionCache
    orchestrator: GenerationOrchestrator
    assistant: ChatAssistant
    settings: Optional[Settings] = None

    def new_assistant(self) -> ChatAssistant:
        """A fresh assistant with its own chat session (one per connection)."""
        return ChatAssistant(self.upstream)


def build_services(
    settings: Settings,
    upstream=None,
    cache: Optional[SessionCache] = None
) -> DeckServices:
    """
    Wire the pipeline around an upstream client.

    Args:
        settings: Application settings
        upstream: Upstream capabilities; a GeminiClient is created from
            settings when omitted (raises ConfigurationError without a credential)
        cache: Existing cache to reuse
    """
    if upstream is None:
        from src.clients.gemini_client import GeminiClient
        upstream = GeminiClient.from_settings(settings)

    cache = cache if cache is not None else SessionCache()
    planner = TopicPlanner(upstream, topic_count=settings.DECK_TOPIC_COUNT)
    renderer = SlideRenderer(upstream, mime_type=settings.IMAGE_MIME_TYPE)
    orchestrator = GenerationOrchestrator(
        planner,
        renderer,
        cache,
        pool_width=settings.DECK_WORKER_POOL_WIDTH
    )
    logger.info(
        f"Deck services ready (topics={settings.DECK_TOPIC_COUNT}, "
        f"pool_width={settings.DECK_WORKER_POOL_WIDTH})"
    )
    return DeckServices(
        upstream=upstream,
        cache=cache,
        orchestrator=orchestrator,
        assistant=ChatAssistant(upstream),
        settings=settings
    )
