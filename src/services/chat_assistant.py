"""
Presentation assistant chat.

One long-lived upstream chat session per assistant, created on the first
message. Upstream problems never raise to the caller; the user gets a fixed
apologetic reply instead.
"""

from typing import List, Optional

from src.core.exceptions import ChatError
from src.models.deck import ChatTurn
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a professional business analyst and presentation assistant. "
    "You provide concise, professional advice on creating effective presentation slides. "
    "Help users refine topics for their presentations about companies and products."
)

FALLBACK_REPLY = "I seem to be having trouble connecting. Please try again shortly."


class ChatAssistant:
    """
    Stateful single-session conversational helper.

    Usage:
        assistant = ChatAssistant(upstream=gemini_client)
        reply = await assistant.send("Which topics suit a CFO audience?")
    """

    def __init__(self, upstream, system_instruction: str = SYSTEM_INSTRUCTION):
        """
        Args:
            upstream: Object exposing ``create_chat(system_instruction)`` and
                ``async chat_send(chat, message) -> str``
            system_instruction: Persona for the chat session
        """
        self.upstream = upstream
        self.system_instruction = system_instruction
        self._session = None
        self.history: List[ChatTurn] = []

    @property
    def has_session(self) -> bool:
        return self._session is not None

    def _ensure_session(self):
        if self._session is None:
            self._session = self.upstream.create_chat(self.system_instruction)
            logger.info("Chat session created")
        return self._session

    async def _exchange(self, message: str) -> str:
        try:
            session = self._ensure_session()
            reply = await self.upstream.chat_send(session, message)
        except Exception as e:
            raise ChatError(f"{type(e).__name__}: {e}") from e
        if not reply or not reply.strip():
            raise ChatError("Empty reply from chat model")
        return reply

    async def send(self, message: str) -> Optional[str]:
        """
        Send a user message and return the assistant's reply.

        Returns:
            Reply text, FALLBACK_REPLY on upstream failure, or None for a blank message
        """
        if not message or not message.strip():
            return None

        message = message.strip()
        self.history.append(ChatTurn(role="user", text=message))

        try:
            reply = await self._exchange(message)
        except ChatError as e:
            logger.error(f"Chatbot error: {e}")
            reply = FALLBACK_REPLY

        self.history.append(ChatTurn(role="model", text=reply))
        return reply

    def reset(self) -> None:
        """Drop the upstream session and the transcript."""
        self._session = None
        self.history.clear()
