"""
Shared pytest fixtures: an in-process stand-in for the Gemini / Imagen client.
"""

import asyncio
import io
from typing import Dict, Iterable, List, Optional

import pytest
from PIL import Image

FIGMA_TOPICS = "Collaboration, Prototyping, Design systems, Developer handoff, Versioning"


def make_image_bytes(size=(64, 64), color=(20, 120, 200), fmt="JPEG") -> bytes:
    """Small real image so PDF export can decode it."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeChat:
    def __init__(self, system_instruction: str):
        self.system_instruction = system_instruction
        self.messages: List[str] = []


class FakeUpstream:
    """
    Records every call and lets a test decide what each one does.

    fail_on: substrings; a render prompt containing one raises
    empty_on: substrings; a render prompt containing one returns no image
    delays: substring -> seconds to sleep before answering that render
    """

    def __init__(
        self,
        topics: Optional[str] = FIGMA_TOPICS,
        topic_error: Optional[Exception] = None,
        fail_on: Iterable[str] = (),
        empty_on: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
        image: Optional[bytes] = None,
        chat_reply: str = "Lead with the customer problem.",
        chat_error: Optional[Exception] = None
    ):
        self.topics = topics
        self.topic_error = topic_error
        self.fail_on = list(fail_on)
        self.empty_on = list(empty_on)
        self.delays = delays or {}
        self.image = image if image is not None else make_image_bytes()
        self.chat_reply = chat_reply
        self.chat_error = chat_error

        self.instructions: List[str] = []
        self.render_prompts: List[str] = []
        self.chats: List[FakeChat] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def plan_calls(self) -> int:
        return len(self.instructions)

    @property
    def render_calls(self) -> int:
        return len(self.render_prompts)

    async def plan_topics(self, instruction: str) -> str:
        self.instructions.append(instruction)
        await asyncio.sleep(0)
        if self.topic_error is not None:
            raise self.topic_error
        return self.topics

    async def render_image(self, prompt: str) -> Optional[bytes]:
        self.render_prompts.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = next((d for key, d in self.delays.items() if key in prompt), 0)
            await asyncio.sleep(delay)
            if any(key in prompt for key in self.fail_on):
                raise RuntimeError("quota exceeded")
            if any(key in prompt for key in self.empty_on):
                return None
            return self.image
        finally:
            self.in_flight -= 1

    def create_chat(self, system_instruction: str) -> FakeChat:
        chat = FakeChat(system_instruction)
        self.chats.append(chat)
        return chat

    async def chat_send(self, chat: FakeChat, message: str) -> str:
        chat.messages.append(message)
        if self.chat_error is not None:
            raise self.chat_error
        return self.chat_reply


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes()
