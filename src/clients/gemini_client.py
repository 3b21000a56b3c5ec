"""
Gemini Client for the Slide Deck Generator

Thin async wrapper over the google-genai SDK exposing the three upstream
capabilities the pipeline depends on:

- plan_topics(instruction) -> raw text         (Gemini text model)
- render_image(prompt) -> image bytes or None  (Imagen model)
- create_chat(system_instruction) / chat_send(chat, message) -> reply text
"""

from typing import Optional

from google import genai
from google.genai import types

from config.settings import Settings
from src.utils.genai_client import create_genai_client
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class GeminiClient:
    """
    Upstream text, image and chat capabilities.

    Usage:
        client = GeminiClient.from_settings(get_settings())
        topics = await client.plan_topics("List 5 key topics ...")
        image = await client.render_image("Title slide for ...")
    """

    def __init__(
        self,
        client: genai.Client,
        text_model: str = "gemini-2.5-flash",
        image_model: str = "imagen-4.0-generate-001",
        chat_model: str = "gemini-2.5-flash",
        aspect_ratio: str = "1:1",
        mime_type: str = "image/jpeg"
    ):
        self._client = client
        self.text_model = text_model
        self.image_model = image_model
        self.chat_model = chat_model
        self.aspect_ratio = aspect_ratio
        self.mime_type = mime_type

        logger.info(
            f"GeminiClient initialized (text={text_model}, image={image_model}, chat={chat_model})"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        """Build the client; raises ConfigurationError without a credential."""
        return cls(
            client=create_genai_client(settings),
            text_model=settings.GEMINI_TEXT_MODEL,
            image_model=settings.IMAGEN_MODEL,
            chat_model=settings.GEMINI_CHAT_MODEL,
            aspect_ratio=settings.IMAGE_ASPECT_RATIO,
            mime_type=settings.IMAGE_MIME_TYPE
        )

    async def plan_topics(self, instruction: str) -> str:
        """Single-shot text completion; returns an empty string when the model gave no text."""
        response = await self._client.aio.models.generate_content(
            model=self.text_model,
            contents=instruction,
        )
        return response.text or ""

    async def render_image(self, prompt: str) -> Optional[bytes]:
        """Generate one image; None when the response carries no image payload."""
        response = await self._client.aio.models.generate_images(
            model=self.image_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type=self.mime_type,
                aspect_ratio=self.aspect_ratio,
            ),
        )

        generated = response.generated_images or []
        if not generated or generated[0].image is None:
            reason = getattr(generated[0], "rai_filtered_reason", None) if generated else None
            logger.warning(f"Image model returned no image{f' ({reason})' if reason else ''}")
            return None
        return generated[0].image.image_bytes or None

    def create_chat(self, system_instruction: str):
        """Open a stateful chat session bound to a system instruction."""
        return self._client.aio.chats.create(
            model=self.chat_model,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
        )

    async def chat_send(self, chat, message: str) -> str:
        """Send one user turn on an existing chat session."""
        response = await chat.send_message(message)
        return response.text or ""
