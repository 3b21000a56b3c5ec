"""
Slide Renderer - turns one slide prompt into one rendered image.
"""

from src.core.exceptions import RenderError
from src.models.deck import SlideArtifact, SlidePrompt
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class SlideRenderer:
    """
    Stateless wrapper around the upstream image capability.

    Safe to call concurrently for different prompts. Retries are not performed
    here; a failed render is reported as RenderError to the caller.
    """

    def __init__(self, upstream, mime_type: str = "image/jpeg"):
        """
        Args:
            upstream: Object exposing ``async render_image(prompt) -> bytes | None``
            mime_type: MIME type of the images the upstream returns
        """
        self.upstream = upstream
        self.mime_type = mime_type

    async def render(self, prompt: SlidePrompt) -> SlideArtifact:
        """
        Render a single slide.

        Raises:
            RenderError: If the upstream call fails or returns no image payload
        """
        try:
            image_bytes = await self.upstream.render_image(prompt.text)
        except Exception as e:
            raise RenderError(prompt.position, f"{type(e).__name__}: {e}") from e

        if not image_bytes:
            raise RenderError(prompt.position, "No image data returned")

        logger.debug(f"Rendered slide {prompt.position} ({len(image_bytes)} bytes)")
        return SlideArtifact(
            position=prompt.position,
            image_bytes=image_bytes,
            mime_type=self.mime_type,
            alt_text=prompt.text
        )
