"""
PDF export of a generated deck.

One landscape A4 page per slide, in deck order. Each square slide image is
fitted to the page height inside a 10 mm margin and centred horizontally.
"""

import io
import re
from typing import List, Sequence

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from src.models.deck import SlideArtifact
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

PAGE_WIDTH_MM = 297
PAGE_HEIGHT_MM = 210
MARGIN_MM = 10
DPI = 150
PLACEHOLDER_TEXT = "Could not load image."


def mm_to_px(mm: float, dpi: int = DPI) -> int:
    return round(mm / 25.4 * dpi)


def pdf_filename(product_name: str) -> str:
    """e.g. "Acme Cloud" -> "acme-cloud-presentation.pdf"."""
    slug = re.sub(r"\s", "-", product_name.strip().lower())
    return f"{slug}-presentation.pdf"


def _blank_page(dpi: int) -> Image.Image:
    return Image.new("RGB", (mm_to_px(PAGE_WIDTH_MM, dpi), mm_to_px(PAGE_HEIGHT_MM, dpi)), "white")


def _placeholder_page(dpi: int) -> Image.Image:
    page = _blank_page(dpi)
    draw = ImageDraw.Draw(page)
    font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), PLACEHOLDER_TEXT, font=font)
    x = (page.width - (right - left)) / 2
    y = (page.height - (bottom - top)) / 2
    draw.text((x, y), PLACEHOLDER_TEXT, fill="black", font=font)
    return page


def render_page(slide: SlideArtifact, dpi: int = DPI) -> Image.Image:
    """Lay one slide out on a landscape page."""
    try:
        with Image.open(io.BytesIO(slide.image_bytes)) as source:
            image = source.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Error adding slide {slide.position} to PDF: {e}")
        return _placeholder_page(dpi)

    page = _blank_page(dpi)
    margin = mm_to_px(MARGIN_MM, dpi)
    size = page.height - margin * 2
    image = image.resize((size, size), Image.Resampling.LANCZOS)
    page.paste(image, ((page.width - size) // 2, margin))
    return page


def export_pdf(deck: Sequence[SlideArtifact], dpi: int = DPI) -> bytes:
    """
    Build a multi-page PDF from the deck.

    Raises:
        ValueError: If the deck has no slides
    """
    if not deck:
        raise ValueError("Cannot export an empty deck")

    pages: List[Image.Image] = [render_page(slide, dpi) for slide in deck]
    buffer = io.BytesIO()
    pages[0].save(
        buffer,
        format="PDF",
        save_all=True,
        append_images=pages[1:],
        resolution=float(dpi)
    )
    logger.info(f"Exported {len(pages)} page PDF ({buffer.tell()} bytes)")
    return buffer.getvalue()
