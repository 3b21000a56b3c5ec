#!/usr/bin/env python3
"""
PDF export tests.

Usage:
    pytest test_pdf_export.py -v
"""

import importlib
import io
from pathlib import Path

import pytest
from PIL import Image

from conftest import make_image_bytes
from src.models.deck import SlideArtifact
from src.services.pdf_export import (
    MARGIN_MM,
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
    export_pdf,
    mm_to_px,
    pdf_filename,
    render_page,
)


def slide(position, image_bytes):
    return SlideArtifact(position=position, image_bytes=image_bytes, alt_text=f"slide {position}")


def test_pdf_filename():
    assert pdf_filename("Acme Cloud") == "acme-cloud-presentation.pdf"
    assert pdf_filename("  Figma ") == "figma-presentation.pdf"
    assert pdf_filename("Big  Co\tInc") == "big--co-inc-presentation.pdf"
    assert pdf_filename("Acme\nLabs") == "acme-labs-presentation.pdf"


def test_every_service_module_imports():
    """Every module under src/ and config/ loads on the running interpreter."""
    root = Path(__file__).parent
    modules = ["main"] + [
        ".".join(path.relative_to(root).with_suffix("").parts)
        for folder in ("src", "config")
        for path in sorted((root / folder).rglob("*.py"))
        if path.name != "__init__.py"
    ]

    assert "src.services.pdf_export" in modules
    for name in modules:
        importlib.import_module(name)


def test_render_page_is_landscape_a4_with_centred_square():
    page = render_page(slide(0, make_image_bytes(color=(255, 0, 0))), dpi=72)

    assert page.size == (mm_to_px(PAGE_WIDTH_MM, 72), mm_to_px(PAGE_HEIGHT_MM, 72))
    margin = mm_to_px(MARGIN_MM, 72)
    assert page.getpixel((page.width // 2, page.height // 2))[0] > 200
    assert page.getpixel((page.width // 2, margin // 2)) == (255, 255, 255)
    assert page.getpixel((2, page.height // 2)) == (255, 255, 255)


def test_unreadable_image_becomes_placeholder_page():
    page = render_page(slide(1, b"not an image"), dpi=72)

    assert page.size == (mm_to_px(PAGE_WIDTH_MM, 72), mm_to_px(PAGE_HEIGHT_MM, 72))
    colors = page.getcolors(maxcolors=1 << 16)
    assert len(colors) > 1


def test_export_pdf_one_page_per_slide():
    deck = [
        slide(0, make_image_bytes()),
        slide(2, make_image_bytes(fmt="PNG")),
        slide(3, b"broken"),
    ]

    data = export_pdf(deck, dpi=72)

    assert data.startswith(b"%PDF")
    assert b"/Count 3" in data


def test_export_rejects_empty_deck():
    with pytest.raises(ValueError):
        export_pdf([])


def test_rgba_png_is_flattened():
    buffer = io.BytesIO()
    Image.new("RGBA", (32, 32), (0, 0, 255, 128)).save(buffer, format="PNG")

    page = render_page(slide(0, buffer.getvalue()), dpi=72)
    assert page.mode == "RGB"


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
