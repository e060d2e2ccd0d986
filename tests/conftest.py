# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: in-memory PDFs and signature images."""

from __future__ import annotations

import io

import pypdfium2 as pdfium  # type: ignore[import-untyped]
import pytest
from PIL import Image


def make_pdf(width: float = 612, height: float = 792, pages: int = 1) -> bytes:
    """Create a blank PDF with the given page size."""
    doc = pdfium.PdfDocument.new()
    try:
        for _ in range(pages):
            doc.new_page(width, height)
        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()
    finally:
        doc.close()


def make_png(width: int = 300, height: int = 40, mode: str = "RGBA") -> bytes:
    """Create a PNG with a dark stroke on a transparent background."""
    img = Image.new(mode, (width, height), (0, 0, 0, 0) if mode == "RGBA" else 255)
    for x in range(width):
        y = height // 2
        img.putpixel((x, y), (20, 20, 20, 255) if mode == "RGBA" else 0)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def make_ttf(family: str = "Test Script", flavor: str | None = None) -> bytes:
    """Build a minimal TrueType font (optionally WOFF/WOFF2) with fontTools."""
    from fontTools.fontBuilder import FontBuilder
    from fontTools.pens.ttGlyphPen import TTGlyphPen

    def box_glyph():  # type: ignore[no-untyped-def]
        pen = TTGlyphPen(None)
        pen.moveTo((50, 0))
        pen.lineTo((450, 0))
        pen.lineTo((450, 700))
        pen.lineTo((50, 700))
        pen.closePath()
        return pen.glyph()

    chars = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789 /-,."
    glyph_names = [f"uni{ord(c):04X}" for c in chars]

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder([".notdef", *glyph_names])
    fb.setupCharacterMap({ord(c): name for c, name in zip(chars, glyph_names)})
    fb.setupGlyf({name: box_glyph() for name in [".notdef", *glyph_names]})
    fb.setupHorizontalMetrics({name: (500, 50) for name in [".notdef", *glyph_names]})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": family, "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    fb.setupPost()

    if flavor is not None:
        fb.font.flavor = flavor
    buffer = io.BytesIO()
    fb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def letter_pdf() -> bytes:
    """Blank US Letter page (612x792pt)."""
    return make_pdf()


@pytest.fixture
def signature_png() -> bytes:
    """300x40 px signature image."""
    return make_png()
