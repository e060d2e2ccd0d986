# SPDX-License-Identifier: Apache-2.0
"""Draw resolved field values onto the original PDF page using pypdfium2.

The original page is kept as-is ("template PDF" approach); text objects and
the signature image are inserted on top of page 1 and the document is
re-serialized.

Failure policy:
- Loading and saving the document are fatal (MalformedDocumentError).
- Font acquisition never fails; the standard oblique font is used instead.
- Drawing failures are per-field: logged, recorded as skipped, and the
  remaining fields are still drawn.
"""

from __future__ import annotations

import asyncio
import ctypes
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import pypdfium2 as pdfium  # type: ignore[import-untyped]
from PIL import Image

from pdf_form_filler.fonts.base import STANDARD_FALLBACK_FONT, FontAsset, FontSource
from pdf_form_filler.pipeline.errors import MalformedDocumentError

from .helpers import clamp, to_byte_array, to_widestring
from .models import CanonicalKind, PageBox, PageGeometry, ResolvedField, SignatureAsset

logger = logging.getLogger(__name__)


@dataclass
class CompositeConfig:
    """Drawing constants.

    Attributes:
        font_size: Text size in points.
        text_offset: Inward offset of the text origin from the box's
            bottom-left corner, in points.
        ink_color: Text fill color (R, G, B), 0-255.
        signature_inset: Inset applied on every side of the signature box.
        signature_max_width: Upper bound on drawn signature width.
        signature_max_height: Upper bound on drawn signature height.
    """

    font_size: float = 14.0
    text_offset: float = 5.0
    ink_color: tuple[int, int, int] = (51, 51, 204)
    signature_inset: float = 5.0
    signature_max_width: float = 150.0
    signature_max_height: float = 50.0


@dataclass
class CompositeResult:
    """Compositor output.

    Attributes:
        pdf_bytes: Serialized output document.
        drawn: Fields that were drawn onto the page.
        skipped: Drawable fields that could not be drawn (zero-area box,
            corrupt signature, font failure).
        font_name: Name of the font used for text.
    """

    pdf_bytes: bytes
    drawn: list[ResolvedField] = field(default_factory=list)
    skipped: list[ResolvedField] = field(default_factory=list)
    font_name: str = STANDARD_FALLBACK_FONT


def clip_signature_size(
    box_width: float,
    box_height: float,
    image_width: float,
    image_height: float,
    config: Optional[CompositeConfig] = None,
) -> tuple[float, float]:
    """Compute the drawn signature size.

    The image is scaled down uniformly (never up) to fit within the fixed
    maxima and within the box minus the inset on both sides. A box too
    small to leave any room after the inset only contributes the maxima.

    Returns:
        (width, height) in points; (0, 0) for an empty image.
    """
    config = config or CompositeConfig()
    if image_width <= 0 or image_height <= 0:
        return 0.0, 0.0

    limit_w = config.signature_max_width
    limit_h = config.signature_max_height
    inner_w = box_width - 2 * config.signature_inset
    inner_h = box_height - 2 * config.signature_inset
    if inner_w > 0:
        limit_w = min(limit_w, inner_w)
    if inner_h > 0:
        limit_h = min(limit_h, inner_h)

    factor = min(1.0, limit_w / image_width, limit_h / image_height)
    return image_width * factor, image_height * factor


def read_page_geometry(pdf_bytes: bytes) -> PageGeometry:
    """Read the size of page 1.

    Raises:
        MalformedDocumentError: If the PDF cannot be loaded or has no pages.
    """
    try:
        pdf = pdfium.PdfDocument(pdf_bytes)
    except pdfium.PdfiumError as exc:
        raise MalformedDocumentError("Could not load PDF", cause=exc) from exc
    try:
        if len(pdf) == 0:
            raise MalformedDocumentError("PDF has no pages")
        width, height = pdf.get_page_size(0)
        return PageGeometry(width_pt=width, height_pt=height)
    finally:
        pdf.close()


class Compositor:
    """Composite text and signature values onto page 1 of a PDF."""

    def __init__(
        self,
        font_source: Optional[FontSource] = None,
        config: Optional[CompositeConfig] = None,
        font_timeout: Optional[float] = None,
    ) -> None:
        """Initialize Compositor.

        Args:
            font_source: Display font strategy. None always uses the
                standard fallback font.
            config: Drawing constants.
            font_timeout: Upper bound in seconds on font acquisition.
        """
        self._font_source = font_source
        self._config = config or CompositeConfig()
        self._font_timeout = font_timeout

    @property
    def config(self) -> CompositeConfig:
        return self._config

    async def composite(
        self,
        pdf_bytes: bytes,
        fields: list[ResolvedField],
        boxes: list[PageBox],
    ) -> CompositeResult:
        """Acquire the display font and draw all fields.

        Args:
            pdf_bytes: Original PDF.
            fields: Resolved fields.
            boxes: Page-space box for each field (same order and length).

        Raises:
            MalformedDocumentError: If the PDF cannot be loaded or saved.
        """
        needs_font = any(
            f.is_drawable and f.kind != CanonicalKind.SIGNATURE for f in fields
        )
        font = await self.acquire_font() if needs_font else None
        return await asyncio.to_thread(self.render, pdf_bytes, fields, boxes, font)

    async def acquire_font(self) -> Optional[FontAsset]:
        """Fetch the display font; never raises."""
        if self._font_source is None:
            return None
        try:
            return await asyncio.wait_for(
                self._font_source.fetch(), timeout=self._font_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Font acquisition timed out after %ss; using %s",
                self._font_timeout,
                STANDARD_FALLBACK_FONT,
            )
            return None
        except Exception as exc:
            logger.warning(
                "Font source %r failed (%s); using %s",
                getattr(self._font_source, "name", "?"),
                exc,
                STANDARD_FALLBACK_FONT,
            )
            return None

    def render(
        self,
        pdf_bytes: bytes,
        fields: list[ResolvedField],
        boxes: list[PageBox],
        font: Optional[FontAsset] = None,
    ) -> CompositeResult:
        """Draw fields synchronously with an already acquired font.

        Raises:
            ValueError: If fields and boxes differ in length.
            MalformedDocumentError: If the PDF cannot be loaded or saved.
        """
        if len(fields) != len(boxes):
            raise ValueError(
                f"fields and boxes must have the same length "
                f"({len(fields)} != {len(boxes)})"
            )

        try:
            pdf = pdfium.PdfDocument(pdf_bytes)
        except pdfium.PdfiumError as exc:
            raise MalformedDocumentError("Could not load PDF", cause=exc) from exc

        try:
            if len(pdf) == 0:
                raise MalformedDocumentError("PDF has no pages")

            # Font data must stay alive until the document is saved
            font_handle, font_name, _font_buffer = self._load_font(pdf, font)
            drawn: list[ResolvedField] = []
            skipped: list[ResolvedField] = []

            page = pdf[0]
            try:
                width, height = page.get_size()
                geometry = PageGeometry(width_pt=width, height_pt=height)

                for resolved, box in zip(fields, boxes):
                    if not resolved.is_drawable:
                        continue
                    if box.is_empty:
                        logger.debug(
                            "Skipping %s: zero-area box", resolved.field.raw_label
                        )
                        skipped.append(resolved)
                        continue
                    try:
                        if isinstance(resolved.value, SignatureAsset):
                            self._draw_signature(pdf, page, resolved.value, box, geometry)
                        else:
                            self._draw_text(
                                pdf, page, font_handle, str(resolved.value), box, geometry
                            )
                    except (pdfium.PdfiumError, OSError, ValueError, RuntimeError) as exc:
                        logger.warning(
                            "Could not draw field %r (%s): %s",
                            resolved.field.raw_label,
                            resolved.kind.value,
                            exc,
                        )
                        skipped.append(resolved)
                        continue
                    drawn.append(resolved)

                if drawn:
                    page.gen_content()
            finally:
                page.close()

            output = self._save(pdf)
        finally:
            pdf.close()

        logger.info(
            "Composited %d field(s), skipped %d, font=%s",
            len(drawn),
            len(skipped),
            font_name,
        )
        return CompositeResult(
            pdf_bytes=output, drawn=drawn, skipped=skipped, font_name=font_name
        )

    def _load_font(
        self, pdf: pdfium.PdfDocument, font: Optional[FontAsset]
    ) -> tuple[Optional[Any], str, Optional[ctypes.Array[Any]]]:
        """Load the display font, falling back to the standard font.

        Returns:
            (font handle or None, font name, buffer to keep alive)
        """
        if font is not None:
            buffer = to_byte_array(font.data)
            # CID mode keeps the full Unicode range of the embedded font
            handle = pdfium.raw.FPDFText_LoadFont(
                pdf.raw,
                buffer,
                ctypes.c_uint(len(font.data)),
                ctypes.c_int(pdfium.raw.FPDF_FONT_TRUETYPE),
                ctypes.c_int(1),
            )
            if handle:
                return handle, font.family, buffer
            logger.warning(
                "PDFium rejected font %r from %s; using %s",
                font.family,
                font.origin,
                STANDARD_FALLBACK_FONT,
            )

        handle = pdfium.raw.FPDFText_LoadStandardFont(
            pdf.raw, STANDARD_FALLBACK_FONT.encode("ascii")
        )
        if not handle:
            logger.warning("Could not load standard font %s", STANDARD_FALLBACK_FONT)
            return None, STANDARD_FALLBACK_FONT, None
        return handle, STANDARD_FALLBACK_FONT, None

    def _draw_text(
        self,
        pdf: pdfium.PdfDocument,
        page: pdfium.PdfPage,
        font_handle: Optional[Any],
        text: str,
        box: PageBox,
        geometry: PageGeometry,
    ) -> None:
        if font_handle is None:
            raise RuntimeError("No font available for text")

        size = self._config.font_size
        text_obj = pdfium.raw.FPDFPageObj_CreateTextObj(
            pdf.raw, font_handle, ctypes.c_float(size)
        )
        if not text_obj:
            raise RuntimeError("FPDFPageObj_CreateTextObj failed")

        if not pdfium.raw.FPDFText_SetText(text_obj, to_widestring(text)):
            pdfium.raw.FPDFPageObj_Destroy(text_obj)
            raise RuntimeError("FPDFText_SetText failed")

        r, g, b = self._config.ink_color
        pdfium.raw.FPDFPageObj_SetFillColor(text_obj, r, g, b, 255)

        offset = self._config.text_offset
        x = clamp(box.x + offset, 0.0, geometry.width_pt - size)
        y = clamp(box.y + offset, 0.0, geometry.height_pt - size)
        pdfium.raw.FPDFPageObj_Transform(
            text_obj,
            ctypes.c_double(1.0),
            ctypes.c_double(0.0),
            ctypes.c_double(0.0),
            ctypes.c_double(1.0),
            ctypes.c_double(x),
            ctypes.c_double(y),
        )
        pdfium.raw.FPDFPage_InsertObject(page.raw, text_obj)

    def _draw_signature(
        self,
        pdf: pdfium.PdfDocument,
        page: pdfium.PdfPage,
        signature: SignatureAsset,
        box: PageBox,
        geometry: PageGeometry,
    ) -> None:
        with Image.open(io.BytesIO(signature.png_bytes)) as img:
            img.load()
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            width, height = clip_signature_size(
                box.width, box.height, img.width, img.height, self._config
            )
            if width <= 0 or height <= 0:
                raise ValueError("Signature image is empty")
            bitmap = pdfium.PdfBitmap.from_pil(img)

        image_obj = pdfium.PdfImage.new(pdf)
        try:
            image_obj.set_bitmap(bitmap)
        finally:
            bitmap.close()

        inset = self._config.signature_inset
        x = clamp(box.x + inset, 0.0, geometry.width_pt - width)
        y = clamp(box.y + inset, 0.0, geometry.height_pt - height)
        image_obj.set_matrix(pdfium.PdfMatrix().scale(width, height).translate(x, y))
        page.insert_obj(image_obj)

    def _save(self, pdf: pdfium.PdfDocument) -> bytes:
        buffer = io.BytesIO()
        try:
            pdf.save(buffer)
        except pdfium.PdfiumError as exc:
            raise MalformedDocumentError("Could not save PDF", cause=exc) from exc
        return buffer.getvalue()
