# SPDX-License-Identifier: Apache-2.0
"""First-page rasterizer for the field detection model."""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass

import pypdfium2 as pdfium  # type: ignore[import-untyped]

from pdf_form_filler.core.models import PageGeometry, RasterImage
from pdf_form_filler.pipeline.errors import RasterizationError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = frozenset({"jpeg", "png"})


@dataclass
class RasterizeConfig:
    """Configuration for page rasterization.

    Attributes:
        scale: Magnification factor (pixels per PDF point). 2.0-3.0 trades
            detection fidelity against upload size.
        format: Output encoding, "jpeg" or "png".
        quality: JPEG quality (1-100). Ignored for PNG.
    """

    scale: float = 2.0
    format: str = "jpeg"
    quality: int = 90


class Rasterizer:
    """Render page 1 of a PDF to an encoded bitmap.

    Uses pypdfium2 for rendering and Pillow for encoding. The reported
    width/height are the dimensions of the image actually produced, which
    the coordinate mapper relies on.
    """

    def __init__(self, config: RasterizeConfig | None = None) -> None:
        self._config = config or RasterizeConfig()
        if self._config.format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported image format: {self._config.format!r} "
                f"(expected one of {sorted(SUPPORTED_FORMATS)})"
            )
        if self._config.scale <= 0:
            raise ValueError(f"scale must be positive, got {self._config.scale}")

    @property
    def config(self) -> RasterizeConfig:
        return self._config

    def rasterize(self, pdf_bytes: bytes, scale: float | None = None) -> RasterImage:
        """Render the first page of ``pdf_bytes``.

        Args:
            pdf_bytes: Source PDF.
            scale: Render scale for this call (default: config scale).

        Returns:
            RasterImage with the encoded bytes and actual dimensions.

        Raises:
            RasterizationError: If the bytes are not a valid PDF or it has
                no pages.
            ValueError: If scale is not positive.
        """
        scale = self._config.scale if scale is None else scale
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")

        try:
            doc = pdfium.PdfDocument(pdf_bytes)
        except pdfium.PdfiumError as exc:
            raise RasterizationError("Source is not a valid PDF", cause=exc) from exc

        try:
            if len(doc) == 0:
                raise RasterizationError("PDF has no pages")

            page = doc[0]
            try:
                width_pt, height_pt = page.get_size()
                bitmap = page.render(scale=scale)
                try:
                    pil_image = bitmap.to_pil()
                    data = self._encode(pil_image)
                    width, height = pil_image.width, pil_image.height
                finally:
                    bitmap.close()
            finally:
                page.close()
        finally:
            doc.close()

        logger.debug(
            "Rasterized page 1 (%.1fx%.1fpt) to %dx%d %s, %d bytes",
            width_pt,
            height_pt,
            width,
            height,
            self._config.format,
            len(data),
        )
        return RasterImage(
            data=data,
            width=width,
            height=height,
            format=self._config.format,
            scale=scale,
            page=PageGeometry(width_pt=width_pt, height_pt=height_pt),
        )

    async def rasterize_async(
        self, pdf_bytes: bytes, scale: float | None = None
    ) -> RasterImage:
        """Render in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.rasterize, pdf_bytes, scale)

    def _encode(self, pil_image) -> bytes:  # type: ignore[no-untyped-def]
        buffer = io.BytesIO()
        if self._config.format == "jpeg":
            if pil_image.mode != "RGB":
                pil_image = pil_image.convert("RGB")
            pil_image.save(buffer, format="JPEG", quality=self._config.quality)
        else:
            pil_image.save(buffer, format="PNG")
        return buffer.getvalue()
