# SPDX-License-Identifier: Apache-2.0
"""Tests for Rasterizer."""

from __future__ import annotations

import io

import pytest
from conftest import make_pdf
from PIL import Image

from pdf_form_filler.core.rasterizer import RasterizeConfig, Rasterizer
from pdf_form_filler.pipeline.errors import PipelineError, RasterizationError


class TestRasterizeConfig:
    """Tests for RasterizeConfig."""

    def test_default_values(self) -> None:
        config = RasterizeConfig()
        assert config.scale == 2.0
        assert config.format == "jpeg"
        assert config.quality == 90

    def test_invalid_format(self) -> None:
        with pytest.raises(ValueError, match="Unsupported image format"):
            Rasterizer(RasterizeConfig(format="gif"))

    def test_invalid_scale(self) -> None:
        with pytest.raises(ValueError, match="scale must be positive"):
            Rasterizer(RasterizeConfig(scale=0))


class TestRasterizer:
    """Tests for Rasterizer.rasterize."""

    def test_jpeg_default(self, letter_pdf: bytes) -> None:
        """Page 1 rendered at 2x as JPEG."""
        image = Rasterizer().rasterize(letter_pdf)

        assert image.format == "jpeg"
        assert image.data[:2] == b"\xff\xd8"
        assert image.page.width_pt == pytest.approx(612)
        assert image.page.height_pt == pytest.approx(792)
        assert image.width == 1224
        assert image.height == 1584

    def test_reported_size_matches_encoded_image(self, letter_pdf: bytes) -> None:
        image = Rasterizer(RasterizeConfig(scale=1.5)).rasterize(letter_pdf)
        with Image.open(io.BytesIO(image.data)) as decoded:
            assert decoded.size == (image.width, image.height)

    def test_png_format(self) -> None:
        image = Rasterizer(RasterizeConfig(scale=1.0, format="png")).rasterize(
            make_pdf(200, 100)
        )
        assert image.data[:8] == b"\x89PNG\r\n\x1a\n"
        assert image.content_type == "image/png"
        assert (image.width, image.height) == (200, 100)

    def test_only_first_page(self) -> None:
        """Multi-page input: only page 1 is rendered."""
        image = Rasterizer(RasterizeConfig(scale=1.0)).rasterize(
            make_pdf(300, 400, pages=3)
        )
        assert (image.width, image.height) == (300, 400)

    def test_invalid_bytes(self) -> None:
        with pytest.raises(RasterizationError) as exc_info:
            Rasterizer().rasterize(b"this is not a pdf")
        assert exc_info.value.stage == "rasterize"
        assert isinstance(exc_info.value, PipelineError)
        assert exc_info.value.cause is not None

    def test_zero_pages(self) -> None:
        with pytest.raises(RasterizationError, match="no pages"):
            Rasterizer().rasterize(make_pdf(pages=0))

    def test_scale_override(self, letter_pdf: bytes) -> None:
        """A per-call scale takes precedence over the configured one."""
        rasterizer = Rasterizer(RasterizeConfig(scale=2.0))
        image = rasterizer.rasterize(letter_pdf, scale=1.0)

        assert (image.width, image.height) == (612, 792)
        assert image.scale == 1.0
        assert rasterizer.config.scale == 2.0

    def test_invalid_scale_override(self, letter_pdf: bytes) -> None:
        with pytest.raises(ValueError, match="scale must be positive"):
            Rasterizer().rasterize(letter_pdf, scale=-1)

    def test_error_str_includes_stage(self) -> None:
        with pytest.raises(RasterizationError) as exc_info:
            Rasterizer().rasterize(b"%PDF-1.7 truncated")
        assert str(exc_info.value).startswith("[rasterize] ")

    @pytest.mark.asyncio
    async def test_rasterize_async(self, letter_pdf: bytes) -> None:
        image = await Rasterizer(RasterizeConfig(scale=0.5)).rasterize_async(letter_pdf)
        assert (image.width, image.height) == (306, 396)

    @pytest.mark.asyncio
    async def test_rasterize_async_scale_override(self, letter_pdf: bytes) -> None:
        image = await Rasterizer().rasterize_async(letter_pdf, scale=0.5)
        assert (image.width, image.height) == (306, 396)
