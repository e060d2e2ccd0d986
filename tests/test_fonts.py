# SPDX-License-Identifier: Apache-2.0
"""Tests for font sources and font decoding."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from conftest import make_ttf

from pdf_form_filler.fonts import (
    DEFAULT_FONT_URLS,
    FontSource,
    LocalFontSource,
    RemoteFontSource,
    StandardFontSource,
    decode_font,
)

SFNT_TRUETYPE = b"\x00\x01\x00\x00"


def response_cm(status: int = 200, body: bytes = b"") -> AsyncMock:
    """Async context manager yielding a mocked response."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.read = AsyncMock(return_value=body)

    cm = AsyncMock()
    cm.__aenter__ = AsyncMock(return_value=mock_response)
    cm.__aexit__ = AsyncMock(return_value=None)
    return cm


def patch_session(get: Any) -> Any:
    """Patch aiohttp.ClientSession so that session.get uses ``get``."""
    mock_session = MagicMock()
    mock_session.get = get

    mock_cls = MagicMock()
    mock_cls.return_value.__aenter__ = AsyncMock(return_value=mock_session)
    mock_cls.return_value.__aexit__ = AsyncMock(return_value=None)
    return patch("pdf_form_filler.fonts.sources.aiohttp.ClientSession", mock_cls)


class TestFontSourceProtocol:
    """Test FontSource protocol."""

    @pytest.mark.parametrize(
        "source",
        [RemoteFontSource(), LocalFontSource("font.ttf"), StandardFontSource()],
    )
    def test_sources_implement_protocol(self, source: Any) -> None:
        assert isinstance(source, FontSource)

    def test_names(self) -> None:
        assert RemoteFontSource().name == "remote"
        assert LocalFontSource("x.ttf").name == "local"
        assert StandardFontSource().name == "standard"


class TestDecodeFont:
    """Tests for decode_font."""

    def test_truetype(self) -> None:
        asset = decode_font(make_ttf("Dancing Test"), origin="memory")
        assert asset.family == "Dancing Test"
        assert asset.origin == "memory"
        assert asset.data[:4] == SFNT_TRUETYPE

    @pytest.mark.parametrize("flavor", ["woff", "woff2"])
    def test_web_fonts_are_unwrapped(self, flavor: str) -> None:
        """WOFF/WOFF2 payloads are converted to plain sfnt data."""
        data = make_ttf(flavor=flavor)
        assert data[:4] in (b"wOFF", b"wOF2")

        asset = decode_font(data, origin="https://example.test/font")
        assert asset.data[:4] == SFNT_TRUETYPE

    @pytest.mark.parametrize("data", [b"", b"garbage", b"\x00\x01\x00\x00" + b"\x00" * 8])
    def test_malformed(self, data: bytes) -> None:
        with pytest.raises(ValueError):
            decode_font(data, origin="memory")


class TestRemoteFontSource:
    """Tests for RemoteFontSource (mocked HTTP)."""

    def test_default_urls(self) -> None:
        assert RemoteFontSource().urls == DEFAULT_FONT_URLS
        assert any("dancingscript" in url for url in DEFAULT_FONT_URLS)

    @pytest.mark.asyncio
    async def test_first_mirror(self) -> None:
        get = MagicMock(return_value=response_cm(200, make_ttf("Mirror One")))
        with patch_session(get):
            asset = await RemoteFontSource(["https://a.test/f.ttf"]).fetch()

        assert asset is not None
        assert asset.family == "Mirror One"
        assert asset.origin == "https://a.test/f.ttf"

    @pytest.mark.asyncio
    async def test_falls_through_to_next_mirror(self) -> None:
        """404 and malformed bytes are skipped in favor of later mirrors."""
        get = MagicMock(
            side_effect=[
                response_cm(404),
                response_cm(200, b"<html>not a font</html>"),
                response_cm(200, make_ttf("Mirror Three")),
            ]
        )
        urls = ["https://a.test/1", "https://a.test/2", "https://a.test/3"]
        with patch_session(get):
            asset = await RemoteFontSource(urls).fetch()

        assert asset is not None
        assert asset.origin == "https://a.test/3"
        assert get.call_count == 3

    @pytest.mark.asyncio
    async def test_network_failure_returns_none(self) -> None:
        get = MagicMock(side_effect=aiohttp.ClientConnectionError("offline"))
        with patch_session(get):
            asset = await RemoteFontSource(["https://a.test/1", "https://a.test/2"]).fetch()
        assert asset is None

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self) -> None:
        get = MagicMock(side_effect=asyncio.TimeoutError())
        with patch_session(get):
            asset = await RemoteFontSource(["https://a.test/1"]).fetch()
        assert asset is None

    @pytest.mark.asyncio
    async def test_no_urls(self) -> None:
        assert await RemoteFontSource([]).fetch() is None


class TestLocalFontSource:
    """Tests for LocalFontSource."""

    @pytest.mark.asyncio
    async def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "script.woff2"
        path.write_bytes(make_ttf("Local Script", flavor="woff2"))

        asset = await LocalFontSource(path).fetch()

        assert asset is not None
        assert asset.family == "Local Script"
        assert asset.data[:4] == SFNT_TRUETYPE

    @pytest.mark.asyncio
    async def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert await LocalFontSource(tmp_path / "missing.ttf").fetch() is None

    @pytest.mark.asyncio
    async def test_malformed_file_returns_none(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.ttf"
        path.write_bytes(b"garbage")
        assert await LocalFontSource(path).fetch() is None


class TestStandardFontSource:
    """Tests for StandardFontSource."""

    @pytest.mark.asyncio
    async def test_always_none(self) -> None:
        assert await StandardFontSource().fetch() is None
