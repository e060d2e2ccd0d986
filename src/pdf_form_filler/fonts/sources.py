# SPDX-License-Identifier: Apache-2.0
"""Display font sources.

RemoteFontSource downloads a handwriting-style font, trying each mirror in
order. Every failure (network error, timeout, non-200 status, malformed
bytes) is logged and results in None, which makes the compositor fall back
to the standard oblique font.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import aiohttp

from .base import FontAsset, decode_font

logger = logging.getLogger(__name__)

# Dancing Script, tried in order
DEFAULT_FONT_URLS: tuple[str, ...] = (
    "https://fonts.gstatic.com/s/dancingscript/v25/"
    "If2cXTr6YS-zF4S-kcSWSVi_sxjsohD9F50Ruu7BMSo3ROpY.woff2",
    "https://github.com/google/fonts/raw/main/ofl/dancingscript/"
    "DancingScript%5Bwght%5D.ttf",
)

DEFAULT_FONT_TIMEOUT = 10.0


class RemoteFontSource:
    """Fetch a display font over HTTP with multiple mirrors."""

    def __init__(
        self,
        urls: Sequence[str] = DEFAULT_FONT_URLS,
        timeout: float = DEFAULT_FONT_TIMEOUT,
    ) -> None:
        """Initialize RemoteFontSource.

        Args:
            urls: Font file URLs tried in order.
            timeout: Total timeout per request in seconds.
        """
        self._urls = tuple(urls)
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "remote"

    @property
    def urls(self) -> tuple[str, ...]:
        return self._urls

    async def fetch(self) -> Optional[FontAsset]:
        """Download the first font that parses; None if every mirror fails."""
        if not self._urls:
            return None

        timeout = aiohttp.ClientTimeout(total=self._timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                for url in self._urls:
                    asset = await self._fetch_one(session, url)
                    if asset is not None:
                        logger.info("Loaded display font %r from %s", asset.family, url)
                        return asset
        except Exception as exc:
            logger.warning("Font download failed: %s", exc)
            return None

        logger.warning("Could not load display font from any mirror; using standard font")
        return None

    async def _fetch_one(
        self, session: aiohttp.ClientSession, url: str
    ) -> Optional[FontAsset]:
        try:
            async with session.get(url) as response:
                if response.status != 200:
                    logger.warning("Font request to %s returned status %d", url, response.status)
                    return None
                data = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Font request to %s failed: %s", url, exc or type(exc).__name__)
            return None

        try:
            return decode_font(data, origin=url)
        except ValueError as exc:
            logger.warning("%s", exc)
            return None


class LocalFontSource:
    """Read a display font from a local file."""

    def __init__(self, path: Union[Path, str]) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        return "local"

    async def fetch(self) -> Optional[FontAsset]:
        try:
            data = await asyncio.to_thread(self._path.read_bytes)
            return decode_font(data, origin=str(self._path))
        except (OSError, ValueError) as exc:
            logger.warning("Could not load font file %s: %s", self._path, exc)
            return None


class StandardFontSource:
    """Always use the standard PDF fallback font."""

    @property
    def name(self) -> str:
        return "standard"

    async def fetch(self) -> Optional[FontAsset]:
        return None
