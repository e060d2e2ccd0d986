# SPDX-License-Identifier: Apache-2.0
"""Font source protocol and font decoding."""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

# Standard PDF font used whenever no display font could be acquired
STANDARD_FALLBACK_FONT = "Helvetica-Oblique"


@dataclass(frozen=True)
class FontAsset:
    """Decoded display font ready for embedding.

    Attributes:
        data: Plain TrueType/OpenType (sfnt) bytes.
        family: Family name from the font's name table.
        origin: URL or path the font was read from.
    """

    data: bytes
    family: str
    origin: str


@runtime_checkable
class FontSource(Protocol):
    """Protocol for display-font strategies.

    Implementations must never raise from ``fetch``; returning None makes
    the compositor use STANDARD_FALLBACK_FONT.
    """

    @property
    def name(self) -> str:
        """Source name ("remote", "local", "standard")."""
        ...

    async def fetch(self) -> Optional[FontAsset]:
        """Acquire the display font, or None if unavailable."""
        ...


def decode_font(data: bytes, origin: str) -> FontAsset:
    """Parse font bytes with fontTools and return plain sfnt data.

    WOFF and WOFF2 payloads are decompressed, since PDFium only embeds
    raw TrueType/OpenType data.

    Raises:
        ValueError: If the bytes are not a readable font.
    """
    from fontTools.ttLib import TTFont, TTLibError  # type: ignore[import-untyped]

    if not data:
        raise ValueError(f"Empty font data from {origin}")

    malformed = (TTLibError, KeyError, OSError, ImportError, struct.error)
    try:
        font = TTFont(io.BytesIO(data))
    except malformed as exc:
        raise ValueError(f"Malformed font data from {origin}: {exc}") from exc

    try:
        family = font["name"].getDebugName(1) or "custom"
        font.flavor = None
        out = io.BytesIO()
        font.save(out)
    except malformed as exc:
        raise ValueError(f"Malformed font data from {origin}: {exc}") from exc
    finally:
        font.close()

    return FontAsset(data=out.getvalue(), family=family, origin=origin)
