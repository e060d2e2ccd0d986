# SPDX-License-Identifier: Apache-2.0
"""Display font acquisition.

Usage:
    from pdf_form_filler.fonts import RemoteFontSource
    font = await RemoteFontSource().fetch()  # FontAsset or None, never raises
"""

from pdf_form_filler.fonts.base import (
    STANDARD_FALLBACK_FONT,
    FontAsset,
    FontSource,
    decode_font,
)
from pdf_form_filler.fonts.sources import (
    DEFAULT_FONT_URLS,
    LocalFontSource,
    RemoteFontSource,
    StandardFontSource,
)

__all__ = [
    "DEFAULT_FONT_URLS",
    "STANDARD_FALLBACK_FONT",
    "FontAsset",
    "FontSource",
    "LocalFontSource",
    "RemoteFontSource",
    "StandardFontSource",
    "decode_font",
]
