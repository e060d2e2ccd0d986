# SPDX-License-Identifier: Apache-2.0
"""Helper functions for pypdfium2 raw API calls and draw-time geometry."""

import ctypes


def to_widestring(text: str) -> ctypes.Array:
    """Convert a Python string to FPDF_WIDESTRING (UTF-16LE, null-terminated).

    Example:
        >>> ws = to_widestring("Ann")
        >>> # ws can now be passed to FPDFText_SetText
    """
    encoded = (text + "\x00").encode("utf-16-le")
    return (ctypes.c_ushort * (len(encoded) // 2)).from_buffer_copy(encoded)


def to_byte_array(data: bytes) -> ctypes.Array:
    """Convert bytes to a ctypes c_ubyte array (e.g. font data for FPDFText_LoadFont).

    The returned array must be kept alive while PDFium uses it.
    """
    return (ctypes.c_ubyte * len(data)).from_buffer_copy(data)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]; if high < low, low wins."""
    return max(low, min(value, high))
