# SPDX-License-Identifier: Apache-2.0
"""Pixel space to PDF page space conversion.

Raster images have their origin at the top-left with y growing downwards;
PDF pages have their origin at the bottom-left with y growing upwards.
Mapping is a per-axis linear scale followed by a vertical flip:

    top    = page_height - y1 * ry
    bottom = page_height - y2 * ry

Clamping to page bounds happens at draw time, not here.
"""

from __future__ import annotations

from typing import Optional

from .models import PageBox, PageGeometry, PixelBox, RasterImage, ResolvedField


def to_page_space(
    bbox: PixelBox,
    page: PageGeometry,
    image_width: Optional[float] = None,
    image_height: Optional[float] = None,
    scale: float = 1.0,
) -> PageBox:
    """Convert a pixel-space box to a page-space box.

    When ``image_width``/``image_height`` are given, each axis is scaled by
    ``page / image``. Otherwise the image is assumed to have been rendered
    from the page at ``scale`` pixels per point and coordinates are divided
    by it.

    Invalid boxes (x2 < x1 or y2 < y1) map to a zero-area box at (x1, y1).
    Out-of-range input is never rejected.

    Args:
        bbox: Box in image pixels.
        page: Page size in points.
        image_width: Width of the image the box was detected on.
        image_height: Height of the image the box was detected on.
        scale: Render scale, used only when image dimensions are omitted.

    Returns:
        PageBox with x/y at the bottom-left corner.
    """
    if image_width is not None:
        rx = page.width_pt / image_width if image_width else 0.0
        if image_height is not None:
            ry = page.height_pt / image_height if image_height else 0.0
        else:
            ry = rx
    else:
        rx = ry = 1.0 / scale if scale else 0.0

    x = bbox.x1 * rx
    top = page.height_pt - bbox.y1 * ry
    if not bbox.is_valid:
        return PageBox(x=x, y=top, width=0.0, height=0.0)

    bottom = page.height_pt - bbox.y2 * ry
    return PageBox(
        x=x,
        y=bottom,
        width=(bbox.x2 - bbox.x1) * rx,
        height=(bbox.y2 - bbox.y1) * ry,
    )


def map_fields(fields: list[ResolvedField], image: RasterImage) -> list[PageBox]:
    """Map each field's box using the dimensions of the detection image."""
    return [
        to_page_space(
            resolved.field.bbox,
            image.page,
            image_width=image.width,
            image_height=image.height,
        )
        for resolved in fields
    ]
