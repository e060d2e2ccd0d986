# SPDX-License-Identifier: Apache-2.0
"""Core form filling modules."""

from .canonicalizer import FieldCanonicalizer, classify_label, normalize_label
from .compositor import CompositeConfig, CompositeResult, Compositor, clip_signature_size
from .coordinates import map_fields, to_page_space
from .models import (
    CanonicalKind,
    Completeness,
    DetectedField,
    DetectionResult,
    PageBox,
    PageGeometry,
    PersonalRecord,
    PixelBox,
    RasterImage,
    ResolvedField,
    SignatureAsset,
)
from .rasterizer import RasterizeConfig, Rasterizer

__all__ = [
    "CanonicalKind",
    "Completeness",
    "CompositeConfig",
    "CompositeResult",
    "Compositor",
    "DetectedField",
    "DetectionResult",
    "FieldCanonicalizer",
    "PageBox",
    "PageGeometry",
    "PersonalRecord",
    "PixelBox",
    "RasterImage",
    "RasterizeConfig",
    "Rasterizer",
    "ResolvedField",
    "SignatureAsset",
    "classify_label",
    "clip_signature_size",
    "map_fields",
    "normalize_label",
    "to_page_space",
]
