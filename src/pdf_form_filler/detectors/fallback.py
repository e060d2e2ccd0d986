# SPDX-License-Identifier: Apache-2.0
"""Offline detector returning the fixed fallback field set."""

from __future__ import annotations

from typing import Optional

from pdf_form_filler.core.models import DetectionResult, RasterImage
from pdf_form_filler.detectors.base import finalize_detection


class FallbackDetector:
    """Demo detector: always reports the fallback layout.

    Needs no credential and makes no network calls. Results are marked
    ``was_fallback`` so the pipeline reports the fill as incomplete.
    """

    @property
    def name(self) -> str:
        return "fallback"

    async def detect(
        self,
        image: RasterImage,
        credential: Optional[str] = None,
    ) -> DetectionResult:
        return finalize_detection([], use_fallback=True, source=self.name)
