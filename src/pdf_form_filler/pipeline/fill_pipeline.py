# SPDX-License-Identifier: Apache-2.0
"""Form filling pipeline implementation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from pdf_form_filler.core.canonicalizer import DEFAULT_DATE_FORMAT, FieldCanonicalizer
from pdf_form_filler.core.compositor import CompositeConfig, CompositeResult, Compositor
from pdf_form_filler.core.coordinates import map_fields
from pdf_form_filler.core.models import (
    CanonicalKind,
    Completeness,
    DetectedField,
    DetectionResult,
    PageBox,
    PersonalRecord,
    RasterImage,
    ResolvedField,
    SignatureAsset,
)
from pdf_form_filler.core.rasterizer import RasterizeConfig, Rasterizer
from pdf_form_filler.detectors.base import FieldDetector, NoFieldsDetectedError, UpstreamError
from pdf_form_filler.fonts.base import FontSource
from pdf_form_filler.pipeline.progress import ProgressCallback

logger = logging.getLogger(__name__)

OUTPUT_FILENAME = "filled.pdf"

# Basic groups that must all be drawn for a fill to count as complete
COMPLETENESS_GROUPS: dict[str, tuple[frozenset[CanonicalKind], ...]] = {
    "name": (
        frozenset({CanonicalKind.FULL_NAME}),
        frozenset({CanonicalKind.FIRST_NAME, CanonicalKind.LAST_NAME}),
    ),
    "phone": (
        frozenset({CanonicalKind.CELL_PHONE}),
        frozenset({CanonicalKind.WORK_PHONE}),
    ),
    "address": (frozenset({CanonicalKind.ADDRESS}),),
    "signature": (frozenset({CanonicalKind.SIGNATURE}),),
}


@dataclass
class PipelineConfig:
    """Form filling pipeline configuration."""

    # Rasterization
    scale: float = 2.0
    image_format: str = "jpeg"
    jpeg_quality: int = 90

    # Substitute the fixed demo layout when detection finds nothing
    use_fallback_fields: bool = True

    # Seconds; None disables the bound
    detection_timeout: float | None = 30.0
    font_timeout: float | None = 10.0

    date_format: str = DEFAULT_DATE_FORMAT
    composite: CompositeConfig = field(default_factory=CompositeConfig)

    def rasterize_config(self) -> RasterizeConfig:
        return RasterizeConfig(
            scale=self.scale, format=self.image_format, quality=self.jpeg_quality
        )


@dataclass
class FillResult:
    """Form filling pipeline result."""

    pdf_bytes: bytes
    completeness: Completeness
    was_fallback: bool = False
    fields: list[ResolvedField] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    stats: dict[str, Any] | None = None
    filename: str = OUTPUT_FILENAME

    @property
    def is_complete(self) -> bool:
        return self.completeness == Completeness.COMPLETE


def evaluate_completeness(
    drawn: list[ResolvedField], was_fallback: bool
) -> tuple[Completeness, list[str]]:
    """Summarize whether the basic fields made it onto the page.

    Returns:
        (completeness, names of unsatisfied groups). A fill from the
        fallback layout is never complete.
    """
    kinds = {resolved.kind for resolved in drawn}
    missing = [
        group
        for group, alternatives in COMPLETENESS_GROUPS.items()
        if not any(required <= kinds for required in alternatives)
    ]
    if was_fallback or missing:
        return Completeness.INCOMPLETE, missing
    return Completeness.COMPLETE, missing


class FillPipeline:
    """PDF form filling pipeline.

    Stages run sequentially: rasterize, detect, canonicalize, map,
    composite. The pipeline holds no per-invocation state, so one instance
    may serve concurrent ``fill`` calls; cancel a call by cancelling its task.
    """

    def __init__(
        self,
        detector: FieldDetector,
        font_source: FontSource | None = None,
        config: PipelineConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize FillPipeline.

        Raises:
            ValueError: If the rasterization settings are invalid.
        """
        self._detector = detector
        self._config = config or PipelineConfig()
        self._progress_callback = progress_callback
        self._rasterizer = Rasterizer(self._config.rasterize_config())
        self._canonicalizer = FieldCanonicalizer(self._config.date_format)
        self._compositor = Compositor(
            font_source,
            self._config.composite,
            font_timeout=self._config.font_timeout,
        )

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def fill(
        self,
        pdf_source: Path | str | bytes,
        record: PersonalRecord,
        credential: str | None = None,
        signature: SignatureAsset | None = None,
        today: date | None = None,
    ) -> FillResult:
        """Fill a PDF form from path or bytes.

        Args:
            pdf_source: Original PDF bytes or a path to it.
            record: Personal data to write.
            credential: Detection service token.
            signature: Signature image, if any.
            today: Date written into date fields (default: today).

        Raises:
            FileNotFoundError: If a path is given and does not exist.
            RasterizationError: Source is not a renderable PDF.
            DetectorError: Detection failed (see detectors.base).
            MalformedDocumentError: Output could not be produced.
        """
        if isinstance(pdf_source, bytes):
            pdf_bytes = pdf_source
        else:
            path = Path(pdf_source)
            if not path.exists():
                raise FileNotFoundError(f"PDF file not found: {path}")
            pdf_bytes = await asyncio.to_thread(path.read_bytes)

        today = today or date.today()

        image = await self._stage_rasterize(pdf_bytes)
        detection = await self._stage_detect(image, credential)
        resolved = self._stage_canonicalize(detection.fields, record, signature, today)
        boxes = self._stage_map(resolved, image)
        composite = await self._stage_composite(pdf_bytes, resolved, boxes)

        completeness, missing = evaluate_completeness(
            composite.drawn, detection.was_fallback
        )
        if missing:
            logger.info("Missing basic fields: %s", ", ".join(missing))

        stats = {
            "detector": self._detector.name,
            "image_width": image.width,
            "image_height": image.height,
            "detected_fields": len(detection.fields),
            "unknown_fields": sum(
                1 for r in resolved if r.kind == CanonicalKind.UNKNOWN
            ),
            "drawn_fields": len(composite.drawn),
            "skipped_fields": len(composite.skipped),
            "font": composite.font_name,
        }
        return FillResult(
            pdf_bytes=composite.pdf_bytes,
            completeness=completeness,
            was_fallback=detection.was_fallback,
            fields=resolved,
            missing=missing,
            stats=stats,
        )

    async def _stage_rasterize(self, pdf_bytes: bytes) -> RasterImage:
        image = await self._rasterizer.rasterize_async(pdf_bytes)
        self._notify("rasterize", 1, 1, f"{image.width}x{image.height} {image.format}")
        return image

    async def _stage_detect(
        self, image: RasterImage, credential: str | None
    ) -> DetectionResult:
        self._notify("detect", 0, 1, self._detector.name)
        try:
            detection = await asyncio.wait_for(
                self._detector.detect(image, credential),
                timeout=self._config.detection_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                f"Field detection timed out after {self._config.detection_timeout}s"
            ) from exc

        if detection.was_fallback and not self._config.use_fallback_fields:
            raise NoFieldsDetectedError(
                f"{self._detector.name} detected no form fields and fallback fields are disabled"
            )
        self._notify("detect", 1, 1, f"{len(detection.fields)} field(s)")
        return detection

    def _stage_canonicalize(
        self,
        fields: list[DetectedField],
        record: PersonalRecord,
        signature: SignatureAsset | None,
        today: date,
    ) -> list[ResolvedField]:
        resolved = self._canonicalizer.canonicalize(fields, record, signature, today)
        drawable = sum(1 for r in resolved if r.is_drawable)
        self._notify("canonicalize", drawable, len(resolved))
        return resolved

    def _stage_map(
        self, resolved: list[ResolvedField], image: RasterImage
    ) -> list[PageBox]:
        boxes = map_fields(resolved, image)
        self._notify("map", len(boxes), len(boxes))
        return boxes

    async def _stage_composite(
        self,
        pdf_bytes: bytes,
        resolved: list[ResolvedField],
        boxes: list[PageBox],
    ) -> CompositeResult:
        result = await self._compositor.composite(pdf_bytes, resolved, boxes)
        self._notify("composite", len(result.drawn), len(result.drawn) + len(result.skipped))
        return result

    def _notify(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self._progress_callback is None:
            return
        self._progress_callback(stage, current, total, message)
