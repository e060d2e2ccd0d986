# SPDX-License-Identifier: Apache-2.0
"""Base classes and protocols for field detectors."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from pdf_form_filler.core.models import (
    DetectedField,
    DetectionResult,
    PixelBox,
    RasterImage,
)

logger = logging.getLogger(__name__)


class DetectorError(Exception):
    """Base exception for detector module."""

    pass


class AuthenticationError(DetectorError):
    """Credential missing or malformed.

    Raised before any network call. NOT retryable - fix the credential first.
    """

    pass


class UpstreamError(DetectorError):
    """Detection service failed (non-2xx status, network error, timeout).

    Attributes:
        status: HTTP status code, or None for transport failures.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NoFieldsDetectedError(DetectorError):
    """Detection produced no usable fields and fallback fields are disabled."""

    pass


# Fixed demo layout substituted when detection yields nothing (pixel space)
FALLBACK_FIELDS: tuple[tuple[str, tuple[float, float, float, float]], ...] = (
    ("first_name", (100, 150, 200, 170)),
    ("last_name", (250, 150, 350, 170)),
    ("phone", (100, 200, 250, 220)),
    ("address", (100, 250, 400, 270)),
    ("signature", (100, 400, 250, 450)),
)


def fallback_fields() -> list[DetectedField]:
    """Return a fresh copy of the fallback field set."""
    return [
        DetectedField(raw_label=label, bbox=PixelBox.from_sequence(bbox))
        for label, bbox in FALLBACK_FIELDS
    ]


def finalize_detection(
    fields: list[DetectedField], use_fallback: bool, source: str
) -> DetectionResult:
    """Wrap detected fields, substituting the fallback set when empty.

    Args:
        fields: Fields decoded from the detector response.
        use_fallback: Whether an empty result may be replaced.
        source: Detector name, for logging.

    Raises:
        NoFieldsDetectedError: If no fields were found and fallback is off.
    """
    if fields:
        logger.info("%s detected %d field(s)", source, len(fields))
        return DetectionResult(fields=fields, was_fallback=False)
    if not use_fallback:
        raise NoFieldsDetectedError(f"{source} detected no form fields")
    logger.info("%s detected no fields; using fallback field set", source)
    return DetectionResult(fields=fallback_fields(), was_fallback=True)


@runtime_checkable
class FieldDetector(Protocol):
    """Protocol definition for field detectors.

    All detector implementations must conform to this protocol.
    """

    @property
    def name(self) -> str:
        """Detector name ("huggingface", "fallback")."""
        ...

    async def detect(
        self,
        image: RasterImage,
        credential: Optional[str] = None,
    ) -> DetectionResult:
        """Locate labeled fields on a page image.

        Args:
            image: Rasterized first page.
            credential: API token for remote detectors.

        Returns:
            DetectionResult with boxes in image pixel space.

        Raises:
            AuthenticationError: Credential absent or malformed.
            UpstreamError: Remote service failure.
            NoFieldsDetectedError: Nothing detected and fallback disabled.
        """
        ...
