# SPDX-License-Identifier: Apache-2.0
"""Form field detectors.

FallbackDetector is always available (offline, returns a fixed layout).
HuggingFaceDetector calls the Hugging Face Inference API and requires an
access token.

Usage:
    # Offline demo layout
    from pdf_form_filler.detectors import FallbackDetector
    result = await FallbackDetector().detect(image)

    # Hugging Face (requires aiohttp and an hf_... token)
    from pdf_form_filler.detectors import get_huggingface_detector
    HuggingFaceDetector = get_huggingface_detector()
    async with HuggingFaceDetector() as detector:
        result = await detector.detect(image, credential="hf_...")
"""

from pdf_form_filler.detectors.base import (
    FALLBACK_FIELDS,
    AuthenticationError,
    DetectorError,
    FieldDetector,
    NoFieldsDetectedError,
    UpstreamError,
    fallback_fields,
)
from pdf_form_filler.detectors.fallback import FallbackDetector
from pdf_form_filler.detectors.responses import decode_detection_response

__all__ = [
    # Protocol and exceptions
    "FieldDetector",
    "DetectorError",
    "AuthenticationError",
    "UpstreamError",
    "NoFieldsDetectedError",
    # Always available
    "FallbackDetector",
    "FALLBACK_FIELDS",
    "fallback_fields",
    "decode_detection_response",
    # Lazy import functions
    "get_huggingface_detector",
]


def get_huggingface_detector() -> type:
    """Get HuggingFaceDetector class with lazy import.

    Returns:
        HuggingFaceDetector class.

    Raises:
        ImportError: If aiohttp is not installed.
    """
    from pdf_form_filler.detectors.huggingface import HuggingFaceDetector

    return HuggingFaceDetector
