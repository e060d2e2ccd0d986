# SPDX-License-Identifier: Apache-2.0
"""Decoding of detection-service responses.

The service answers in one of two shapes:

    [{"word": "first_name", "bbox": [x1, y1, x2, y2], "confidence": 0.97}, ...]

    {"first_name": {"bbox": [x1, y1, x2, y2]}, "signature": {...}}

Labels are lower-cased. Entries without a 4-number bbox, or with a
confidence outside [0, 1], are dropped; anything else unexpected
yields an empty list so that the caller can decide about fallback.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from pdf_form_filler.core.models import DEFAULT_CONFIDENCE, DetectedField, PixelBox

logger = logging.getLogger(__name__)


class _BoxModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bbox: list[float]
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_validator("bbox")
    @classmethod
    def _four_values(cls, value: list[float]) -> list[float]:
        if len(value) != 4:
            raise ValueError(f"bbox must have 4 values, got {len(value)}")
        return value

    def to_field(self, label: str) -> DetectedField:
        confidence = DEFAULT_CONFIDENCE if self.confidence is None else self.confidence
        return DetectedField(
            raw_label=label,
            bbox=PixelBox.from_sequence(self.bbox),
            confidence=confidence,
        )


class WordRecord(_BoxModel):
    """Array-shaped entry: ``{"word": ..., "bbox": [...]}``."""

    word: str


class LabeledBox(_BoxModel):
    """Object-shaped entry keyed by label: ``{"bbox": [...]}``."""


_ENTRY_ADAPTER: TypeAdapter[Union[list[Any], dict[str, Any]]] = TypeAdapter(
    Union[list[Any], dict[str, Any]]
)


def decode_detection_response(payload: Any) -> list[DetectedField]:
    """Decode a parsed JSON response into detected fields.

    Args:
        payload: Parsed JSON (list or dict).

    Returns:
        Detected fields in response order; malformed entries are skipped.
    """
    try:
        container = _ENTRY_ADAPTER.validate_python(payload)
    except ValidationError:
        logger.warning("Unexpected detection response type: %s", type(payload).__name__)
        return []

    fields: list[DetectedField] = []
    if isinstance(container, list):
        for index, entry in enumerate(container):
            try:
                fields.append(_to_word_field(entry))
            except ValidationError as exc:
                logger.debug("Dropping response entry %d: %s", index, exc.errors()[0]["msg"])
    else:
        for label, entry in container.items():
            try:
                fields.append(LabeledBox.model_validate(entry).to_field(label.lower()))
            except ValidationError as exc:
                logger.debug("Dropping response entry %r: %s", label, exc.errors()[0]["msg"])
    return fields


def _to_word_field(entry: Any) -> DetectedField:
    record = WordRecord.model_validate(entry)
    return record.to_field(record.word.lower())
