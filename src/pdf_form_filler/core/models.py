# SPDX-License-Identifier: Apache-2.0
"""Data models for the form filling pipeline.

This module defines the per-invocation data passed between the pipeline
stages: the personal record, detected and resolved fields, the signature
asset, and the pixel/page coordinate types.

Coordinate systems:
- PixelBox: raster image space, origin top-left, y grows downwards.
- PageBox: PDF page space, origin bottom-left, y grows upwards, units in points.
"""

from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional, Sequence, Union

DEFAULT_CONFIDENCE = 0.9


class CanonicalKind(str, Enum):
    """Semantic form-field kinds the pipeline knows how to fill."""

    FIRST_NAME = "first_name"
    MIDDLE_NAME = "middle_name"
    LAST_NAME = "last_name"
    FULL_NAME = "full_name"
    GENDER = "gender"
    MARITAL_STATUS = "marital_status"
    CELL_PHONE = "cell_phone"
    WORK_PHONE = "work_phone"
    ADDRESS = "address"
    STATE = "state"
    ZIP_CODE = "zip_code"
    DATE = "date"
    SIGNATURE = "signature"
    UNKNOWN = "unknown"


class Completeness(str, Enum):
    """Outcome summary shown to the end user."""

    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


# camelCase keys written by the form UI
_CAMEL_CASE_KEYS: dict[str, str] = {
    "firstName": "first_name",
    "middleName": "middle_name",
    "lastName": "last_name",
    "gender": "gender",
    "maritalStatus": "marital_status",
    "cellPhone": "cell_phone",
    "workPhone": "work_phone",
    "homeAddress": "home_address",
    "state": "state",
    "zipCode": "zip_code",
}


@dataclass(frozen=True)
class PersonalRecord:
    """Immutable snapshot of the user's personal data.

    Absent values are empty strings, never None.
    """

    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    gender: str = ""
    marital_status: str = ""
    cell_phone: str = ""
    work_phone: str = ""
    home_address: str = ""
    state: str = ""
    zip_code: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersonalRecord:
        """Build a record from snake_case or camelCase keys.

        Unknown keys are ignored and None values become empty strings.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, str] = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                continue
            values[name] = "" if value is None else str(value)
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        """Convert to a snake_case dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PixelBox:
    """Axis-aligned box in source-image pixel space (x1, y1, x2, y2)."""

    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> PixelBox:
        """Create from a 4-element sequence.

        Raises:
            ValueError: If the sequence does not have exactly 4 numbers.
        """
        if len(values) != 4:
            raise ValueError(f"bbox must have 4 values, got {len(values)}")
        x1, y1, x2, y2 = (float(v) for v in values)
        return cls(x1=x1, y1=y1, x2=x2, y2=y2)

    @property
    def is_valid(self) -> bool:
        """Whether x2 >= x1 and y2 >= y1."""
        return self.x2 >= self.x1 and self.y2 >= self.y1

    @property
    def width(self) -> float:
        return self.x2 - self.x1 if self.is_valid else 0.0

    @property
    def height(self) -> float:
        return self.y2 - self.y1 if self.is_valid else 0.0

    def to_list(self) -> list[float]:
        return [self.x1, self.y1, self.x2, self.y2]


@dataclass(frozen=True)
class PageGeometry:
    """Size of the PDF's first page in points."""

    width_pt: float
    height_pt: float


@dataclass(frozen=True)
class PageBox:
    """Box in PDF page space (origin bottom-left, points)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass
class DetectedField:
    """A labeled region returned by a field detector."""

    raw_label: str
    bbox: PixelBox
    confidence: float = DEFAULT_CONFIDENCE

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.raw_label,
            "bbox": self.bbox.to_list(),
            "confidence": self.confidence,
        }


@dataclass
class DetectionResult:
    """Detector output.

    Attributes:
        fields: Detected fields in image pixel space.
        was_fallback: True when the fixed fallback set was substituted
            because detection produced nothing usable.
    """

    fields: list[DetectedField] = field(default_factory=list)
    was_fallback: bool = False


@dataclass(frozen=True)
class SignatureAsset:
    """Signature raster image (PNG) and its intrinsic pixel size.

    The bytes are owned by the caller; the pipeline only reads them.
    """

    png_bytes: bytes
    width: int
    height: int

    @classmethod
    def from_png(cls, png_bytes: bytes) -> SignatureAsset:
        """Create from PNG bytes, reading the dimensions with Pillow.

        Raises:
            ValueError: If the bytes are not a readable image.
        """
        from PIL import Image, UnidentifiedImageError

        try:
            with Image.open(io.BytesIO(png_bytes)) as img:
                width, height = img.size
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f"Invalid signature image: {exc}") from exc
        return cls(png_bytes=png_bytes, width=width, height=height)

    @classmethod
    def from_data_url(cls, data_url: str) -> SignatureAsset:
        """Create from a ``data:image/png;base64,...`` URL.

        Raises:
            ValueError: If the URL is not a base64 data URL.
        """
        header, sep, payload = data_url.partition(",")
        if not sep or not header.startswith("data:") or ";base64" not in header:
            raise ValueError("Signature must be a base64 data URL")
        try:
            raw = base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Invalid base64 signature payload: {exc}") from exc
        return cls.from_png(raw)


FieldValue = Union[str, SignatureAsset, None]


@dataclass
class ResolvedField:
    """A detected field classified into a canonical kind with its value.

    A None value means the kind was recognized but no data is available;
    such fields are never drawn.
    """

    field: DetectedField
    kind: CanonicalKind
    value: FieldValue = None

    @property
    def is_drawable(self) -> bool:
        return self.value is not None and self.kind != CanonicalKind.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        value: Optional[str]
        if isinstance(self.value, SignatureAsset):
            value = f"<signature {self.value.width}x{self.value.height}>"
        else:
            value = self.value
        return {
            **self.field.to_dict(),
            "kind": self.kind.value,
            "value": value,
        }


@dataclass(frozen=True)
class RasterImage:
    """Encoded bitmap of the first page.

    Attributes:
        data: Encoded image bytes.
        width: Actual pixel width of the encoded image.
        height: Actual pixel height of the encoded image.
        format: "jpeg" or "png".
        scale: Render scale used (pixels per point).
        page: Geometry of the rendered PDF page.
    """

    data: bytes
    width: int
    height: int
    format: str
    scale: float
    page: PageGeometry

    @property
    def content_type(self) -> str:
        return "image/png" if self.format == "png" else "image/jpeg"
