# SPDX-License-Identifier: Apache-2.0
"""Field label canonicalization.

Detected labels are free text ("First_Name", "first name", "FIRSTNAME").
They are normalized and looked up in a synonym table that maps surface
forms to a closed set of canonical kinds. Matching is exact on the
normalized form; labels not in the table are UNKNOWN and never guessed.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Optional

from .models import (
    CanonicalKind,
    DetectedField,
    FieldValue,
    PersonalRecord,
    ResolvedField,
    SignatureAsset,
)

logger = logging.getLogger(__name__)

# Anything that is not a letter or digit is dropped during normalization
_NON_ALNUM = re.compile(r"[\W_]+", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")

DEFAULT_DATE_FORMAT = "%m/%d/%Y"

# Keys are normalized labels (see normalize_label)
LABEL_SYNONYMS: dict[str, CanonicalKind] = {
    # Names
    "firstname": CanonicalKind.FIRST_NAME,
    "fname": CanonicalKind.FIRST_NAME,
    "givenname": CanonicalKind.FIRST_NAME,
    "middlename": CanonicalKind.MIDDLE_NAME,
    "mname": CanonicalKind.MIDDLE_NAME,
    "lastname": CanonicalKind.LAST_NAME,
    "lname": CanonicalKind.LAST_NAME,
    "surname": CanonicalKind.LAST_NAME,
    "familyname": CanonicalKind.LAST_NAME,
    "name": CanonicalKind.FULL_NAME,
    "fullname": CanonicalKind.FULL_NAME,
    # Demographics
    "gender": CanonicalKind.GENDER,
    "sex": CanonicalKind.GENDER,
    "maritalstatus": CanonicalKind.MARITAL_STATUS,
    "civilstatus": CanonicalKind.MARITAL_STATUS,
    # Phones
    "phone": CanonicalKind.CELL_PHONE,
    "phonenumber": CanonicalKind.CELL_PHONE,
    "telephone": CanonicalKind.CELL_PHONE,
    "cell": CanonicalKind.CELL_PHONE,
    "cellphone": CanonicalKind.CELL_PHONE,
    "mobile": CanonicalKind.CELL_PHONE,
    "mobilephone": CanonicalKind.CELL_PHONE,
    "workphone": CanonicalKind.WORK_PHONE,
    "officephone": CanonicalKind.WORK_PHONE,
    "businessphone": CanonicalKind.WORK_PHONE,
    # Address
    "address": CanonicalKind.ADDRESS,
    "homeaddress": CanonicalKind.ADDRESS,
    "streetaddress": CanonicalKind.ADDRESS,
    "street": CanonicalKind.ADDRESS,
    "state": CanonicalKind.STATE,
    "zip": CanonicalKind.ZIP_CODE,
    "zipcode": CanonicalKind.ZIP_CODE,
    "postalcode": CanonicalKind.ZIP_CODE,
    "postcode": CanonicalKind.ZIP_CODE,
    # Computed / special
    "date": CanonicalKind.DATE,
    "today": CanonicalKind.DATE,
    "datesigned": CanonicalKind.DATE,
    "signature": CanonicalKind.SIGNATURE,
    "sign": CanonicalKind.SIGNATURE,
    "signhere": CanonicalKind.SIGNATURE,
    "applicantsignature": CanonicalKind.SIGNATURE,
}

# Kinds read straight from a PersonalRecord attribute
_RECORD_ATTRIBUTES: dict[CanonicalKind, str] = {
    CanonicalKind.FIRST_NAME: "first_name",
    CanonicalKind.MIDDLE_NAME: "middle_name",
    CanonicalKind.LAST_NAME: "last_name",
    CanonicalKind.GENDER: "gender",
    CanonicalKind.MARITAL_STATUS: "marital_status",
    CanonicalKind.CELL_PHONE: "cell_phone",
    CanonicalKind.WORK_PHONE: "work_phone",
    CanonicalKind.ADDRESS: "home_address",
    CanonicalKind.STATE: "state",
    CanonicalKind.ZIP_CODE: "zip_code",
}


def normalize_label(label: str) -> str:
    """Lower-case a label and strip separators and punctuation.

    >>> normalize_label("First_Name:")
    'firstname'
    """
    return _NON_ALNUM.sub("", label.lower())


def classify_label(label: str) -> CanonicalKind:
    """Map a free-text label to its canonical kind (UNKNOWN if unseen)."""
    return LABEL_SYNONYMS.get(normalize_label(label), CanonicalKind.UNKNOWN)


def full_name(record: PersonalRecord) -> str:
    """First, middle and last name joined with single spaces; empty parts elided."""
    joined = " ".join([record.first_name, record.middle_name, record.last_name])
    return _WHITESPACE.sub(" ", joined).strip()


class FieldCanonicalizer:
    """Resolve detected fields to canonical kinds and personal-data values."""

    def __init__(self, date_format: str = DEFAULT_DATE_FORMAT) -> None:
        """Initialize FieldCanonicalizer.

        Args:
            date_format: strftime format used for DATE fields.
        """
        self._date_format = date_format

    def canonicalize(
        self,
        fields: list[DetectedField],
        record: PersonalRecord,
        signature: Optional[SignatureAsset] = None,
        today: Optional[date] = None,
    ) -> list[ResolvedField]:
        """Classify every detected field and attach its value.

        Args:
            fields: Detector output.
            record: Personal data to fill in.
            signature: Signature image, if the user supplied one.
            today: Date used for DATE fields. Defaults to the current date.

        Returns:
            One ResolvedField per input field, in input order. Fields with
            no available data (or UNKNOWN kind) carry value=None.
        """
        today = today or date.today()
        resolved: list[ResolvedField] = []
        for detected in fields:
            kind = classify_label(detected.raw_label)
            value = self._resolve_value(kind, record, signature, today)
            if kind == CanonicalKind.UNKNOWN:
                logger.debug("Unrecognized field label: %r", detected.raw_label)
            resolved.append(ResolvedField(field=detected, kind=kind, value=value))
        return resolved

    def _resolve_value(
        self,
        kind: CanonicalKind,
        record: PersonalRecord,
        signature: Optional[SignatureAsset],
        today: date,
    ) -> FieldValue:
        if kind == CanonicalKind.UNKNOWN:
            return None
        if kind == CanonicalKind.SIGNATURE:
            return signature
        if kind == CanonicalKind.DATE:
            return today.strftime(self._date_format)
        if kind == CanonicalKind.FULL_NAME:
            text = full_name(record)
        else:
            text = getattr(record, _RECORD_ATTRIBUTES[kind]).strip()
        return text or None
