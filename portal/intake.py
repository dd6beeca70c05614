# portal/intake.py
"""
Form Intake

Turns a raw submission (a ReadingRequest, or the equivalent dict) into a
RequestRecord:
- strips whitespace from every text field
- requires name, birthdate and email
- maps the reading type onto a known ReadingType, falling back to the
  canonical default when it is missing or not recognised
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .errors import ValidationError
from .models import DEFAULT_READING_TYPE, ReadingRequest, ReadingType, RequestRecord

logger = logging.getLogger(__name__)

Submission = Union[ReadingRequest, RequestRecord, Mapping[str, Any]]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_reading_type(raw: Any) -> ReadingType:
    """
    Total mapping from any input to one ReadingType.
    """
    if isinstance(raw, ReadingType):
        return raw
    candidate = (_clean(raw) or "").lower()
    try:
        return ReadingType(candidate)
    except ValueError:
        if candidate:
            logger.info("Unknown reading type %r, using %s", raw, DEFAULT_READING_TYPE.value)
        return DEFAULT_READING_TYPE


def validate_submission(submission: Submission) -> RequestRecord:
    """
    Validate a submission and return the RequestRecord to store/fulfil.

    Raises ValidationError if name, birthdate or email are missing.
    """
    if isinstance(submission, RequestRecord):
        req = ReadingRequest.model_validate(submission.model_dump(mode="json"))
    elif isinstance(submission, ReadingRequest):
        req = submission
    else:
        req = ReadingRequest.model_validate(dict(submission))

    name = _clean(req.name)
    email = _clean(req.email)
    birthdate = _clean(req.birthdate)

    if not name or not birthdate or not email:
        missing = [
            field_name
            for field_name, value in (("name", name), ("birthdate", birthdate), ("email", email))
            if not value
        ]
        logger.warning("Intake rejected, missing fields: %s", ", ".join(missing))
        raise ValidationError()

    return RequestRecord(
        reading_type=normalize_reading_type(req.reading_type),
        name=name,
        email=email,
        birthdate=birthdate,
        current_state=_clean(req.current_state),
        personality=_clean(req.personality),
        goal=_clean(req.goal),
        question=_clean(req.question),
    )
