"""Models describing field-level validation failures."""

from __future__ import annotations

from enum import Enum

from walkingtube.models.base import WalkingTubeBaseModel


class ValidationCode(str, Enum):
    """Kinds of problems reported against a video submission."""

    EMPTY_FIELD = "empty_field"
    TOO_LONG = "too_long"
    MISSING_LOCATION = "missing_location"
    OUT_OF_RANGE = "out_of_range"
    INVALID_YOUTUBE_URL = "invalid_youtube_url"


class ValidationIssue(WalkingTubeBaseModel):
    """A single problem tagged with the form field it belongs to."""

    field: str
    code: ValidationCode
    message: str


__all__ = ["ValidationCode", "ValidationIssue"]
