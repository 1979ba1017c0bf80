"""Validation helpers for video submissions."""

from __future__ import annotations

from typing import List, Optional

from walkingtube.config.settings import FieldLimits
from walkingtube.models.validation import ValidationCode, ValidationIssue
from walkingtube.models.video import VideoSubmission

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


def _too_long(value: Optional[str], limit: int) -> bool:
    return bool(value) and len(value) > limit  # type: ignore[arg-type]


def validate_submission(submission: VideoSubmission, limits: Optional[FieldLimits] = None) -> List[ValidationIssue]:
    """Return every problem found in ``submission``; an empty list means the form is valid."""

    limits = limits or FieldLimits()
    issues: List[ValidationIssue] = []

    if not submission.title or not submission.title.strip():
        issues.append(ValidationIssue(field="title", code=ValidationCode.EMPTY_FIELD, message="Title is required."))
    elif len(submission.title) > limits.title:
        issues.append(
            ValidationIssue(
                field="title",
                code=ValidationCode.TOO_LONG,
                message=f"Title must be at most {limits.title} characters.",
            )
        )

    if not submission.youtube_url or not submission.youtube_url.strip():
        issues.append(
            ValidationIssue(
                field="youtube_url",
                code=ValidationCode.EMPTY_FIELD,
                message="A YouTube link or video ID is required.",
            )
        )

    if _too_long(submission.description, limits.description):
        issues.append(
            ValidationIssue(
                field="description",
                code=ValidationCode.TOO_LONG,
                message=f"Description must be at most {limits.description} characters.",
            )
        )

    if _too_long(submission.location_name, limits.location_name):
        issues.append(
            ValidationIssue(
                field="location_name",
                code=ValidationCode.TOO_LONG,
                message=f"Location name must be at most {limits.location_name} characters.",
            )
        )

    if submission.latitude is None or submission.longitude is None:
        issues.append(
            ValidationIssue(
                field="location",
                code=ValidationCode.MISSING_LOCATION,
                message="Pick a location on the map.",
            )
        )
    else:
        low, high = LATITUDE_RANGE
        if not low <= submission.latitude <= high:
            issues.append(
                ValidationIssue(field="latitude", code=ValidationCode.OUT_OF_RANGE, message="Latitude is out of range.")
            )
        low, high = LONGITUDE_RANGE
        if not low <= submission.longitude <= high:
            issues.append(
                ValidationIssue(
                    field="longitude", code=ValidationCode.OUT_OF_RANGE, message="Longitude is out of range."
                )
            )

    return issues


__all__ = ["LATITUDE_RANGE", "LONGITUDE_RANGE", "validate_submission"]
