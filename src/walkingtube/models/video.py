"""Pydantic models describing location-tagged YouTube videos."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from pydantic import ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from walkingtube.models.base import WalkingTubeBaseModel

YOUTUBE_ID_PATTERN = r"^[a-zA-Z0-9_-]{11}$"


class PayloadShapeError(ValueError):
    """Raised when a row or change payload does not match the ``videos`` schema."""


class VideoRow(WalkingTubeBaseModel):
    """Wire representation of a row in the ``videos`` table.

    Every column must be present; nullable columns carry ``None``. Unknown columns are rejected so
    that schema drift surfaces at the store boundary instead of deep inside the map state.
    """

    id: str
    title: str
    youtube_id: str
    latitude: float
    longitude: float
    description: Optional[str]
    location_name: Optional[str]
    author_id: Optional[str]
    created_at: datetime


class Video(WalkingTubeBaseModel):
    """In-memory video record displayed as a map marker.

    Attributes use snake_case in Python; ``model_dump(by_alias=True)`` yields the camelCase view
    (``youtubeId``, ``locationName``, ``authorId``, ``createdAt``) used for display output.
    """

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    youtube_id: str = Field(pattern=YOUTUBE_ID_PATTERN)
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    description: Optional[str] = None
    location_name: Optional[str] = None
    author_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Video":
        """Decode a wire row, raising :class:`PayloadShapeError` on any mismatch."""

        try:
            wire = VideoRow.model_validate({key: _stringify_id(key, value) for key, value in row.items()})
            return cls(**wire.model_dump())
        except ValidationError as exc:
            raise PayloadShapeError(f"Malformed videos row: {exc}") from exc

    def to_view(self) -> Dict[str, Any]:
        """Return the camelCase JSON view of this record."""

        return self.model_dump(mode="json", by_alias=True)


class VideoSubmission(WalkingTubeBaseModel):
    """Unvalidated form input for a new video.

    Values are kept loose on purpose; :func:`walkingtube.utils.validation.validate_submission`
    reports every problem at once instead of failing on the first.
    """

    title: str = ""
    youtube_url: str = ""
    description: Optional[str] = None
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class VideoDraft(WalkingTubeBaseModel):
    """Validated insert payload for the ``videos`` table."""

    title: str = Field(min_length=1)
    youtube_id: str = Field(pattern=YOUTUBE_ID_PATTERN)
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    description: Optional[str] = None
    location_name: Optional[str] = None
    author_id: str


class VideoPreview(WalkingTubeBaseModel):
    """Subset of the YouTube oEmbed response used to preview a submitted link."""

    title: str
    thumbnail_url: Optional[str] = None
    author_name: Optional[str] = None
    author_url: Optional[str] = None


def _stringify_id(key: str, value: Any) -> Any:
    # psycopg2 may hand back uuid.UUID objects when the UUID adapter is registered.
    if key in {"id", "author_id"} and value is not None and not isinstance(value, str):
        return str(value)
    return value


__all__ = [
    "PayloadShapeError",
    "Video",
    "VideoDraft",
    "VideoPreview",
    "VideoRow",
    "VideoSubmission",
    "YOUTUBE_ID_PATTERN",
]
