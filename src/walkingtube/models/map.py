"""Models describing the map viewport and the state owned by the map view."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from walkingtube.models.base import WalkingTubeBaseModel
from walkingtube.models.session import SessionUser
from walkingtube.models.video import Video


class Viewport(WalkingTubeBaseModel):
    """Map center and zoom level."""

    longitude: float = Field(ge=-180.0, le=180.0)
    latitude: float = Field(ge=-90.0, le=90.0)
    zoom: float = Field(default=4.0, ge=0.0, le=22.0)


class PlaceResult(WalkingTubeBaseModel):
    """Labeled coordinate returned by the geocoding lookup."""

    id: str
    label: str
    longitude: float
    latitude: float


class MapState(WalkingTubeBaseModel):
    """Everything the map view displays.

    Instances are treated as values: reconciliation and interaction handlers return an updated
    copy rather than mutating the object they received.
    """

    viewport: Viewport
    videos: List[Video] = Field(default_factory=list)
    selected: Optional[Video] = None
    user: Optional[SessionUser] = None
    search_query: str = ""
    search_results: List[PlaceResult] = Field(default_factory=list)

    def find(self, video_id: str) -> Optional[Video]:
        """Return the video with ``video_id`` from the local list, if present."""

        for video in self.videos:
            if video.id == video_id:
                return video
        return None


__all__ = ["MapState", "PlaceResult", "Viewport"]
