"""Repository for the ``videos`` table."""

from __future__ import annotations

from typing import Any, List, Mapping

from walkingtube.db import VIDEOS_TABLE, ConnectionFactory
from walkingtube.db.repositories import BaseRepository
from walkingtube.models.video import Video


class VideoRepository(BaseRepository[Video]):
    """Data access object for map videos."""

    table_name = VIDEOS_TABLE
    insert_fields = (
        "title",
        "youtube_id",
        "latitude",
        "longitude",
        "description",
        "location_name",
        "author_id",
    )

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)

    def list_recent(self) -> List[Video]:
        """Return every video, most recently created first."""

        return self.fetch_all(order_by="created_at DESC")

    def delete_owned(self, video_id: str, author_id: str) -> int:
        """Delete ``video_id`` only if it belongs to ``author_id``; return the number of rows removed."""

        return self.delete_where(
            "id = %(id)s AND author_id = %(author_id)s",
            {"id": video_id, "author_id": author_id},
        )

    def _decode(self, row: Mapping[str, Any]) -> Video:
        return Video.from_row(row)


__all__ = ["VideoRepository"]
