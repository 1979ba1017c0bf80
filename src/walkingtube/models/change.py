"""Models describing change-feed notifications for the ``videos`` table."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from walkingtube.models.base import WalkingTubeBaseModel


class ChangeType(str, Enum):
    """Row-level operations reported by the change feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(WalkingTubeBaseModel):
    """A decoded change notification.

    ``record`` holds the new row for inserts and updates; ``old_record`` holds the previous row
    for updates and deletes. Both are raw wire rows and are decoded by the reconciler.
    """

    type: ChangeType
    table: str = "videos"
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None

    @property
    def record_id(self) -> Optional[str]:
        """Identifier of the affected row, taken from whichever record carries it."""

        for row in (self.record, self.old_record):
            if row and row.get("id") is not None:
                return str(row["id"])
        return None


__all__ = ["ChangeEvent", "ChangeType"]
