"""Rules for merging local actions and change-feed events into :class:`MapState`.

Every function returns a new state; the input is never mutated. After each step the ``id`` of
every video in ``state.videos`` is unique.
"""

from __future__ import annotations

from walkingtube.models.change import ChangeEvent, ChangeType
from walkingtube.models.map import MapState
from walkingtube.models.video import PayloadShapeError, Video


def insert_video(state: MapState, video: Video) -> MapState:
    """Prepend ``video``; an id already in the list is replaced in place instead of duplicated."""

    if state.find(video.id) is not None:
        return update_video(state, video)
    return state.model_copy(update={"videos": [video, *state.videos]})


def update_video(state: MapState, video: Video) -> MapState:
    """Replace the entry sharing ``video.id`` and refresh the selection; unknown ids change nothing."""

    if state.find(video.id) is None:
        return state

    videos = [video if existing.id == video.id else existing for existing in state.videos]
    selected = video if state.selected is not None and state.selected.id == video.id else state.selected
    return state.model_copy(update={"videos": videos, "selected": selected})


def remove_video(state: MapState, video_id: str) -> MapState:
    """Drop the entry with ``video_id`` and clear the selection if it pointed at it."""

    selected = None if state.selected is not None and state.selected.id == video_id else state.selected
    if state.find(video_id) is None and selected is state.selected:
        return state

    videos = [existing for existing in state.videos if existing.id != video_id]
    return state.model_copy(update={"videos": videos, "selected": selected})


def apply_change(state: MapState, event: ChangeEvent) -> MapState:
    """Apply a single change-feed event.

    Raises
    ------
    PayloadShapeError
        If an insert or update event carries a row that cannot be decoded.
    """

    if event.type is ChangeType.DELETE:
        record_id = event.record_id
        return state if record_id is None else remove_video(state, record_id)

    if event.record is None:
        raise PayloadShapeError(f"{event.type.value} event is missing its record.")
    video = Video.from_row(event.record)

    if event.type is ChangeType.INSERT:
        return insert_video(state, video)
    return update_video(state, video)


__all__ = ["apply_change", "insert_video", "remove_video", "update_video"]
