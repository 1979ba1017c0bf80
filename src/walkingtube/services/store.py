"""Video store client: create, list and delete map videos in the hosted database."""

from __future__ import annotations

from typing import List, Optional

import psycopg2
from rich.console import Console

from walkingtube.config.settings import FieldLimits, Settings, get_settings
from walkingtube.db import ConnectionFactory
from walkingtube.db.connection import get_connection
from walkingtube.db.repositories import RecordNotFoundError, RepositoryError
from walkingtube.db.video_repository import VideoRepository
from walkingtube.models.session import SessionUser
from walkingtube.models.validation import ValidationCode, ValidationIssue
from walkingtube.models.video import PayloadShapeError, Video, VideoDraft, VideoSubmission
from walkingtube.utils.validation import validate_submission
from walkingtube.utils.youtube import InvalidYouTubeURLError, extract_video_id

UNDEFINED_TABLE = "42P01"


class StoreError(RuntimeError):
    """Base exception raised when the video store rejects an action."""


class AuthRequiredError(StoreError):
    """Raised when a write is attempted without a signed-in user."""


class StoreWriteError(StoreError):
    """Raised when inserting a video fails."""


class StoreDeleteError(StoreError):
    """Raised when deleting a video fails or is not permitted."""


class SubmissionInvalidError(ValueError):
    """Raised with the full list of field issues when a submission cannot be saved."""

    def __init__(self, issues: List[ValidationIssue]) -> None:
        self.issues = list(issues)
        fields = ", ".join(sorted({issue.field for issue in self.issues}))
        super().__init__(f"Submission has invalid fields: {fields}")


def can_delete(video: Video, user: Optional[SessionUser]) -> bool:
    """Return ``True`` when ``user`` authored ``video``."""

    return user is not None and video.author_id is not None and video.author_id == user.id


def prepare_draft(submission: VideoSubmission, user: SessionUser, limits: Optional[FieldLimits] = None) -> VideoDraft:
    """Validate ``submission`` and build the insert payload.

    Raises
    ------
    SubmissionInvalidError
        If the validator reports issues or the YouTube link holds no video ID.
    """

    issues = validate_submission(submission, limits)
    youtube_id: Optional[str] = None
    if submission.youtube_url and submission.youtube_url.strip():
        try:
            youtube_id = extract_video_id(submission.youtube_url)
        except InvalidYouTubeURLError:
            issues.append(
                ValidationIssue(
                    field="youtube_url",
                    code=ValidationCode.INVALID_YOUTUBE_URL,
                    message="Enter a valid YouTube link.",
                )
            )
    if issues or youtube_id is None:
        raise SubmissionInvalidError(issues)

    return VideoDraft(
        title=submission.title.strip(),
        youtube_id=youtube_id,
        latitude=submission.latitude,
        longitude=submission.longitude,
        description=(submission.description or "").strip() or None,
        location_name=(submission.location_name or "").strip() or None,
        author_id=user.id,
    )


class VideoStoreService:
    """Read and write map videos through :class:`VideoRepository`."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._console = console or Console()
        self._repository = VideoRepository(connection_factory or get_connection)

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def list_videos(self) -> List[Video]:
        """Return all videos, newest first; any store failure is logged and yields ``[]``."""

        try:
            videos = self._repository.list_recent()
        except psycopg2.Error as exc:
            self._console.log(f"[red]Store:[/red] failed to fetch videos: {exc}")
            if getattr(exc, "pgcode", None) == UNDEFINED_TABLE:
                self._console.log(
                    "[yellow]Store:[/yellow] the videos table does not exist; run `walkingtube migrate`."
                )
            return []
        except (RepositoryError, PayloadShapeError) as exc:
            self._console.log(f"[red]Store:[/red] failed to fetch videos: {exc}")
            return []

        self._console.log(f"[blue]Store:[/blue] loaded {len(videos)} videos")
        return videos

    def get_video(self, video_id: str) -> Optional[Video]:
        """Return one video by id, or ``None`` when it does not exist."""

        try:
            return self._repository.get_by_id(video_id)
        except RecordNotFoundError:
            return None
        except psycopg2.DataError:
            # Not a well-formed uuid, so no row can match.
            return None
        except (psycopg2.Error, PayloadShapeError) as exc:
            self._console.log(f"[red]Store:[/red] failed to fetch video (id={video_id}): {exc}")
            raise StoreError("The video could not be loaded.") from exc

    def create_video(self, submission: VideoSubmission, user: Optional[SessionUser]) -> Video:
        """Validate and insert a new video authored by ``user``.

        Raises
        ------
        AuthRequiredError
            If ``user`` is ``None``.
        SubmissionInvalidError
            If the submission fails validation.
        StoreWriteError
            If the insert fails.
        """

        if user is None:
            raise AuthRequiredError("Sign in to add a video.")

        draft = prepare_draft(submission, user, self._settings.field_limits)

        try:
            video = self._repository.insert(draft)
        except (psycopg2.Error, RepositoryError, PayloadShapeError) as exc:
            self._console.log(f"[red]Store:[/red] failed to insert video (youtube_id={draft.youtube_id}): {exc}")
            raise StoreWriteError("The video could not be saved. Please try again.") from exc

        self._console.log(f"[green]Store:[/green] created video (id={video.id}, youtube_id={video.youtube_id})")
        return video

    def delete_video(self, video: Video, user: Optional[SessionUser]) -> None:
        """Delete ``video`` on behalf of its author.

        Raises
        ------
        StoreDeleteError
            If ``user`` is not the author, the delete fails, or no row was removed.
        """

        if user is None or not can_delete(video, user):
            raise StoreDeleteError("Only the author can delete this video.")

        try:
            removed = self._repository.delete_owned(video.id, user.id)
        except (psycopg2.Error, RepositoryError) as exc:
            self._console.log(f"[red]Store:[/red] failed to delete video (id={video.id}): {exc}")
            raise StoreDeleteError("The video could not be deleted.") from exc

        if removed == 0:
            raise StoreDeleteError("The video no longer exists or is not yours to delete.")
        self._console.log(f"[green]Store:[/green] deleted video (id={video.id})")


__all__ = [
    "AuthRequiredError",
    "StoreDeleteError",
    "StoreError",
    "StoreWriteError",
    "SubmissionInvalidError",
    "VideoStoreService",
    "can_delete",
    "prepare_draft",
]
