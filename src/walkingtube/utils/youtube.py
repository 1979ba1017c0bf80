"""Helpers for YouTube URLs and identifiers."""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse


class InvalidYouTubeURLError(ValueError):
    """Raised when a provided value contains no recognisable YouTube video identifier."""


_VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")
_PATH_ID_PATTERN = re.compile(r"^/(?:embed/|shorts/)?([0-9A-Za-z_-]{11})")
_FALLBACK_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/shorts/)([0-9A-Za-z_-]{11})"),
    re.compile(r"^([0-9A-Za-z_-]{11})$"),
)

THUMBNAIL_QUALITIES = {
    "default": "default",
    "medium": "mqdefault",
    "high": "hqdefault",
    "maxres": "maxresdefault",
}


def _normalise_host(host: str) -> str:
    host = host.lower()
    for prefix in ("www.", "m."):
        if host.startswith(prefix):
            host = host[len(prefix):]
    return host


def extract_video_id(value: str) -> str:
    """Extract an 11-character YouTube video ID from a URL or raw ID string.

    Supported shapes include ``youtube.com/watch?v=ID`` (desktop and mobile), ``youtu.be/ID``,
    ``youtube.com/embed/ID``, ``youtube.com/shorts/ID`` and the bare identifier itself. Passing an
    already-extracted ID returns it unchanged.

    Raises
    ------
    InvalidYouTubeURLError
        If no identifier can be found.
    """

    stripped = value.strip() if isinstance(value, str) else ""
    if not stripped:
        raise InvalidYouTubeURLError(f"Invalid YouTube URL or video ID: {value!r}")

    parsed = urlparse(stripped)
    if parsed.scheme in {"http", "https"} and parsed.hostname:
        host = _normalise_host(parsed.hostname)

        if host == "youtube.com" and parsed.path == "/watch":
            candidate_list = parse_qs(parsed.query).get("v", [])
            if candidate_list and _VIDEO_ID_PATTERN.fullmatch(candidate_list[0]):
                return candidate_list[0]

        if host in {"youtube.com", "youtu.be"}:
            path_match = _PATH_ID_PATTERN.match(parsed.path)
            if path_match:
                return path_match.group(1)

    for pattern in _FALLBACK_PATTERNS:
        match = pattern.search(stripped)
        if match:
            return match.group(1)

    raise InvalidYouTubeURLError(f"Invalid YouTube URL or video ID: {value!r}")


def watch_url(video_id: str) -> str:
    """Return the canonical watch URL for a video ID."""

    return f"https://www.youtube.com/watch?v={video_id}"


def embed_url(video_id: str) -> str:
    """Return the embeddable player URL for a video ID."""

    return f"https://www.youtube.com/embed/{video_id}"


def thumbnail_url(video_id: str, quality: str = "high") -> str:
    """Return the static thumbnail URL for a video ID at the requested quality."""

    try:
        filename = THUMBNAIL_QUALITIES[quality]
    except KeyError as exc:
        raise ValueError(f"Unknown thumbnail quality: {quality!r}") from exc
    return f"https://img.youtube.com/vi/{video_id}/{filename}.jpg"


__all__ = ["InvalidYouTubeURLError", "embed_url", "extract_video_id", "thumbnail_url", "watch_url"]
