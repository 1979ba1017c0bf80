"""YouTube oEmbed lookups used to preview a link before it is saved."""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError
from rich.console import Console

from walkingtube.config.settings import Settings, get_settings
from walkingtube.models.video import VideoPreview
from walkingtube.utils.youtube import watch_url

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"


class YouTubePreviewService:
    """Fetch title and thumbnail for a YouTube video via oEmbed."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http = http_client or httpx.AsyncClient(timeout=self._settings.http_timeout_seconds)
        self._console = console or Console()

    async def fetch_preview(self, video_id: str) -> Optional[VideoPreview]:
        """Return preview details, or ``None`` when the video cannot be previewed."""

        try:
            response = await self._http.get(OEMBED_ENDPOINT, params={"url": watch_url(video_id), "format": "json"})
        except httpx.HTTPError as exc:
            self._console.log(f"[yellow]Preview:[/yellow] oEmbed request failed (video_id={video_id}): {exc}")
            return None

        if response.status_code != 200:
            return None

        try:
            body = response.json()
            return VideoPreview(
                title=body["title"],
                thumbnail_url=body.get("thumbnail_url"),
                author_name=body.get("author_name"),
                author_url=body.get("author_url"),
            )
        except (ValueError, KeyError, ValidationError) as exc:
            self._console.log(f"[yellow]Preview:[/yellow] unexpected oEmbed body (video_id={video_id}): {exc}")
            return None

    async def aclose(self) -> None:
        await self._http.aclose()


__all__ = ["OEMBED_ENDPOINT", "YouTubePreviewService"]
