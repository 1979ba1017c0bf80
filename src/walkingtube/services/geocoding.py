"""Place search backed by the Mapbox geocoding API."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional
from urllib.parse import quote

import httpx
from rich.console import Console

from walkingtube.config.settings import Settings, get_settings
from walkingtube.models.map import PlaceResult

GEOCODING_ENDPOINT = "https://api.mapbox.com/geocoding/v5/mapbox.places"


class GeocodingError(RuntimeError):
    """Raised when the geocoding lookup fails."""


class GeocodingService:
    """Resolve free-text queries into labeled coordinates."""

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

    async def search(self, query: str) -> List[PlaceResult]:
        """Return places matching ``query``; blank queries return ``[]`` without a request.

        Raises
        ------
        GeocodingError
            If the endpoint is unreachable, answers with an error or returns an unexpected body.
        """

        cleaned = query.strip()
        if not cleaned:
            return []

        token = self._settings.mapbox_token
        if token is None:
            raise GeocodingError("MAPBOX_TOKEN is not configured.")

        params = {
            "access_token": token.get_secret_value(),
            "language": self._settings.geocoding_language,
            "limit": str(self._settings.geocoding_limit),
        }
        url = f"{GEOCODING_ENDPOINT}/{quote(cleaned, safe='')}.json"
        try:
            response = await self._http.get(url, params=params)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodingError(f"Place search failed for {cleaned!r}: {exc}") from exc

        return [self._to_place(feature) for feature in body.get("features", [])]

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _to_place(feature: Mapping[str, Any]) -> PlaceResult:
        try:
            longitude, latitude = feature["center"][:2]
            return PlaceResult(
                id=str(feature["id"]),
                label=str(feature["place_name"]),
                longitude=float(longitude),
                latitude=float(latitude),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(f"Unexpected geocoding feature: {exc}") from exc


__all__ = ["GEOCODING_ENDPOINT", "GeocodingError", "GeocodingService"]
