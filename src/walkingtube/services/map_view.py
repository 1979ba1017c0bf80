"""The map view controller: owns :class:`MapState` and wires it to the store, auth and change feed."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

import psycopg2
from rich.console import Console

from walkingtube.config.settings import Settings, get_settings
from walkingtube.db.change_feed import ChangeFeedListener
from walkingtube.models.change import ChangeEvent
from walkingtube.models.map import MapState, PlaceResult, Viewport
from walkingtube.models.session import AuthEvent, AuthSession
from walkingtube.models.video import PayloadShapeError, Video, VideoSubmission
from walkingtube.services.auth import AuthError, SessionState
from walkingtube.services.geocoding import GeocodingError, GeocodingService
from walkingtube.services.reconcile import apply_change, insert_video, remove_video
from walkingtube.services.store import StoreDeleteError, VideoStoreService, can_delete
from walkingtube.utils.subscriptions import Subscription

Geolocator = Callable[[], Awaitable[Optional[Tuple[float, float]]]]

FOCUS_ZOOM = 14.0
STATIC_MAP_SIZE = (800, 600)
STATIC_MAP_MAX_PINS = 100
PIN_STYLE = "pin-s+e11d48"


class NoticeLevel(str, Enum):
    """Severity of a transient notice."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(slots=True)
class Notice:
    """Transient user-facing message."""

    level: NoticeLevel
    message: str


def settings_geolocator(settings: Settings) -> Optional[Geolocator]:
    """Return a geolocator reporting the configured home position, or ``None`` when unset."""

    if settings.home_latitude is None or settings.home_longitude is None:
        return None
    position = (settings.home_latitude, settings.home_longitude)

    async def locate() -> Optional[Tuple[float, float]]:
        return position

    return locate


class MapView:
    """Hold the viewport and local video list and react to user and backend events."""

    def __init__(
        self,
        *,
        store: VideoStoreService,
        session: SessionState,
        geocoder: GeocodingService,
        change_feed: Optional[ChangeFeedListener] = None,
        geolocator: Optional[Geolocator] = None,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._console = console or Console()
        self._store = store
        self._session = session
        self._geocoder = geocoder
        self._change_feed = change_feed
        self._geolocator = geolocator if geolocator is not None else settings_geolocator(self._settings)

        self._state = MapState(
            viewport=Viewport(
                longitude=self._settings.default_longitude,
                latitude=self._settings.default_latitude,
                zoom=self._settings.default_zoom,
            )
        )
        self._notices: List[Notice] = []
        self._subscriptions: List[Subscription] = []
        self._mounted = False
        self._debounce_task: Optional[asyncio.Task[None]] = None
        self._search_generation = 0

    # ------------------------------------------------------------------ #
    # State access                                                       #
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> MapState:
        """Current map state; replaced, never mutated, on every change."""

        return self._state

    @property
    def notices(self) -> List[Notice]:
        """Notices raised so far, oldest first."""

        return list(self._notices)

    @property
    def mounted(self) -> bool:
        """Whether the view currently holds its subscriptions."""

        return self._mounted

    def notify(self, level: NoticeLevel, message: str) -> None:
        """Record a notice and echo it to the console."""

        self._notices.append(Notice(level=level, message=message))
        style = {"success": "green", "error": "red", "info": "blue"}[level.value]
        self._console.log(f"[{style}]MapView:[/{style}] {message}")

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #
    async def mount(self) -> MapState:
        """Restore the session, load videos, locate the device and start the change feed."""

        if self._mounted:
            return self._state
        self._mounted = True

        self._subscriptions.append(self._session.subscribe(self._on_auth_change))
        try:
            # Runs on the loop thread so auth listeners update state there.
            user = self._session.load()
        except AuthError as exc:
            self._console.log(f"[yellow]MapView:[/yellow] session restore failed ({exc})")
            user = None
        self._state = self._state.model_copy(update={"user": user})

        videos = await asyncio.to_thread(self._store.list_videos)
        self._state = self._state.model_copy(update={"videos": videos})

        await self._center_on_device()

        if self._change_feed is not None:
            self._subscriptions.append(self._change_feed.subscribe(self.handle_change))
            try:
                self._change_feed.start(asyncio.get_running_loop())
            except psycopg2.Error as exc:
                self._console.log(f"[yellow]MapView:[/yellow] change feed unavailable ({exc})")

        return self._state

    async def unmount(self) -> None:
        """Release the auth and change-feed subscriptions; later calls do nothing."""

        if not self._mounted:
            return
        self._mounted = False

        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()
        if self._change_feed is not None:
            self._change_feed.stop()

    async def _center_on_device(self) -> None:
        if self._geolocator is None:
            return
        try:
            position = await self._geolocator()
        except Exception as exc:  # geolocation is best-effort
            self._console.log(f"[yellow]MapView:[/yellow] geolocation failed ({exc})")
            return
        if position is None:
            return
        latitude, longitude = position
        self._recenter(longitude, latitude, self._state.viewport.zoom)

    # ------------------------------------------------------------------ #
    # Event sources                                                      #
    # ------------------------------------------------------------------ #
    def handle_change(self, event: ChangeEvent) -> None:
        """Reconcile one change-feed event into the local state."""

        try:
            self._state = apply_change(self._state, event)
        except PayloadShapeError as exc:
            self._console.log(f"[yellow]MapView:[/yellow] ignoring {event.type.value} event ({exc})")

    def _on_auth_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        user = session.user if session is not None else None
        self._state = self._state.model_copy(update={"user": user})

    # ------------------------------------------------------------------ #
    # Marker interaction                                                 #
    # ------------------------------------------------------------------ #
    def select(self, video_id: str) -> Optional[Video]:
        """Select the marker for ``video_id``; unknown ids leave the selection untouched."""

        video = self._state.find(video_id)
        if video is not None:
            self._state = self._state.model_copy(update={"selected": video})
        return video

    def clear_selection(self) -> None:
        """Deselect the current marker."""

        self._state = self._state.model_copy(update={"selected": None})

    @property
    def can_delete_selected(self) -> bool:
        """Whether the signed-in user authored the selected video."""

        selected = self._state.selected
        return selected is not None and can_delete(selected, self._state.user)

    # ------------------------------------------------------------------ #
    # Add / delete                                                       #
    # ------------------------------------------------------------------ #
    async def submit(self, submission: VideoSubmission) -> Video:
        """Create a video from ``submission``, add it to the list and fly to it.

        Store and validation errors propagate unchanged so the caller can show them next to the form;
        the local state is only touched on success.
        """

        video = await asyncio.to_thread(self._store.create_video, submission, self._state.user)
        self._state = insert_video(self._state, video)
        self._recenter(video.longitude, video.latitude, max(self._state.viewport.zoom, FOCUS_ZOOM))
        self.notify(NoticeLevel.SUCCESS, f"Added '{video.title}' to the map.")
        return video

    async def delete_selected(self) -> bool:
        """Delete the selected video if the current user authored it."""

        selected = self._state.selected
        if selected is None:
            return False
        if not can_delete(selected, self._state.user):
            self.notify(NoticeLevel.ERROR, "Only the author can delete this video.")
            return False

        try:
            await asyncio.to_thread(self._store.delete_video, selected, self._state.user)
        except StoreDeleteError as exc:
            self.notify(NoticeLevel.ERROR, str(exc))
            return False

        self._state = remove_video(self._state, selected.id)
        self.notify(NoticeLevel.SUCCESS, f"Deleted '{selected.title}'.")
        return True

    # ------------------------------------------------------------------ #
    # Place search                                                       #
    # ------------------------------------------------------------------ #
    def search(self, query: str) -> Optional[asyncio.Task[None]]:
        """Debounce a place search; return the scheduled task, or ``None`` for a blank query.

        A newer query cancels a search that is still waiting out the debounce delay. Lookups already
        sent are not aborted; their responses are discarded if a newer query has been issued since.
        """

        self._search_generation += 1
        generation = self._search_generation
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

        self._state = self._state.model_copy(update={"search_query": query})
        if not query.strip():
            self._state = self._state.model_copy(update={"search_results": []})
            return None

        task = asyncio.get_running_loop().create_task(self._run_search(query, generation))
        self._debounce_task = task
        return task

    async def _run_search(self, query: str, generation: int) -> None:
        await asyncio.sleep(self._settings.search_debounce_seconds)
        if self._debounce_task is asyncio.current_task():
            self._debounce_task = None

        try:
            results = await self._geocoder.search(query)
        except GeocodingError as exc:
            if generation == self._search_generation:
                self.notify(NoticeLevel.ERROR, "Place search failed.")
            self._console.log(f"[yellow]MapView:[/yellow] {exc}")
            return

        if generation != self._search_generation:
            return
        self._state = self._state.model_copy(update={"search_results": results})

    def choose_place(self, place: PlaceResult) -> None:
        """Fly to ``place`` and clear the search box."""

        self._recenter(place.longitude, place.latitude, max(self._state.viewport.zoom, FOCUS_ZOOM))
        self._state = self._state.model_copy(update={"search_query": "", "search_results": []})

    # ------------------------------------------------------------------ #
    # Rendering                                                          #
    # ------------------------------------------------------------------ #
    def static_map_url(self, *, width: int = STATIC_MAP_SIZE[0], height: int = STATIC_MAP_SIZE[1]) -> str:
        """Build a Mapbox Static Images URL showing the viewport with one pin per video."""

        token = self._settings.mapbox_token.get_secret_value() if self._settings.mapbox_token else ""
        viewport = self._state.viewport
        pins = ",".join(
            f"{PIN_STYLE}({video.longitude:.5f},{video.latitude:.5f})"
            for video in self._state.videos[:STATIC_MAP_MAX_PINS]
        )
        overlay = f"{pins}/" if pins else ""
        return (
            f"https://api.mapbox.com/styles/v1/{self._settings.map_style}/static/{overlay}"
            f"{viewport.longitude:.5f},{viewport.latitude:.5f},{viewport.zoom:g}/{width}x{height}"
            f"?access_token={token}"
        )

    def _recenter(self, longitude: float, latitude: float, zoom: float) -> None:
        self._state = self._state.model_copy(
            update={"viewport": Viewport(longitude=longitude, latitude=latitude, zoom=zoom)}
        )


__all__ = ["Geolocator", "MapView", "Notice", "NoticeLevel", "settings_geolocator"]
