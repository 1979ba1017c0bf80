"""Lazily constructed services shared by CLI commands."""

from __future__ import annotations

from functools import cached_property
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from walkingtube.config.settings import ConfigMissingError, Settings, get_settings
from walkingtube.db.change_feed import ChangeFeedListener
from walkingtube.db.connection import listener_connection
from walkingtube.services.auth import SessionState, SupabaseAuthClient
from walkingtube.services.geocoding import GeocodingService
from walkingtube.services.map_view import MapView
from walkingtube.services.preview import YouTubePreviewService
from walkingtube.services.store import VideoStoreService


class ExitCode:
    """Mapping of meaningful CLI exit codes."""

    SUCCESS = 0
    INVALID_INPUT = 1
    AUTH_REQUIRED = 2
    STORE_ERROR = 3
    NETWORK_ERROR = 4
    CONFIG_MISSING = 5
    NOT_FOUND = 6


def render_config_error(console: Console, error: ConfigMissingError) -> None:
    """Print the blocking configuration panel listing every missing variable."""

    missing = "\n".join(f"  • [red]{name}[/red]" for name in error.missing)
    console.print(
        Panel(
            f"The following environment variables are missing or still placeholders:\n{missing}\n\n"
            "Set them in the environment or in a [cyan].env[/cyan] file and try again.",
            title="Configuration Error",
            border_style="red",
        )
    )


class Runtime:
    """Builds settings and services on first use so ``--help`` works without configuration."""

    def __init__(self, console: Console, settings_factory: Callable[[], Settings] = get_settings) -> None:
        self.console = console
        self._settings_factory = settings_factory

    @cached_property
    def settings(self) -> Settings:
        """Validated settings; exits with :attr:`ExitCode.CONFIG_MISSING` when required values are absent."""

        settings = self._settings_factory()
        try:
            return settings.require()
        except ConfigMissingError as exc:
            render_config_error(self.console, exc)
            raise typer.Exit(code=ExitCode.CONFIG_MISSING) from exc

    @cached_property
    def store(self) -> VideoStoreService:
        return VideoStoreService(settings=self.settings, console=self.console)

    @cached_property
    def session(self) -> SessionState:
        return SessionState(
            SupabaseAuthClient(settings=self.settings),
            session_file=self.settings.session_file,
            console=self.console,
        )

    def geocoder(self) -> GeocodingService:
        return GeocodingService(settings=self.settings, console=self.console)

    def previewer(self) -> YouTubePreviewService:
        return YouTubePreviewService(settings=self.settings, console=self.console)

    def change_feed(self) -> ChangeFeedListener:
        dsn = str(self.settings.database_url)
        return ChangeFeedListener(lambda: listener_connection(dsn), console=self.console)

    def map_view(self, *, geocoder: GeocodingService, change_feed: Optional[ChangeFeedListener] = None) -> MapView:
        return MapView(
            store=self.store,
            session=self.session,
            geocoder=geocoder,
            change_feed=change_feed,
            settings=self.settings,
            console=self.console,
        )


__all__ = ["ExitCode", "Runtime", "render_config_error"]
