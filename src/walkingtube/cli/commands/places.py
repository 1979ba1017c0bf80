"""CLI commands for place search and map rendering."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from walkingtube.cli.runtime import ExitCode, Runtime
from walkingtube.models.map import PlaceResult
from walkingtube.services.geocoding import GeocodingError


def render_places(console: Console, places: List[PlaceResult]) -> None:
    if not places:
        console.print("[yellow]No matching places.[/yellow]")
        return
    table = Table(title="Places")
    table.add_column("#", justify="right")
    table.add_column("Place", style="bold")
    table.add_column("Lat, Lng", justify="right")
    for index, place in enumerate(places, start=1):
        table.add_row(str(index), place.label, f"{place.latitude:.5f}, {place.longitude:.5f}")
    console.print(table)


def register(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Register place search commands."""

    @app.command("search")
    def search_places(query: str = typer.Argument(..., help="Free-text place name or address.")) -> None:
        """Look up places by name."""

        async def run() -> List[PlaceResult]:
            geocoder = runtime.geocoder()
            try:
                return await geocoder.search(query)
            finally:
                await geocoder.aclose()

        try:
            places = asyncio.run(run())
        except GeocodingError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=ExitCode.NETWORK_ERROR) from exc
        render_places(console, places)

    @app.command("map-url")
    def map_url(
        place: Optional[str] = typer.Option(None, "--place", help="Center the map on the first matching place."),
        width: int = typer.Option(800, min=1, max=1280),
        height: int = typer.Option(600, min=1, max=1280),
    ) -> None:
        """Print a static map image URL with a pin for every video."""

        async def run() -> str:
            geocoder = runtime.geocoder()
            view = runtime.map_view(geocoder=geocoder)
            await view.mount()
            try:
                if place:
                    task = view.search(place)
                    if task is not None:
                        await task
                    if view.state.search_results:
                        view.choose_place(view.state.search_results[0])
                    else:
                        console.print(f"[yellow]No place found for {place!r}; using the default view.[/yellow]")
                return view.static_map_url(width=width, height=height)
            finally:
                await view.unmount()
                await geocoder.aclose()

        console.print(asyncio.run(run()), soft_wrap=True)


__all__ = ["register", "render_places"]
