"""CLI commands for listing, adding, deleting and watching map videos."""

from __future__ import annotations

import asyncio
import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from walkingtube.cli.runtime import ExitCode, Runtime
from walkingtube.models.change import ChangeEvent
from walkingtube.models.validation import ValidationIssue
from walkingtube.models.video import Video, VideoSubmission
from walkingtube.services.geocoding import GeocodingError
from walkingtube.services.store import AuthRequiredError, StoreError, StoreWriteError, SubmissionInvalidError
from walkingtube.utils.youtube import InvalidYouTubeURLError, embed_url, extract_video_id, thumbnail_url, watch_url


def render_videos(console: Console, videos: List[Video], *, title: str = "Walking videos") -> None:
    """Print ``videos`` as a table, newest first."""

    if not videos:
        console.print("[yellow]No videos on the map yet.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Title", style="bold")
    table.add_column("Location")
    table.add_column("Lat, Lng", justify="right")
    table.add_column("YouTube", style="cyan")
    table.add_column("Added")
    for video in videos:
        table.add_row(
            video.id,
            video.title,
            video.location_name or "-",
            f"{video.latitude:.4f}, {video.longitude:.4f}",
            watch_url(video.youtube_id),
            video.created_at.strftime("%Y-%m-%d"),
        )
    console.print(table)


def render_issues(console: Console, issues: List[ValidationIssue]) -> None:
    table = Table(title="Please fix the following", title_style="red")
    table.add_column("Field", style="cyan")
    table.add_column("Problem")
    for issue in issues:
        table.add_row(issue.field, issue.message)
    console.print(table)


def describe_change(event: ChangeEvent) -> str:
    record = event.record or event.old_record or {}
    title = record.get("title", "untitled")
    colour = {"INSERT": "green", "UPDATE": "blue", "DELETE": "red"}[event.type.value]
    return f"[{colour}]{event.type.value}[/{colour}] {title} ({event.record_id})"


def register(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Register the video commands."""

    @app.command("list")
    def list_videos(
        as_json: bool = typer.Option(False, "--json", help="Print the camelCase JSON view instead of a table."),
    ) -> None:
        """List every video on the map, newest first."""

        videos = runtime.store.list_videos()
        if as_json:
            console.print_json(json.dumps([video.to_view() for video in videos]))
            return
        render_videos(console, videos)

    @app.command("show")
    def show_video(video_id: str = typer.Argument(..., help="Identifier of the video to display.")) -> None:
        """Show the details of a single video."""

        try:
            video = runtime.store.get_video(video_id)
        except StoreError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=ExitCode.STORE_ERROR) from exc
        if video is None:
            console.print(f"[red]No video with id {video_id}.[/red]")
            raise typer.Exit(code=ExitCode.NOT_FOUND)

        body = "\n".join(
            [
                f"[bold]{video.title}[/bold]",
                f"Location: {video.location_name or 'this location'} ({video.latitude:.5f}, {video.longitude:.5f})",
                f"Watch: {watch_url(video.youtube_id)}",
                f"Embed: {embed_url(video.youtube_id)}",
                f"Thumbnail: {thumbnail_url(video.youtube_id)}",
                f"Added: {video.created_at.isoformat()}",
                "",
                video.description or "[dim]No description.[/dim]",
            ]
        )
        console.print(Panel(body, title=video.id, border_style="cyan"))

    @app.command("add")
    def add_video(
        url: str = typer.Option(..., "--url", "-u", help="YouTube link or 11-character video ID."),
        title: str = typer.Option("", "--title", "-t", help="Title; defaults to the YouTube title."),
        latitude: Optional[float] = typer.Option(None, "--lat", help="Latitude of the walk."),
        longitude: Optional[float] = typer.Option(None, "--lng", help="Longitude of the walk."),
        place: Optional[str] = typer.Option(None, "--place", help="Search a place and use its coordinates."),
        description: Optional[str] = typer.Option(None, "--description", "-d"),
        location_name: Optional[str] = typer.Option(None, "--location-name", "-l"),
    ) -> None:
        """Pin a YouTube walking video to the map (requires login)."""

        async def run() -> Video:
            geocoder = runtime.geocoder()
            previewer = runtime.previewer()
            view = runtime.map_view(geocoder=geocoder)
            await view.mount()
            try:
                if view.state.user is None:
                    raise AuthRequiredError("Sign in to add a video.")

                lat, lng, label = latitude, longitude, location_name
                if (lat is None or lng is None) and place:
                    try:
                        results = await geocoder.search(place)
                    except GeocodingError as exc:
                        console.print(f"[yellow]Place search failed; pass --lat and --lng instead.[/yellow] {exc}")
                        results = None
                    if results:
                        view.choose_place(results[0])
                        lat, lng = results[0].latitude, results[0].longitude
                        label = label or results[0].label
                    elif results is not None:
                        console.print(f"[yellow]No place found for {place!r}.[/yellow]")

                resolved_title = title
                if not resolved_title.strip():
                    try:
                        preview = await previewer.fetch_preview(extract_video_id(url))
                    except InvalidYouTubeURLError:
                        preview = None
                    if preview is not None:
                        resolved_title = preview.title
                        console.print(f"[blue]Using YouTube title:[/blue] {preview.title}")

                submission = VideoSubmission(
                    title=resolved_title,
                    youtube_url=url,
                    description=description,
                    location_name=label,
                    latitude=lat,
                    longitude=lng,
                )
                return await view.submit(submission)
            finally:
                await view.unmount()
                await geocoder.aclose()
                await previewer.aclose()

        try:
            video = asyncio.run(run())
        except AuthRequiredError as exc:
            console.print(f"[red]{exc}[/red] Run [cyan]walkingtube login[/cyan] first.")
            raise typer.Exit(code=ExitCode.AUTH_REQUIRED) from exc
        except SubmissionInvalidError as exc:
            render_issues(console, exc.issues)
            raise typer.Exit(code=ExitCode.INVALID_INPUT) from exc
        except StoreWriteError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=ExitCode.STORE_ERROR) from exc

        render_videos(console, [video], title="Added")

    @app.command("delete")
    def delete_video(video_id: str = typer.Argument(..., help="Identifier of the video to delete.")) -> None:
        """Delete a video you added."""

        async def run() -> bool:
            geocoder = runtime.geocoder()
            view = runtime.map_view(geocoder=geocoder)
            await view.mount()
            try:
                if view.select(video_id) is None:
                    console.print(f"[red]No video with id {video_id}.[/red]")
                    raise typer.Exit(code=ExitCode.NOT_FOUND)
                return await view.delete_selected()
            finally:
                await view.unmount()
                await geocoder.aclose()

        if not asyncio.run(run()):
            raise typer.Exit(code=ExitCode.STORE_ERROR)

    @app.command("watch")
    def watch_videos() -> None:
        """Show the map list and stream inserts, updates and deletes as they happen."""

        async def run() -> None:
            geocoder = runtime.geocoder()
            feed = runtime.change_feed()
            printer = feed.subscribe(lambda event: console.print(describe_change(event)))
            view = runtime.map_view(geocoder=geocoder, change_feed=feed)
            await view.mount()
            render_videos(console, view.state.videos)
            console.print("[dim]Watching for changes. Press Ctrl+C to stop.[/dim]")
            try:
                await asyncio.Event().wait()
            finally:
                printer.unsubscribe()
                await view.unmount()
                await geocoder.aclose()

        try:
            asyncio.run(run())
        except KeyboardInterrupt:
            console.print("[dim]Stopped.[/dim]")

    @app.command("preview")
    def preview_video(url: str = typer.Argument(..., help="YouTube link or video ID.")) -> None:
        """Preview a YouTube link through oEmbed before adding it."""

        try:
            video_id = extract_video_id(url)
        except InvalidYouTubeURLError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=ExitCode.INVALID_INPUT) from exc

        async def run():
            previewer = runtime.previewer()
            try:
                return await previewer.fetch_preview(video_id)
            finally:
                await previewer.aclose()

        preview = asyncio.run(run())
        if preview is None:
            console.print(f"[yellow]Could not preview {video_id}; the video may still be valid.[/yellow]")
            return
        console.print(
            Panel(
                f"[bold]{preview.title}[/bold]\nBy {preview.author_name or 'unknown'}\n{preview.thumbnail_url or ''}",
                title=video_id,
                border_style="cyan",
            )
        )

    @app.command("parse-url")
    def parse_url(url: str = typer.Argument(..., help="YouTube link or video ID.")) -> None:
        """Extract the video ID from a YouTube link (works offline)."""

        try:
            video_id = extract_video_id(url)
        except InvalidYouTubeURLError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=ExitCode.INVALID_INPUT) from exc

        console.print(video_id)
        console.print(f"[dim]{watch_url(video_id)}[/dim]")
        console.print(f"[dim]{embed_url(video_id)}[/dim]")
        console.print(f"[dim]{thumbnail_url(video_id)}[/dim]")


__all__ = ["describe_change", "register", "render_issues", "render_videos"]
