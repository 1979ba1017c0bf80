"""Tests for the Typer command-line interface."""

import json
from pathlib import Path

import psycopg2
import pytest
from rich.console import Console
from typer.testing import CliRunner

from conftest import QUIET, FakeGeocoder, FakePreviewer, make_row
from walkingtube.cli.commands.videos import describe_change, render_videos
from walkingtube.cli.main import create_app
from walkingtube.cli.runtime import ExitCode, Runtime
from walkingtube.models.change import ChangeEvent, ChangeType
from walkingtube.models.map import PlaceResult
from walkingtube.models.video import Video, VideoPreview
from walkingtube.services.geocoding import GeocodingError
from walkingtube.services.store import VideoStoreService

runner = CliRunner()


@pytest.fixture
def app():
    return create_app(Console(width=120))


@pytest.fixture
def no_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "MAPBOX_TOKEN", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestOfflineCommands:
    def test_parse_url(self, app) -> None:
        result = runner.invoke(app, ["parse-url", "https://youtube.com/shorts/dQw4w9WgXcQ"])
        assert result.exit_code == 0
        assert "dQw4w9WgXcQ" in result.output
        assert "https://www.youtube.com/embed/dQw4w9WgXcQ" in result.output

    def test_parse_url_rejects_garbage(self, app) -> None:
        result = runner.invoke(app, ["parse-url", "not a url"])
        assert result.exit_code == 1

    def test_help_works_without_configuration(self, app, no_config) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "check-config" in result.output


class TestCheckConfig:
    def test_missing_configuration_blocks(self, app, no_config) -> None:
        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 5
        assert "Configuration Error" in result.output
        for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "MAPBOX_TOKEN", "DATABASE_URL"):
            assert name in result.output

    def test_store_commands_are_blocked_too(self, app, no_config) -> None:
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 5

    def test_complete_configuration(self, app, no_config, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("MAPBOX_TOKEN", "pk.token")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/postgres")

        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 0
        assert "Configuration OK" in result.output


class TestRendering:
    def test_render_videos(self) -> None:
        console = Console(record=True, width=200)
        render_videos(console, [Video.from_row(make_row(title="Seoul Night Walk"))])
        text = console.export_text()
        assert "Seoul Night Walk" in text
        assert "Shibuya, Tokyo" in text

    def test_render_empty(self) -> None:
        console = Console(record=True, width=120)
        render_videos(console, [])
        assert "No videos on the map yet." in console.export_text()

    def test_describe_change(self) -> None:
        event = ChangeEvent(type=ChangeType.DELETE, old_record={"id": "abc", "title": "Gone walk"})
        assert describe_change(event) == "[red]DELETE[/red] Gone walk (abc)"


@pytest.fixture
def previewer() -> FakePreviewer:
    return FakePreviewer()


@pytest.fixture
def offline_runtime(monkeypatch: pytest.MonkeyPatch, settings, videos_table, session, geocoder, previewer) -> None:
    """Point every command at the in-memory table and the offline fakes."""

    store = VideoStoreService(settings=settings, console=QUIET, connection_factory=videos_table.connection)
    monkeypatch.setattr(Runtime, "settings", property(lambda self: settings))
    monkeypatch.setattr(Runtime, "store", property(lambda self: store))
    monkeypatch.setattr(Runtime, "session", property(lambda self: session))
    monkeypatch.setattr(Runtime, "geocoder", lambda self: geocoder)
    monkeypatch.setattr(Runtime, "previewer", lambda self: previewer)


SEOUL = PlaceResult(id="place.1", label="Seoul, South Korea", longitude=126.978, latitude=37.5665)


@pytest.mark.usefixtures("offline_runtime")
class TestAddCommand:
    def test_place_resolves_coordinates_and_label(self, app, signed_in, geocoder: FakeGeocoder, videos_table, author) -> None:
        geocoder.results["Seoul"] = [SEOUL]
        result = runner.invoke(app, ["add", "--url", "dQw4w9WgXcQ", "--title", "Han River Walk", "--place", "Seoul"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        [row] = videos_table.rows
        assert (row["latitude"], row["longitude"]) == (37.5665, 126.978)
        assert row["location_name"] == "Seoul, South Korea"
        assert row["author_id"] == author.id

    def test_title_defaults_to_youtube_title(self, app, signed_in, previewer: FakePreviewer, videos_table) -> None:
        previewer.preview = VideoPreview(title="Seoul Night Walk 4K")
        result = runner.invoke(app, ["add", "--url", "https://youtu.be/dQw4w9WgXcQ", "--lat", "37.5", "--lng", "127.0"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert previewer.calls == ["dQw4w9WgXcQ"]
        assert videos_table.rows[0]["title"] == "Seoul Night Walk 4K"

    def test_anonymous_user_is_stopped_before_lookups(self, app, geocoder, previewer, videos_table) -> None:
        result = runner.invoke(app, ["add", "--url", "dQw4w9WgXcQ", "--place", "Seoul"])

        assert result.exit_code == ExitCode.AUTH_REQUIRED
        assert geocoder.queries == []
        assert previewer.calls == []
        assert videos_table.rows == []

    def test_failed_place_search_reports_missing_location(self, app, signed_in, geocoder, videos_table) -> None:
        geocoder.failing.add("Seoul")
        result = runner.invoke(app, ["add", "--url", "dQw4w9WgXcQ", "--title", "x", "--place", "Seoul"])

        assert not isinstance(result.exception, GeocodingError)
        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "Place search failed" in result.output
        assert "Pick a location on the map." in result.output
        assert videos_table.rows == []

    def test_invalid_fields(self, app, signed_in, videos_table) -> None:
        result = runner.invoke(app, ["add", "--url", "dQw4w9WgXcQ", "--title", "x", "--lat", "95", "--lng", "0"])

        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "Latitude is out of range." in result.output
        assert videos_table.rows == []

    def test_store_failure(self, app, signed_in, videos_table) -> None:
        videos_table.error = psycopg2.OperationalError("connection refused")
        result = runner.invoke(app, ["add", "--url", "dQw4w9WgXcQ", "--title", "x", "--lat", "37.5", "--lng", "127"])
        assert result.exit_code == ExitCode.STORE_ERROR


@pytest.mark.usefixtures("offline_runtime")
class TestDeleteCommand:
    def test_author_deletes(self, app, signed_in, videos_table, author) -> None:
        videos_table.rows.append(make_row(id="mine", author_id=author.id))
        result = runner.invoke(app, ["delete", "mine"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert videos_table.rows == []

    def test_unknown_video(self, app, signed_in) -> None:
        assert runner.invoke(app, ["delete", "missing"]).exit_code == ExitCode.NOT_FOUND

    def test_non_author(self, app, signed_in, videos_table) -> None:
        videos_table.rows.append(make_row(id="theirs", author_id="someone-else"))
        result = runner.invoke(app, ["delete", "theirs"])

        assert result.exit_code == ExitCode.STORE_ERROR
        assert [row["id"] for row in videos_table.rows] == ["theirs"]


@pytest.mark.usefixtures("offline_runtime")
class TestReadCommands:
    def test_show(self, app, videos_table) -> None:
        videos_table.rows.append(make_row(id="a", title="Seoul Night Walk"))
        result = runner.invoke(app, ["show", "a"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "Seoul Night Walk" in result.output

    def test_show_unknown(self, app) -> None:
        assert runner.invoke(app, ["show", "missing"]).exit_code == ExitCode.NOT_FOUND

    def test_show_malformed_id(self, app, videos_table) -> None:
        videos_table.error = psycopg2.DataError("invalid input syntax for type uuid")
        assert runner.invoke(app, ["show", "not-a-uuid"]).exit_code == ExitCode.NOT_FOUND

    def test_list_json_uses_camel_case(self, app, videos_table) -> None:
        videos_table.rows.append(make_row(id="a", author_id="user-1"))
        result = runner.invoke(app, ["list", "--json"])

        assert result.exit_code == ExitCode.SUCCESS
        [view] = json.loads(result.output)
        assert view["youtubeId"] == "W1WdbWq-7u0"
        assert view["locationName"] == "Shibuya, Tokyo"
        assert view["authorId"] == "user-1"
