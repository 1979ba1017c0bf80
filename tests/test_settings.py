"""Tests for settings loading and the required-configuration check."""

from pathlib import Path

import pytest

from walkingtube.config.settings import ConfigMissingError, FieldLimits, Settings, _load_field_limits

REQUIRED = ("SUPABASE_URL", "SUPABASE_ANON_KEY", "MAPBOX_TOKEN", "DATABASE_URL")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    for name in REQUIRED:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestRequiredConfiguration:
    def test_every_missing_value_is_listed(self, clean_env) -> None:
        settings = Settings(_env_file=None)
        assert settings.missing_required() == list(REQUIRED)

        with pytest.raises(ConfigMissingError) as excinfo:
            settings.require()
        assert excinfo.value.missing == list(REQUIRED)
        assert "MAPBOX_TOKEN" in str(excinfo.value)

    def test_reads_environment(self, clean_env) -> None:
        clean_env.setenv("SUPABASE_URL", "https://abc.supabase.co")
        clean_env.setenv("SUPABASE_ANON_KEY", "eyJhbGciOi")
        clean_env.setenv("MAPBOX_TOKEN", "pk.eyJ1Ijoi")
        clean_env.setenv("DATABASE_URL", "postgresql://postgres:pw@db.abc.supabase.co:5432/postgres")

        settings = Settings(_env_file=None)
        assert settings.require() is settings
        assert settings.mapbox_token.get_secret_value() == "pk.eyJ1Ijoi"

    def test_reads_env_file(self, clean_env, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "SUPABASE_URL=https://abc.supabase.co\n"
            "SUPABASE_ANON_KEY=anon\n"
            "MAPBOX_TOKEN=pk.token\n",
            encoding="utf-8",
        )
        assert Settings(_env_file=env_file).missing_required() == ["DATABASE_URL"]

    @pytest.mark.parametrize("value", [
        "your_supabase_url",
        "https://your-project.supabase.co",
        "PLACEHOLDER",
        "changeme",
        "   ",
    ])
    def test_placeholders_count_as_missing(self, clean_env, value: str) -> None:
        settings = Settings(
            _env_file=None,
            supabase_url=value,
            supabase_anon_key="anon",
            mapbox_token="pk.token",
            database_url="postgresql://localhost/postgres",
        )
        assert settings.missing_required() == ["SUPABASE_URL"]

    def test_defaults(self, clean_env) -> None:
        settings = Settings(_env_file=None)
        assert (settings.default_longitude, settings.default_latitude, settings.default_zoom) == (100.5018, 13.7563, 4.0)
        assert settings.map_style == "mapbox/dark-v11"
        assert settings.geocoding_language == "ko"
        assert settings.search_debounce_seconds == 0.3


class TestFieldLimits:
    def test_packaged_limits(self, clean_env) -> None:
        assert Settings(_env_file=None).field_limits == FieldLimits(title=100, description=500, location_name=100)

    def test_limits_file(self, tmp_path: Path) -> None:
        limits_path = tmp_path / "limits.yaml"
        limits_path.write_text("fields:\n  title: 80\n  description: 1000\n", encoding="utf-8")
        assert _load_field_limits(limits_path) == FieldLimits(title=80, description=1000, location_name=100)

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert _load_field_limits(tmp_path / "absent.yaml") == FieldLimits()
