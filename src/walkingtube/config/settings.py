"""Application settings loaded from environment variables and config files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from walkingtube.config import CONFIG_ROOT

PLACEHOLDER_MARKERS = ("your_", "your-", "placeholder", "changeme")


class ConfigMissingError(RuntimeError):
    """Raised at startup when required external credentials are not configured."""

    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class FieldLimits(BaseModel):
    """Maximum lengths enforced on submitted video fields."""

    title: PositiveInt = 100
    description: PositiveInt = 500
    location_name: PositiveInt = 100

    model_config = ConfigDict(extra="forbid")


def _load_field_limits(limits_path: Path) -> FieldLimits:
    if not limits_path.exists():
        return FieldLimits()

    raw_data = yaml.safe_load(limits_path.read_text(encoding="utf-8")) or {}
    return FieldLimits(**raw_data.get("fields", {}))


class Settings(BaseSettings):
    """Primary application settings for WalkingTube."""

    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: Optional[SecretStr] = Field(default=None, alias="SUPABASE_ANON_KEY")
    mapbox_token: Optional[SecretStr] = Field(default=None, alias="MAPBOX_TOKEN")
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    map_style: str = Field(default="mapbox/dark-v11", alias="MAP_STYLE")
    default_longitude: float = Field(default=100.5018, ge=-180.0, le=180.0, alias="DEFAULT_LONGITUDE")
    default_latitude: float = Field(default=13.7563, ge=-90.0, le=90.0, alias="DEFAULT_LATITUDE")
    default_zoom: float = Field(default=4.0, ge=0.0, le=22.0, alias="DEFAULT_ZOOM")
    home_longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0, alias="HOME_LONGITUDE")
    home_latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0, alias="HOME_LATITUDE")

    geocoding_language: str = Field(default="ko", alias="GEOCODING_LANGUAGE")
    geocoding_limit: PositiveInt = Field(default=5, le=10, alias="GEOCODING_LIMIT")
    search_debounce_seconds: PositiveFloat = Field(default=0.3, alias="SEARCH_DEBOUNCE_SECONDS")
    http_timeout_seconds: PositiveFloat = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    session_file: Path = Field(
        default_factory=lambda: Path.home() / ".walkingtube" / "session.json",
        alias="WALKINGTUBE_SESSION_FILE",
    )

    field_limits: FieldLimits = Field(default_factory=lambda: _load_field_limits(CONFIG_ROOT / "limits.yaml"))

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    def missing_required(self) -> List[str]:
        """Return the environment variable names of required values that are absent or placeholders."""

        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_ANON_KEY": self.supabase_anon_key.get_secret_value() if self.supabase_anon_key else None,
            "MAPBOX_TOKEN": self.mapbox_token.get_secret_value() if self.mapbox_token else None,
            "DATABASE_URL": self.database_url,
        }
        missing: List[str] = []
        for name, value in required.items():
            if not value or not value.strip():
                missing.append(name)
            elif any(marker in value.lower() for marker in PLACEHOLDER_MARKERS):
                missing.append(name)
        return missing

    def require(self) -> "Settings":
        """Return ``self`` or raise :class:`ConfigMissingError` listing every missing value."""

        missing = self.missing_required()
        if missing:
            raise ConfigMissingError(missing)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


__all__ = ["ConfigMissingError", "FieldLimits", "Settings", "get_settings"]
