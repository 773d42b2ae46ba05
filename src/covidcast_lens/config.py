"""
Application settings.

Values come from environment variables prefixed with ``COVIDCAST_`` or a
local ``.env`` file, e.g.::

    COVIDCAST_API_KEY=abc123
    COVIDCAST_X_SIGNAL=smoothed_wcli
    COVIDCAST_MAX_LAG=14
"""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from covidcast_lens.schemas import GeoType


class Settings(BaseSettings):
    """Runtime configuration for the CLI and Prefect flows."""

    model_config = SettingsConfigDict(
        env_prefix="COVIDCAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "covidcast-lens"
    app_env: str = "development"
    debug: bool = False

    # Delphi Epidata API key (optional, raises the anonymous rate limit)
    api_key: str | None = None
    api_port: int = 8000
    data_dir: Path = Path("data")

    # Default signal pair: survey CLI vs. confirmed cases
    geo_type: GeoType = GeoType.STATE
    x_source: str = "fb-survey"
    x_signal: str = "smoothed_wcli"
    y_source: str = "jhu-csse"
    y_signal: str = "confirmed_7dav_incidence_prop"
    start_day: date = date(2020, 9, 1)
    end_day: date = date(2020, 11, 30)
    max_lag: int = Field(default=14, ge=0)

    @model_validator(mode="after")
    def _check_date_range(self) -> Settings:
        if self.start_day > self.end_day:
            msg = f"start_day {self.start_day} is after end_day {self.end_day}"
            raise ValueError(msg)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
