"""Configuration loading from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from interview_desk.errors import ConfigurationError

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass
class Config:
    supabase_url: str = ""
    supabase_anon_key: str = ""

    request_timeout: float = 10.0

    week_start: str = "monday"
    slot_start_hour: int = 8
    slot_end_hour: int = 22
    display_timezone: str = "UTC"

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.supabase_url = self.supabase_url.strip().rstrip("/")
        self.week_start = self.week_start.strip().lower()

    @property
    def first_weekday(self) -> int:
        """Week start as a ``date.weekday()`` number (Monday == 0)."""
        return WEEKDAYS.index(self.week_start)

    @property
    def tz(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.display_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown DISPLAY_TIMEZONE: {self.display_timezone!r}") from e

    @property
    def is_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def validate(self) -> None:
        """Raise ConfigurationError if the backend cannot be reached with these settings."""
        if not self.supabase_url or not self.supabase_anon_key:
            raise ConfigurationError(
                "Backend is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY "
                "in the environment or a .env file."
            )
        parsed = urlparse(self.supabase_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"SUPABASE_URL is not a valid http(s) URL: {self.supabase_url!r}")
        if self.week_start not in WEEKDAYS:
            raise ConfigurationError(f"WEEK_START must be a weekday name, got {self.week_start!r}")
        if not 0 <= self.slot_start_hour <= self.slot_end_hour <= 23:
            raise ConfigurationError(
                f"Invalid slot hours: {self.slot_start_hour}-{self.slot_end_hour}"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT must be positive")
        self.tz  # raises on an unknown zone name


def load_config(env_file: str | None = None) -> Config:
    """Load configuration from .env file and environment variables."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    try:
        return Config(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10")),
            week_start=os.getenv("WEEK_START", "monday"),
            slot_start_hour=int(os.getenv("SLOT_START_HOUR", "8")),
            slot_end_hour=int(os.getenv("SLOT_END_HOUR", "22")),
            display_timezone=os.getenv("DISPLAY_TIMEZONE", "UTC"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
    except ValueError as e:
        raise ConfigurationError(f"Malformed numeric setting: {e}") from e
