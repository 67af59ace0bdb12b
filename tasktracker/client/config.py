"""Client configuration."""

from datetime import time
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Reminder client settings, read from TASKTRACKER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKTRACKER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_base_url: str = Field(default="http://localhost:8000")
    api_token: str | None = Field(default=None)
    request_timeout_seconds: float = Field(default=10.0)

    poll_interval_seconds: float = Field(default=30.0)
    ring_duration_seconds: float = Field(default=10.0)
    sub_reminder_ring_seconds: float = Field(default=6.0)

    # Local time window in which ringtones are muted
    quiet_hours_start: time | None = Field(default=time(0, 0))
    quiet_hours_end: time | None = Field(default=time(5, 0))
    quiet_hours_timezone: str | None = Field(default=None)  # None means system local time

    sounds_dir: str = Field(default="sounds")
    volume: float = Field(default=0.7, ge=0.0, le=1.0)

    log_level: str = Field(default="INFO")


@lru_cache
def get_client_settings() -> ClientSettings:
    """Get cached client settings instance."""
    return ClientSettings()
