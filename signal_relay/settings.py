from __future__ import annotations

from pathlib import Path
from typing import ClassVar
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signal_relay.upstream import resolve_upstream_url

DEFAULT_DEMO_DATA_DIR = Path(__file__).resolve().parent / "sample_data"


class Settings(BaseSettings):
    _ALLOWED_LOG_LEVELS: ClassVar[set[str]] = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

    traffic_api_base: str = ""
    locations_url: str = ""
    states_url: str = ""
    enable_demo_mode: bool = True
    poll_interval_ms: int = Field(default=2000, gt=0)
    upstream_timeout_ms: int = Field(default=3000, gt=0)
    backoff_after_fails: int = Field(default=3, ge=1)
    backoff_window_ms: int = Field(default=30000, ge=0)
    demo_data_dir: Path = DEFAULT_DEMO_DATA_DIR
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    @field_validator("traffic_api_base")
    @classmethod
    def strip_trailing_slashes(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("locations_url", "states_url")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in cls._ALLOWED_LOG_LEVELS:
            allowed = ", ".join(sorted(cls._ALLOWED_LOG_LEVELS))
            raise ValueError(f"log_level must be one of: {allowed}")
        return level

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def locations_upstream(self) -> str | None:
        return resolve_upstream_url(self.locations_url, self.traffic_api_base)

    @property
    def states_upstream(self) -> str | None:
        return resolve_upstream_url(self.states_url, self.traffic_api_base)

    @property
    def using_remote(self) -> bool:
        return bool(self.locations_url and self.states_url)

    @property
    def base_origin(self) -> str | None:
        if not self.traffic_api_base:
            return None
        parts = urlsplit(self.traffic_api_base)
        if not parts.scheme or not parts.netloc:
            return None
        return f"{parts.scheme}://{parts.netloc}"

    @property
    def upstream_timeout_seconds(self) -> float:
        return self.upstream_timeout_ms / 1000
