"""Application configuration models."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="ruleprops", alias="APP_NAME")

    plex_url: str = Field(default="http://localhost:32400", alias="PLEX_URL")
    plex_token: str | None = Field(default=None, alias="PLEX_TOKEN")
    plex_tv_url: str = Field(default="https://plex.tv", alias="PLEX_TV_URL")
    plex_timeout_seconds: float = Field(default=20.0, alias="PLEX_TIMEOUT", gt=0)
    plex_history_page_size: int = Field(
        default=200, alias="PLEX_HISTORY_PAGE_SIZE", ge=1, le=1_000
    )

    evaluation_concurrency: int = Field(
        default=8, alias="EVALUATION_CONCURRENCY", ge=1, le=64
    )

    log_level: LogLevel = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("plex_url", "plex_tv_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip().rstrip("/")
            if not cleaned:
                raise ValueError("Plex URLs must not be empty")
            return cleaned
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


def configure_logging(settings: Settings | None = None) -> None:
    """Initialise root logging at the configured level."""

    resolved = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, resolved.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
