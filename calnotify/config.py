"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./calnotify.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone name or UTC offset used for timestamps",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    notification_fetch_limit: int = Field(
        default=50,
        description="Maximum number of notifications fetched by a bulk load",
        gt=0,
    )
    toast_max_per_pass: int = Field(
        default=3,
        description="Maximum number of toasts admitted by a single derivation pass",
        gt=0,
    )
    toast_lifetime_seconds: float = Field(
        default=5.0,
        description="Seconds a toast stays visible before it expires",
        gt=0,
    )
    mutation_failure_policy: Literal["keep", "rollback"] = Field(
        default="keep",
        description="What the store does with an optimistic change whose persistence failed",
    )
    realtime_resubscribe_attempts: int = Field(
        default=3,
        description="How many times a dropped live channel is reopened",
        ge=0,
    )
    realtime_resubscribe_delay_seconds: float = Field(
        default=1.0,
        description="Pause between live channel resubscription attempts",
        ge=0,
    )
    notification_icon: str = Field(
        default="/static/notification-icon.png",
        description="Icon reference handed to host-level alerts",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
