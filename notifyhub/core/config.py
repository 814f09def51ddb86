"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Dispatch pipeline settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "notifyhub"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Retry
    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per retried operation",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Base delay between attempts in seconds",
    )
    retry_backoff: Literal["fixed", "linear", "exponential"] = Field(
        default="exponential",
        description="Backoff strategy used between attempts",
    )
    retry_multiplier: float = Field(
        default=2.0,
        gt=1.0,
        description="Growth factor for exponential backoff",
    )
    retry_max_delay: float | None = Field(
        default=None,
        gt=0.0,
        description="Upper bound for linear/exponential delays in seconds",
    )

    # Events
    event_async_publishing: bool = Field(
        default=False,
        description="Dispatch listener calls on a background worker pool",
    )
    event_worker_count: int = Field(
        default=2,
        ge=1,
        description="Worker threads used for asynchronous event publishing",
    )

    # Senders
    sender_worker_count: int = Field(
        default=4,
        ge=1,
        description="Worker threads used for async send and batch send",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
