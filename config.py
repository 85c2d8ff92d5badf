"""
Configuration settings for the prepsync learning-progress layer.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PREPSYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Curriculum API
    # ========================================
    api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the curriculum/progress REST API",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token sent with every request",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Per-request HTTP timeout",
    )

    # ========================================
    # Retry Policy
    # ========================================
    request_max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per request before surfacing the last error",
    )
    request_base_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="First backoff delay; doubles after every failed attempt",
    )

    # ========================================
    # Local Cache
    # ========================================
    cache_db_path: Path = Field(
        default=Path.home() / ".prepsync" / "cache.db",
        description="SQLite file holding cached aggregates and local profile state",
    )
    cache_max_payload_bytes: int = Field(
        default=4 * 1024 * 1024,
        description="Payloads larger than this are not cached",
    )

    # ========================================
    # Curriculum Defaults
    # ========================================
    default_experience_level: Literal["0-1_year", "1-3_years", "3-5_years"] = Field(
        default="0-1_year",
        description="Experience tier used when the learner has not picked one",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def get_retry_policy_config(self) -> dict[str, float | int]:
        """Keyword arguments for RetryPolicy."""
        return {
            "max_retries": self.request_max_retries,
            "base_delay": self.request_base_delay_seconds,
        }

    def has_api_token(self) -> bool:
        """Check if an API token is configured."""
        return bool(self.api_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
