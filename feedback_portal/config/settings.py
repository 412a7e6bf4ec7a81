"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the feedback-portal application.

    All settings can be overridden via environment variables.
    Prefix is not used to allow standard env var names (e.g., BACKEND_URL).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # Hosted backend
    backend_url: str = Field(default="http://localhost:54321/functions/v1/boards-api")
    backend_api_key: str | None = None
    access_token: str | None = None

    # Redis (optional persistence for recent searches)
    redis_url: str | None = None

    # HTTP retry configuration
    http_timeout_seconds: float = Field(default=30.0, gt=0.0, le=300.0)
    max_http_retries: int = Field(default=3, ge=0, le=10)
    max_backoff_seconds: float = Field(default=60.0, ge=1.0, le=300.0)

    # Observability
    metrics_port: int = 8000

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def backend_configured(self) -> bool:
        """Check if an API key for the hosted backend is present."""
        return self.backend_api_key is not None

    @property
    def base_url(self) -> str:
        """Backend URL without a trailing slash."""
        return self.backend_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
