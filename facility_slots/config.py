"""Configuration management for Facility Slots."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream slot service
    slot_api_base_url: str = Field(
        default="http://localhost:5000/api/availability",
        description="Root URL of the upstream slot service",
    )
    slot_api_username: str = Field(default="", description="HTTP Basic username for the slot service")
    slot_api_password: str = Field(default="", description="HTTP Basic password for the slot service")
    slot_api_timeout: float = Field(
        default=30,
        description="Timeout in seconds for slot service requests",
    )
    use_mock_upstream: bool = Field(
        default=False,
        description="Serve a fixed in-process schedule instead of calling the slot service",
    )

    # Retry policy
    retry_count: int = Field(default=3, ge=0, description="Retries after the first upstream attempt")
    retry_initial_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Backoff base; retry n waits base**n seconds",
    )

    # Availability cache
    cache_ttl_seconds: float = Field(
        default=300,
        gt=0,
        description="How long a computed week stays cached",
    )

    # API Settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8080)
    api_key: str = Field(
        default="",
        description="API key for authenticating requests",
    )

    # Rate limiting
    rate_limit_max_requests: int = Field(default=60, description="Requests allowed per window")
    rate_limit_window_seconds: int = Field(default=60, description="Rate limit window length")

    # Debug
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode (exposes error details in responses)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @property
    def has_upstream_credentials(self) -> bool:
        """Check if Basic credentials are configured."""
        return bool(self.slot_api_username and self.slot_api_password)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
