"""
Centralized configuration for the admin lookup client.
Uses Pydantic Settings with environment variable support.
"""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """REST backend connection settings."""

    base_url: str = Field(
        default="http://localhost:5001",
        description="Base URL of the business-administration REST API"
    )
    auth_token: SecretStr = Field(
        default=SecretStr(""),
        description="Bearer token sent with authenticated requests"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Total transport timeout per request"
    )


class SearchSettings(BaseSettings):
    """Autocomplete search behaviour.

    Defaults match the customer dropdowns of the admin screens:
    - 2 characters before anything reaches the network
    - 300ms quiet period (the quotation screen used 500ms)
    - 10 suggestions per page
    - 5 minute cache lifetime, 50 entries per controller
    """

    min_query_length: int = Field(
        default=2,
        ge=1,
        description="Trimmed queries shorter than this never hit the network"
    )
    debounce_ms: int = Field(
        default=300,
        ge=0,
        description="Quiet period after the last keystroke before searching"
    )
    page_size: int = Field(default=10, ge=1, le=100)
    cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Cache time-to-live in seconds"
    )
    cache_max_entries: int = Field(
        default=50,
        ge=1,
        description="Entries kept per controller before oldest-inserted eviction"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="ADMIN_LOOKUP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api: ApiSettings = Field(default_factory=ApiSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached singleton so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
