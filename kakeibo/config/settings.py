"""
Configuration Management for the Kakeibo client

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The core has exactly one external dependency (the ledger service),
so there is very little to configure - but what there is lives here.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_BROWSER_API_PORT = 8080


class ApiSettings(BaseSettings):
    """Remote ledger service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KAKEIBO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_url: str = Field(
        default=DEFAULT_API_URL,
        description="Base URL of the ledger service when there is no page location"
    )
    browser_api_port: int = Field(
        default=DEFAULT_BROWSER_API_PORT,
        ge=1,
        le=65535,
        description="Port the ledger service listens on, next to the page host"
    )
    request_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-request timeout. Unset means requests never time out"
    )

    @field_validator('api_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        v = v.strip()
        if not v:
            return DEFAULT_API_URL
        return v.rstrip("/")


class AppSettings(BaseSettings):
    """
    Application-wide settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="KAKEIBO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.strip().upper()
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
