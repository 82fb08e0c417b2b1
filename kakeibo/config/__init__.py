"""Configuration package."""

from kakeibo.config.settings import (
    DEFAULT_API_URL,
    DEFAULT_BROWSER_API_PORT,
    ApiSettings,
    AppSettings,
    Settings,
    get_settings,
)

__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_BROWSER_API_PORT",
    "ApiSettings",
    "AppSettings",
    "Settings",
    "get_settings",
]
