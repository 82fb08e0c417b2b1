"""
API base URL resolution.

When the client runs behind a page (a browsing context), the ledger
service is assumed to sit on the same host as the page, on a fixed port.
Deriving the host from the page keeps the client working no matter which
network path (LAN address, VPN address, hostname) the page was opened
through. Without a page - build time, server-side rendering, scripts -
the configured base URL is used instead.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kakeibo.config import ApiSettings, get_settings


class PageLocation(BaseModel):
    """The parts of the page location the client cares about."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    protocol: str = Field(
        ...,
        min_length=1,
        description="Page protocol, with or without the trailing colon (e.g. 'http:')"
    )
    hostname: str = Field(
        ...,
        min_length=1,
        description="Page hostname without port"
    )

    @field_validator('protocol')
    @classmethod
    def normalize_protocol(cls, v: str) -> str:
        protocol = v.rstrip(":").lower()
        if not protocol:
            raise ValueError("Protocol must not be empty")
        return protocol


def resolve_api_base(
    location: Optional[PageLocation] = None,
    settings: Optional[ApiSettings] = None,
) -> str:
    """
    Resolve the ledger service base URL.

    Args:
        location: Page location when running inside a browsing context
        settings: API settings (defaults to the cached application settings)

    Returns:
        Base URL without a trailing slash, e.g. "http://192.168.1.5:8080"
    """
    settings = settings or get_settings().api

    if location is not None:
        return f"{location.protocol}://{location.hostname}:{settings.browser_api_port}"

    return settings.api_url
