"""Services package."""

from kakeibo.services.api import (
    HTTPError,
    LedgerClient,
    LedgerClientError,
    MalformedResponseError,
    NetworkError,
    PageLocation,
    resolve_api_base,
)

__all__ = [
    "HTTPError",
    "LedgerClient",
    "LedgerClientError",
    "MalformedResponseError",
    "NetworkError",
    "PageLocation",
    "resolve_api_base",
]
