"""
Ledger Service API Package

Typed access to the remote ledger service and the errors it can raise.
"""

from kakeibo.services.api.client import LedgerClient, extract_error_message
from kakeibo.services.api.endpoint import PageLocation, resolve_api_base
from kakeibo.services.api.errors import (
    HTTPError,
    LedgerClientError,
    MalformedResponseError,
    NetworkError,
)

__all__ = [
    # Client
    "LedgerClient",
    "extract_error_message",
    # Endpoint resolution
    "PageLocation",
    "resolve_api_base",
    # Exceptions
    "HTTPError",
    "LedgerClientError",
    "MalformedResponseError",
    "NetworkError",
]
