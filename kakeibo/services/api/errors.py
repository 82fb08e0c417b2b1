"""
Ledger client errors.

Every failure the network boundary can produce is one of these, and each
carries a message that can be shown to the user as-is.
"""

from typing import Optional


class LedgerClientError(Exception):
    """Base exception for ledger service access."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NetworkError(LedgerClientError):
    """The ledger service could not be reached."""
    pass


class HTTPError(LedgerClientError):
    """The ledger service answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        server_message: Optional[str] = None,
    ):
        self.status_code = status_code
        self.server_message = server_message
        super().__init__(message)


class MalformedResponseError(LedgerClientError):
    """A 2xx response whose body is not in the expected shape."""
    pass
