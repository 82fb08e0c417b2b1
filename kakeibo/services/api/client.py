"""
Ledger Service Client

DESIGN DECISION: This is the ONLY module that talks to the network.
It translates HTTP outcomes into domain results or domain errors:
1. Transport failures become NetworkError
2. Non-2xx responses become HTTPError, with the server's message when it sent one
3. 2xx bodies are validated against our models - a wrong shape is
   MalformedResponseError, never a half-parsed object

List endpoints are validated item by item. A body that is not a list is
malformed, but a list with a few bad entries keeps its good ones: the bad
entries are logged and counted in the FetchedCollection, so one broken
row never hides the rest of the ledger.

Error bodies are parsed permissively. An empty body, an HTML error page
or JSON without an "error" string must not break the error path; we fall
back to a generic message with the status code instead.

There are no retries and no request timeout by default. Each failure is
terminal for that user action.
"""

from typing import Any, Optional

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from kakeibo.config import ApiSettings, get_settings
from kakeibo.models.ledger import (
    Category,
    Draft,
    FetchedCollection,
    Transaction,
)
from kakeibo.services.api.endpoint import PageLocation, resolve_api_base
from kakeibo.services.api.errors import (
    HTTPError,
    MalformedResponseError,
    NetworkError,
)


TRANSACTIONS_PATH = "/api/transactions"
CATEGORIES_PATH = "/api/categories"

# User-facing fallback messages (the server answers in Japanese too)
LIST_TRANSACTIONS_FAILED = "収支データの取得に失敗しました"
LIST_CATEGORIES_FAILED = "カテゴリの取得に失敗しました"
CREATE_FAILED = "収支の登録に失敗しました"
UPDATE_FAILED = "収支の更新に失敗しました"
DELETE_FAILED = "収支の削除に失敗しました"
SERVICE_UNREACHABLE = "サーバーに接続できません"
MALFORMED_RESPONSE = "サーバーの応答形式が不正です"

_TRANSACTION = TypeAdapter(Transaction)
_CATEGORY = TypeAdapter(Category)


def extract_error_message(response: httpx.Response) -> Optional[str]:
    """
    Pull the server's `{"error": "..."}` message out of a response.

    Returns None for anything that isn't a JSON object with a non-empty
    string `error` field.
    """
    try:
        body = response.json()
    except ValueError:
        return None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return None


class LedgerClient:
    """
    Typed access to the remote ledger service.

    Usage:
        async with LedgerClient() as client:
            transactions = await client.list_transactions()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        location: Optional[PageLocation] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[ApiSettings] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Explicit service URL. Overrides resolution when given.
            location: Page location, when running inside a browsing context.
            transport: httpx transport (tests pass an httpx.MockTransport).
            settings: API settings (defaults to the cached application settings).
        """
        self._settings = settings or get_settings().api
        if base_url:
            self._base_url = base_url.rstrip("/")
        else:
            self._base_url = resolve_api_base(location, self._settings)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._logger = structlog.get_logger(__name__)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                transport=self._transport,
                timeout=httpx.Timeout(self._settings.request_timeout_seconds),
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LedgerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        failure_message: str,
        json: Optional[dict] = None,
    ) -> httpx.Response:
        """Send a request and map transport/status failures to domain errors."""
        self._logger.debug("ledger_request", method=method, path=path)

        try:
            response = await self._get_client().request(method, path, json=json)
        except httpx.RequestError as e:
            self._logger.warning(
                "ledger_unreachable",
                method=method,
                path=path,
                base_url=self._base_url,
                error=str(e),
            )
            raise NetworkError(
                f"{failure_message}: {SERVICE_UNREACHABLE} ({self._base_url})"
            ) from e

        if not response.is_success:
            server_message = extract_error_message(response)
            self._logger.warning(
                "ledger_http_error",
                method=method,
                path=path,
                status_code=response.status_code,
                server_message=server_message,
            )
            raise HTTPError(
                status_code=response.status_code,
                message=server_message or f"{failure_message}: {response.status_code}",
                server_message=server_message,
            )

        return response

    def _decode(self, response: httpx.Response, what: str) -> Any:
        """JSON-decode a 2xx body."""
        try:
            return response.json()
        except ValueError as e:
            self._logger.warning("ledger_malformed_response", what=what, error="not JSON")
            raise MalformedResponseError(f"{MALFORMED_RESPONSE} ({what})") from e

    def _parse(self, response: httpx.Response, adapter: TypeAdapter, what: str) -> Any:
        """Validate a 2xx body against `adapter`."""
        payload = self._decode(response, what)

        try:
            return adapter.validate_python(payload)
        except ValidationError as e:
            self._logger.warning(
                "ledger_malformed_response",
                what=what,
                error_count=e.error_count(),
            )
            raise MalformedResponseError(f"{MALFORMED_RESPONSE} ({what})") from e

    def _parse_list(
        self,
        response: httpx.Response,
        adapter: TypeAdapter,
        what: str,
    ) -> FetchedCollection:
        """Validate a 2xx list body entry by entry, skipping invalid entries."""
        payload = self._decode(response, what)
        if not isinstance(payload, list):
            self._logger.warning(
                "ledger_malformed_response",
                what=what,
                body_type=type(payload).__name__,
            )
            raise MalformedResponseError(f"{MALFORMED_RESPONSE} ({what})")

        items = []
        dropped = 0
        for index, entry in enumerate(payload):
            try:
                items.append(adapter.validate_python(entry))
            except ValidationError as e:
                dropped += 1
                self._logger.warning(
                    "ledger_invalid_item_dropped",
                    what=what,
                    index=index,
                    error_count=e.error_count(),
                )
        return FetchedCollection(items=items, dropped=dropped)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def fetch_transactions(self) -> FetchedCollection:
        """
        Fetch every transaction, with a count of entries that failed validation.

        Raises:
            NetworkError: Service unreachable
            HTTPError: Non-2xx response
            MalformedResponseError: Body is not a JSON list
        """
        response = await self._request("GET", TRANSACTIONS_PATH, LIST_TRANSACTIONS_FAILED)
        return self._parse_list(response, _TRANSACTION, "transactions")

    async def fetch_categories(self) -> FetchedCollection:
        """Fetch every category. Same failure modes as fetch_transactions."""
        response = await self._request("GET", CATEGORIES_PATH, LIST_CATEGORIES_FAILED)
        return self._parse_list(response, _CATEGORY, "categories")

    async def list_transactions(self) -> list[Transaction]:
        """Fetch every valid transaction."""
        return (await self.fetch_transactions()).items

    async def list_categories(self) -> list[Category]:
        """Fetch every valid category."""
        return (await self.fetch_categories()).items

    async def create(self, draft: Draft) -> Transaction:
        """Register a new transaction and return it as the server stored it."""
        response = await self._request(
            "POST",
            TRANSACTIONS_PATH,
            CREATE_FAILED,
            json=draft.to_request_body(),
        )
        return self._parse(response, _TRANSACTION, "transaction")

    async def update(self, transaction_id: int, draft: Draft) -> Transaction:
        """Replace every mutable field of one transaction."""
        response = await self._request(
            "PUT",
            f"{TRANSACTIONS_PATH}/{transaction_id}",
            UPDATE_FAILED,
            json=draft.to_request_body(),
        )
        return self._parse(response, _TRANSACTION, "transaction")

    async def delete(self, transaction_id: int) -> None:
        """Delete one transaction. The response body, if any, is ignored."""
        await self._request(
            "DELETE",
            f"{TRANSACTIONS_PATH}/{transaction_id}",
            DELETE_FAILED,
        )
