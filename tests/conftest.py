"""
Shared test fixtures.

FakeLedgerService is an in-memory stand-in for the remote ledger service,
served through httpx.MockTransport. No test touches the network.
"""

import asyncio
import json
from typing import Optional, Union

import httpx
import pytest

from kakeibo.config import ApiSettings
from kakeibo.services.api import LedgerClient
from kakeibo.store import LedgerStore


BASE_URL = "http://ledger.test"


def transaction_payload(
    id: int,
    date: str = "2024-05-01",
    type: str = "expense",
    category: Optional[dict] = None,
    amount: int = -500,
    memo: str = "",
) -> dict:
    """Transaction JSON exactly as the server sends it."""
    return {
        "id": id,
        "date": f"{date}T00:00:00Z",
        "type": type,
        "category_id": category["id"] if category else 0,
        "category": category,
        "amount": amount,
        "memo": memo,
        "created_at": "2024-05-01T09:30:00Z",
    }


SALARY = {"id": 1, "name": "給与"}
FOOD = {"id": 2, "name": "食費"}


class FakeLedgerService:
    """
    Minimal ledger service.

    Applies the same sign rule as the real server: expenses are stored
    negative, income positive.
    """

    def __init__(
        self,
        transactions: Optional[list[dict]] = None,
        categories: Optional[list[dict]] = None,
    ):
        self.transactions = list(transactions or [])
        self.categories = list(categories if categories is not None else [SALARY, FOOD])
        self.requests: list[httpx.Request] = []
        self._failures: dict[tuple[str, str], Union[Exception, tuple[int, str]]] = {}
        self._gate: Optional[asyncio.Event] = None
        self.request_seen = asyncio.Event()

    # -- test controls -------------------------------------------------------

    def fail(self, method: str, path: str, status: int = 500, body: str = "") -> None:
        """Answer `method path` with `status` and a raw body."""
        self._failures[(method, path)] = (status, body)

    def fail_with_error(self, method: str, path: str, status: int, message: str) -> None:
        """Answer with the server's usual `{"error": ...}` body."""
        self.fail(method, path, status, json.dumps({"error": message}, ensure_ascii=False))

    def disconnect(self, method: str, path: str) -> None:
        """Make `method path` fail at the transport level."""
        self._failures[(method, path)] = httpx.ConnectError("Connection refused")

    def respond_raw(self, method: str, path: str, body: str, status: int = 200) -> None:
        self.fail(method, path, status, body)

    def clear_failures(self) -> None:
        self._failures.clear()

    def hold_requests(self) -> asyncio.Event:
        """Block every request until the returned event is set."""
        self._gate = asyncio.Event()
        return self._gate

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # -- request handling ----------------------------------------------------

    def _store(self, body: dict, transaction_id: int) -> dict:
        amount = abs(body["amount"])
        if body["type"] == "expense":
            amount = -amount
        category = next(
            (c for c in self.categories if c["id"] == body["category_id"]),
            None,
        )
        return transaction_payload(
            id=transaction_id,
            date=body["date"],
            type=body["type"],
            category=category,
            amount=amount,
            memo=body["memo"],
        )

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.request_seen.set()
        if self._gate is not None:
            await self._gate.wait()

        failure = self._failures.get((request.method, request.url.path))
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            status, body = failure
            return httpx.Response(status, content=body.encode("utf-8"))

        path = request.url.path
        if request.method == "GET" and path == "/api/transactions":
            return httpx.Response(200, json=self.transactions)
        if request.method == "GET" and path == "/api/categories":
            return httpx.Response(200, json=self.categories)
        if request.method == "POST" and path == "/api/transactions":
            next_id = max((t["id"] for t in self.transactions), default=0) + 1
            created = self._store(json.loads(request.content), next_id)
            self.transactions.append(created)
            return httpx.Response(201, json=created)

        if path.startswith("/api/transactions/"):
            transaction_id = int(path.rsplit("/", 1)[1])
            index = next(
                (i for i, t in enumerate(self.transactions) if t["id"] == transaction_id),
                None,
            )
            if index is None:
                return httpx.Response(404, json={"error": "収支が見つかりません"})
            if request.method == "PUT":
                updated = self._store(json.loads(request.content), transaction_id)
                self.transactions[index] = updated
                return httpx.Response(200, json=updated)
            if request.method == "DELETE":
                del self.transactions[index]
                return httpx.Response(200, json={"message": "収支が削除されました"})

        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def api_settings(monkeypatch) -> ApiSettings:
    monkeypatch.delenv("KAKEIBO_API_URL", raising=False)
    monkeypatch.delenv("KAKEIBO_BROWSER_API_PORT", raising=False)
    monkeypatch.delenv("KAKEIBO_REQUEST_TIMEOUT_SECONDS", raising=False)
    return ApiSettings(_env_file=None)


@pytest.fixture
def service() -> FakeLedgerService:
    return FakeLedgerService(
        transactions=[
            transaction_payload(1, "2024-05-25", "income", SALARY, 250000, "5月分"),
            transaction_payload(2, "2024-05-03", "expense", FOOD, -3200, "スーパー"),
        ]
    )


@pytest.fixture
def client(service, api_settings) -> LedgerClient:
    return LedgerClient(base_url=BASE_URL, transport=service.transport, settings=api_settings)


@pytest.fixture
def store(client) -> LedgerStore:
    return LedgerStore(client)
