"""
Ledger Store

DESIGN DECISION: The store is a CACHE of server truth, never the system
of record. It is:
1. Replaced wholesale on every successful refresh (never merged or patched)
2. Left untouched when a refresh fails, so views keep showing the last
   known-good data next to the error message
3. Written ONLY by refresh() - everything else reads

Mutations do not touch the store. Each create/update/delete is followed
by a refresh, so the store is never more than one round trip behind the
server.

A payload that is not a list at all is coerced to an empty collection
rather than propagated (the UI stays usable). A list with some invalid
entries keeps its valid ones. Both cases are reported in the
RefreshResult so they are observable.
"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog

from kakeibo.audit import AuditLogger
from kakeibo.models.ledger import Category, RefreshResult, Transaction
from kakeibo.services.api import (
    LedgerClient,
    LedgerClientError,
    MalformedResponseError,
)


class LedgerStore:
    """
    In-memory mirror of the transaction and category collections.

    Collections are exposed as tuples so views cannot mutate them.
    """

    def __init__(
        self,
        client: LedgerClient,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._client = client
        self._audit_logger = audit_logger
        self._transactions: tuple[Transaction, ...] = ()
        self._categories: tuple[Category, ...] = ()
        self._loaded = False
        self._last_error: Optional[str] = None
        self._logger = structlog.get_logger(__name__)

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._transactions

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def is_loaded(self) -> bool:
        """True once at least one refresh has succeeded."""
        return self._loaded

    @property
    def last_error(self) -> Optional[str]:
        """Message from the most recent failed refresh, cleared on success."""
        return self._last_error

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def _dedupe(self, transactions: list[Transaction]) -> tuple[Transaction, ...]:
        """Keep the first occurrence of each id."""
        seen: set[int] = set()
        unique = []
        for transaction in transactions:
            if transaction.id in seen:
                self._logger.warning("duplicate_transaction_id", transaction_id=transaction.id)
                continue
            seen.add(transaction.id)
            unique.append(transaction)
        return tuple(unique)

    async def refresh(self, correlation_id: Optional[UUID] = None) -> RefreshResult:
        """
        Re-fetch both collections and replace them wholesale.

        Both requests run concurrently. If either fails to arrive
        (NetworkError / HTTPError) neither collection is replaced.

        Returns:
            RefreshResult with ok=False and a readable error on failure
        """
        results = await asyncio.gather(
            self._client.fetch_transactions(),
            self._client.fetch_categories(),
            return_exceptions=True,
        )

        # Anything that isn't a client error is a bug - don't hide it
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, LedgerClientError):
                raise result

        failures = [
            result for result in results
            if isinstance(result, LedgerClientError)
            and not isinstance(result, MalformedResponseError)
        ]
        if failures:
            message = failures[0].message
            self._last_error = message
            if self._audit_logger:
                self._audit_logger.log_refresh_failed(message, correlation_id)
            return RefreshResult(ok=False, error=message)

        collections = {}
        malformed = []
        dropped = {}
        for name, result in zip(("transactions", "categories"), results):
            if isinstance(result, MalformedResponseError):
                malformed.append(name)
                if self._audit_logger:
                    self._audit_logger.log_collection_coerced(name, result.message, correlation_id)
                collections[name] = []
                continue
            if result.dropped:
                dropped[name] = result.dropped
                self._logger.warning("invalid_entries_skipped", collection=name, count=result.dropped)
            collections[name] = result.items

        self._transactions = self._dedupe(collections["transactions"])
        self._categories = tuple(collections["categories"])
        self._loaded = True
        self._last_error = None

        if self._audit_logger:
            self._audit_logger.log_refresh_completed(
                transaction_count=len(self._transactions),
                category_count=len(self._categories),
                correlation_id=correlation_id,
            )

        return RefreshResult(ok=True, malformed=malformed, dropped=dropped)
