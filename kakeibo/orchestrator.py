"""
Main Orchestrator for the Kakeibo client

This module ties together all the components and defines the
end-to-end flows for:
1. Registration (draft → create → refresh)
2. Deletion (confirm → delete → refresh → drop any edit of that row)
3. Report (store → category rollup + headline totals)

Editing lives in EditSession, which follows the same pattern
(update → refresh).

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is deleted without explicit human confirmation
- The store is refreshed only AFTER the mutation response is observed
- A failed mutation leaves local state exactly as it was
- Every step is audited
"""

from datetime import date
from typing import Callable, Optional
from uuid import UUID

import httpx
import structlog

from kakeibo.aggregation import build_report
from kakeibo.audit import AuditLogger, configure_logging, create_correlation_id
from kakeibo.config import get_settings
from kakeibo.models.ledger import (
    Draft,
    LedgerReport,
    MutationOutcome,
    RefreshResult,
)
from kakeibo.services.api import (
    HTTPError,
    LedgerClient,
    LedgerClientError,
    MalformedResponseError,
    PageLocation,
)
from kakeibo.session import EditSession
from kakeibo.store import LedgerStore


DELETE_CONFIRMATION_PROMPT = "この収支を削除しますか？"

# Receives the prompt text, returns True if the user said yes
Confirm = Callable[[str], bool]


def _status_code(error: LedgerClientError) -> Optional[int]:
    return error.status_code if isinstance(error, HTTPError) else None


class RegistrationFlow:
    """
    Registers new transactions.

    Flow:
    1. Create → POST the draft
    2. Refresh → re-fetch the store (only after the create was accepted)
    """

    def __init__(
        self,
        client: LedgerClient,
        store: LedgerStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._client = client
        self._store = store
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger(__name__)

    def blank_draft(self, today: Optional[date] = None) -> Draft:
        """The form state to show before (and after) a registration."""
        return Draft.blank(today)

    async def register(
        self,
        draft: Draft,
        correlation_id: Optional[UUID] = None,
    ) -> MutationOutcome:
        """
        Register a new transaction.

        Returns:
            MutationOutcome. On failure the store is untouched and
            `error` holds the message to show.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            created = await self._client.create(draft)
        except MalformedResponseError as e:
            # 2xx: the server stored it, the refresh below will pick it up
            self._logger.warning("create_response_malformed", error=e.message)
            created = None
        except LedgerClientError as e:
            if self._audit_logger:
                self._audit_logger.log_mutation_failed(
                    operation="create",
                    error_message=e.message,
                    status_code=_status_code(e),
                    correlation_id=correlation_id,
                )
            return MutationOutcome(ok=False, error=e.message)

        if self._audit_logger:
            self._audit_logger.log_transaction_created(
                transaction_id=created.id if created else None,
                amount=draft.amount,
                correlation_id=correlation_id,
            )

        refresh = await self._store.refresh(correlation_id)
        return MutationOutcome(ok=True, transaction=created, refresh=refresh)


class DeletionFlow:
    """
    Deletes transactions.

    Deletion is irreversible, so it is gated by a confirmation callback.
    Production passes a real yes/no dialog; tests pass `lambda _: True`.
    """

    def __init__(
        self,
        client: LedgerClient,
        store: LedgerStore,
        session: EditSession,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._client = client
        self._store = store
        self._session = session
        self._audit_logger = audit_logger

    async def delete_transaction(
        self,
        transaction_id: int,
        confirm: Confirm,
        correlation_id: Optional[UUID] = None,
    ) -> MutationOutcome:
        """
        Delete one transaction after asking the user.

        On success the store is refreshed and any edit of the row is
        dropped. On failure nothing local changes, so the row stays
        visible and the user can try again.
        """
        correlation_id = correlation_id or create_correlation_id()

        if not confirm(DELETE_CONFIRMATION_PROMPT):
            if self._audit_logger:
                self._audit_logger.log_deletion_cancelled(transaction_id, correlation_id)
            return MutationOutcome(ok=False, cancelled=True)

        try:
            await self._client.delete(transaction_id)
        except LedgerClientError as e:
            if self._audit_logger:
                self._audit_logger.log_mutation_failed(
                    operation="delete",
                    error_message=e.message,
                    transaction_id=transaction_id,
                    status_code=_status_code(e),
                    correlation_id=correlation_id,
                )
            return MutationOutcome(ok=False, error=e.message)

        if self._audit_logger:
            self._audit_logger.log_transaction_deleted(transaction_id, correlation_id)

        refresh = await self._store.refresh(correlation_id)
        self._session.notify_deleted(transaction_id)
        return MutationOutcome(ok=True, refresh=refresh)


class ReportFlow:
    """Builds the category report from whatever the store currently holds."""

    def __init__(self, store: LedgerStore):
        self._store = store

    def current_report(self) -> LedgerReport:
        return build_report(self._store.transactions)

    async def load(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[LedgerReport, RefreshResult]:
        """
        Refresh the store, then build the report.

        On a failed refresh the report is built from the previous data.
        """
        refresh = await self._store.refresh(correlation_id)
        return self.current_report(), refresh


class LedgerApp:
    """All components of one client, sharing a single store and edit session."""

    def __init__(
        self,
        client: LedgerClient,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.client = client
        self.store = LedgerStore(client, audit_logger)
        self.session = EditSession(client, self.store, audit_logger)
        self.registration = RegistrationFlow(client, self.store, audit_logger)
        self.deletion = DeletionFlow(client, self.store, self.session, audit_logger)
        self.report = ReportFlow(self.store)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "LedgerApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def create_app_components(
    location: Optional[PageLocation] = None,
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> LedgerApp:
    """
    Factory function to create all application components.

    Args:
        location: Page location when running inside a browsing context.
        base_url: Explicit service URL (overrides resolution).
        transport: httpx transport override, for tests.

    Returns:
        LedgerApp with one store and one edit session
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    client = LedgerClient(
        base_url=base_url,
        location=location,
        transport=transport,
        settings=settings.api,
    )
    return LedgerApp(client, AuditLogger())
