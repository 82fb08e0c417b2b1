"""
Edit Session

DESIGN DECISION: The UI lets the user edit at most ONE row at a time.
Instead of a pair of nullable variables (editing id + draft), the session
is an explicit tagged union owned by a single controller:

    Viewing                       - no active edit
    Editing(row_id, draft, error) - a draft is being composed
    Submitting(row_id, draft)     - the draft is on its way to the server

Every transition replaces the whole state, so combinations like "a draft
while Viewing" cannot be represented.

GUARANTEES:
- Starting an edit on another row discards the previous draft entirely
- A failed submit goes back to Editing with the SAME draft plus an error,
  so the user can retry without retyping
- A second submit while Submitting is ignored (double-submit guard)
- A row deleted from under the session never leaves a dangling edit

Actions invoked in a state that does not allow them are silent no-ops.
"""

from typing import Any, Literal, Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict

from kakeibo.audit import AuditLogger
from kakeibo.models.ledger import Draft, MutationOutcome, Transaction
from kakeibo.services.api import (
    HTTPError,
    LedgerClient,
    LedgerClientError,
    MalformedResponseError,
)
from kakeibo.store import LedgerStore


class SessionConflictError(Exception):
    """An edit action was invoked in a state that does not allow it."""
    pass


# =============================================================================
# STATES
# =============================================================================

class Viewing(BaseModel):
    """No row is being edited."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["viewing"] = "viewing"


class Editing(BaseModel):
    """A draft for `row_id` is being composed."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["editing"] = "editing"
    row_id: int
    draft: Draft
    error: Optional[str] = None


class Submitting(BaseModel):
    """The draft for `row_id` has been sent and we await the answer."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["submitting"] = "submitting"
    row_id: int
    draft: Draft


SessionState = Union[Viewing, Editing, Submitting]

VIEWING = Viewing()


class EditSession:
    """
    Controller for the single-row edit state machine.

    One instance is shared by every view (see create_app_components).
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
        self._state: SessionState = VIEWING
        self._logger = structlog.get_logger(__name__)

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def row_id(self) -> Optional[int]:
        if isinstance(self._state, (Editing, Submitting)):
            return self._state.row_id
        return None

    @property
    def draft(self) -> Optional[Draft]:
        if isinstance(self._state, (Editing, Submitting)):
            return self._state.draft
        return None

    @property
    def error(self) -> Optional[str]:
        if isinstance(self._state, Editing):
            return self._state.error
        return None

    @property
    def is_submitting(self) -> bool:
        return isinstance(self._state, Submitting)

    def is_editing(self, row_id: Optional[int] = None) -> bool:
        """True while Editing or Submitting (optionally for a specific row)."""
        if not isinstance(self._state, (Editing, Submitting)):
            return False
        return row_id is None or self._state.row_id == row_id

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _require_editing(self, action: str) -> Editing:
        if not isinstance(self._state, Editing):
            raise SessionConflictError(f"Cannot {action} while {self._state.kind}")
        return self._state

    def _ignore(self, conflict: SessionConflictError) -> None:
        self._logger.debug("edit_action_ignored", reason=str(conflict))

    def start_edit(self, transaction: Transaction) -> None:
        """Viewing/Editing -> Editing(transaction.id, seeded draft)."""
        if isinstance(self._state, Submitting):
            self._ignore(SessionConflictError("Cannot start an edit while submitting"))
            return

        self._state = Editing(
            row_id=transaction.id,
            draft=Draft.from_transaction(transaction),
        )
        if self._audit_logger:
            self._audit_logger.log_edit_started(transaction.id)

    def update_draft(self, field: str, value: Any) -> None:
        """
        Replace one draft field.

        Raises:
            ValueError: Unknown field or invalid value (draft left unchanged)
        """
        try:
            editing = self._require_editing("update the draft")
        except SessionConflictError as e:
            self._ignore(e)
            return

        self._state = editing.model_copy(
            update={"draft": editing.draft.with_field(field, value)}
        )

    def cancel(self) -> None:
        """Editing -> Viewing, discarding the draft."""
        try:
            editing = self._require_editing("cancel")
        except SessionConflictError as e:
            self._ignore(e)
            return

        self._state = VIEWING
        if self._audit_logger:
            self._audit_logger.log_edit_cancelled(editing.row_id)

    async def submit(self, correlation_id: Optional[UUID] = None) -> MutationOutcome:
        """
        Send the draft to the server.

        Editing -> Submitting -> Viewing (then the store is refreshed), or
        back to Editing with the error attached when the update fails.

        Returns:
            MutationOutcome. `ok` is True if the server accepted the update,
            and `refresh` then holds the result of the follow-up refresh.
            An ignored submit returns ok=False with no error.
        """
        try:
            editing = self._require_editing("submit")
        except SessionConflictError as e:
            self._ignore(e)
            return MutationOutcome(ok=False)

        submitting = Submitting(row_id=editing.row_id, draft=editing.draft)
        self._state = submitting

        try:
            updated = await self._client.update(editing.row_id, editing.draft)
        except MalformedResponseError as e:
            # 2xx: the update went through, only the echo was unreadable
            self._logger.warning(
                "update_response_malformed",
                transaction_id=editing.row_id,
                error=e.message,
            )
            updated = None
        except LedgerClientError as e:
            if self._audit_logger:
                self._audit_logger.log_mutation_failed(
                    operation="update",
                    error_message=e.message,
                    transaction_id=editing.row_id,
                    status_code=e.status_code if isinstance(e, HTTPError) else None,
                    correlation_id=correlation_id,
                )
            if self._state is submitting:
                self._state = editing.model_copy(update={"error": e.message})
            return MutationOutcome(ok=False, error=e.message)
        except BaseException:
            if self._state is submitting:
                self._state = editing
            raise

        if self._audit_logger:
            self._audit_logger.log_transaction_updated(
                transaction_id=editing.row_id,
                amount=editing.draft.amount,
                correlation_id=correlation_id,
            )

        # The state may have moved on while we waited (e.g. the row was deleted)
        if self._state is submitting:
            self._state = VIEWING

        refresh = await self._store.refresh(correlation_id)
        return MutationOutcome(ok=True, transaction=updated, refresh=refresh)

    def notify_deleted(self, transaction_id: int) -> None:
        """Drop the edit if it was for a row that no longer exists."""
        if not self.is_editing(transaction_id):
            return

        self._state = VIEWING
        if self._audit_logger:
            self._audit_logger.log_edit_discarded(transaction_id)
