"""Edit session package."""

from kakeibo.session.edit_session import (
    Editing,
    EditSession,
    SessionConflictError,
    SessionState,
    Submitting,
    Viewing,
)

__all__ = [
    "Editing",
    "EditSession",
    "SessionConflictError",
    "SessionState",
    "Submitting",
    "Viewing",
]
