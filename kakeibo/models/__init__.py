"""
Data Models Package

This package contains all Pydantic models used by the Kakeibo client.
Everything crossing the network boundary must conform to these schemas.
"""

from kakeibo.models.ledger import (
    UNCATEGORIZED_LABEL,
    Category,
    CategoryTotals,
    Draft,
    FetchedCollection,
    LedgerReport,
    LedgerSummary,
    MutationOutcome,
    RefreshResult,
    Transaction,
    TransactionType,
    format_amount,
)
from kakeibo.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "UNCATEGORIZED_LABEL",
    "Category",
    "CategoryTotals",
    "Draft",
    "FetchedCollection",
    "LedgerReport",
    "LedgerSummary",
    "MutationOutcome",
    "RefreshResult",
    "Transaction",
    "TransactionType",
    "format_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
