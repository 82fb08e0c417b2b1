"""
Audit Models for the Kakeibo client

Every user intent that reaches the ledger service is logged for audit
purposes. This provides:
1. Traceability of every create/update/delete the client issued
2. Debugging information when the service is unreachable
3. A record of refreshes that came back malformed

DESIGN DECISION: Audit events are plain structured log lines. The core
keeps no persisted state of its own, so nothing is written anywhere
except the local log.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store synchronization
    REFRESH_COMPLETED = "refresh_completed"
    REFRESH_FAILED = "refresh_failed"
    COLLECTION_COERCED = "collection_coerced"

    # Mutations
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    MUTATION_FAILED = "mutation_failed"
    DELETION_CANCELLED = "deletion_cancelled"

    # Edit session
    EDIT_STARTED = "edit_started"
    EDIT_CANCELLED = "edit_cancelled"
    EDIT_DISCARDED = "edit_discarded"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which transaction is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'store')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Server id of the transaction, when there is one"
    )

    # Correlation - ties together the lines of one user intent
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(transaction_id, amount)
        event = AuditEventBuilder.refresh_failed(error_message)
    """

    @staticmethod
    def refresh_completed(
        transaction_count: int,
        category_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_COMPLETED,
            severity=AuditSeverity.DEBUG,
            entity_type="store",
            correlation_id=correlation_id,
            description="Ledger store refreshed",
            details={
                "transaction_count": transaction_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def refresh_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="store",
            correlation_id=correlation_id,
            description="Ledger store refresh failed, keeping previous data",
            error_message=error_message,
        )

    @staticmethod
    def collection_coerced(
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_COERCED,
            severity=AuditSeverity.WARNING,
            entity_type="store",
            correlation_id=correlation_id,
            description=f"Malformed {collection} payload replaced with an empty collection",
            details={"collection": collection},
            error_message=error_message,
        )

    @staticmethod
    def transaction_created(
        transaction_id: Optional[int],
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction registered",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: int,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction {transaction_id} updated",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction {transaction_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def mutation_failed(
        operation: str,
        error_message: str,
        transaction_id: Optional[int] = None,
        status_code: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{operation} failed",
            details={"operation": operation, "status_code": status_code},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def deletion_cancelled(
        transaction_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETION_CANCELLED,
            severity=AuditSeverity.DEBUG,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="User declined deletion",
            is_user_action=True,
        )

    @staticmethod
    def edit_started(transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_STARTED,
            severity=AuditSeverity.DEBUG,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Editing transaction {transaction_id}",
            is_user_action=True,
        )

    @staticmethod
    def edit_cancelled(transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_CANCELLED,
            severity=AuditSeverity.DEBUG,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Edit of transaction {transaction_id} cancelled",
            is_user_action=True,
        )

    @staticmethod
    def edit_discarded(transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction {transaction_id} was deleted while being edited",
        )
