"""
Audit Logger

DESIGN DECISION: Every user intent that reaches the ledger service is logged.
This provides:
1. Traceability of what the client asked the server to do
2. Debugging capability when the service is unreachable
3. Visibility of payloads that had to be coerced

The audit logger:
- Only writes to the local structured log (the core persists nothing)
- Never raises into the caller
- Supports correlation IDs to trace the lines of one user intent
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from kakeibo.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the stdlib root logger (which structlog writes through) at `level`."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Turns AuditEvents into structured log lines at the event's severity.
    """

    def __init__(self, logger_name: str = "kakeibo.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_refresh_completed(
        self,
        transaction_count: int,
        category_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful store refresh."""
        self.log(AuditEventBuilder.refresh_completed(
            transaction_count=transaction_count,
            category_count=category_count,
            correlation_id=correlation_id,
        ))

    def log_refresh_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store refresh."""
        self.log(AuditEventBuilder.refresh_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_collection_coerced(
        self,
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a malformed collection that was emptied."""
        self.log(AuditEventBuilder.collection_coerced(
            collection=collection,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_transaction_created(
        self,
        transaction_id: Optional[int],
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a registered transaction."""
        self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_transaction_updated(
        self,
        transaction_id: int,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an updated transaction."""
        self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        transaction_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a deleted transaction."""
        self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    def log_mutation_failed(
        self,
        operation: str,
        error_message: str,
        transaction_id: Optional[int] = None,
        status_code: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected create/update/delete."""
        self.log(AuditEventBuilder.mutation_failed(
            operation=operation,
            error_message=error_message,
            transaction_id=transaction_id,
            status_code=status_code,
            correlation_id=correlation_id,
        ))

    def log_deletion_cancelled(
        self,
        transaction_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.deletion_cancelled(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    def log_edit_started(self, transaction_id: int) -> None:
        self.log(AuditEventBuilder.edit_started(transaction_id))

    def log_edit_cancelled(self, transaction_id: int) -> None:
        self.log(AuditEventBuilder.edit_cancelled(transaction_id))

    def log_edit_discarded(self, transaction_id: int) -> None:
        self.log(AuditEventBuilder.edit_discarded(transaction_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user intent (e.g., a delete click).
    Pass it through all subsequent operations.
    """
    return uuid4()
