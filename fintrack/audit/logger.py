"""
Audit Logger

DESIGN DECISION: Every sync decision is logged.
This provides:
1. Traceability of remote vs local handling per operation
2. Debugging capability when the service flaps
3. A recent-activity feed for the UI

The audit logger:
- Never raises (logging must not break the main flow)
- Supports correlation IDs to trace one coordinator operation
- Keeps a bounded in-memory history; nothing is persisted
"""

import logging
import sys
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fintrack.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Call once at startup; create_coordinator() does this from AppSettings.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the most
    recent ones so the UI can show what happened while offline.
    """

    def __init__(self, history_size: int = 50):
        """
        Initialize audit logger.

        Args:
            history_size: How many recent events to keep (0 disables history)
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("fintrack.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at its own severity."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._history.maxlen:
            self._history.append(event)

    def recent_events(self, limit: Optional[int] = None) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(reversed(self._history))
        return events[:limit] if limit is not None else events

    def log_session_loaded(
        self,
        source: str,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.session_loaded(
            source=source,
            record_count=record_count,
            correlation_id=correlation_id,
        ))

    def log_session_shutdown(self, record_count: int, persisted: bool) -> None:
        self.log(AuditEventBuilder.session_shutdown(
            record_count=record_count,
            persisted=persisted,
        ))

    def log_transaction_added(
        self,
        transaction_id: int,
        description: str,
        amount: str,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            description=description,
            amount=amount,
            source=source,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        transaction_id: int,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            source=source,
            correlation_id=correlation_id,
        ))

    def log_transactions_cleared(
        self,
        removed_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transactions_cleared(
            removed_count=removed_count,
            correlation_id=correlation_id,
        ))

    def log_remote_call_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.remote_call_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_cache_write_failed(
        self,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.cache_write_failed(
            record_count=record_count,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            issues=issues,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a coordinator operation and pass it
    through every event that operation emits.
    """
    return uuid4()
