"""
Audit Models for FinTrack

Every sync decision the coordinator takes is recorded as an audit event.
This provides:
1. Traceability of which backend served each operation
2. Debugging information when the remote service misbehaves
3. A recent-activity feed the UI can show while offline

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every branch of the coordinator's state machine has its own event type.
    """
    # Session lifecycle
    SESSION_LOADED_FROM_REMOTE = "session_loaded_from_remote"
    SESSION_LOADED_FROM_CACHE = "session_loaded_from_cache"
    SESSION_STARTED_EMPTY = "session_started_empty"
    SESSION_SHUTDOWN = "session_shutdown"

    # Mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_CLEARED = "transactions_cleared"

    # Failures absorbed into fallbacks
    REMOTE_CALL_FAILED = "remote_call_failed"
    CACHE_WRITE_FAILED = "cache_write_failed"

    # Input rejected before reaching any store
    VALIDATION_FAILED = "validation_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which record is this about?
    transaction_id: Optional[int] = Field(
        default=None,
        description="Id of the transaction this event relates to"
    )
    source: Optional[str] = Field(
        default=None,
        description="Backend that served the operation (remote/cache/local)"
    )

    # Correlation - ties the events of one coordinator operation together
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "transaction_id": self.transaction_id,
            "source": self.source,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.session_loaded("remote", 12, correlation_id)
        event = AuditEventBuilder.remote_call_failed("create", error, correlation_id)
    """

    @staticmethod
    def session_loaded(
        source: str,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = {
            "remote": AuditEventType.SESSION_LOADED_FROM_REMOTE,
            "cache": AuditEventType.SESSION_LOADED_FROM_CACHE,
        }.get(source, AuditEventType.SESSION_STARTED_EMPTY)
        return AuditEvent(
            event_type=event_type,
            source=source,
            correlation_id=correlation_id,
            description=f"Loaded {record_count} transactions from {source}",
            details={"record_count": record_count},
        )

    @staticmethod
    def session_shutdown(
        record_count: int,
        persisted: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_SHUTDOWN,
            severity=AuditSeverity.INFO if persisted else AuditSeverity.WARNING,
            description="Session closed" + ("" if persisted else " without final persist"),
            details={"record_count": record_count, "persisted": persisted},
        )

    @staticmethod
    def transaction_added(
        transaction_id: int,
        description: str,
        amount: str,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            transaction_id=transaction_id,
            source=source,
            correlation_id=correlation_id,
            description=f"Transaction added ({source}): {description} - {amount}",
            details={"description": description, "amount": amount},
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: int,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            transaction_id=transaction_id,
            source=source,
            correlation_id=correlation_id,
            description=f"Transaction {transaction_id} deleted ({source})",
        )

    @staticmethod
    def transactions_cleared(
        removed_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_CLEARED,
            severity=AuditSeverity.WARNING,
            source="local",
            correlation_id=correlation_id,
            description=f"All transactions cleared ({removed_count} removed)",
            details={"removed_count": removed_count},
        )

    @staticmethod
    def remote_call_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_CALL_FAILED,
            severity=AuditSeverity.WARNING,
            source="remote",
            correlation_id=correlation_id,
            description=f"Remote {operation} failed, falling back to local storage",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def cache_write_failed(
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CACHE_WRITE_FAILED,
            severity=AuditSeverity.WARNING,
            source="cache",
            correlation_id=correlation_id,
            description="Could not persist transactions to the local cache",
            details={"record_count": record_count},
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Transaction rejected with {len(issues)} issues",
            details={"issues": issues},
        )
