"""
Data Models Package

This package contains all Pydantic models used in FinTrack.
All data flowing between the stores must conform to these schemas.
"""

from fintrack.models.transaction import (
    DataSource,
    EntrySnapshot,
    Summary,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "DataSource",
    "EntrySnapshot",
    "Summary",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
