"""Input validation package."""

from fintrack.validation.validator import (
    REQUIRED_FIELDS_MESSAGE,
    TransactionValidator,
    ValidationError,
    issues_from_pydantic,
    summarize_issues,
)

__all__ = [
    "REQUIRED_FIELDS_MESSAGE",
    "TransactionValidator",
    "ValidationError",
    "issues_from_pydantic",
    "summarize_issues",
]
