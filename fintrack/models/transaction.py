"""
Core Data Models for FinTrack

These models define the schemas for every transaction flowing between the
Entry Store, the Durable Cache and the Remote Service.

DESIGN DECISION: Records are frozen Pydantic v2 models.
Snapshots handed to the presentation layer can then be shared by
reference without any risk of the UI mutating the store behind our back.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money for a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class DataSource(str, Enum):
    """
    Where the current Entry Store contents came from.

    The UI uses this to tell the user whether they are looking at
    server data or working offline.
    """
    REMOTE = "remote"   # Last load came from the remote service
    CACHE = "cache"     # Loaded from the durable cache at startup/refresh
    LOCAL = "local"     # Mutated locally after a remote failure
    EMPTY = "empty"     # Nothing found anywhere, fresh store


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

# Amounts travel as JSON numbers (IEEE doubles). Up to 15 significant
# digits always survive that encoding unchanged.
AMOUNT_MAX_DIGITS = 15
AMOUNT_DECIMAL_PLACES = 2
MAX_AMOUNT = Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES)


def is_json_number_exact(value: Decimal) -> bool:
    """True if value comes back unchanged after a round trip through a double."""
    return Decimal(repr(float(value))) == value


class TransactionDraft(BaseModel):
    """
    A transaction before an id has been assigned.

    This is the body sent to POST /api/transactions and the input
    for a local insert.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the money was for"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Positive amount, at most 2 decimal places"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, value: Decimal) -> float:
        # The remote service reads amount as a JSON number
        return float(value)


class Transaction(BaseModel):
    """
    A single income or expense entry.

    Description is only required to be non-empty when a record is
    created; records coming back from the server or the cache are
    accepted as long as the rest of the shape is valid.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: int = Field(
        ...,
        description="Unique id (server-assigned or from the local counter)"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    amount: Decimal = Field(
        ...,
        gt=0,
    )
    type: TransactionType
    date: dt.date

    @field_validator("amount")
    @classmethod
    def validate_amount_encodable(cls, v: Decimal) -> Decimal:
        """
        Reject amounts a JSON number cannot carry exactly.

        Anything the server or the cache produced passes; only values
        built in code with excess precision (or out of range) fail.
        """
        if not is_json_number_exact(v):
            raise ValueError(f"Amount {v} cannot be stored exactly as a JSON number")
        return v

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)

    @classmethod
    def from_draft(cls, draft: TransactionDraft, transaction_id: int) -> "Transaction":
        """Attach an id to a draft."""
        return cls(id=transaction_id, **draft.model_dump())


class EntrySnapshot(BaseModel):
    """
    Immutable view of the Entry Store.

    Used for persistence (Durable Cache) and for rendering.
    """
    model_config = ConfigDict(frozen=True)

    records: tuple[Transaction, ...] = Field(default_factory=tuple)
    next_id: int = Field(
        default=1,
        ge=1,
        description="Id the next locally created record will get"
    )

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "EntrySnapshot":
        """Ids must be unique within a snapshot."""
        ids = [record.id for record in self.records]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate transaction ids in snapshot")
        return self

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Look up a record by id."""
        for record in self.records:
            if record.id == transaction_id:
                return record
        return None


# =============================================================================
# SUMMARY MODEL
# =============================================================================

class Summary(BaseModel):
    """
    Derived income/expense/balance totals.

    Never persisted. Always recomputed from the current records.
    """
    model_config = ConfigDict(frozen=True)

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")

    @property
    def balance_percent(self) -> float:
        """Share of income still left, as shown in the balance bar."""
        if self.income <= 0:
            return 0.0
        return float(self.balance / self.income * 100)

    @property
    def spent_percent(self) -> float:
        """Share of income spent, as shown in the spent bar."""
        if self.income <= 0:
            return 0.0
        return float(self.expenses / self.income * 100)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user-submitted transaction fields."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (presence, types, formats)
    Stage 2: Semantic validation (positive amount, plausible date)
    """

    schema_valid: bool
    semantic_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    # Only set when both stages passed
    draft: Optional[TransactionDraft] = None

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and self.semantic_valid

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
