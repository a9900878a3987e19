"""
Summary Calculator

Derives income / expense / balance totals from a sequence of records.
Pure and stateless: one pass, no caching, so a summary can never be stale.

Records may be Transaction models or plain mappings (e.g. rows decoded
from an older cache). A missing or unparseable amount counts as zero
instead of failing, so one bad row never breaks rendering.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Union

from fintrack.models.transaction import Summary, Transaction, TransactionType


RecordLike = Union[Transaction, Mapping[str, Any]]

ZERO = Decimal("0")


def _field(record: RecordLike, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _safe_amount(value: Any) -> Decimal:
    """Convert an amount to Decimal, treating anything unusable as zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return amount if amount.is_finite() else ZERO


def _type_value(value: Any) -> str:
    if isinstance(value, TransactionType):
        return value.value
    return str(value or "").strip().lower()


def compute_summary(records: Iterable[RecordLike]) -> Summary:
    """
    Total up income and expenses.

    Returns:
        Summary with balance = income - expenses
    """
    income = ZERO
    expenses = ZERO

    for record in records:
        kind = _type_value(_field(record, "type"))
        if kind == TransactionType.INCOME.value:
            income += _safe_amount(_field(record, "amount"))
        elif kind == TransactionType.EXPENSE.value:
            expenses += _safe_amount(_field(record, "amount"))

    return Summary(income=income, expenses=expenses, balance=income - expenses)
