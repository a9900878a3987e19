"""Tests for the Summary Calculator."""

from decimal import Decimal

from fintrack.models import TransactionType
from fintrack.queries import compute_summary

from tests.helpers import make_transaction


class TestComputeSummary:
    """Tests for compute_summary."""

    def test_empty(self):
        """Test that no records give all zeros."""
        summary = compute_summary([])
        assert summary.income == Decimal("0")
        assert summary.expenses == Decimal("0")
        assert summary.balance == Decimal("0")

    def test_totals(self):
        """Test income, expense and balance totals."""
        records = [
            make_transaction(1, "Salary", "2500", TransactionType.INCOME),
            make_transaction(2, "Rent", "900", TransactionType.EXPENSE),
            make_transaction(3, "Coffee", "4.50", TransactionType.EXPENSE),
            make_transaction(4, "Bonus", "100.25", TransactionType.INCOME),
        ]
        summary = compute_summary(records)
        assert summary.income == Decimal("2600.25")
        assert summary.expenses == Decimal("904.50")
        assert summary.balance == Decimal("1695.75")

    def test_balance_identity(self):
        """Test that balance == income - expenses for several record sets."""
        record_sets = [
            [make_transaction(1, amount="10", type=TransactionType.EXPENSE)],
            [make_transaction(1, amount="0.10", type=TransactionType.INCOME),
             make_transaction(2, amount="0.20", type=TransactionType.INCOME)],
            [make_transaction(i, amount=f"{i}.01", type=t)
             for i, t in enumerate([TransactionType.INCOME, TransactionType.EXPENSE] * 4, start=1)],
        ]
        for records in record_sets:
            summary = compute_summary(records)
            assert summary.balance == summary.income - summary.expenses

    def test_no_float_drift(self):
        """Test that decimal amounts add up exactly."""
        records = [make_transaction(1, amount="0.10", type=TransactionType.INCOME),
                   make_transaction(2, amount="0.20", type=TransactionType.INCOME)]
        assert compute_summary(records).income == Decimal("0.30")

    def test_mappings_and_bad_amounts(self):
        """Test that plain dicts work and unusable amounts count as zero."""
        records = [
            {"type": "income", "amount": "50"},
            {"type": "INCOME", "amount": 25},
            {"type": "expense", "amount": "n/a"},
            {"type": "expense", "amount": None},
            {"type": "expense", "amount": "Infinity"},
            {"type": "expense", "amount": 5.5},
            {"type": "transfer", "amount": 1000},
        ]
        summary = compute_summary(records)
        assert summary.income == Decimal("75")
        assert summary.expenses == Decimal("5.5")
        assert summary.balance == Decimal("69.5")

    def test_accepts_generators(self):
        """Test that any iterable works, consumed in one pass."""
        records = (make_transaction(i, amount="1", type=TransactionType.INCOME) for i in range(1, 4))
        assert compute_summary(records).income == Decimal("3")
