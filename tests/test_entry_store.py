"""Tests for the in-memory Entry Store."""

import pytest
from datetime import date
from decimal import Decimal

from fintrack.models import EntrySnapshot, TransactionType
from fintrack.store import EntryStore
from fintrack.validation import ValidationError

from tests.helpers import make_transaction


class TestEntryStore:
    """Tests for EntryStore."""

    def test_starts_empty(self):
        """Test that a new store is empty with next_id 1."""
        store = EntryStore()
        assert len(store) == 0
        assert store.records == ()
        assert store.next_id == 1

    def test_insert_assigns_sequential_ids(self):
        """Test that insert uses next_id and then increments it."""
        store = EntryStore()
        first = store.insert("Coffee", Decimal("4.50"), TransactionType.EXPENSE, date(2024, 1, 1))
        second = store.insert("Salary", "2500", "income", date(2024, 1, 2))

        assert first.id == 1
        assert second.id == 2
        assert second.type == TransactionType.INCOME
        assert store.next_id == 3
        assert [r.description for r in store.records] == ["Coffee", "Salary"]

    def test_insert_rejects_non_positive_amount(self):
        """Test that amount <= 0 raises ValidationError and stores nothing."""
        store = EntryStore()
        with pytest.raises(ValidationError):
            store.insert("Refund", Decimal("0"), TransactionType.EXPENSE, date(2024, 1, 1))
        assert len(store) == 0
        assert store.next_id == 1

    def test_insert_rejects_empty_description(self):
        """Test that an empty description raises ValidationError."""
        store = EntryStore()
        with pytest.raises(ValidationError) as exc_info:
            store.insert("", Decimal("5"), TransactionType.EXPENSE, date(2024, 1, 1))
        assert "required" in str(exc_info.value)

    def test_load_replaces_contents(self):
        """Test that load swaps records and counter wholesale."""
        store = EntryStore()
        store.insert("Old", Decimal("1"), TransactionType.EXPENSE, date(2024, 1, 1))

        store.load([make_transaction(10), make_transaction(12)], 13)

        assert [r.id for r in store.records] == [10, 12]
        assert store.next_id == 13

    def test_load_rejects_bad_shape(self):
        """Test that load rejects raw dicts and bad counters."""
        store = EntryStore()
        with pytest.raises(TypeError):
            store.load([{"id": 1}], 2)
        with pytest.raises(TypeError):
            store.load([], "2")
        with pytest.raises(ValueError):
            store.load([], 0)
        assert store.records == ()
        assert store.next_id == 1

    def test_remove_by_id_is_idempotent(self):
        """Test that removing the same id twice gives the same sequence."""
        store = EntryStore()
        store.load([make_transaction(1), make_transaction(2), make_transaction(3)], 4)

        assert store.remove_by_id(2) is True
        after_first = store.records
        assert store.remove_by_id(2) is False
        assert store.records == after_first
        assert [r.id for r in store.records] == [1, 3]

    def test_remove_does_not_touch_counter(self):
        """Test that deleting never rewinds next_id."""
        store = EntryStore()
        store.insert("A", Decimal("1"), TransactionType.EXPENSE, date(2024, 1, 1))
        store.remove_by_id(1)
        assert store.next_id == 2
        assert store.insert("B", Decimal("1"), TransactionType.EXPENSE, date(2024, 1, 1)).id == 2

    def test_clear_resets_counter(self):
        """Test that clear empties the store and resets next_id to 1."""
        store = EntryStore()
        store.load([make_transaction(5)], 6)
        store.clear()
        assert len(store) == 0
        assert store.next_id == 1

    def test_no_duplicate_ids_after_mixed_operations(self):
        """Test that any add/delete sequence keeps ids unique."""
        store = EntryStore()
        for i in range(5):
            store.insert(f"Item {i}", Decimal("1"), TransactionType.EXPENSE, date(2024, 1, 1))
        store.remove_by_id(2)
        store.remove_by_id(5)
        for i in range(3):
            store.insert(f"Again {i}", Decimal("1"), TransactionType.EXPENSE, date(2024, 1, 1))

        ids = [r.id for r in store.records]
        assert len(ids) == len(set(ids))

    def test_snapshot_is_immutable_copy(self):
        """Test that a snapshot does not change when the store does."""
        store = EntryStore()
        store.load([make_transaction(1)], 2)
        snapshot = store.snapshot()

        store.insert("New", Decimal("1"), TransactionType.EXPENSE, date(2024, 1, 1))

        assert isinstance(snapshot, EntrySnapshot)
        assert [r.id for r in snapshot.records] == [1]
        assert snapshot.next_id == 2

    def test_get(self):
        """Test lookup by id."""
        store = EntryStore()
        store.load([make_transaction(4, description="Lunch")], 5)
        assert store.get(4).description == "Lunch"
        assert store.get(1) is None
