"""Tests for the Durable Cache and its key-value backends."""

import json
from decimal import Decimal

import pytest

from fintrack.models import EntrySnapshot
from fintrack.services.storage import (
    DurableCache,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    QuotaExceededError,
    StorageError,
)

from tests.helpers import make_transaction, run_async


RECORDS_KEY = "dj-fintrack-transactions"
NEXT_ID_KEY = "dj-fintrack-transactions-nextId"


class TestKeyValueBackends:
    """Tests for InMemoryKeyValueStorage and JsonFileKeyValueStorage."""

    def test_in_memory_roundtrip(self):
        """Test set/get/remove on the in-memory backend."""
        storage = InMemoryKeyValueStorage()
        run_async(storage.set_item("a", "1"))
        assert run_async(storage.get_item("a")) == "1"
        run_async(storage.remove_item("a"))
        assert run_async(storage.get_item("a")) is None

    def test_in_memory_quota(self):
        """Test that exceeding the quota raises and keeps old contents."""
        storage = InMemoryKeyValueStorage(initial={"a": "1"}, max_bytes=20)
        with pytest.raises(QuotaExceededError):
            run_async(storage.set_items({"b": "x" * 100}))
        assert storage.dump() == {"a": "1"}

    def test_quota_error_is_storage_error(self):
        """Test the exception hierarchy."""
        assert issubclass(QuotaExceededError, StorageError)

    def test_file_backend_persists_across_instances(self, tmp_path):
        """Test that a second instance sees what the first one wrote."""
        path = tmp_path / "nested" / "storage.json"
        run_async(JsonFileKeyValueStorage(path).set_items({"a": "1", "b": "2"}))

        reopened = JsonFileKeyValueStorage(path)
        assert run_async(reopened.get_item("a")) == "1"
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1", "b": "2"}

    def test_file_backend_leaves_no_temp_files(self, tmp_path):
        """Test that the atomic write cleans up after itself."""
        path = tmp_path / "storage.json"
        storage = JsonFileKeyValueStorage(path)
        run_async(storage.set_item("a", "1"))
        run_async(storage.set_item("a", "2"))
        assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]

    def test_file_backend_quota_keeps_previous_file(self, tmp_path):
        """Test that a rejected write does not touch the file."""
        path = tmp_path / "storage.json"
        storage = JsonFileKeyValueStorage(path, max_bytes=30)
        run_async(storage.set_item("a", "1"))

        with pytest.raises(QuotaExceededError):
            run_async(storage.set_item("b", "x" * 100))
        assert run_async(storage.get_item("a")) == "1"
        assert run_async(storage.get_item("b")) is None

    def test_file_backend_corrupt_file_raises_on_read(self, tmp_path):
        """Test that reading a corrupt file raises StorageError."""
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            run_async(JsonFileKeyValueStorage(path).get_item("a"))

    def test_file_backend_corrupt_file_overwritten_on_write(self, tmp_path):
        """Test that a write replaces a corrupt file."""
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")
        storage = JsonFileKeyValueStorage(path)
        run_async(storage.set_item("a", "1"))
        assert run_async(storage.get_item("a")) == "1"


class TestDurableCache:
    """Tests for DurableCache."""

    def test_keys(self):
        """Test the storage key layout."""
        cache = DurableCache(InMemoryKeyValueStorage())
        assert cache.records_key == RECORDS_KEY
        assert cache.next_id_key == NEXT_ID_KEY

    def test_write_then_read(self):
        """Test that write followed by read yields the same records and counter."""
        cache = DurableCache(InMemoryKeyValueStorage())
        records = [make_transaction(1), make_transaction(2, description="Salary", type="income")]

        assert run_async(cache.write(records, 3)) is True
        snapshot = run_async(cache.read())

        assert snapshot == EntrySnapshot(records=tuple(records), next_id=3)

    @pytest.mark.parametrize("amount", [
        "0.01",
        "4.50",
        "1234567.89",
        "9999999999999.99",
        "0.000001",
        "0.30000000000000004",
        "1e15",
    ])
    def test_write_then_read_preserves_amount(self, amount):
        """Test that amounts survive the JSON number encoding exactly."""
        cache = DurableCache(InMemoryKeyValueStorage())
        record = make_transaction(1, amount=amount)

        assert run_async(cache.write([record], 2)) is True
        snapshot = run_async(cache.read())

        assert snapshot.records == (record,)
        assert snapshot.records[0].amount == Decimal(amount)

    def test_serialized_layout(self):
        """Test that records are a JSON array and the counter a decimal string."""
        storage = InMemoryKeyValueStorage()
        cache = DurableCache(storage)
        run_async(cache.write([make_transaction(1)], 2))

        raw = storage.dump()
        assert raw[NEXT_ID_KEY] == "2"
        assert json.loads(raw[RECORDS_KEY]) == [{
            "id": 1,
            "description": "Coffee",
            "amount": 4.5,
            "type": "expense",
            "date": "2024-01-01",
        }]

    def test_read_missing_returns_none(self):
        """Test that an empty storage reads as absent."""
        cache = DurableCache(InMemoryKeyValueStorage())
        assert run_async(cache.read()) is None

    def test_read_malformed_json_returns_none(self):
        """Test that malformed JSON reads as absent without raising."""
        storage = InMemoryKeyValueStorage({RECORDS_KEY: "[{oops", NEXT_ID_KEY: "4"})
        assert run_async(DurableCache(storage).read()) is None

    def test_read_non_list_returns_none(self):
        """Test that a JSON object instead of an array reads as absent."""
        storage = InMemoryKeyValueStorage({RECORDS_KEY: '{"id": 1}'})
        assert run_async(DurableCache(storage).read()) is None

    def test_read_skips_malformed_records(self):
        """Test that bad rows are dropped and good rows kept."""
        rows = [
            make_transaction(1).model_dump(mode="json"),
            {"id": 2, "amount": "lots"},
            make_transaction(1, description="Duplicate").model_dump(mode="json"),
            make_transaction(3).model_dump(mode="json"),
        ]
        storage = InMemoryKeyValueStorage({RECORDS_KEY: json.dumps(rows), NEXT_ID_KEY: "4"})

        snapshot = run_async(DurableCache(storage).read())

        assert [r.id for r in snapshot.records] == [1, 3]
        assert snapshot.records[0].description == "Coffee"
        assert snapshot.next_id == 4

    def test_read_derives_missing_counter(self):
        """Test that next_id is max(id) + 1 when the counter key is missing."""
        rows = [make_transaction(5).model_dump(mode="json")]
        storage = InMemoryKeyValueStorage({RECORDS_KEY: json.dumps(rows)})
        assert run_async(DurableCache(storage).read()).next_id == 6

    def test_read_raises_stale_counter(self):
        """Test that a counter not above every stored id is bumped."""
        rows = [make_transaction(5).model_dump(mode="json")]
        storage = InMemoryKeyValueStorage({RECORDS_KEY: json.dumps(rows), NEXT_ID_KEY: "2"})
        assert run_async(DurableCache(storage).read()).next_id == 6

    def test_read_invalid_counter(self):
        """Test that an unparseable counter falls back to the derived one."""
        storage = InMemoryKeyValueStorage({RECORDS_KEY: "[]", NEXT_ID_KEY: "abc"})
        assert run_async(DurableCache(storage).read()).next_id == 1

    def test_write_failure_returns_false(self):
        """Test that a quota failure is reported, not raised."""
        storage = InMemoryKeyValueStorage(max_bytes=10)
        cache = DurableCache(storage)
        assert run_async(cache.write([make_transaction(1)], 2)) is False
        assert storage.dump() == {}

    def test_read_unreadable_file_returns_none(self, tmp_path):
        """Test that a corrupt storage file reads as absent."""
        path = tmp_path / "storage.json"
        path.write_text("garbage", encoding="utf-8")
        cache = DurableCache(JsonFileKeyValueStorage(path))
        assert run_async(cache.read()) is None

    def test_custom_storage_key(self):
        """Test that the counter key follows the configured base key."""
        storage = InMemoryKeyValueStorage()
        cache = DurableCache(storage, storage_key="ledger")
        run_async(cache.write([], 1))
        assert set(storage.dump()) == {"ledger", "ledger-nextId"}

    def test_clear_storage(self):
        """Test that clear_storage removes both keys."""
        storage = InMemoryKeyValueStorage()
        cache = DurableCache(storage)
        run_async(cache.write([make_transaction(1)], 2))
        assert run_async(cache.clear_storage()) is True
        assert storage.dump() == {}
        assert run_async(cache.read()) is None
