"""
Durable Cache for the Entry Store

Serializes an Entry Store snapshot into two string keys:
- <storage_key>         JSON array of transaction records
- <storage_key>-nextId  the next-id counter as a decimal string

CRITICAL: Neither read() nor write() ever raises.
The cache is a resilience fallback; a broken cache must degrade to
"no cached data" rather than take the session down with it.
"""

import json
from typing import Iterable, Optional

import pydantic
import structlog

from fintrack.models.transaction import EntrySnapshot, Transaction
from fintrack.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
)


DEFAULT_STORAGE_KEY = "dj-fintrack-transactions"

logger = structlog.get_logger(__name__)


class DurableCache:
    """
    Local snapshot of the Entry Store.

    Written after every local mutation and after every successful remote
    load, read only when the remote service is unavailable.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        self._storage = storage
        self._records_key = storage_key
        self._next_id_key = f"{storage_key}-nextId"

    @property
    def records_key(self) -> str:
        return self._records_key

    @property
    def next_id_key(self) -> str:
        return self._next_id_key

    def _parse_records(self, raw: str) -> Optional[list[Transaction]]:
        """
        Decode the records array.

        Returns None if the value is not a JSON array at all.
        Individual malformed records are skipped.
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("cache_records_invalid_json", key=self._records_key, error=str(e))
            return None

        if not isinstance(data, list):
            logger.warning(
                "cache_records_not_a_list",
                key=self._records_key,
                found=type(data).__name__,
            )
            return None

        records = []
        seen_ids = set()
        for index, item in enumerate(data):
            try:
                record = Transaction.model_validate(item)
            except pydantic.ValidationError as e:
                logger.warning(
                    "cache_record_skipped",
                    index=index,
                    error_count=e.error_count(),
                )
                continue  # Skip malformed records

            if record.id in seen_ids:
                logger.warning("cache_duplicate_id_skipped", index=index, transaction_id=record.id)
                continue

            seen_ids.add(record.id)
            records.append(record)

        return records

    def _parse_next_id(self, raw: Optional[str]) -> Optional[int]:
        if raw is None:
            return None
        try:
            value = int(raw.strip())
        except (ValueError, AttributeError):
            logger.warning("cache_next_id_invalid", key=self._next_id_key, value=raw)
            return None
        return value if value >= 1 else None

    async def read(self) -> Optional[EntrySnapshot]:
        """
        Load the cached snapshot.

        Returns:
            The snapshot, or None if nothing is cached or the records
            value is unreadable
        """
        try:
            raw_records = await self._storage.get_item(self._records_key)
            raw_next_id = await self._storage.get_item(self._next_id_key)
        except StorageError as e:
            logger.warning("cache_read_failed", error=str(e))
            return None

        if raw_records is None and raw_next_id is None:
            return None

        records: list[Transaction] = []
        if raw_records is not None:
            parsed = self._parse_records(raw_records)
            if parsed is None:
                return None
            records = parsed

        # The counter must stay ahead of every id we hold
        floor = max((record.id for record in records), default=0) + 1
        next_id = self._parse_next_id(raw_next_id)
        if next_id is None or next_id < floor:
            if raw_next_id is not None:
                logger.info("cache_next_id_adjusted", stored=raw_next_id, next_id=floor)
            next_id = floor

        return EntrySnapshot(records=tuple(records), next_id=next_id)

    async def write(self, records: Iterable[Transaction], next_id: int) -> bool:
        """
        Persist records and counter.

        Best-effort: failures (quota, disk) are logged as warnings.

        Returns:
            True if both keys were written
        """
        records = list(records)
        try:
            payload = json.dumps(
                [record.model_dump(mode="json") for record in records],
                allow_nan=False,
            )
        except ValueError as e:
            # Infinity/NaN would be written but never read back
            logger.warning("cache_write_unencodable", error=str(e), record_count=len(records))
            return False

        try:
            await self._storage.set_items({
                self._records_key: payload,
                self._next_id_key: str(next_id),
            })
        except StorageError as e:
            logger.warning(
                "cache_write_failed",
                error=str(e),
                record_count=len(records),
            )
            return False
        return True

    async def write_snapshot(self, snapshot: EntrySnapshot) -> bool:
        return await self.write(snapshot.records, snapshot.next_id)

    async def clear_storage(self) -> bool:
        """Remove both keys. Returns False if the backend failed."""
        try:
            await self._storage.remove_item(self._records_key)
            await self._storage.remove_item(self._next_id_key)
        except StorageError as e:
            logger.warning("cache_clear_failed", error=str(e))
            return False
        return True
