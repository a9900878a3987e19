"""
Key-Value Storage Implementations

JsonFileKeyValueStorage keeps every key in one JSON object on disk.
Writes go to a temporary file that is then renamed over the original,
so a crash mid-write never leaves a half-written store behind.

TRADEOFFS:
- Every write rewrites the whole file (fine for a personal ledger)
- Single process only; there is no file locking
- Callers serialize access (the coordinator holds one lock per session)
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from fintrack.services.storage.interface import (
    KeyValueStorageInterface,
    QuotaExceededError,
    StorageError,
)


logger = structlog.get_logger(__name__)


def _encode(items: dict[str, str]) -> bytes:
    return json.dumps(items, ensure_ascii=False, sort_keys=True).encode("utf-8")


def _check_quota(encoded: bytes, max_bytes: Optional[int]) -> None:
    if max_bytes is not None and len(encoded) > max_bytes:
        raise QuotaExceededError(len(encoded), max_bytes)


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """
    Process-local storage.

    Used in tests and when the cache is configured as non-persistent.
    The quota is checked the same way as for the file backend.
    """

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        max_bytes: Optional[int] = None,
    ):
        self._items: dict[str, str] = dict(initial or {})
        self._max_bytes = max_bytes

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await self.set_items({key: value})

    async def set_items(self, items: dict[str, str]) -> None:
        updated = {**self._items, **items}
        _check_quota(_encode(updated), self._max_bytes)
        self._items = updated

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def dump(self) -> dict[str, str]:
        """Copy of the raw contents (for inspection in tests and tooling)."""
        return dict(self._items)


class JsonFileKeyValueStorage(KeyValueStorageInterface):
    """
    File-backed storage surviving process restarts.

    The file holds a single JSON object mapping keys to string values.
    """

    def __init__(
        self,
        path: Union[str, Path],
        max_bytes: Optional[int] = None,
    ):
        self._path = Path(path).expanduser()
        self._max_bytes = max_bytes

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self, strict: bool = True) -> dict[str, str]:
        """
        Load the whole file.

        With strict=False a corrupt file is treated as empty so the
        next write can replace it; read errors from the OS always raise.
        """
        if not self._path.exists():
            return {}

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            if strict:
                raise StorageError(f"Storage file is not valid JSON: {self._path}: {e}")
            logger.warning("storage_file_corrupt_overwriting", path=str(self._path), error=str(e))
            return {}

        if not isinstance(data, dict):
            if strict:
                raise StorageError(f"Storage file does not hold a JSON object: {self._path}")
            logger.warning("storage_file_corrupt_overwriting", path=str(self._path))
            return {}

        # Values are always strings, like localStorage
        return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in data.items()}

    def _write_all(self, items: dict[str, str]) -> None:
        encoded = _encode(items)
        _check_quota(encoded, self._max_bytes)

        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(encoded)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {self._path}: {e}")

    def _update(self, items: dict[str, str]) -> None:
        current = self._read_all(strict=False)
        current.update(items)
        self._write_all(current)

    def _remove(self, key: str) -> None:
        current = self._read_all(strict=False)
        if key in current:
            del current[key]
            self._write_all(current)

    # File I/O, fsync included, runs off the event loop

    async def get_item(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await self.set_items({key: value})

    async def set_items(self, items: dict[str, str]) -> None:
        await asyncio.to_thread(self._update, dict(items))

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)
