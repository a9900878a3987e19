"""
Abstract Key-Value Storage Interface

DESIGN DECISION: The durable cache talks to an abstract string-keyed
store, the same shape as browser localStorage. This allows us to:
1. Persist to a JSON file on disk for real sessions
2. Use in-memory storage for tests or when persistence is disabled
3. Swap in another backend (SQLite, keyring, ...) without touching the cache

The interface is get/set/remove of strings.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for durable string storage.

    Values survive process restarts for persistent implementations.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            QuotaExceededError: If the write would exceed the storage quota
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Delete a key. Removing an absent key is not an error."""
        pass

    async def set_items(self, items: dict[str, str]) -> None:
        """
        Store several values.

        The default writes them one after the other; backends that can
        write them in one step should override this.
        """
        for key, value in items.items():
            await self.set_item(key, value)


class StorageError(Exception):
    """Base exception for local storage operations."""
    pass


class QuotaExceededError(StorageError):
    """Write rejected because the storage quota would be exceeded."""

    def __init__(self, required_bytes: int, max_bytes: int):
        self.required_bytes = required_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f"Storage quota exceeded: {required_bytes} bytes needed, {max_bytes} allowed"
        )
