"""
Storage Services Package

Provides the key-value storage interface, its file and in-memory
implementations, and the durable cache built on top of them.
"""

from fintrack.services.storage.interface import (
    KeyValueStorageInterface,
    QuotaExceededError,
    StorageError,
)
from fintrack.services.storage.backends import (
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
)
from fintrack.services.storage.cache import DEFAULT_STORAGE_KEY, DurableCache

__all__ = [
    # Interfaces
    "KeyValueStorageInterface",
    # Exceptions
    "QuotaExceededError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
    # Cache
    "DEFAULT_STORAGE_KEY",
    "DurableCache",
]
