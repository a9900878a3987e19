"""Services package."""

from fintrack.services.remote import (
    HttpTransactionService,
    NetworkError,
    RemoteServiceError,
    ServiceError,
    TransactionServiceInterface,
)
from fintrack.services.storage import (
    DurableCache,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    QuotaExceededError,
    StorageError,
)

__all__ = [
    # Remote service
    "HttpTransactionService",
    "NetworkError",
    "RemoteServiceError",
    "ServiceError",
    "TransactionServiceInterface",
    # Local storage
    "DurableCache",
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
    "KeyValueStorageInterface",
    "QuotaExceededError",
    "StorageError",
]
