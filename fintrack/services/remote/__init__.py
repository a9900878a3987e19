"""Remote transaction service package."""

from fintrack.services.remote.interface import (
    NetworkError,
    RemoteServiceError,
    ServiceError,
    TransactionServiceInterface,
)
from fintrack.services.remote.http_client import HttpTransactionService

__all__ = [
    "HttpTransactionService",
    "NetworkError",
    "RemoteServiceError",
    "ServiceError",
    "TransactionServiceInterface",
]
