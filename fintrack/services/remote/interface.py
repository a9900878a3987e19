"""
Abstract Remote Transaction Service Interface

The remote service is an external collaborator exposing CRUD over
/api/transactions. The coordinator only depends on this interface, so
tests can plug in an in-memory fake and a deployment can swap transports.

IMPORTANT: Implementations make exactly one attempt per call.
Falling back to the cache is the coordinator's job.
"""

from abc import ABC, abstractmethod
from typing import Optional

from fintrack.models.transaction import Transaction, TransactionDraft


class TransactionServiceInterface(ABC):
    """Interface for the remote transaction service."""

    @abstractmethod
    async def list(self) -> list[Transaction]:
        """
        Fetch every transaction, in server order.

        Raises:
            NetworkError: If the service is unreachable
            ServiceError: On a non-success status or malformed body
        """
        pass

    @abstractmethod
    async def get(self, transaction_id: int) -> Optional[Transaction]:
        """
        Fetch one transaction.

        Returns:
            The transaction, or None if the service does not know the id
        """
        pass

    @abstractmethod
    async def create(self, draft: TransactionDraft) -> Transaction:
        """
        Create a transaction; the server assigns the id.

        Returns:
            The created transaction with its server-assigned id
        """
        pass

    @abstractmethod
    async def delete(self, transaction_id: int) -> None:
        """
        Delete a transaction.

        An id the service does not know counts as deleted.
        """
        pass

    @abstractmethod
    async def health(self) -> bool:
        """Return True if the service reports itself healthy. Never raises."""
        pass

    async def aclose(self) -> None:
        """Release any connections held by the client."""
        pass


class RemoteServiceError(Exception):
    """Base exception for remote service failures."""
    pass


class NetworkError(RemoteServiceError):
    """The service could not be reached (connection refused, timeout, ...)."""
    pass


class ServiceError(RemoteServiceError):
    """The service answered, but not with a usable success response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
