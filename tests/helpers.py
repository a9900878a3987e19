"""Shared test doubles and helpers."""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

from fintrack.models import Transaction, TransactionDraft, TransactionType
from fintrack.services.remote import (
    NetworkError,
    RemoteServiceError,
    ServiceError,
    TransactionServiceInterface,
)


def run_async(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def make_transaction(
    transaction_id: int,
    description: str = "Coffee",
    amount: str = "4.50",
    type: TransactionType = TransactionType.EXPENSE,
    on: date = date(2024, 1, 1),
) -> Transaction:
    return Transaction(
        id=transaction_id,
        description=description,
        amount=Decimal(amount),
        type=type,
        date=on,
    )


class FakeTransactionService(TransactionServiceInterface):
    """
    In-memory stand-in for the remote service.

    Ids are assigned from 1 like the real backend. Individual operations
    can be made to fail by adding their name to `failing`, and every
    call is recorded in `calls` in the order it started.
    """

    def __init__(
        self,
        records: Optional[list[Transaction]] = None,
        failing: Optional[set[str]] = None,
        delay: float = 0.0,
    ):
        self.records: list[Transaction] = list(records or [])
        self.next_id = max((r.id for r in self.records), default=0) + 1
        self.failing: set[str] = set(failing or ())
        self.delay = delay
        self.calls: list[tuple] = []
        self.closed = False

    async def _call(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.failing:
            raise NetworkError(f"{name}: connection refused")

    async def list(self) -> list[Transaction]:
        await self._call("list")
        return list(self.records)

    async def get(self, transaction_id: int) -> Optional[Transaction]:
        await self._call("get", transaction_id)
        for record in self.records:
            if record.id == transaction_id:
                return record
        return None

    async def create(self, draft: TransactionDraft) -> Transaction:
        await self._call("create", draft.description)
        record = Transaction.from_draft(draft, self.next_id)
        self.next_id += 1
        self.records.append(record)
        return record

    async def delete(self, transaction_id: int) -> None:
        await self._call("delete", transaction_id)
        self.records = [r for r in self.records if r.id != transaction_id]

    async def health(self) -> bool:
        try:
            await self._call("health")
        except RemoteServiceError:
            return False
        return True

    async def aclose(self) -> None:
        self.closed = True


class BrokenService(FakeTransactionService):
    """Answers every call with a server error."""

    async def _call(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        raise ServiceError(f"{name}: internal server error", status_code=500)
