"""
In-memory Entry Store

The single source of truth for what is currently rendered: an ordered
list of transactions (insertion order = display order) plus the counter
used to assign ids to locally created records.

The store does no I/O and no locking. The SyncCoordinator owns it and
serializes every call, so only one mutator ever runs at a time.
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Optional, Union

import pydantic
import structlog

from fintrack.models.transaction import (
    EntrySnapshot,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from fintrack.validation import ValidationError, issues_from_pydantic, summarize_issues


logger = structlog.get_logger(__name__)


class EntryStore:
    """Ordered collection of transactions plus the next-id counter."""

    def __init__(self):
        self._records: list[Transaction] = []
        self._next_id = 1

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def records(self) -> tuple[Transaction, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, transaction_id: int) -> Optional[Transaction]:
        for record in self._records:
            if record.id == transaction_id:
                return record
        return None

    def load(self, records: Iterable[Transaction], next_id: int) -> None:
        """
        Replace the contents wholesale.

        Used after every source-of-truth refresh. Only the shape is
        checked here; the loaders have already validated each record.

        Raises:
            TypeError: if a record is not a Transaction or next_id is not an int
            ValueError: if next_id < 1
        """
        records = list(records)
        for record in records:
            if not isinstance(record, Transaction):
                raise TypeError(f"EntryStore.load expects Transaction records, got {type(record).__name__}")
        if not isinstance(next_id, int) or isinstance(next_id, bool):
            raise TypeError(f"next_id must be an int, got {next_id!r}")
        if next_id < 1:
            raise ValueError(f"next_id must be positive, got {next_id}")

        self._records = records
        self._next_id = next_id
        logger.debug("entry_store_loaded", record_count=len(records), next_id=next_id)

    def insert(
        self,
        description: str,
        amount: Union[Decimal, float, str],
        type: Union[TransactionType, str],
        date: dt.date,
    ) -> Transaction:
        """
        Append a new record with id = next_id and bump the counter.

        Raises:
            ValidationError: if amount <= 0 or description is empty
        """
        try:
            draft = TransactionDraft(
                description=description,
                amount=amount,
                type=type,
                date=date,
            )
        except pydantic.ValidationError as e:
            issues = issues_from_pydantic(e)
            raise ValidationError(summarize_issues(issues), issues) from e

        record = Transaction.from_draft(draft, self._next_id)
        self._records.append(record)
        self._next_id += 1
        return record

    def insert_draft(self, draft: TransactionDraft) -> Transaction:
        """Insert an already validated draft."""
        return self.insert(draft.description, draft.amount, draft.type, draft.date)

    def remove_by_id(self, transaction_id: int) -> bool:
        """
        Drop the record with this id.

        Deleting an id that is not present is a no-op, not an error.
        Returns True if a record was removed.
        """
        before = len(self._records)
        self._records = [r for r in self._records if r.id != transaction_id]
        return len(self._records) != before

    def clear(self) -> None:
        """Empty the store and reset the counter to 1."""
        self._records = []
        self._next_id = 1

    def snapshot(self) -> EntrySnapshot:
        """Immutable view of the records and counter."""
        return EntrySnapshot(records=tuple(self._records), next_id=self._next_id)
