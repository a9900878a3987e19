"""
Sync Coordinator for FinTrack

This module ties together all the components and defines the
end-to-end flows for:
1. Startup (remote list → else cache → else empty)
2. Add / Delete (remote first → else local mutation + cache write)
3. Clear all (local only, after the user confirmed)

DESIGN DECISION: The coordinator enforces the boundaries:
- The remote service is authoritative whenever it answers
- The cache is a fallback, never a replay queue
- Only validation errors reach the caller; everything else degrades
- Every step is audited

All operations run one at a time behind a single asyncio.Lock, in the
order they were submitted.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union
from uuid import UUID

import structlog

from fintrack.audit import AuditLogger, configure_logging, create_correlation_id
from fintrack.config import Settings, get_settings
from fintrack.models.transaction import (
    DataSource,
    EntrySnapshot,
    Summary,
    Transaction,
    TransactionDraft,
)
from fintrack.queries import compute_summary
from fintrack.services.remote import (
    HttpTransactionService,
    RemoteServiceError,
    TransactionServiceInterface,
)
from fintrack.services.storage import (
    DurableCache,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
)
from fintrack.store import EntryStore
from fintrack.validation import TransactionValidator, ValidationError


logger = structlog.get_logger(__name__)

Listener = Callable[[EntrySnapshot], Any]


class CoordinatorClosedError(RuntimeError):
    """An operation was attempted after shutdown()."""
    pass


class SyncState(str, Enum):
    """Lifecycle of a coordinator."""
    INITIALIZING = "initializing"
    READY = "ready"
    SYNCING = "syncing"


class SyncCoordinator:
    """
    Orchestrates every read and write of the transaction list.

    Flow for a mutation:
    1. Validate → reject bad input before touching anything
    2. Remote → single attempt, no retry
    3. Success → reload the whole list from the remote service
    4. Failure → apply the change to the Entry Store
    5. Persist → write the Entry Store to the Durable Cache
    6. Notify → listeners receive the new snapshot

    The Entry Store is owned here; callers only ever see snapshots.
    """

    def __init__(
        self,
        store: Optional[EntryStore] = None,
        cache: Optional[DurableCache] = None,
        remote: Optional[TransactionServiceInterface] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store or EntryStore()
        self._cache = cache or DurableCache(InMemoryKeyValueStorage())
        self._remote = remote
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger or AuditLogger()

        self._lock = asyncio.Lock()
        self._state = SyncState.INITIALIZING
        self._source = DataSource.EMPTY
        self._started = False
        self._closed = False
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Read side (synchronous, never blocks on I/O)
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def source(self) -> DataSource:
        """Where the rendered records last came from."""
        return self._source

    @property
    def has_remote(self) -> bool:
        return self._remote is not None

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    def get_transactions(self) -> tuple[Transaction, ...]:
        return self._store.records

    def get_summary(self) -> Summary:
        return compute_summary(self._store.records)

    def snapshot(self) -> EntrySnapshot:
        return self._store.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a state-changed listener.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self._store.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("listener_failed", listener=repr(listener))

    # ------------------------------------------------------------------
    # Internal steps (callers hold the lock)
    # ------------------------------------------------------------------

    async def _persist(self, correlation_id: Optional[UUID] = None) -> bool:
        written = await self._cache.write(self._store.records, self._store.next_id)
        if not written:
            self._audit_logger.log_cache_write_failed(
                record_count=len(self._store),
                correlation_id=correlation_id,
            )
        return written

    def _remote_failed(
        self,
        operation: str,
        error: RemoteServiceError,
        correlation_id: UUID,
    ) -> None:
        self._audit_logger.log_remote_call_failed(
            operation=operation,
            error_message=str(error),
            correlation_id=correlation_id,
        )

    async def _list_and_load(self, correlation_id: UUID) -> bool:
        """
        Replace the Entry Store with the remote list.

        Returns:
            True if the remote answered and the store was reloaded
        """
        if self._remote is None:
            return False

        try:
            records = await self._remote.list()
        except RemoteServiceError as e:
            self._remote_failed("list", e, correlation_id)
            return False

        next_id = max((record.id for record in records), default=0) + 1
        self._store.load(records, next_id)
        self._source = DataSource.REMOTE
        await self._persist(correlation_id)
        return True

    async def _load_session(self, correlation_id: UUID) -> None:
        """Remote list, else cached snapshot, else an empty store."""
        if not await self._list_and_load(correlation_id):
            snapshot = await self._cache.read()
            if snapshot is not None:
                self._store.load(snapshot.records, snapshot.next_id)
                self._source = DataSource.CACHE
            else:
                self._store.load([], 1)
                self._source = DataSource.EMPTY

        self._audit_logger.log_session_loaded(
            source=self._source.value,
            record_count=len(self._store),
            correlation_id=correlation_id,
        )

    def _ensure_open(self) -> None:
        if self._closed:
            raise CoordinatorClosedError("SyncCoordinator has been shut down")

    async def _ensure_started(self, correlation_id: UUID) -> None:
        if self._started:
            return
        await self._load_session(correlation_id)
        self._started = True
        self._state = SyncState.READY

    def _apply_created(self, record: Transaction) -> None:
        """Put a server-created record into the store without a reload."""
        self._store.remove_by_id(record.id)
        records = self._store.records + (record,)
        self._store.load(records, max(self._store.next_id, record.id + 1))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self) -> DataSource:
        """
        Load the initial data.

        Safe to call more than once; every other operation starts the
        coordinator on demand as well.
        """
        async with self._lock:
            self._ensure_open()
            started = self._started
            await self._ensure_started(create_correlation_id())
        if not started:
            self._notify()
        return self._source

    async def refresh(self) -> DataSource:
        """Re-fetch from the remote service, falling back like startup."""
        correlation_id = create_correlation_id()
        async with self._lock:
            self._ensure_open()
            if not self._started:
                await self._ensure_started(correlation_id)
            else:
                self._state = SyncState.SYNCING
                try:
                    await self._load_session(correlation_id)
                finally:
                    self._state = SyncState.READY
        self._notify()
        return self._source

    def _draft_from(
        self,
        fields: Union[TransactionDraft, Mapping[str, Any]],
        correlation_id: UUID,
    ) -> TransactionDraft:
        if isinstance(fields, TransactionDraft):
            return fields
        try:
            return self._validator.validate_or_raise(fields)
        except ValidationError as e:
            self._audit_logger.log_validation_failed(
                issues=[issue.model_dump() for issue in e.issues],
                correlation_id=correlation_id,
            )
            raise

    async def add_transaction(
        self,
        fields: Union[TransactionDraft, Mapping[str, Any]],
    ) -> Transaction:
        """
        Add a transaction.

        Args:
            fields: A TransactionDraft, or a mapping with description,
                amount, type (default expense) and date (default today)

        Returns:
            The stored record (server id if the remote accepted it)

        Raises:
            ValidationError: if the input is rejected; nothing is stored
        """
        correlation_id = create_correlation_id()
        draft = self._draft_from(fields, correlation_id)

        async with self._lock:
            self._ensure_open()
            await self._ensure_started(correlation_id)
            self._state = SyncState.SYNCING
            try:
                record = await self._add_locked(draft, correlation_id)
            finally:
                self._state = SyncState.READY

        self._notify()
        return record

    async def _add_locked(self, draft: TransactionDraft, correlation_id: UUID) -> Transaction:
        created: Optional[Transaction] = None
        if self._remote is not None:
            try:
                created = await self._remote.create(draft)
            except RemoteServiceError as e:
                self._remote_failed("create", e, correlation_id)

        if created is not None:
            if not await self._list_and_load(correlation_id):
                self._apply_created(created)
                self._source = DataSource.LOCAL
                await self._persist(correlation_id)
            record = self._store.get(created.id) or created
            source = "remote"
        else:
            record = self._store.insert_draft(draft)
            self._source = DataSource.LOCAL
            await self._persist(correlation_id)
            source = "local"

        self._audit_logger.log_transaction_added(
            transaction_id=record.id,
            description=record.description,
            amount=str(record.amount),
            source=source,
            correlation_id=correlation_id,
        )
        return record

    async def delete_transaction(self, transaction_id: int) -> None:
        """
        Delete a transaction by id.

        Deleting an id that does not exist is not an error.
        """
        correlation_id = create_correlation_id()

        async with self._lock:
            self._ensure_open()
            await self._ensure_started(correlation_id)
            self._state = SyncState.SYNCING
            try:
                await self._delete_locked(transaction_id, correlation_id)
            finally:
                self._state = SyncState.READY

        self._notify()

    async def _delete_locked(self, transaction_id: int, correlation_id: UUID) -> None:
        deleted_remotely = False
        if self._remote is not None:
            try:
                await self._remote.delete(transaction_id)
                deleted_remotely = True
            except RemoteServiceError as e:
                self._remote_failed("delete", e, correlation_id)

        if not (deleted_remotely and await self._list_and_load(correlation_id)):
            self._store.remove_by_id(transaction_id)
            self._source = DataSource.LOCAL
            await self._persist(correlation_id)

        self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            source="remote" if deleted_remotely else "local",
            correlation_id=correlation_id,
        )

    async def clear_all(self) -> None:
        """
        Remove every transaction locally and reset the id counter.

        The caller is responsible for confirming with the user first.
        The remote service is not touched.
        """
        correlation_id = create_correlation_id()

        async with self._lock:
            self._ensure_open()
            await self._ensure_started(correlation_id)
            self._state = SyncState.SYNCING
            try:
                removed = len(self._store)
                self._store.clear()
                self._source = DataSource.LOCAL
                await self._persist(correlation_id)
            finally:
                self._state = SyncState.READY
            self._audit_logger.log_transactions_cleared(
                removed_count=removed,
                correlation_id=correlation_id,
            )

        self._notify()

    async def check_remote(self) -> bool:
        """Health check; False when running without a remote service."""
        self._ensure_open()
        if self._remote is None:
            return False
        return await self._remote.health()

    async def shutdown(self) -> None:
        """
        Final persist, then release the remote client.

        Idempotent. Every later operation raises CoordinatorClosedError.
        """
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._started:
                persisted = await self._persist()
                self._audit_logger.log_session_shutdown(
                    record_count=len(self._store),
                    persisted=persisted,
                )
            if self._remote is not None:
                await self._remote.aclose()

    async def __aenter__(self) -> "SyncCoordinator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()


def create_coordinator(
    settings: Optional[Settings] = None,
    transport: Optional[Any] = None,
) -> SyncCoordinator:
    """
    Factory function to create a fully wired coordinator.

    Args:
        settings: Settings to use (defaults to get_settings())
        transport: Optional httpx transport for the remote client,
                   e.g. httpx.MockTransport in tests

    Returns:
        An unstarted SyncCoordinator
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, app_settings.log_json)

    cache_settings = settings.cache
    if cache_settings.persistent:
        storage = JsonFileKeyValueStorage(cache_settings.path, max_bytes=cache_settings.max_bytes)
    else:
        storage = InMemoryKeyValueStorage(max_bytes=cache_settings.max_bytes)
    cache = DurableCache(storage, storage_key=cache_settings.storage_key)

    remote_settings = settings.remote
    remote = None
    if remote_settings.enabled:
        remote = HttpTransactionService(remote_settings, transport=transport)
    else:
        logger.info("remote_service_disabled")

    return SyncCoordinator(
        store=EntryStore(),
        cache=cache,
        remote=remote,
        validator=TransactionValidator(app_settings),
        audit_logger=AuditLogger(history_size=app_settings.audit_history_size),
    )
