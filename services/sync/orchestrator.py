"""Bulk orchestrator fanning product operations out over channel accounts."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from core.config import get_settings
from core.logging import get_logger
from core.result import Failure
from services.marketplaces.base import SyncResult
from services.marketplaces.linking import merge_product_linkage
from services.marketplaces.operations import OperationKind

if TYPE_CHECKING:
    from services.marketplaces.accounts import AccountStore, ChannelAccount
    from services.marketplaces.dispatcher import SyncDispatcher
    from services.marketplaces.staging import StagingAdapter

logger = get_logger(__name__)

BULK_OPERATIONS = frozenset(
    {OperationKind.CREATE, OperationKind.UPDATE, OperationKind.RECREATE, OperationKind.LINK}
)


class KeyedLocks:
    """asyncio locks by key, dropped once no task holds or waits on them."""

    def __init__(self) -> None:
        """Initialize an empty lock map."""
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        """Return the number of keys currently in use."""
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class ProgressStatus(str, Enum):
    """Lifecycle of one (product, account) unit."""

    QUEUED = "queued"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """
    Progress notification for one unit of a bulk run.

    Attributes:
        product_id: Local product id.
        account_id: Channel account id.
        channel: Channel name of the account.
        account: Account key, ``channel:name``.
        operation: Operation being run.
        status: Unit status.
        percentage: Share of finished units in the run, 0-100.
        message: Result message once the unit finished.
        timestamp: When the event was emitted.
    """

    product_id: int
    account_id: int | None
    channel: str
    account: str
    operation: OperationKind
    status: ProgressStatus
    percentage: int
    message: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Return the event as a JSON-friendly dict."""
        return {
            "product_id": self.product_id,
            "account_id": self.account_id,
            "channel": self.channel,
            "account": self.account,
            "operation": self.operation.value,
            "status": self.status.value,
            "percentage": self.percentage,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@runtime_checkable
class ProgressNotifier(Protocol):
    """Receives progress events of bulk runs."""

    async def notify(self, event: ProgressEvent) -> None:
        """Handle one progress event."""
        ...


class LoggingProgressNotifier:
    """ProgressNotifier that writes events to the structured log."""

    async def notify(self, event: ProgressEvent) -> None:
        """Log the event."""
        logger.info("Sync progress", **event.to_dict())


@dataclass(frozen=True, slots=True)
class UnitResult:
    """Result of one (product, account) unit."""

    product_id: int
    account: str
    result: SyncResult


@dataclass(frozen=True, slots=True)
class BulkSyncReport:
    """
    Results of a bulk run, in submission order.

    Attributes:
        operation: Operation that was run.
        units: One entry per (product, account) pair.
    """

    operation: OperationKind
    units: tuple[UnitResult, ...] = ()

    @property
    def total(self) -> int:
        """Return the number of units."""
        return len(self.units)

    @property
    def succeeded(self) -> int:
        """Return the number of successful units."""
        return sum(1 for unit in self.units if unit.result.success)

    @property
    def failed(self) -> int:
        """Return the number of failed units."""
        return self.total - self.succeeded

    @property
    def failures(self) -> list[UnitResult]:
        """Return the failed units."""
        return [unit for unit in self.units if not unit.result.success]

    def to_dict(self) -> dict[str, Any]:
        """Return the report as a JSON-friendly dict."""
        return {
            "operation": self.operation.value,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "units": [
                {
                    "product_id": unit.product_id,
                    "account": unit.account,
                    "result": unit.result.to_dict(),
                }
                for unit in self.units
            ],
        }


class BulkSyncOrchestrator:
    """
    Runs one operation for many products on many accounts.

    Units run concurrently up to ``max_concurrency``; units for the same
    (product, account) pair are serialized. Each unit reads the account
    from the store when it starts. On success it re-reads the account under
    a per-account lock, merges in its own product's linkage and writes the
    map back with a single full-map replace. Nothing is retried.
    """

    def __init__(
        self,
        dispatcher: SyncDispatcher,
        store: AccountStore,
        notifier: ProgressNotifier | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            dispatcher: Builds adapters for accounts.
            store: Account store for reads and identifier writes.
            notifier: Progress receiver (defaults to the structured log).
            max_concurrency: Concurrent unit limit (defaults to settings).
        """
        self._dispatcher = dispatcher
        self._store = store
        self._notifier = notifier or LoggingProgressNotifier()
        self._max_concurrency = max_concurrency or get_settings().sync.max_concurrency
        self._pair_locks = KeyedLocks()
        self._account_locks = KeyedLocks()

    async def run(
        self,
        product_ids: Sequence[int],
        accounts: Sequence[ChannelAccount],
        operation: OperationKind,
    ) -> BulkSyncReport:
        """
        Run an operation for every (product, account) pair.

        Args:
            product_ids: Local product ids.
            accounts: Target accounts.
            operation: create, update, recreate or link.

        Returns:
            BulkSyncReport with one result per pair.

        Raises:
            ValueError: If the operation cannot run in bulk.
        """
        if operation not in BULK_OPERATIONS:
            msg = f"Operation {operation.value} cannot run in bulk"
            raise ValueError(msg)

        units = [(product_id, account) for product_id in product_ids for account in accounts]
        if not units:
            return BulkSyncReport(operation=operation)

        semaphore = asyncio.Semaphore(self._max_concurrency)
        progress = _Progress(total=len(units))
        logger.info(
            "Bulk sync started",
            operation=operation.value,
            products=len(product_ids),
            accounts=len(accounts),
            units=len(units),
        )

        for product_id, account in units:
            await self._emit(product_id, account, operation, ProgressStatus.QUEUED, progress)

        results = await asyncio.gather(
            *(
                self._run_unit(product_id, account, operation, semaphore, progress)
                for product_id, account in units
            )
        )

        report = BulkSyncReport(operation=operation, units=tuple(results))
        logger.info(
            "Bulk sync finished",
            operation=operation.value,
            succeeded=report.succeeded,
            failed=report.failed,
        )
        return report

    async def _run_unit(
        self,
        product_id: int,
        account: ChannelAccount,
        operation: OperationKind,
        semaphore: asyncio.Semaphore,
        progress: _Progress,
    ) -> UnitResult:
        async with semaphore, self._pair_locks.hold((product_id, account.id, account.channel)):
            await self._emit(product_id, account, operation, ProgressStatus.PROCESSING, progress)
            try:
                result = await self._execute(product_id, account, operation)
            except Exception as e:
                logger.error(
                    "Bulk sync unit raised",
                    product_id=product_id,
                    account=str(account),
                    operation=operation.value,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                result = SyncResult.failed(
                    f"{operation.value} raised {type(e).__name__}",
                    errors=[str(e) or type(e).__name__],
                    metadata={"channel": account.channel, "error_code": "unknown"},
                )

            progress.done += 1
            status = ProgressStatus.SUCCESS if result.success else ProgressStatus.FAILED
            await self._emit(product_id, account, operation, status, progress, result.message)
        return UnitResult(product_id=product_id, account=str(account), result=result)

    async def _execute(
        self,
        product_id: int,
        account: ChannelAccount,
        operation: OperationKind,
    ) -> SyncResult:
        current = await self._store.get_by_id(account.id) if account.id is not None else account
        if current is None:
            return SyncResult.failed(f"Account {account} no longer exists")

        resolved = self._dispatcher.for_account(current)
        if isinstance(resolved, Failure):
            return resolved.error
        adapter = resolved.value

        try:
            result = await _stage(adapter, operation, product_id).push()
        finally:
            await adapter.close()

        identifiers = result.data.get("marketplace_identifiers") if result.success else None
        if identifiers is not None and current.id is not None:
            await self._store_linkage(current.id, product_id, identifiers)
        return result

    async def _store_linkage(
        self,
        account_id: int,
        product_id: int,
        identifiers: dict[str, Any],
    ) -> None:
        # Other products of the account may have been written since this unit started.
        async with self._account_locks.hold(account_id):
            latest = await self._store.get_by_id(account_id)
            if latest is None:
                logger.warning(
                    "Account removed before identifiers were stored",
                    account_id=account_id,
                    product_id=product_id,
                )
                return
            merged = merge_product_linkage(latest.marketplace_identifiers, identifiers, product_id)
            await self._store.replace_identifiers(latest, merged)

    async def _emit(
        self,
        product_id: int,
        account: ChannelAccount,
        operation: OperationKind,
        status: ProgressStatus,
        progress: _Progress,
        message: str = "",
    ) -> None:
        await self._notifier.notify(
            ProgressEvent(
                product_id=product_id,
                account_id=account.id,
                channel=account.channel,
                account=str(account),
                operation=operation,
                status=status,
                percentage=progress.percentage,
                message=message,
            )
        )


@dataclass(slots=True)
class _Progress:
    total: int
    done: int = 0

    @property
    def percentage(self) -> int:
        return int(self.done * 100 / self.total) if self.total else 100


def _stage(adapter: StagingAdapter, operation: OperationKind, product_id: int) -> StagingAdapter:
    match operation:
        case OperationKind.CREATE:
            return adapter.create(product_id)
        case OperationKind.UPDATE:
            return adapter.update(product_id)
        case OperationKind.RECREATE:
            return adapter.recreate(product_id)
        case _:
            return adapter.link(product_id)
