"""Durable queue of writes deferred while the store is unreachable."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import orjson
import structlog

from core.exceptions import AppException, StoreError
from domain.entities.queued_operation import QueuedOperation
from domain.repositories.connectivity import IConnectivityMonitor
from domain.repositories.local_storage import IKeyValueStore

logger = structlog.get_logger()

STORAGE_KEY = "offline_queue"

OperationHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class OfflineQueue:
    """Bounded, persisted list of replay descriptors.

    Every mutation of the list is written to local storage before the call
    returns, so a restart resumes with the same pending work.
    """

    def __init__(
        self,
        storage: IKeyValueStore,
        connectivity: IConnectivityMonitor,
        *,
        max_size: int = 100,
        max_retries: int = 3,
        settle_delay_ms: int = 1000,
        auto_process: bool = True,
    ) -> None:
        self._storage = storage
        self._connectivity = connectivity
        self._max_size = max_size
        self._max_retries = max_retries
        self._settle_delay_s = settle_delay_ms / 1000.0
        self._auto_process = auto_process
        self._handlers: dict[str, OperationHandler] = {}
        self._items: list[QueuedOperation] = []
        self._processing = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._tasks: set[asyncio.Task] = set()
        self.dropped_count = 0

    @property
    def items(self) -> list[QueuedOperation]:
        """Snapshot of pending operations, oldest first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def register(self, operation: str, handler: OperationHandler) -> None:
        """Map a descriptor name to the coroutine that replays it."""
        self._handlers[operation] = handler

    async def initialize(self) -> None:
        """Load persisted operations and watch for restored connectivity."""
        await self._load()
        if self._unsubscribe is None:
            self._unsubscribe = self._connectivity.add_listener(self._on_connectivity_change)

    async def close(self) -> None:
        """Stop listening and cancel any scheduled processing."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def enqueue(self, operation: str, payload: dict[str, Any]) -> QueuedOperation:
        """Append a descriptor, evicting the oldest one when full."""
        if len(self._items) >= self._max_size:
            evicted = self._items.pop(0)
            self.dropped_count += 1
            logger.warning(
                "offline_queue_full",
                evicted_id=evicted.id,
                evicted_operation=evicted.operation,
                max_size=self._max_size,
            )

        item = QueuedOperation(operation=operation, payload=payload)
        self._items.append(item)
        await self._save()

        logger.info(
            "offline_operation_queued",
            queued_id=item.id,
            operation=operation,
            queue_size=len(self._items),
        )

        if self._auto_process:
            self._schedule(self.process_queue())
        return item

    async def process_queue(self) -> None:
        """Attempt every pending operation once (no-op when busy or offline)."""
        if self._processing or not self._items:
            return

        if not await self._connectivity.is_connected():
            logger.info("offline_queue_skipped_offline", queue_size=len(self._items))
            return

        self._processing = True
        try:
            snapshot = list(self._items)
            logger.info("offline_queue_processing", queue_size=len(snapshot))
            for item in snapshot:
                await self._process_item(item)
        finally:
            self._processing = False

        if self._items:
            logger.info("offline_queue_remaining", queue_size=len(self._items))

    async def _process_item(self, item: QueuedOperation) -> None:
        handler = self._handlers.get(item.operation)
        if handler is None:
            await self._drop(item, reason="unknown_operation")
            return

        try:
            await handler(item.payload)
        except StoreError as e:
            if not e.is_transient:
                await self._drop(item, reason=str(e.kind))
                return
            await self._record_failure(item, e)
        except AppException as e:
            # Domain rejections will not change on replay.
            await self._drop(item, reason=str(e.error_code))
        except Exception as e:
            await self._record_failure(item, e)
        else:
            self._remove(item)
            await self._save()
            logger.info(
                "offline_operation_processed",
                queued_id=item.id,
                operation=item.operation,
            )

    async def _record_failure(self, item: QueuedOperation, error: Exception) -> None:
        item.retries += 1
        if item.retries >= self._max_retries:
            await self._drop(item, reason="retries_exhausted", error=str(error))
            return

        await self._save()
        logger.warning(
            "offline_operation_failed",
            queued_id=item.id,
            operation=item.operation,
            retries=item.retries,
            max_retries=self._max_retries,
            error=str(error),
        )

    async def _drop(self, item: QueuedOperation, reason: str, error: str | None = None) -> None:
        self._remove(item)
        self.dropped_count += 1
        await self._save()
        logger.error(
            "offline_operation_dropped",
            queued_id=item.id,
            operation=item.operation,
            retries=item.retries,
            reason=reason,
            error=error,
            dropped_count=self.dropped_count,
        )

    def _remove(self, item: QueuedOperation) -> None:
        self._items = [queued for queued in self._items if queued.id != item.id]

    def _on_connectivity_change(self, connected: bool) -> None:
        if connected:
            self._schedule(self._process_after_settle())

    async def _process_after_settle(self) -> None:
        await asyncio.sleep(self._settle_delay_s)
        await self.process_queue()

    def _schedule(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("offline_queue_task_failed", error=str(task.exception()))

    async def _load(self) -> None:
        raw = await self._storage.get(STORAGE_KEY)
        if not raw:
            self._items = []
            return

        try:
            data = orjson.loads(raw)
            self._items = [QueuedOperation.from_dict(entry) for entry in data]
        except (orjson.JSONDecodeError, KeyError, TypeError) as e:
            logger.error("offline_queue_load_failed", error=str(e))
            self._items = []
            return

        logger.info("offline_queue_loaded", queue_size=len(self._items))

    async def _save(self) -> None:
        payload = orjson.dumps([item.to_dict() for item in self._items]).decode()
        await self._storage.set(STORAGE_KEY, payload)
