"""Retry executor combined with the offline queue."""

from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from core.exceptions import OperationQueuedError, StoreError
from infrastructure.resilience.offline_queue import OfflineQueue, OperationHandler
from infrastructure.resilience.retry import RetryExecutor

logger = structlog.get_logger()

T = TypeVar("T")

ReplayDescriptor = tuple[str, dict[str, Any]]


class ResilientExecutor:
    """Run store operations with retries, queueing writes that exhaust them.

    A write passes a ``replay`` descriptor naming a registered handler and
    its payload. Reads pass none and see the store error directly.
    """

    def __init__(self, retry: RetryExecutor, queue: Optional[OfflineQueue] = None) -> None:
        self._retry = retry
        self._queue = queue

    @property
    def queue(self) -> Optional[OfflineQueue]:
        return self._queue

    def register_handler(self, operation: str, handler: OperationHandler) -> None:
        """Make a replay descriptor name known to the offline queue."""
        if self._queue is not None:
            self._queue.register(operation, handler)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        name: str,
        replay: Optional[ReplayDescriptor] = None,
    ) -> T:
        try:
            return await self._retry.execute(operation, name=name)
        except StoreError as e:
            if not e.is_transient or replay is None or self._queue is None:
                raise

            operation_name, payload = replay
            logger.info("operation_deferred_offline", operation=name, replay=operation_name)
            item = await self._queue.enqueue(operation_name, payload)
            raise OperationQueuedError(operation_name, item.id) from e
