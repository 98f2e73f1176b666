"""Protocol for running remote store operations resiliently."""

from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

T = TypeVar("T")

ReplayHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class IOperationExecutor(Protocol):
    """Runs store operations with retries; writes may be deferred for replay."""

    def register_handler(self, operation: str, handler: ReplayHandler) -> None:
        """Register the coroutine that replays a deferred write by name."""
        ...

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        name: str,
        replay: Optional[tuple[str, dict[str, Any]]] = None,
    ) -> T:
        """Run ``operation``; raise ``OperationQueuedError`` when a write was deferred."""
        ...
