"""Retry with exponential backoff for remote store operations."""

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from core.exceptions import ConnectivityError, StoreError, StoreErrorKind
from domain.repositories.connectivity import IConnectivityMonitor
from infrastructure.database.errors import is_store_failure, translate_db_error

logger = structlog.get_logger()

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt limit and backoff shape."""

    max_attempts: int = 3
    base_delay_ms: int = 1000
    jitter_ms: int = 1000
    timeout_s: float | None = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0 or self.jitter_ms < 0:
            raise ValueError("delays must not be negative")


def compute_backoff(
    attempt: int,
    base_delay_ms: int,
    jitter_ms: int,
    rng: random.Random | None = None,
) -> float:
    """Delay in seconds before retrying after failed attempt ``attempt`` (1-indexed).

    Jitter is drawn from ``[0, min(jitter_ms, base_delay_ms))`` so consecutive
    delays are strictly increasing for any positive base delay.
    """
    if attempt < 1:
        raise ValueError("attempt is 1-indexed")
    rng = rng or random
    jitter_cap = min(jitter_ms, base_delay_ms)
    jitter = rng.random() * jitter_cap
    return (base_delay_ms * 2 ** (attempt - 1) + jitter) / 1000.0


class RetryExecutor:
    """Runs store operations with connectivity gating and bounded retries.

    Transient ``StoreError`` kinds are retried; permanent kinds and
    non-store exceptions are raised on the first occurrence.
    """

    def __init__(
        self,
        connectivity: Optional[IConnectivityMonitor] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._connectivity = connectivity
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        name: str,
        max_retries: int | None = None,
        base_delay_ms: int | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds, fails permanently or attempts run out."""
        attempts = max_retries if max_retries is not None else self._policy.max_attempts
        base_delay = base_delay_ms if base_delay_ms is not None else self._policy.base_delay_ms
        if attempts < 1:
            raise ValueError("max_retries must be at least 1")

        last_error: StoreError | None = None

        for attempt in range(1, attempts + 1):
            if not await self._is_connected():
                last_error = ConnectivityError()
                logger.warning(
                    "retry_attempt_offline",
                    operation=name,
                    attempt=attempt,
                    max_attempts=attempts,
                )
            else:
                try:
                    result = await self._invoke(operation)
                except StoreError as e:
                    last_error = e
                except Exception as e:
                    if not is_store_failure(e):
                        raise
                    last_error = translate_db_error(e)
                else:
                    if attempt > 1:
                        logger.info("retry_succeeded", operation=name, attempt=attempt)
                    return result

                if not last_error.is_transient:
                    logger.warning(
                        "retry_permanent_failure",
                        operation=name,
                        attempt=attempt,
                        kind=last_error.kind,
                        error=last_error.message,
                    )
                    raise last_error

                logger.warning(
                    "retry_attempt_failed",
                    operation=name,
                    attempt=attempt,
                    max_attempts=attempts,
                    kind=last_error.kind,
                    error=last_error.message,
                )

            if attempt < attempts:
                delay = compute_backoff(attempt, base_delay, self._policy.jitter_ms, self._rng)
                logger.debug("retry_backoff", operation=name, attempt=attempt, delay_s=delay)
                await self._sleep(delay)

        logger.error("retry_exhausted", operation=name, attempts=attempts)
        assert last_error is not None
        raise last_error

    async def _is_connected(self) -> bool:
        if self._connectivity is None:
            return True
        return await self._connectivity.is_connected()

    async def _invoke(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self._policy.timeout_s is None:
            return await operation()
        try:
            return await asyncio.wait_for(operation(), timeout=self._policy.timeout_s)
        except asyncio.TimeoutError as e:
            raise StoreError(StoreErrorKind.TIMEOUT, "Store operation timed out") from e
