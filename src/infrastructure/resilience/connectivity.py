"""Network reachability monitoring over HTTP."""

import asyncio
from typing import Callable, Optional

import httpx
import structlog

from domain.repositories.connectivity import ConnectivityListener

logger = structlog.get_logger()


class HttpReachabilityMonitor:
    """IConnectivityMonitor that probes a reachability URL with httpx.

    Any HTTP response counts as reachable; transport failures and timeouts
    count as offline. With no URL configured the monitor always reports
    online.
    """

    def __init__(
        self,
        url: str | None,
        timeout_s: float = 5.0,
        poll_interval_s: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url or None
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s
        self._client = client
        self._owns_client = client is None
        self._listeners: list[ConnectivityListener] = []
        self._last_state: bool | None = None
        self._task: asyncio.Task | None = None

    @property
    def last_state(self) -> bool | None:
        """Result of the most recent probe (None before the first one)."""
        return self._last_state

    async def is_connected(self) -> bool:
        if self._url is None:
            self._record(True)
            return True

        try:
            client = self._get_client()
            await client.head(self._url, timeout=self._timeout_s)
            connected = True
        except httpx.HTTPError as e:
            logger.debug("reachability_probe_failed", url=self._url, error=str(e))
            connected = False

        self._record(connected)
        return connected

    def add_listener(self, listener: ConnectivityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister

    async def start(self) -> None:
        """Start polling in the background so listeners see transitions."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._watch())
            logger.info("connectivity_watch_started", url=self._url)

    async def stop(self) -> None:
        """Stop polling and release the HTTP client."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("connectivity_watch_stopped")

    async def _watch(self) -> None:
        while True:
            await self.is_connected()
            await asyncio.sleep(self._poll_interval_s)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def _record(self, connected: bool) -> None:
        previous = self._last_state
        self._last_state = connected
        if previous is None or previous == connected:
            return

        logger.info("connectivity_changed", connected=connected)
        for listener in list(self._listeners):
            try:
                listener(connected)
            except Exception:
                logger.exception("connectivity_listener_failed")
