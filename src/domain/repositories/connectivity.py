"""Connectivity monitor protocol."""

from typing import Callable, Protocol

ConnectivityListener = Callable[[bool], None]


class IConnectivityMonitor(Protocol):
    """Reports network reachability and notifies listeners on changes."""

    async def is_connected(self) -> bool:
        ...

    def add_listener(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        ...
