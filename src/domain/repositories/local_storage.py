"""Local durable key/value storage protocol."""

from typing import Protocol


class IKeyValueStore(Protocol):
    """Device-local storage for session keys, drafts and the offline queue."""

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...

    async def multi_remove(self, keys: list[str]) -> None:
        ...
