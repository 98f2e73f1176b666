"""Shared fixtures for unit tests."""

from typing import Any, Awaitable, Callable, Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.profile import EventProfile


class FakeUnitOfWork:
    """Fake Unit of Work with all 5 repository mocks for unit testing."""

    def __init__(self) -> None:
        self.events = AsyncMock()
        self.profiles = AsyncMock()
        self.likes = AsyncMock()
        self.messages = AsyncMock()
        self.moderation = AsyncMock()
        self.moderation.list_blocks_involving.return_value = []
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class FakeExecutor:
    """Runs operations inline and records replay descriptors."""

    def __init__(self) -> None:
        self.handlers: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {}
        self.runs: list[tuple[str, Optional[tuple[str, dict[str, Any]]]]] = []

    def register_handler(
        self, operation: str, handler: Callable[[dict[str, Any]], Awaitable[Any]]
    ) -> None:
        self.handlers[operation] = handler

    async def run(
        self,
        operation: Callable[[], Awaitable[Any]],
        *,
        name: str,
        replay: Optional[tuple[str, dict[str, Any]]] = None,
    ) -> Any:
        self.runs.append((name, replay))
        return await operation()


class FakeKeyValueStore:
    """In-memory IKeyValueStore."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)

    async def multi_remove(self, keys: list[str]) -> None:
        for key in keys:
            self.data.pop(key, None)


def _make_profile(
    event_id: UUID,
    session_id: str | None = None,
    **overrides: Any,
) -> EventProfile:
    fields: dict[str, Any] = {
        "first_name": "Alex",
        "age": 25,
        "gender_identity": "woman",
        "interested_in": "everyone",
    }
    fields.update(overrides)
    return EventProfile(event_id=event_id, session_id=session_id or uuid4().hex, **fields)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def fake_storage() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def event_id() -> UUID:
    """A random event ID."""
    return uuid4()


@pytest.fixture
def make_profile() -> Callable[..., EventProfile]:
    """Factory for visible profiles (a woman interested in everyone by default)."""
    return _make_profile
