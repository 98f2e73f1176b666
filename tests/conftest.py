"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.clock import utcnow
from domain.entities.event import Event
from domain.repositories.connectivity import ConnectivityListener
from infrastructure.database.models import Base
from infrastructure.database.repositories.sqlalchemy_event_repo import SQLAlchemyEventRepository
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.resilience.executor import ResilientExecutor
from infrastructure.resilience.offline_queue import OfflineQueue
from infrastructure.resilience.retry import RetryExecutor, RetryPolicy
from infrastructure.storage.sqlalchemy_kv_store import SQLAlchemyKeyValueStore


class FakeConnectivity:
    """Connectivity monitor toggled by tests."""

    def __init__(self, online: bool = True) -> None:
        self.online = online
        self.checks = 0
        self._listeners: list[ConnectivityListener] = []

    async def is_connected(self) -> bool:
        self.checks += 1
        return self.online

    def add_listener(self, listener: ConnectivityListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def set_online(self, online: bool) -> None:
        changed = online != self.online
        self.online = online
        if changed:
            for listener in list(self._listeners):
                listener(online)


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine standing in for the remote store."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'remote.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """UoW factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
async def kv_store(tmp_path: Path) -> AsyncGenerator[SQLAlchemyKeyValueStore, None]:
    """Local key/value storage in its own SQLite file."""
    store = SQLAlchemyKeyValueStore(f"sqlite+aiosqlite:///{tmp_path / 'local.db'}")
    await store.initialize()
    yield store
    await store.dispose()


@pytest.fixture
def connectivity() -> FakeConnectivity:
    return FakeConnectivity(online=True)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def offline_queue(
    kv_store: SQLAlchemyKeyValueStore, connectivity: FakeConnectivity
) -> AsyncGenerator[OfflineQueue, None]:
    queue = OfflineQueue(kv_store, connectivity, settle_delay_ms=0, auto_process=False)
    await queue.initialize()
    yield queue
    await queue.close()


@pytest.fixture
def executor(
    connectivity: FakeConnectivity, offline_queue: OfflineQueue, sleep: RecordingSleep
) -> ResilientExecutor:
    """Executor with real retry semantics and no real waiting."""
    retry = RetryExecutor(
        connectivity=connectivity,
        policy=RetryPolicy(max_attempts=3, base_delay_ms=1000, jitter_ms=1000, timeout_s=5),
        sleep=sleep,
    )
    return ResilientExecutor(retry, offline_queue)


async def _create_event(
    session_factory: async_sessionmaker[AsyncSession], **overrides: Any
) -> Event:
    now = utcnow()
    fields: dict[str, Any] = {
        "name": "Rooftop Party",
        "event_code": "ROOF24",
        "starts_at": now - timedelta(hours=1),
        "expires_at": now + timedelta(hours=5),
    }
    fields.update(overrides)
    async with session_factory() as session:
        event = await SQLAlchemyEventRepository(session).create(Event(**fields))
        await session.commit()
    return event


@pytest.fixture
def make_event(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Any]:
    """Factory inserting an event that is running now unless overridden."""

    async def factory(**overrides: Any) -> Event:
        return await _create_event(session_factory, **overrides)

    return factory


@pytest.fixture
async def event(session_factory: async_sessionmaker[AsyncSession]) -> Event:
    """A running event."""
    return await _create_event(session_factory)


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    executor: ResilientExecutor,
    kv_store: SQLAlchemyKeyValueStore,
    connectivity: FakeConnectivity,
    offline_queue: OfflineQueue,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client wired to the test databases.

    This client:
    - Uses file-backed SQLite for the remote store and local storage
    - Overrides every service dependency (ASGITransport skips lifespan)
    - Uses a fake connectivity monitor and no-wait retries
    """
    from api.v1.dependencies import (
        get_connectivity_monitor,
        get_directory_service,
        get_like_service,
        get_message_service,
        get_offline_queue,
        get_session_service,
    )
    from domain.services.directory_service import DirectoryService
    from domain.services.like_service import LikeService
    from domain.services.message_service import MessageService
    from domain.services.session_service import AdminSessionStore, SessionService
    from infrastructure.database.session import get_async_session
    from main import create_app

    app = create_app()

    directory = DirectoryService(uow_factory, executor)
    likes = LikeService(uow_factory, executor)
    messages = MessageService(uow_factory, executor)
    sessions = SessionService(kv_store, directory, AdminSessionStore(kv_store))

    app.dependency_overrides[get_directory_service] = lambda: directory
    app.dependency_overrides[get_like_service] = lambda: likes
    app.dependency_overrides[get_message_service] = lambda: messages
    app.dependency_overrides[get_session_service] = lambda: sessions
    app.dependency_overrides[get_connectivity_monitor] = lambda: connectivity
    app.dependency_overrides[get_offline_queue] = lambda: offline_queue

    async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_async_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
