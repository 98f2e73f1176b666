"""Device-local key/value storage backed by its own SQLite database."""

from datetime import datetime

import structlog
from sqlalchemy import DateTime, String, Text, delete
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from core.clock import utcnow

logger = structlog.get_logger()


class LocalBase(DeclarativeBase):
    """Base class for local-only tables (never shipped to the remote store)."""

    pass


class KeyValueModel(LocalBase):
    """Single key/value entry."""

    __tablename__ = "local_kv"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )


class SQLAlchemyKeyValueStore:
    """SQLAlchemy implementation of IKeyValueStore."""

    def __init__(self, url: str | None = None, engine: AsyncEngine | None = None) -> None:
        if engine is None:
            if url is None:
                raise ValueError("Either url or engine is required")
            engine = create_async_engine(url)
        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def initialize(self) -> None:
        """Create the backing table if needed."""
        async with self._engine.begin() as conn:
            await conn.run_sync(LocalBase.metadata.create_all)
        logger.info("local_storage_initialized", url=str(self._engine.url))

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            model = await session.get(KeyValueModel, key)
            return model.value if model else None

    async def set(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            model = await session.get(KeyValueModel, key)
            if model:
                model.value = value
            else:
                session.add(KeyValueModel(key=key, value=value))
            await session.commit()

    async def remove(self, key: str) -> None:
        await self.multi_remove([key])

    async def multi_remove(self, keys: list[str]) -> None:
        if not keys:
            return
        async with self._session_factory() as session:
            await session.execute(delete(KeyValueModel).where(KeyValueModel.key.in_(keys)))
            await session.commit()
