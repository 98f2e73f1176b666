"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.errors import is_store_failure, translate_db_error
from infrastructure.database.repositories.sqlalchemy_event_repo import SQLAlchemyEventRepository
from infrastructure.database.repositories.sqlalchemy_like_repo import SQLAlchemyLikeRepository
from infrastructure.database.repositories.sqlalchemy_message_repo import (
    SQLAlchemyMessageRepository,
)
from infrastructure.database.repositories.sqlalchemy_moderation_repo import (
    SQLAlchemyModerationRepository,
)
from infrastructure.database.repositories.sqlalchemy_profile_repo import (
    SQLAlchemyProfileRepository,
)

logger = structlog.get_logger()


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy.

    Driver failures escaping the block are re-raised as ``StoreError`` so
    callers only ever see the structured kind.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session

    @property
    def events(self) -> SQLAlchemyEventRepository:
        """Get event repository."""
        return SQLAlchemyEventRepository(self._require_session())

    @property
    def profiles(self) -> SQLAlchemyProfileRepository:
        """Get profile repository."""
        return SQLAlchemyProfileRepository(self._require_session())

    @property
    def likes(self) -> SQLAlchemyLikeRepository:
        """Get like repository."""
        return SQLAlchemyLikeRepository(self._require_session())

    @property
    def messages(self) -> SQLAlchemyMessageRepository:
        """Get message repository."""
        return SQLAlchemyMessageRepository(self._require_session())

    @property
    def moderation(self) -> SQLAlchemyModerationRepository:
        """Get moderation repository."""
        return SQLAlchemyModerationRepository(self._require_session())

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager, cleanup and classify store failures."""
        if self._session:
            try:
                if exc_type:
                    try:
                        await self.rollback()
                    except Exception as rollback_error:
                        # The connection may already be gone; the original error wins.
                        logger.warning("uow_rollback_failed", error=str(rollback_error))
                await self._session.close()
            finally:
                self._session = None

        if exc_val is not None and is_store_failure(exc_val):
            raise translate_db_error(exc_val) from exc_val
