"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.event_repository import IEventRepository
from domain.repositories.like_repository import ILikeRepository
from domain.repositories.message_repository import IMessageRepository
from domain.repositories.moderation_repository import IModerationRepository
from domain.repositories.profile_repository import IProfileRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    events: IEventRepository
    profiles: IProfileRepository
    likes: ILikeRepository
    messages: IMessageRepository
    moderation: IModerationRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
