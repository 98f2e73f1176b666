"""Like repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.like import Like


class ILikeRepository(Protocol):
    """Repository interface for Like entities."""

    async def get(self, id: UUID) -> Like | None:
        """Get a like by ID."""
        ...

    async def get_between(
        self, event_id: UUID, liker_session_id: str, liked_session_id: str
    ) -> Like | None:
        """Get the like edge for an ordered (liker, liked) pair."""
        ...

    async def list_by_liker(self, event_id: UUID, session_id: str) -> list[Like]:
        """Likes given by a session."""
        ...

    async def list_by_liked(self, event_id: UUID, session_id: str) -> list[Like]:
        """Likes received by a session."""
        ...

    async def list_mutual(self, event_id: UUID, session_id: str) -> list[Like]:
        """Mutual likes given by a session (one row per match)."""
        ...

    async def create(self, like: Like) -> Like:
        """Create a new like."""
        ...

    async def update(self, like: Like) -> Like:
        """Persist mutuality and notification flags."""
        ...
