"""Block and kick repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.moderation import BlockedMatch, KickedUser


class IModerationRepository(Protocol):
    """Repository interface for blocks and kicked sessions."""

    async def create_block(self, block: BlockedMatch) -> BlockedMatch:
        """Record a block."""
        ...

    async def list_blocks_involving(self, event_id: UUID, session_id: str) -> list[BlockedMatch]:
        """Blocks where the session is either blocker or blocked."""
        ...

    async def create_kick(self, kick: KickedUser) -> KickedUser:
        """Record a removal."""
        ...

    async def is_kicked(self, event_id: UUID, session_id: str) -> bool:
        """Whether the session was removed from the event."""
        ...
