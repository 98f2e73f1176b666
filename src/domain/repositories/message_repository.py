"""Message repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.message import Message


class IMessageRepository(Protocol):
    """Repository interface for Message entities."""

    async def create(self, message: Message) -> Message:
        """Create a new message."""
        ...

    async def list_conversation(
        self, event_id: UUID, profile_a: UUID, profile_b: UUID
    ) -> list[Message]:
        """All messages between two profiles, oldest first."""
        ...

    async def mark_seen(
        self, event_id: UUID, from_profile_id: UUID, to_profile_id: UUID, seen_at: datetime
    ) -> int:
        """Mark unseen messages from one profile to another as seen. Returns count."""
        ...

    async def count_unread(self, event_id: UUID, to_profile_id: UUID) -> int:
        """Count unseen messages addressed to a profile."""
        ...
