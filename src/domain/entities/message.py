"""Message domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from core.clock import utcnow


@dataclass
class Message:
    """Chat message between two matched profiles."""

    event_id: UUID
    from_profile_id: UUID
    to_profile_id: UUID
    content: str
    id: UUID = field(default_factory=uuid4)
    is_read: bool = False
    seen: bool = False
    seen_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    def mark_seen(self, when: datetime) -> None:
        self.is_read = True
        self.seen = True
        self.seen_at = when
