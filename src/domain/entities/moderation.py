"""Blocks and removals inside an event."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from core.clock import utcnow


@dataclass
class BlockedMatch:
    """One session hiding another for the rest of the event."""

    event_id: UUID
    blocker_session_id: str
    blocked_session_id: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def other_party(self, session_id: str) -> str:
        """The session on the other side of the block from ``session_id``."""
        if session_id == self.blocker_session_id:
            return self.blocked_session_id
        return self.blocker_session_id


@dataclass
class KickedUser:
    """A session removed from an event by its organizer."""

    event_id: UUID
    session_id: str
    id: UUID = field(default_factory=uuid4)
    reason: str | None = None
    created_at: datetime = field(default_factory=utcnow)
