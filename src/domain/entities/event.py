"""Event domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from core.clock import as_utc, utcnow


def normalize_event_code(code: str) -> str:
    """Event codes are matched case-insensitively."""
    return code.strip().upper()


@dataclass
class Event:
    """Domain entity for a time-boxed event that scopes all social data."""

    name: str
    event_code: str
    starts_at: datetime
    expires_at: datetime
    id: UUID = field(default_factory=uuid4)
    timezone: str = "UTC"
    is_private: bool = False
    is_active: bool = True
    description: str | None = None
    location: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.event_code = normalize_event_code(self.event_code)
        self.starts_at = as_utc(self.starts_at)
        self.expires_at = as_utc(self.expires_at)
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def is_running_at(self, now: datetime) -> bool:
        """True while ``now`` falls inside the event's window (inclusive)."""
        now = as_utc(now)
        return self.starts_at <= now <= self.expires_at
