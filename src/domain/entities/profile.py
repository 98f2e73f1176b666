"""Event profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from core.clock import utcnow

MAX_INTERESTS = 3
MIN_AGE = 18
MAX_AGE = 100


class GenderIdentity(StrEnum):
    """How an attendee identifies."""

    MAN = "man"
    WOMAN = "woman"
    NON_BINARY = "non-binary"


class InterestedIn(StrEnum):
    """Who an attendee wants to see in discovery."""

    MEN = "men"
    WOMEN = "women"
    NON_BINARY = "non-binary"
    EVERYONE = "everyone"

    @classmethod
    def parse(cls, value: str | None) -> "InterestedIn | None":
        """Parse a stored preference, accepting the legacy ``everybody`` spelling."""
        if value is None:
            return None
        value = value.strip().lower()
        if value == "everybody":
            return cls.EVERYONE
        try:
            return cls(value)
        except ValueError:
            return None


# Category -> identity that satisfies it (EVERYONE is handled separately)
INTEREST_TARGETS: dict[InterestedIn, GenderIdentity] = {
    InterestedIn.MEN: GenderIdentity.MAN,
    InterestedIn.WOMEN: GenderIdentity.WOMAN,
    InterestedIn.NON_BINARY: GenderIdentity.NON_BINARY,
}


@dataclass
class EventProfile:
    """Domain entity for one attendee's profile in one event."""

    event_id: UUID
    session_id: str
    first_name: str
    age: int
    gender_identity: str
    id: UUID = field(default_factory=uuid4)
    interested_in: str | None = None
    is_visible: bool = True
    interests: list[str] = field(default_factory=list)
    about_me: str | None = None
    height_cm: int | None = None
    profile_photo_url: str | None = None
    profile_color: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def is_interested_in(self, gender_identity: str) -> bool:
        """Whether this profile's stated interest is satisfied by ``gender_identity``."""
        preference = InterestedIn.parse(self.interested_in)
        if preference is None:
            return False
        if preference is InterestedIn.EVERYONE:
            return True
        return INTEREST_TARGETS[preference] == gender_identity
