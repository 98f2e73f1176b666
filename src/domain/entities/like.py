"""Like domain entity and match state."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from core.clock import utcnow


class MatchState(StrEnum):
    """State of an ordered (liker, liked) pair."""

    NO_LIKE = "no_like"
    ONE_SIDED = "one_sided"
    MUTUAL = "mutual"


@dataclass
class Like:
    """Directed expression of interest from one session to another."""

    event_id: UUID
    liker_session_id: str
    liked_session_id: str
    from_profile_id: UUID
    to_profile_id: UUID
    id: UUID = field(default_factory=uuid4)
    is_mutual: bool = False
    liker_notified_of_match: bool = False
    liked_notified_of_match: bool = False
    created_at: datetime = field(default_factory=utcnow)

    @property
    def state(self) -> MatchState:
        return MatchState.MUTUAL if self.is_mutual else MatchState.ONE_SIDED

    def mark_matched_by_new_like(self) -> None:
        """Flag the row of the liker whose like completed the match."""
        self.is_mutual = True
        self.liked_notified_of_match = True

    def mark_matched_as_existing_like(self) -> None:
        """Flag the row of the liker who liked first."""
        self.is_mutual = True
        self.liker_notified_of_match = True


@dataclass(frozen=True, slots=True)
class LikeResult:
    """Read-only value object returned by the match detector."""

    like: Like
    state: MatchState
    created: bool
    reciprocal: Like | None = None

    @property
    def is_match(self) -> bool:
        return self.state is MatchState.MUTUAL
