"""Bidirectional compatibility filter for discovery."""

from dataclasses import dataclass, field
from typing import Iterable

from core.exceptions import ValidationError
from domain.entities.profile import MAX_AGE, MAX_INTERESTS, MIN_AGE, EventProfile

ALL_GENDERS = "all"
DEFAULT_AGE_MIN = MIN_AGE
DEFAULT_AGE_MAX = MAX_AGE


@dataclass(frozen=True)
class DiscoveryFilters:
    """Criteria a session applies on top of mutual orientation."""

    age_min: int = DEFAULT_AGE_MIN
    age_max: int = DEFAULT_AGE_MAX
    gender: str = ALL_GENDERS
    interests: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.age_min > self.age_max:
            raise ValidationError(
                "age_min must not exceed age_max",
                {"age_min": self.age_min, "age_max": self.age_max},
            )
        if len(self.interests) > MAX_INTERESTS:
            raise ValidationError(
                f"At most {MAX_INTERESTS} interest filters are allowed",
                {"interests": list(self.interests)},
            )
        # Accept any iterable (lists from JSON) but store an immutable tuple
        object.__setattr__(self, "interests", tuple(self.interests))


def orientation_matches(me: EventProfile, other: EventProfile) -> bool:
    """Both profiles are interested in each other's gender identity."""
    return me.is_interested_in(other.gender_identity) and other.is_interested_in(
        me.gender_identity
    )


def is_candidate(me: EventProfile, other: EventProfile, filters: DiscoveryFilters) -> bool:
    """Whether ``other`` belongs in ``me``'s discovery pool."""
    if other.session_id == me.session_id or not other.is_visible:
        return False

    if not orientation_matches(me, other):
        return False

    if not filters.age_min <= other.age <= filters.age_max:
        return False

    if filters.gender != ALL_GENDERS and other.gender_identity != filters.gender:
        return False

    if filters.interests and not set(other.interests).intersection(filters.interests):
        return False

    return True


def filter_candidates(
    me: EventProfile,
    profiles: Iterable[EventProfile],
    filters: DiscoveryFilters,
    exclude: Iterable[str] = (),
) -> list[EventProfile]:
    """Apply ``is_candidate`` keeping input order; ``exclude`` holds blocked session ids."""
    excluded = set(exclude)
    return [
        other
        for other in profiles
        if other.session_id not in excluded and is_candidate(me, other, filters)
    ]
