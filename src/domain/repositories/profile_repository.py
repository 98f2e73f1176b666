"""Event profile repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.profile import EventProfile


class IProfileRepository(Protocol):
    """Repository interface for EventProfile entities."""

    async def get(self, id: UUID) -> EventProfile | None:
        """Get a profile by ID."""
        ...

    async def get_by_session(self, event_id: UUID, session_id: str) -> EventProfile | None:
        """Get the single profile owned by a session in an event."""
        ...

    async def list_for_event(
        self, event_id: UUID, visible_only: bool = False
    ) -> list[EventProfile]:
        """List profiles of an event in creation order."""
        ...

    async def create(self, profile: EventProfile) -> EventProfile:
        """Create a new profile."""
        ...

    async def update(self, profile: EventProfile) -> EventProfile:
        """Update an existing profile."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a profile and return success status."""
        ...
