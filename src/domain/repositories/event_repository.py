"""Event repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.event import Event


class IEventRepository(Protocol):
    """Repository interface for Event entities (read-only to the core)."""

    async def get(self, id: UUID) -> Event | None:
        """Get an event by ID."""
        ...

    async def get_by_code(self, event_code: str) -> Event | None:
        """Get an active event by its join code."""
        ...

    async def create(self, event: Event) -> Event:
        """Create an event (organizer tooling and fixtures)."""
        ...
