"""SQLAlchemy implementation of Event repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc
from domain.entities.event import Event, normalize_event_code
from infrastructure.database.models import EventModel


class SQLAlchemyEventRepository:
    """SQLAlchemy implementation of IEventRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Event | None:
        """Get an event by ID."""
        stmt = select(EventModel).where(EventModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_code(self, event_code: str) -> Event | None:
        """Get the most recent active event using this join code."""
        stmt = (
            select(EventModel)
            .where(
                EventModel.event_code == normalize_event_code(event_code),
                EventModel.is_active.is_(True),
            )
            .order_by(EventModel.starts_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, event: Event) -> Event:
        """Create a new event."""
        model = self._to_model(event)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    def _to_entity(self, model: EventModel) -> Event:
        """Convert ORM model to domain entity."""
        return Event(
            id=model.id,
            name=model.name,
            event_code=model.event_code,
            description=model.description,
            location=model.location,
            starts_at=as_utc(model.starts_at),
            expires_at=as_utc(model.expires_at),
            timezone=model.timezone,
            is_private=model.is_private,
            is_active=model.is_active,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    def _to_model(self, entity: Event) -> EventModel:
        """Convert domain entity to ORM model."""
        return EventModel(
            id=entity.id,
            name=entity.name,
            event_code=entity.event_code,
            description=entity.description,
            location=entity.location,
            starts_at=entity.starts_at,
            expires_at=entity.expires_at,
            timezone=entity.timezone,
            is_private=entity.is_private,
            is_active=entity.is_active,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
