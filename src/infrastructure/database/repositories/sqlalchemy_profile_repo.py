"""SQLAlchemy implementation of EventProfile repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc
from domain.entities.profile import EventProfile
from infrastructure.database.models import EventProfileModel


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> EventProfile | None:
        """Get a profile by ID."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def get_by_session(self, event_id: UUID, session_id: str) -> EventProfile | None:
        """Get the profile owned by a session in an event."""
        stmt = select(EventProfileModel).where(
            EventProfileModel.event_id == event_id,
            EventProfileModel.session_id == session_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_for_event(
        self, event_id: UUID, visible_only: bool = False
    ) -> list[EventProfile]:
        """List profiles of an event in creation order."""
        stmt = select(EventProfileModel).where(EventProfileModel.event_id == event_id)
        if visible_only:
            stmt = stmt.where(EventProfileModel.is_visible.is_(True))
        stmt = stmt.order_by(EventProfileModel.created_at, EventProfileModel.id)
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, profile: EventProfile) -> EventProfile:
        """Create a new profile."""
        model = self._to_model(profile)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, profile: EventProfile) -> EventProfile:
        """Update an existing profile."""
        model = await self._get_model(profile.id)
        if not model:
            raise ValueError(f"Profile {profile.id} not found")

        model.first_name = profile.first_name
        model.age = profile.age
        model.gender_identity = profile.gender_identity
        model.interested_in = profile.interested_in
        model.is_visible = profile.is_visible
        model.interests = list(profile.interests)
        model.about_me = profile.about_me
        model.height_cm = profile.height_cm
        model.profile_photo_url = profile.profile_photo_url
        model.profile_color = profile.profile_color

        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a profile."""
        model = await self._get_model(id)
        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def _get_model(self, id: UUID) -> EventProfileModel | None:
        stmt = select(EventProfileModel).where(EventProfileModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: EventProfileModel) -> EventProfile:
        """Convert ORM model to domain entity."""
        return EventProfile(
            id=model.id,
            event_id=model.event_id,
            session_id=model.session_id,
            first_name=model.first_name,
            age=model.age,
            gender_identity=model.gender_identity,
            interested_in=model.interested_in,
            is_visible=model.is_visible,
            interests=list(model.interests or []),
            about_me=model.about_me,
            height_cm=model.height_cm,
            profile_photo_url=model.profile_photo_url,
            profile_color=model.profile_color,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    def _to_model(self, entity: EventProfile) -> EventProfileModel:
        """Convert domain entity to ORM model."""
        return EventProfileModel(
            id=entity.id,
            event_id=entity.event_id,
            session_id=entity.session_id,
            first_name=entity.first_name,
            age=entity.age,
            gender_identity=entity.gender_identity,
            interested_in=entity.interested_in,
            is_visible=entity.is_visible,
            interests=list(entity.interests),
            about_me=entity.about_me,
            height_cm=entity.height_cm,
            profile_photo_url=entity.profile_photo_url,
            profile_color=entity.profile_color,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
