"""SQLAlchemy implementation of Like repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc
from domain.entities.like import Like
from infrastructure.database.models import LikeModel


class SQLAlchemyLikeRepository:
    """SQLAlchemy implementation of ILikeRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Like | None:
        """Get a like by ID."""
        stmt = select(LikeModel).where(LikeModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_between(
        self, event_id: UUID, liker_session_id: str, liked_session_id: str
    ) -> Like | None:
        """Get the like edge for an ordered pair."""
        stmt = select(LikeModel).where(
            LikeModel.event_id == event_id,
            LikeModel.liker_session_id == liker_session_id,
            LikeModel.liked_session_id == liked_session_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_liker(self, event_id: UUID, session_id: str) -> list[Like]:
        """Likes given by a session."""
        stmt = (
            select(LikeModel)
            .where(LikeModel.event_id == event_id, LikeModel.liker_session_id == session_id)
            .order_by(LikeModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_by_liked(self, event_id: UUID, session_id: str) -> list[Like]:
        """Likes received by a session."""
        stmt = (
            select(LikeModel)
            .where(LikeModel.event_id == event_id, LikeModel.liked_session_id == session_id)
            .order_by(LikeModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_mutual(self, event_id: UUID, session_id: str) -> list[Like]:
        """Mutual likes given by a session."""
        stmt = (
            select(LikeModel)
            .where(
                LikeModel.event_id == event_id,
                LikeModel.liker_session_id == session_id,
                LikeModel.is_mutual.is_(True),
            )
            .order_by(LikeModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, like: Like) -> Like:
        """Create a new like."""
        model = self._to_model(like)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, like: Like) -> Like:
        """Persist mutuality and notification flags."""
        stmt = select(LikeModel).where(LikeModel.id == like.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Like {like.id} not found")

        model.is_mutual = like.is_mutual
        model.liker_notified_of_match = like.liker_notified_of_match
        model.liked_notified_of_match = like.liked_notified_of_match

        await self._session.flush()
        return self._to_entity(model)

    def _to_entity(self, model: LikeModel) -> Like:
        """Convert ORM model to domain entity."""
        return Like(
            id=model.id,
            event_id=model.event_id,
            liker_session_id=model.liker_session_id,
            liked_session_id=model.liked_session_id,
            from_profile_id=model.from_profile_id,
            to_profile_id=model.to_profile_id,
            is_mutual=model.is_mutual,
            liker_notified_of_match=model.liker_notified_of_match,
            liked_notified_of_match=model.liked_notified_of_match,
            created_at=as_utc(model.created_at),
        )

    def _to_model(self, entity: Like) -> LikeModel:
        """Convert domain entity to ORM model."""
        return LikeModel(
            id=entity.id,
            event_id=entity.event_id,
            liker_session_id=entity.liker_session_id,
            liked_session_id=entity.liked_session_id,
            from_profile_id=entity.from_profile_id,
            to_profile_id=entity.to_profile_id,
            is_mutual=entity.is_mutual,
            liker_notified_of_match=entity.liker_notified_of_match,
            liked_notified_of_match=entity.liked_notified_of_match,
            created_at=entity.created_at,
        )
