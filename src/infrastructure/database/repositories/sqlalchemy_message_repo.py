"""SQLAlchemy implementation of Message repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc
from domain.entities.message import Message
from infrastructure.database.models import MessageModel


class SQLAlchemyMessageRepository:
    """SQLAlchemy implementation of IMessageRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: Message) -> Message:
        """Create a new message."""
        model = self._to_model(message)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def list_conversation(
        self, event_id: UUID, profile_a: UUID, profile_b: UUID
    ) -> list[Message]:
        """All messages between two profiles, oldest first."""
        stmt = (
            select(MessageModel)
            .where(
                MessageModel.event_id == event_id,
                or_(
                    and_(
                        MessageModel.from_profile_id == profile_a,
                        MessageModel.to_profile_id == profile_b,
                    ),
                    and_(
                        MessageModel.from_profile_id == profile_b,
                        MessageModel.to_profile_id == profile_a,
                    ),
                ),
            )
            .order_by(MessageModel.created_at, MessageModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def mark_seen(
        self, event_id: UUID, from_profile_id: UUID, to_profile_id: UUID, seen_at: datetime
    ) -> int:
        """Mark unseen messages in one direction as seen."""
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.event_id == event_id,
                MessageModel.from_profile_id == from_profile_id,
                MessageModel.to_profile_id == to_profile_id,
                MessageModel.seen.is_(False),
            )
            .values(seen=True, is_read=True, seen_at=seen_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount or 0

    async def count_unread(self, event_id: UUID, to_profile_id: UUID) -> int:
        """Count unseen messages addressed to a profile."""
        stmt = (
            select(func.count())
            .select_from(MessageModel)
            .where(
                MessageModel.event_id == event_id,
                MessageModel.to_profile_id == to_profile_id,
                MessageModel.seen.is_(False),
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    def _to_entity(self, model: MessageModel) -> Message:
        """Convert ORM model to domain entity."""
        return Message(
            id=model.id,
            event_id=model.event_id,
            from_profile_id=model.from_profile_id,
            to_profile_id=model.to_profile_id,
            content=model.content,
            is_read=model.is_read,
            seen=model.seen,
            seen_at=as_utc(model.seen_at) if model.seen_at else None,
            created_at=as_utc(model.created_at),
        )

    def _to_model(self, entity: Message) -> MessageModel:
        """Convert domain entity to ORM model."""
        return MessageModel(
            id=entity.id,
            event_id=entity.event_id,
            from_profile_id=entity.from_profile_id,
            to_profile_id=entity.to_profile_id,
            content=entity.content,
            is_read=entity.is_read,
            seen=entity.seen,
            seen_at=entity.seen_at,
            created_at=entity.created_at,
        )
