"""SQLAlchemy implementation of the moderation repository."""

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc
from domain.entities.moderation import BlockedMatch, KickedUser
from infrastructure.database.models import BlockedMatchModel, KickedUserModel


class SQLAlchemyModerationRepository:
    """SQLAlchemy implementation of IModerationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_block(self, block: BlockedMatch) -> BlockedMatch:
        """Record a block (no-op if the same block already exists)."""
        stmt = select(BlockedMatchModel).where(
            BlockedMatchModel.event_id == block.event_id,
            BlockedMatchModel.blocker_session_id == block.blocker_session_id,
            BlockedMatchModel.blocked_session_id == block.blocked_session_id,
        )
        result = await self._session.execute(stmt)
        existing = result.scalar_one_or_none()
        if existing:
            return self._block_to_entity(existing)

        model = BlockedMatchModel(
            id=block.id,
            event_id=block.event_id,
            blocker_session_id=block.blocker_session_id,
            blocked_session_id=block.blocked_session_id,
            created_at=block.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._block_to_entity(model)

    async def list_blocks_involving(self, event_id: UUID, session_id: str) -> list[BlockedMatch]:
        """Blocks where the session is on either side."""
        stmt = select(BlockedMatchModel).where(
            BlockedMatchModel.event_id == event_id,
            or_(
                BlockedMatchModel.blocker_session_id == session_id,
                BlockedMatchModel.blocked_session_id == session_id,
            ),
        )
        result = await self._session.execute(stmt)
        return [self._block_to_entity(model) for model in result.scalars()]

    async def create_kick(self, kick: KickedUser) -> KickedUser:
        """Record a removal."""
        model = KickedUserModel(
            id=kick.id,
            event_id=kick.event_id,
            session_id=kick.session_id,
            reason=kick.reason,
            created_at=kick.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return KickedUser(
            id=model.id,
            event_id=model.event_id,
            session_id=model.session_id,
            reason=model.reason,
            created_at=as_utc(model.created_at),
        )

    async def is_kicked(self, event_id: UUID, session_id: str) -> bool:
        """Whether the session was removed from the event."""
        stmt = (
            select(func.count())
            .select_from(KickedUserModel)
            .where(
                KickedUserModel.event_id == event_id,
                KickedUserModel.session_id == session_id,
            )
        )
        result = await self._session.execute(stmt)
        return (result.scalar() or 0) > 0

    def _block_to_entity(self, model: BlockedMatchModel) -> BlockedMatch:
        return BlockedMatch(
            id=model.id,
            event_id=model.event_id,
            blocker_session_id=model.blocker_session_id,
            blocked_session_id=model.blocked_session_id,
            created_at=as_utc(model.created_at),
        )
