"""Like service: records likes and detects mutual matches."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog

from core.exceptions import (
    InvalidLikeError,
    ProfileHiddenError,
    ProfileNotFoundError,
    StoreError,
    StoreErrorKind,
)
from domain.entities.like import Like, LikeResult, MatchState
from domain.repositories.operation_executor import IOperationExecutor
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

REPLAY_CREATE_LIKE = "like.create"


class LikeService:
    """Service layer for likes and matches.

    A new like and the reciprocal row it completes are written in a single
    unit of work, so a match is never recorded on only one side. Two
    reciprocal likes committed at the same moment cannot see each other, so a
    one-sided result is re-checked after commit and completed there; at least
    one of the racing calls observes both rows.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        executor: IOperationExecutor,
    ) -> None:
        self._uow_factory = uow_factory
        self._executor = executor
        executor.register_handler(REPLAY_CREATE_LIKE, self._replay_create)

    async def like(
        self, event_id: UUID, liker_session_id: str, liked_session_id: str
    ) -> LikeResult:
        """Like another attendee; completes a match when they already liked back.

        Raises:
            InvalidLikeError: When a session likes itself.
            ProfileNotFoundError: When either profile does not exist or a block
                separates the two sessions.
            ProfileHiddenError: When either profile is hidden.
            OperationQueuedError: When the store is unreachable and the like was queued.
        """
        if liker_session_id == liked_session_id:
            raise InvalidLikeError()

        try:
            result = await self._executor.run(
                lambda: self._create(event_id, liker_session_id, liked_session_id),
                name="like.create",
                replay=(
                    REPLAY_CREATE_LIKE,
                    {
                        "event_id": str(event_id),
                        "liker_session_id": liker_session_id,
                        "liked_session_id": liked_session_id,
                    },
                ),
            )
        except StoreError as e:
            if e.kind is not StoreErrorKind.CONFLICT:
                raise
            # A concurrent identical like won the unique constraint
            existing = await self._executor.run(
                lambda: self._get_between(event_id, liker_session_id, liked_session_id),
                name="like.get",
            )
            if existing is None:
                raise
            logger.info(
                "like_conflict_resolved",
                event_id=str(event_id),
                liker_session_id=liker_session_id,
                liked_session_id=liked_session_id,
            )
            return LikeResult(like=existing, state=existing.state, created=False)

        if result.created and not result.is_match:
            result = await self._complete_after_commit(result)
        return result

    async def get_state(
        self, event_id: UUID, liker_session_id: str, liked_session_id: str
    ) -> MatchState:
        """State of the ordered pair (liker, liked)."""
        existing = await self._executor.run(
            lambda: self._get_between(event_id, liker_session_id, liked_session_id),
            name="like.get",
        )
        return existing.state if existing else MatchState.NO_LIKE

    async def reconcile(self, event_id: UUID, session_id: str) -> int:
        """Mark reciprocal pairs involving ``session_id`` as mutual on both rows.

        Returns the number of pairs repaired.
        """
        return await self._executor.run(
            lambda: self._reconcile(event_id, session_id),
            name="like.reconcile",
        )

    async def _create(
        self, event_id: UUID, liker_session_id: str, liked_session_id: str
    ) -> LikeResult:
        async with self._uow_factory() as uow:
            liker = await uow.profiles.get_by_session(event_id, liker_session_id)
            if not liker:
                raise ProfileNotFoundError(liker_session_id)
            liked = await uow.profiles.get_by_session(event_id, liked_session_id)
            if not liked:
                raise ProfileNotFoundError(liked_session_id)
            if not liker.is_visible or not liked.is_visible:
                raise ProfileHiddenError()
            if await self._is_blocked(uow, event_id, liker_session_id, liked_session_id):
                # Blocked parties do not exist for each other
                raise ProfileNotFoundError(liked_session_id)

            existing = await uow.likes.get_between(event_id, liker_session_id, liked_session_id)
            if existing:
                return LikeResult(like=existing, state=existing.state, created=False)

            like = Like(
                event_id=event_id,
                liker_session_id=liker_session_id,
                liked_session_id=liked_session_id,
                from_profile_id=liker.id,
                to_profile_id=liked.id,
            )

            reciprocal = await uow.likes.get_between(event_id, liked_session_id, liker_session_id)
            if reciprocal:
                like.mark_matched_by_new_like()
                reciprocal.mark_matched_as_existing_like()

            created = await uow.likes.create(like)
            if reciprocal:
                reciprocal = await uow.likes.update(reciprocal)
            await uow.commit()

        if reciprocal:
            logger.info(
                "match_created",
                event_id=str(event_id),
                session_a=liker_session_id,
                session_b=liked_session_id,
            )
            return LikeResult(
                like=created, state=MatchState.MUTUAL, created=True, reciprocal=reciprocal
            )

        logger.info(
            "like_created",
            event_id=str(event_id),
            liker_session_id=liker_session_id,
            liked_session_id=liked_session_id,
        )
        return LikeResult(like=created, state=MatchState.ONE_SIDED, created=True)

    async def _get_between(
        self, event_id: UUID, liker_session_id: str, liked_session_id: str
    ) -> Like | None:
        async with self._uow_factory() as uow:
            return await uow.likes.get_between(event_id, liker_session_id, liked_session_id)

    async def _complete_after_commit(self, result: LikeResult) -> LikeResult:
        like = result.like
        try:
            pair = await self._executor.run(
                lambda: self._complete_pair(
                    like.event_id, like.liker_session_id, like.liked_session_id
                ),
                name="like.complete_match",
            )
        except StoreError as e:
            # The like itself is stored; reconcile repairs the pair later
            logger.warning(
                "match_completion_deferred",
                event_id=str(like.event_id),
                liker_session_id=like.liker_session_id,
                liked_session_id=like.liked_session_id,
                kind=e.kind.value,
            )
            return result

        if pair is None:
            return result
        mine, theirs = pair
        return LikeResult(like=mine, state=MatchState.MUTUAL, created=True, reciprocal=theirs)

    async def _complete_pair(
        self, event_id: UUID, liker_session_id: str, liked_session_id: str
    ) -> tuple[Like, Like] | None:
        """Flip a reciprocal pair that two concurrent likes left one-sided."""
        async with self._uow_factory() as uow:
            mine = await uow.likes.get_between(event_id, liker_session_id, liked_session_id)
            theirs = await uow.likes.get_between(event_id, liked_session_id, liker_session_id)
            if mine is None or theirs is None:
                return None
            if mine.is_mutual and theirs.is_mutual:
                return mine, theirs
            if await self._is_blocked(uow, event_id, liker_session_id, liked_session_id):
                return None

            self._mark_pair(mine, theirs)
            mine = await uow.likes.update(mine)
            theirs = await uow.likes.update(theirs)
            await uow.commit()

        logger.info(
            "match_created",
            event_id=str(event_id),
            session_a=liker_session_id,
            session_b=liked_session_id,
            completed_after_commit=True,
        )
        return mine, theirs

    @staticmethod
    def _mark_pair(a: Like, b: Like) -> None:
        first, second = (a, b) if a.created_at <= b.created_at else (b, a)
        first.mark_matched_as_existing_like()
        second.mark_matched_by_new_like()

    @staticmethod
    async def _is_blocked(
        uow: IUnitOfWork, event_id: UUID, session_id: str, other_session_id: str
    ) -> bool:
        blocks = await uow.moderation.list_blocks_involving(event_id, session_id)
        return any(block.other_party(session_id) == other_session_id for block in blocks)

    async def _reconcile(self, event_id: UUID, session_id: str) -> int:
        async with self._uow_factory() as uow:
            given = await uow.likes.list_by_liker(event_id, session_id)
            received = {
                like.liker_session_id: like
                for like in await uow.likes.list_by_liked(event_id, session_id)
            }
            blocked = {
                block.other_party(session_id)
                for block in await uow.moderation.list_blocks_involving(event_id, session_id)
            }

            repaired = 0
            for mine in given:
                theirs = received.get(mine.liked_session_id)
                if theirs is None or (mine.is_mutual and theirs.is_mutual):
                    continue
                if mine.liked_session_id in blocked:
                    continue

                self._mark_pair(mine, theirs)
                await uow.likes.update(mine)
                await uow.likes.update(theirs)
                repaired += 1

            if repaired:
                await uow.commit()
                logger.info(
                    "likes_reconciled",
                    event_id=str(event_id),
                    session_id=session_id,
                    repaired=repaired,
                )
            return repaired

    async def _replay_create(self, payload: dict[str, Any]) -> None:
        event_id = UUID(payload["event_id"])
        liker_session_id = payload["liker_session_id"]
        liked_session_id = payload["liked_session_id"]
        try:
            result = await self._create(event_id, liker_session_id, liked_session_id)
        except StoreError as e:
            if e.kind is not StoreErrorKind.CONFLICT:
                raise
            return
        if not result.is_match:
            await self._complete_pair(event_id, liker_session_id, liked_session_id)
