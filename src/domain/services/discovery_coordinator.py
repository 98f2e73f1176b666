"""Serialized owner of a session's discovery state.

Polling results and optimistic like markers both arrive as messages on a
single queue and are applied by one consumer task, so a slow poll can never
overwrite a like the session made in the meantime.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Union
from uuid import UUID

import structlog

from core.exceptions import AppException, OperationQueuedError
from domain.entities.like import LikeResult
from domain.entities.profile import EventProfile
from domain.services.compatibility import DiscoveryFilters, filter_candidates
from domain.services.directory_service import DirectoryService
from domain.services.like_service import LikeService

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProfilesLoaded:
    me: EventProfile | None
    profiles: list[EventProfile]
    blocked: frozenset[str] = frozenset()


@dataclass(frozen=True)
class LikesLoaded:
    liked: frozenset[str]
    matched: frozenset[str]


@dataclass(frozen=True)
class OptimisticLike:
    target_session_id: str
    accepted: asyncio.Future = field(compare=False)


@dataclass(frozen=True)
class LikeConfirmed:
    target_session_id: str
    result: LikeResult | None = None
    queued: bool = False


@dataclass(frozen=True)
class LikeRolledBack:
    target_session_id: str
    reason: str


@dataclass(frozen=True)
class FiltersChanged:
    filters: DiscoveryFilters


DiscoveryMessage = Union[
    ProfilesLoaded, LikesLoaded, OptimisticLike, LikeConfirmed, LikeRolledBack, FiltersChanged
]


@dataclass
class DiscoveryState:
    """Everything the discovery view renders for one session."""

    me: EventProfile | None = None
    profiles: list[EventProfile] = field(default_factory=list)
    filters: DiscoveryFilters = field(default_factory=DiscoveryFilters)
    blocked: set[str] = field(default_factory=set)
    liked: set[str] = field(default_factory=set)
    pending: set[str] = field(default_factory=set)
    matched: set[str] = field(default_factory=set)

    def has_liked(self, session_id: str) -> bool:
        """Confirmed or still pending."""
        return session_id in self.liked or session_id in self.pending

    @property
    def candidates(self) -> list[EventProfile]:
        if self.me is None:
            return []
        return filter_candidates(self.me, self.profiles, self.filters, exclude=self.blocked)


class DiscoveryCoordinator:
    """Single-consumer coordinator for discovery polling and likes."""

    def __init__(
        self,
        directory: DirectoryService,
        likes: LikeService,
        event_id: UUID,
        session_id: str,
        poll_interval_s: float = 60.0,
        filters: Optional[DiscoveryFilters] = None,
    ) -> None:
        self._directory = directory
        self._likes = likes
        self._event_id = event_id
        self._session_id = session_id
        self._poll_interval_s = poll_interval_s
        self._state = DiscoveryState(filters=filters or DiscoveryFilters())
        self._queue: asyncio.Queue[DiscoveryMessage] = asyncio.Queue()
        self._consumer: asyncio.Task | None = None
        self._poller: asyncio.Task | None = None

    @property
    def state(self) -> DiscoveryState:
        """Current state; mutate only through messages."""
        return self._state

    @property
    def poll_interval_s(self) -> float:
        return self._poll_interval_s

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def start(self, poll: bool = True) -> None:
        """Start the consumer and, unless disabled, the polling task."""
        if not self.running:
            self._consumer = asyncio.create_task(self._consume())
        if poll and (self._poller is None or self._poller.done()):
            self._poller = asyncio.create_task(self._poll())
        logger.info(
            "discovery_started",
            event_id=str(self._event_id),
            poll_interval_s=self._poll_interval_s if poll else None,
        )

    async def stop(self) -> None:
        """Cancel polling and the consumer."""
        for task in (self._poller, self._consumer):
            if task is not None:
                task.cancel()
        for task in (self._poller, self._consumer):
            if task is not None:
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._poller = None
        self._consumer = None
        logger.info("discovery_stopped", event_id=str(self._event_id))

    async def wait_idle(self) -> None:
        """Wait until every posted message has been applied."""
        await self._queue.join()

    async def refresh(self) -> None:
        """Repair one-sided reciprocal likes, then load profiles, blocks and likes."""
        await self._likes.reconcile(self._event_id, self._session_id)
        me = await self._directory.get_profile_for_session(self._event_id, self._session_id)
        profiles = await self._directory.list_visible_profiles(self._event_id)
        blocked = await self._directory.list_blocked_sessions(self._event_id, self._session_id)
        given = await self._directory.list_likes_given(self._event_id, self._session_id)

        await self._post(ProfilesLoaded(me=me, profiles=profiles, blocked=frozenset(blocked)))
        await self._post(
            LikesLoaded(
                liked=frozenset(like.liked_session_id for like in given),
                matched=frozenset(like.liked_session_id for like in given if like.is_mutual),
            )
        )

    async def set_filters(self, filters: DiscoveryFilters) -> None:
        await self._post(FiltersChanged(filters))

    async def like(self, target_session_id: str) -> LikeResult | None:
        """Like a candidate with an optimistic marker.

        Returns None when the target was already liked or the like was queued
        for offline replay. Any other failure rolls the marker back and is
        re-raised.
        """
        if not self.running:
            raise RuntimeError("DiscoveryCoordinator is not started")

        accepted = asyncio.get_running_loop().create_future()
        await self._post(OptimisticLike(target_session_id, accepted))
        if not await accepted:
            logger.debug("like_skipped_already_liked", target_session_id=target_session_id)
            return None

        try:
            result = await self._likes.like(self._event_id, self._session_id, target_session_id)
        except OperationQueuedError:
            await self._post(LikeConfirmed(target_session_id, queued=True))
            return None
        except Exception as e:
            reason = e.error_code if isinstance(e, AppException) else type(e).__name__
            await self._post(LikeRolledBack(target_session_id, reason=str(reason)))
            raise

        await self._post(LikeConfirmed(target_session_id, result=result))
        return result

    async def _post(self, message: DiscoveryMessage) -> None:
        await self._queue.put(message)

    async def _consume(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                self._apply(message)
            except Exception:
                logger.exception("discovery_message_failed", message=type(message).__name__)
            finally:
                self._queue.task_done()

    def _apply(self, message: DiscoveryMessage) -> None:
        state = self._state

        if isinstance(message, ProfilesLoaded):
            state.me = message.me
            state.profiles = list(message.profiles)
            state.blocked = set(message.blocked)

        elif isinstance(message, LikesLoaded):
            state.liked = set(message.liked)
            state.matched = set(message.matched)
            # Pending likes the store now knows about are no longer pending
            state.pending -= state.liked

        elif isinstance(message, OptimisticLike):
            if state.has_liked(message.target_session_id):
                message.accepted.set_result(False)
            else:
                state.pending.add(message.target_session_id)
                message.accepted.set_result(True)

        elif isinstance(message, LikeConfirmed):
            if message.queued:
                return
            state.pending.discard(message.target_session_id)
            state.liked.add(message.target_session_id)
            if message.result is not None and message.result.is_match:
                state.matched.add(message.target_session_id)

        elif isinstance(message, LikeRolledBack):
            state.pending.discard(message.target_session_id)
            logger.info(
                "optimistic_like_rolled_back",
                target_session_id=message.target_session_id,
                reason=message.reason,
            )

        elif isinstance(message, FiltersChanged):
            state.filters = message.filters

    async def _poll(self) -> None:
        while True:
            try:
                await self.refresh()
            except AppException as e:
                logger.warning(
                    "discovery_refresh_failed",
                    event_id=str(self._event_id),
                    error_code=e.error_code,
                    error=e.message,
                )
            except Exception:
                logger.exception("discovery_refresh_crashed", event_id=str(self._event_id))
            await asyncio.sleep(self._poll_interval_s)
