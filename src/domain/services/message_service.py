"""Message service: chat between matched attendees."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog

from core.clock import utcnow
from core.exceptions import NotMatchedError, ProfileNotFoundError, ValidationError
from domain.entities.message import Message
from domain.entities.profile import EventProfile
from domain.repositories.operation_executor import IOperationExecutor
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

MAX_MESSAGE_LENGTH = 1000

REPLAY_SEND_MESSAGE = "message.send"
REPLAY_MARK_SEEN = "message.mark_seen"


class MessageService:
    """Service layer for messages.

    Two profiles may exchange messages only while they share a mutual like
    and neither has blocked the other.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        executor: IOperationExecutor,
    ) -> None:
        self._uow_factory = uow_factory
        self._executor = executor
        executor.register_handler(REPLAY_SEND_MESSAGE, self._replay_send)
        executor.register_handler(REPLAY_MARK_SEEN, self._replay_mark_seen)

    async def send(
        self, event_id: UUID, session_id: str, to_profile_id: UUID, content: str
    ) -> Message:
        """Send a message to a matched profile."""
        content = content.strip()
        if not content:
            raise ValidationError("Message content must not be empty")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message content must be at most {MAX_MESSAGE_LENGTH} characters",
                {"length": len(content)},
            )

        return await self._executor.run(
            lambda: self._send(event_id, session_id, to_profile_id, content),
            name="message.send",
            replay=(
                REPLAY_SEND_MESSAGE,
                {
                    "event_id": str(event_id),
                    "session_id": session_id,
                    "to_profile_id": str(to_profile_id),
                    "content": content,
                },
            ),
        )

    async def get_conversation(
        self, event_id: UUID, session_id: str, other_profile_id: UUID
    ) -> list[Message]:
        """Messages exchanged with a matched profile, oldest first."""

        async def operation() -> list[Message]:
            async with self._uow_factory() as uow:
                me, other = await self._require_match(uow, event_id, session_id, other_profile_id)
                return await uow.messages.list_conversation(event_id, me.id, other.id)

        return await self._executor.run(operation, name="message.conversation")

    async def mark_seen(self, event_id: UUID, session_id: str, other_profile_id: UUID) -> int:
        """Mark every message received from ``other_profile_id`` as seen."""
        return await self._executor.run(
            lambda: self._mark_seen(event_id, session_id, other_profile_id),
            name="message.mark_seen",
            replay=(
                REPLAY_MARK_SEEN,
                {
                    "event_id": str(event_id),
                    "session_id": session_id,
                    "other_profile_id": str(other_profile_id),
                },
            ),
        )

    async def unread_count(self, event_id: UUID, session_id: str) -> int:
        """Number of unseen messages addressed to the session's profile."""

        async def operation() -> int:
            async with self._uow_factory() as uow:
                me = await uow.profiles.get_by_session(event_id, session_id)
                if not me:
                    return 0
                return await uow.messages.count_unread(event_id, me.id)

        return await self._executor.run(operation, name="message.unread_count")

    async def _send(
        self, event_id: UUID, session_id: str, to_profile_id: UUID, content: str
    ) -> Message:
        async with self._uow_factory() as uow:
            me, other = await self._require_match(uow, event_id, session_id, to_profile_id)
            message = await uow.messages.create(
                Message(
                    event_id=event_id,
                    from_profile_id=me.id,
                    to_profile_id=other.id,
                    content=content,
                )
            )
            await uow.commit()

        logger.info(
            "message_sent",
            event_id=str(event_id),
            message_id=str(message.id),
            from_profile_id=str(me.id),
            to_profile_id=str(other.id),
        )
        return message

    async def _mark_seen(self, event_id: UUID, session_id: str, other_profile_id: UUID) -> int:
        async with self._uow_factory() as uow:
            me = await uow.profiles.get_by_session(event_id, session_id)
            if not me:
                raise ProfileNotFoundError(session_id)
            count = await uow.messages.mark_seen(event_id, other_profile_id, me.id, utcnow())
            await uow.commit()
            return count

    async def _require_match(
        self, uow: IUnitOfWork, event_id: UUID, session_id: str, other_profile_id: UUID
    ) -> tuple[EventProfile, EventProfile]:
        """Load both profiles and verify they are matched and not blocked."""
        me = await uow.profiles.get_by_session(event_id, session_id)
        if not me:
            raise ProfileNotFoundError(session_id)
        other = await uow.profiles.get(other_profile_id)
        if not other or other.event_id != event_id:
            raise ProfileNotFoundError(str(other_profile_id))

        like = await uow.likes.get_between(event_id, me.session_id, other.session_id)
        if not like or not like.is_mutual:
            raise NotMatchedError()

        blocks = await uow.moderation.list_blocks_involving(event_id, session_id)
        if any(block.other_party(session_id) == other.session_id for block in blocks):
            raise NotMatchedError()

        return me, other

    async def _replay_send(self, payload: dict[str, Any]) -> None:
        await self._send(
            UUID(payload["event_id"]),
            payload["session_id"],
            UUID(payload["to_profile_id"]),
            payload["content"],
        )

    async def _replay_mark_seen(self, payload: dict[str, Any]) -> None:
        await self._mark_seen(
            UUID(payload["event_id"]),
            payload["session_id"],
            UUID(payload["other_profile_id"]),
        )
