"""Event-scoped access to events, profiles, likes and moderation records."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog

from core.exceptions import (
    DuplicateProfileError,
    EventNotFoundError,
    ProfileNotFoundError,
    StoreError,
    StoreErrorKind,
    ValidationError,
)
from domain.entities.event import Event
from domain.entities.like import Like
from domain.entities.moderation import BlockedMatch
from domain.entities.profile import (
    MAX_AGE,
    MAX_INTERESTS,
    MIN_AGE,
    EventProfile,
    GenderIdentity,
    InterestedIn,
)
from domain.repositories.operation_executor import IOperationExecutor
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.compatibility import DiscoveryFilters, filter_candidates

logger = structlog.get_logger()


REPLAY_UPDATE_PROFILE = "profile.update"
REPLAY_SET_VISIBILITY = "profile.set_visibility"
REPLAY_BLOCK = "moderation.block"

# Fields the owning session may change after joining
UPDATABLE_FIELDS = frozenset(
    {
        "first_name",
        "age",
        "gender_identity",
        "interested_in",
        "interests",
        "about_me",
        "height_cm",
        "profile_photo_url",
        "profile_color",
    }
)


def validate_profile_fields(fields: dict[str, Any]) -> None:
    """Reject values the directory never stores."""
    if "first_name" in fields and not str(fields["first_name"] or "").strip():
        raise ValidationError("first_name must not be empty")

    if "age" in fields:
        age = fields["age"]
        if not isinstance(age, int) or not MIN_AGE <= age <= MAX_AGE:
            raise ValidationError(
                f"age must be between {MIN_AGE} and {MAX_AGE}", {"age": age}
            )

    if "gender_identity" in fields:
        try:
            GenderIdentity(fields["gender_identity"])
        except ValueError:
            raise ValidationError(
                "Unknown gender_identity", {"gender_identity": fields["gender_identity"]}
            ) from None

    if fields.get("interested_in") is not None:
        if InterestedIn.parse(fields["interested_in"]) is None:
            raise ValidationError(
                "Unknown interested_in", {"interested_in": fields["interested_in"]}
            )

    if "interests" in fields and len(fields["interests"] or []) > MAX_INTERESTS:
        raise ValidationError(
            f"At most {MAX_INTERESTS} interests are allowed",
            {"interests": fields["interests"]},
        )


class DirectoryService:
    """Service layer for the event directory.

    Every store call goes through the operation executor; writes that can be
    replayed later carry a replay descriptor.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        executor: IOperationExecutor,
    ) -> None:
        self._uow_factory = uow_factory
        self._executor = executor
        executor.register_handler(REPLAY_UPDATE_PROFILE, self._replay_update_profile)
        executor.register_handler(REPLAY_SET_VISIBILITY, self._replay_set_visibility)
        executor.register_handler(REPLAY_BLOCK, self._replay_block)

    # --- Events ---

    async def get_event(self, event_id: UUID) -> Event:
        """Get an event by ID."""
        event = await self._executor.run(lambda: self._get_event(event_id), name="event.get")
        if not event:
            raise EventNotFoundError(str(event_id))
        return event

    async def find_event_by_code(self, event_code: str) -> Event:
        """Resolve a join code (case-insensitive) to its active event."""

        async def operation() -> Event | None:
            async with self._uow_factory() as uow:
                return await uow.events.get_by_code(event_code)

        event = await self._executor.run(operation, name="event.get_by_code")
        if not event:
            raise EventNotFoundError(event_code)
        return event

    # --- Profiles ---

    async def create_profile(self, profile: EventProfile) -> EventProfile:
        """Create the single profile of a session in an event."""
        validate_profile_fields(
            {
                "first_name": profile.first_name,
                "age": profile.age,
                "gender_identity": profile.gender_identity,
                "interested_in": profile.interested_in,
                "interests": profile.interests,
            }
        )

        async def operation() -> EventProfile:
            async with self._uow_factory() as uow:
                if not await uow.events.get(profile.event_id):
                    raise EventNotFoundError(str(profile.event_id))
                if await uow.profiles.get_by_session(profile.event_id, profile.session_id):
                    raise DuplicateProfileError(profile.session_id)
                created = await uow.profiles.create(profile)
                await uow.commit()
                return created

        try:
            created = await self._executor.run(operation, name="profile.create")
        except StoreError as e:
            if e.kind is StoreErrorKind.CONFLICT:
                raise DuplicateProfileError(profile.session_id) from e
            raise

        logger.info(
            "profile_created",
            event_id=str(created.event_id),
            profile_id=str(created.id),
        )
        return created

    async def get_profile(self, profile_id: UUID) -> EventProfile:
        """Get a profile by ID."""

        async def operation() -> EventProfile | None:
            async with self._uow_factory() as uow:
                return await uow.profiles.get(profile_id)

        profile = await self._executor.run(operation, name="profile.get")
        if not profile:
            raise ProfileNotFoundError(str(profile_id))
        return profile

    async def get_profile_for_session(
        self, event_id: UUID, session_id: str
    ) -> EventProfile | None:
        """The session's own profile, or None when it has not joined."""
        return await self._executor.run(
            lambda: self._get_profile_for_session(event_id, session_id),
            name="profile.get_for_session",
        )

    async def list_visible_profiles(self, event_id: UUID) -> list[EventProfile]:
        """All visible profiles of an event."""

        async def operation() -> list[EventProfile]:
            async with self._uow_factory() as uow:
                return await uow.profiles.list_for_event(event_id, visible_only=True)

        return await self._executor.run(operation, name="profile.list_visible")

    async def update_profile(
        self, event_id: UUID, session_id: str, changes: dict[str, Any]
    ) -> EventProfile:
        """Apply changes to the session's own profile."""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError("Unknown profile fields", {"fields": sorted(unknown)})
        validate_profile_fields(changes)

        return await self._executor.run(
            lambda: self._update_profile(event_id, session_id, changes),
            name="profile.update",
            replay=(
                REPLAY_UPDATE_PROFILE,
                {"event_id": str(event_id), "session_id": session_id, "changes": changes},
            ),
        )

    async def set_visibility(
        self, event_id: UUID, session_id: str, is_visible: bool
    ) -> EventProfile:
        """Show or hide the session's profile in discovery."""
        return await self._executor.run(
            lambda: self._update_profile(event_id, session_id, {"is_visible": is_visible}),
            name="profile.set_visibility",
            replay=(
                REPLAY_SET_VISIBILITY,
                {"event_id": str(event_id), "session_id": session_id, "is_visible": is_visible},
            ),
        )

    async def delete_profile(self, event_id: UUID, session_id: str) -> bool:
        """Delete the session's profile; False when there was none."""

        async def operation() -> bool:
            async with self._uow_factory() as uow:
                profile = await uow.profiles.get_by_session(event_id, session_id)
                if not profile:
                    return False
                deleted = await uow.profiles.delete(profile.id)
                await uow.commit()
                return deleted

        deleted = await self._executor.run(operation, name="profile.delete")
        if deleted:
            logger.info("profile_deleted", event_id=str(event_id), session_id=session_id)
        return deleted

    # --- Likes ---

    async def list_likes_given(self, event_id: UUID, session_id: str) -> list[Like]:
        """Likes the session has given."""

        async def operation() -> list[Like]:
            async with self._uow_factory() as uow:
                return await uow.likes.list_by_liker(event_id, session_id)

        return await self._executor.run(operation, name="like.list_given")

    async def list_likes_received(self, event_id: UUID, session_id: str) -> list[Like]:
        """Likes the session has received."""

        async def operation() -> list[Like]:
            async with self._uow_factory() as uow:
                return await uow.likes.list_by_liked(event_id, session_id)

        return await self._executor.run(operation, name="like.list_received")

    async def list_matches(self, event_id: UUID, session_id: str) -> list[EventProfile]:
        """Profiles the session has matched with, minus blocked ones."""

        async def operation() -> list[EventProfile]:
            async with self._uow_factory() as uow:
                mutual = await uow.likes.list_mutual(event_id, session_id)
                blocked = self._blocked_parties(
                    await uow.moderation.list_blocks_involving(event_id, session_id),
                    session_id,
                )
                matches = []
                for like in mutual:
                    if like.liked_session_id in blocked:
                        continue
                    profile = await uow.profiles.get_by_session(event_id, like.liked_session_id)
                    if profile:
                        matches.append(profile)
                return matches

        return await self._executor.run(operation, name="like.list_matches")

    # --- Moderation ---

    async def block(
        self, event_id: UUID, blocker_session_id: str, blocked_session_id: str
    ) -> BlockedMatch:
        """Hide two sessions from each other for the rest of the event."""
        if blocker_session_id == blocked_session_id:
            raise ValidationError("You cannot block yourself")

        return await self._executor.run(
            lambda: self._block(event_id, blocker_session_id, blocked_session_id),
            name="moderation.block",
            replay=(
                REPLAY_BLOCK,
                {
                    "event_id": str(event_id),
                    "blocker_session_id": blocker_session_id,
                    "blocked_session_id": blocked_session_id,
                },
            ),
        )

    async def list_blocked_sessions(self, event_id: UUID, session_id: str) -> set[str]:
        """Sessions on the other side of any block involving ``session_id``."""

        async def operation() -> set[str]:
            async with self._uow_factory() as uow:
                blocks = await uow.moderation.list_blocks_involving(event_id, session_id)
                return self._blocked_parties(blocks, session_id)

        return await self._executor.run(operation, name="moderation.list_blocked")

    async def is_kicked(self, event_id: UUID, session_id: str) -> bool:
        """Whether the session was removed from the event."""

        async def operation() -> bool:
            async with self._uow_factory() as uow:
                return await uow.moderation.is_kicked(event_id, session_id)

        return await self._executor.run(operation, name="moderation.is_kicked")

    # --- Discovery ---

    async def get_candidates(
        self, event_id: UUID, session_id: str, filters: DiscoveryFilters
    ) -> list[EventProfile]:
        """The session's discovery pool: visible, compatible and not blocked."""

        async def operation() -> list[EventProfile]:
            async with self._uow_factory() as uow:
                me = await uow.profiles.get_by_session(event_id, session_id)
                if not me:
                    raise ProfileNotFoundError(session_id)
                profiles = await uow.profiles.list_for_event(event_id, visible_only=True)
                blocks = await uow.moderation.list_blocks_involving(event_id, session_id)
                return filter_candidates(
                    me, profiles, filters, exclude=self._blocked_parties(blocks, session_id)
                )

        return await self._executor.run(operation, name="discovery.candidates")

    # --- Internals ---

    @staticmethod
    def _blocked_parties(blocks: list[BlockedMatch], session_id: str) -> set[str]:
        return {block.other_party(session_id) for block in blocks}

    async def _get_event(self, event_id: UUID) -> Event | None:
        async with self._uow_factory() as uow:
            return await uow.events.get(event_id)

    async def _get_profile_for_session(
        self, event_id: UUID, session_id: str
    ) -> EventProfile | None:
        async with self._uow_factory() as uow:
            return await uow.profiles.get_by_session(event_id, session_id)

    async def _update_profile(
        self, event_id: UUID, session_id: str, changes: dict[str, Any]
    ) -> EventProfile:
        async with self._uow_factory() as uow:
            profile = await uow.profiles.get_by_session(event_id, session_id)
            if not profile:
                raise ProfileNotFoundError(session_id)

            for name, value in changes.items():
                if name == "interests":
                    value = list(value or [])
                setattr(profile, name, value)

            updated = await uow.profiles.update(profile)
            await uow.commit()

        logger.info(
            "profile_updated",
            event_id=str(event_id),
            profile_id=str(updated.id),
            fields=sorted(changes),
        )
        return updated

    async def _block(
        self, event_id: UUID, blocker_session_id: str, blocked_session_id: str
    ) -> BlockedMatch:
        async with self._uow_factory() as uow:
            block = await uow.moderation.create_block(
                BlockedMatch(
                    event_id=event_id,
                    blocker_session_id=blocker_session_id,
                    blocked_session_id=blocked_session_id,
                )
            )
            await uow.commit()

        logger.info(
            "session_blocked",
            event_id=str(event_id),
            blocker_session_id=blocker_session_id,
            blocked_session_id=blocked_session_id,
        )
        return block

    async def _replay_update_profile(self, payload: dict[str, Any]) -> None:
        await self._update_profile(
            UUID(payload["event_id"]), payload["session_id"], dict(payload["changes"])
        )

    async def _replay_set_visibility(self, payload: dict[str, Any]) -> None:
        await self._update_profile(
            UUID(payload["event_id"]),
            payload["session_id"],
            {"is_visible": bool(payload["is_visible"])},
        )

    async def _replay_block(self, payload: dict[str, Any]) -> None:
        await self._block(
            UUID(payload["event_id"]),
            payload["blocker_session_id"],
            payload["blocked_session_id"],
        )
