"""Anonymous session lifecycle: joining, resuming and leaving events."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

import structlog

from core.clock import as_utc, utcnow
from core.exceptions import (
    EventNotActiveError,
    EventNotFoundError,
    StoreError,
    ValidationError,
)
from domain.entities.event import Event
from domain.entities.profile import EventProfile
from domain.repositories.local_storage import IKeyValueStore
from domain.services.directory_service import UPDATABLE_FIELDS, DirectoryService

logger = structlog.get_logger()

KEY_EVENT_ID = "current_event_id"
KEY_SESSION_ID = "current_session_id"
KEY_EVENT_CODE = "current_event_code"
SESSION_KEYS = [KEY_EVENT_ID, KEY_SESSION_ID, KEY_EVENT_CODE]

KEY_IS_ADMIN = "is_admin"
KEY_ADMIN_ACCESS_TIME = "admin_access_time"
KEY_ADMIN_EMAIL = "admin_email"
ADMIN_KEYS = [KEY_IS_ADMIN, KEY_ADMIN_ACCESS_TIME, KEY_ADMIN_EMAIL]

REQUIRED_PROFILE_FIELDS = frozenset({"first_name", "age", "gender_identity"})


def is_resumable(event: Event, now: datetime) -> bool:
    """A cached session may resume only while its event is running."""
    return event.is_running_at(now)


class StartupRoute(StrEnum):
    """Where a client should land when it starts."""

    ADMIN = "admin"
    ADMIN_LOGIN = "admin_login"
    JOIN = "join"
    DISCOVERY = "discovery"


@dataclass(frozen=True)
class CachedSession:
    """Session identifiers persisted in local storage."""

    event_id: UUID
    session_id: str
    event_code: str | None = None


@dataclass(frozen=True)
class SessionValidation:
    """Outcome of checking a cached session against the store."""

    is_valid: bool
    reason: str | None = None
    should_clear: bool = False


@dataclass(frozen=True)
class StartupDecision:
    route: StartupRoute
    session: CachedSession | None = None
    reason: str | None = None


@dataclass(frozen=True)
class JoinedSession:
    event: Event
    profile: EventProfile

    @property
    def session_id(self) -> str:
        return self.profile.session_id


class AdminSessionStore:
    """Locally stored organizer flag, valid for a fixed window after login."""

    def __init__(self, storage: IKeyValueStore, valid_hours: int = 24) -> None:
        self._storage = storage
        self._valid_for = timedelta(hours=valid_hours)

    async def set_session(self, email: str | None = None, now: datetime | None = None) -> None:
        now = as_utc(now) if now else utcnow()
        await self._storage.set(KEY_IS_ADMIN, "true")
        await self._storage.set(KEY_ADMIN_ACCESS_TIME, now.isoformat())
        if email:
            await self._storage.set(KEY_ADMIN_EMAIL, email)
        logger.info("admin_session_started")

    async def has_flag(self) -> bool:
        return await self._storage.get(KEY_IS_ADMIN) == "true"

    async def is_valid(self, now: datetime | None = None) -> bool:
        """True while the flag is set and younger than the validity window."""
        now = as_utc(now) if now else utcnow()
        if not await self.has_flag():
            return False

        raw = await self._storage.get(KEY_ADMIN_ACCESS_TIME)
        if not raw:
            return False
        try:
            access_time = as_utc(datetime.fromisoformat(raw))
        except ValueError:
            logger.warning("admin_access_time_invalid", value=raw)
            return False

        return now - access_time <= self._valid_for

    async def get_email(self) -> str | None:
        return await self._storage.get(KEY_ADMIN_EMAIL)

    async def clear(self) -> None:
        await self._storage.multi_remove(ADMIN_KEYS)
        logger.info("admin_session_cleared")


class SessionService:
    """Service layer for the cached anonymous session."""

    def __init__(
        self,
        storage: IKeyValueStore,
        directory: DirectoryService,
        admin_sessions: AdminSessionStore,
    ) -> None:
        self._storage = storage
        self._directory = directory
        self._admin_sessions = admin_sessions

    async def get_cached_session(self) -> CachedSession | None:
        """The session identifiers in local storage, if complete."""
        event_id = await self._storage.get(KEY_EVENT_ID)
        session_id = await self._storage.get(KEY_SESSION_ID)
        if not event_id or not session_id:
            return None
        try:
            parsed_event_id = UUID(event_id)
        except ValueError:
            logger.warning("cached_event_id_invalid", value=event_id)
            return None
        return CachedSession(
            event_id=parsed_event_id,
            session_id=session_id,
            event_code=await self._storage.get(KEY_EVENT_CODE),
        )

    async def validate(
        self, event_id: UUID, session_id: str, now: datetime | None = None
    ) -> SessionValidation:
        """Check that a session can still be used in its event.

        Store outages never invalidate the session; the cached keys are kept
        so the client can retry once the store is reachable again.
        """
        now = as_utc(now) if now else utcnow()
        try:
            try:
                event = await self._directory.get_event(event_id)
            except EventNotFoundError:
                return SessionValidation(False, "event_not_found", should_clear=True)

            if now < event.starts_at:
                return SessionValidation(False, "event_not_started", should_clear=True)
            if now > event.expires_at:
                return SessionValidation(False, "event_expired", should_clear=True)

            profile = await self._directory.get_profile_for_session(event_id, session_id)
            if profile is None:
                return SessionValidation(False, "profile_not_found", should_clear=True)

            if await self._directory.is_kicked(event_id, session_id):
                return SessionValidation(False, "session_kicked", should_clear=True)
        except StoreError as e:
            if not e.is_transient:
                raise
            logger.warning(
                "session_validation_unavailable",
                event_id=str(event_id),
                kind=e.kind,
            )
            return SessionValidation(False, "validation_unavailable", should_clear=False)

        return SessionValidation(True)

    async def resolve_startup(self, now: datetime | None = None) -> StartupDecision:
        """Decide where a starting client should go."""
        now = as_utc(now) if now else utcnow()

        if await self._admin_sessions.has_flag():
            if await self._admin_sessions.is_valid(now):
                return StartupDecision(StartupRoute.ADMIN)
            await self._admin_sessions.clear()
            return StartupDecision(StartupRoute.ADMIN_LOGIN, reason="admin_session_expired")

        cached = await self.get_cached_session()
        if cached is None:
            return StartupDecision(StartupRoute.JOIN)

        validation = await self.validate(cached.event_id, cached.session_id, now)
        if not validation.is_valid:
            if validation.should_clear:
                await self.leave()
            logger.info(
                "session_not_resumed",
                event_id=str(cached.event_id),
                reason=validation.reason,
                cleared=validation.should_clear,
            )
            return StartupDecision(StartupRoute.JOIN, session=cached, reason=validation.reason)

        return StartupDecision(StartupRoute.DISCOVERY, session=cached)

    async def join(
        self,
        event_code: str,
        profile_fields: dict[str, Any],
        now: datetime | None = None,
        persist: bool = True,
    ) -> JoinedSession:
        """Join an event by code with a fresh anonymous session.

        With ``persist`` the session keys are cached in local storage so the
        next startup can resume; servers acting for many clients pass False.
        """
        now = as_utc(now) if now else utcnow()
        unknown = set(profile_fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError("Unknown profile fields", {"fields": sorted(unknown)})
        missing = REQUIRED_PROFILE_FIELDS - set(profile_fields)
        if missing:
            raise ValidationError("Missing profile fields", {"fields": sorted(missing)})

        event = await self._directory.find_event_by_code(event_code)
        if not is_resumable(event, now):
            raise EventNotActiveError(str(event.id))

        session_id = str(uuid4())
        profile = await self._directory.create_profile(
            EventProfile(event_id=event.id, session_id=session_id, **profile_fields)
        )

        if persist:
            await self._storage.set(KEY_EVENT_ID, str(event.id))
            await self._storage.set(KEY_SESSION_ID, session_id)
            await self._storage.set(KEY_EVENT_CODE, event.event_code)

        logger.info("session_joined", event_id=str(event.id), profile_id=str(profile.id))
        return JoinedSession(event=event, profile=profile)

    async def leave(self) -> None:
        """Forget the cached session."""
        await self._storage.multi_remove(SESSION_KEYS)
        logger.info("session_cleared")
