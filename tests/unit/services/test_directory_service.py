"""Unit tests for Directory service."""

from datetime import timedelta

import pytest

from core.clock import utcnow
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
from domain.services.compatibility import DiscoveryFilters
from domain.services.directory_service import (
    REPLAY_BLOCK,
    REPLAY_SET_VISIBILITY,
    REPLAY_UPDATE_PROFILE,
    DirectoryService,
    validate_profile_fields,
)


@pytest.fixture
def service(uow, fake_executor):
    return DirectoryService(lambda: uow, fake_executor)


class TestValidateProfileFields:
    @pytest.mark.parametrize("age", [17, 101, "25"])
    def test_rejects_out_of_range_age(self, age):
        with pytest.raises(ValidationError):
            validate_profile_fields({"age": age})

    @pytest.mark.parametrize("age", [18, 100])
    def test_accepts_age_bounds(self, age):
        validate_profile_fields({"age": age})

    def test_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            validate_profile_fields({"first_name": "   "})

    def test_rejects_unknown_gender(self):
        with pytest.raises(ValidationError):
            validate_profile_fields({"gender_identity": "robot"})

    def test_accepts_legacy_everybody(self):
        validate_profile_fields({"interested_in": "everybody"})

    def test_rejects_too_many_interests(self):
        with pytest.raises(ValidationError):
            validate_profile_fields({"interests": ["a", "b", "c", "d"]})


class TestEvents:
    @pytest.mark.asyncio
    async def test_find_event_by_code(self, service, uow):
        now = utcnow()
        event = Event(
            name="Rooftop",
            event_code="ROOF24",
            starts_at=now - timedelta(hours=1),
            expires_at=now + timedelta(hours=5),
        )
        uow.events.get_by_code.return_value = event

        assert await service.find_event_by_code("roof24") is event
        uow.events.get_by_code.assert_awaited_once_with("roof24")

    @pytest.mark.asyncio
    async def test_unknown_code(self, service, uow):
        uow.events.get_by_code.return_value = None

        with pytest.raises(EventNotFoundError):
            await service.find_event_by_code("NOPE")


class TestCreateProfile:
    @pytest.mark.asyncio
    async def test_creates_profile(self, service, uow, make_profile, event_id):
        profile = make_profile(event_id, "s1")
        uow.events.get.return_value = object()
        uow.profiles.get_by_session.return_value = None
        uow.profiles.create.return_value = profile

        result = await service.create_profile(profile)

        assert result is profile
        assert uow.committed

    @pytest.mark.asyncio
    async def test_duplicate_session(self, service, uow, make_profile, event_id):
        profile = make_profile(event_id, "s1")
        uow.events.get.return_value = object()
        uow.profiles.get_by_session.return_value = profile

        with pytest.raises(DuplicateProfileError):
            await service.create_profile(profile)
        uow.profiles.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_conflict_maps_to_duplicate(self, uow, fake_executor, make_profile, event_id):
        async def conflicting_run(operation, *, name, replay=None):
            raise StoreError(StoreErrorKind.CONFLICT)

        fake_executor.run = conflicting_run
        service = DirectoryService(lambda: uow, fake_executor)

        with pytest.raises(DuplicateProfileError):
            await service.create_profile(make_profile(event_id, "s1"))

    @pytest.mark.asyncio
    async def test_invalid_profile_never_reaches_store(self, service, uow, make_profile, event_id):
        with pytest.raises(ValidationError):
            await service.create_profile(make_profile(event_id, "s1", age=16))
        uow.events.get.assert_not_called()


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_applies_changes(self, service, uow, fake_executor, make_profile, event_id):
        profile = make_profile(event_id, "s1")
        uow.profiles.get_by_session.return_value = profile
        uow.profiles.update.side_effect = lambda p: p

        updated = await service.update_profile(
            event_id, "s1", {"first_name": "Sam", "interests": ("music",)}
        )

        assert updated.first_name == "Sam"
        assert updated.interests == ["music"]
        assert uow.committed
        name, (operation, payload) = fake_executor.runs[-1]
        assert name == "profile.update"
        assert operation == REPLAY_UPDATE_PROFILE
        assert payload["session_id"] == "s1"

    @pytest.mark.asyncio
    async def test_rejects_unknown_fields(self, service, uow, event_id):
        with pytest.raises(ValidationError):
            await service.update_profile(event_id, "s1", {"session_id": "other"})
        uow.profiles.get_by_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_profile(self, service, uow, event_id):
        uow.profiles.get_by_session.return_value = None

        with pytest.raises(ProfileNotFoundError):
            await service.update_profile(event_id, "s1", {"about_me": "hi"})

    @pytest.mark.asyncio
    async def test_set_visibility(self, service, uow, fake_executor, make_profile, event_id):
        profile = make_profile(event_id, "s1")
        uow.profiles.get_by_session.return_value = profile
        uow.profiles.update.side_effect = lambda p: p

        updated = await service.set_visibility(event_id, "s1", False)

        assert updated.is_visible is False
        assert fake_executor.runs[-1][1][0] == REPLAY_SET_VISIBILITY

    @pytest.mark.asyncio
    async def test_replay_handlers_registered(self, service, fake_executor):
        assert {REPLAY_UPDATE_PROFILE, REPLAY_SET_VISIBILITY, REPLAY_BLOCK} <= set(
            fake_executor.handlers
        )

    @pytest.mark.asyncio
    async def test_replay_set_visibility(self, service, uow, fake_executor, make_profile, event_id):
        profile = make_profile(event_id, "s1")
        uow.profiles.get_by_session.return_value = profile
        uow.profiles.update.side_effect = lambda p: p

        await fake_executor.handlers[REPLAY_SET_VISIBILITY](
            {"event_id": str(event_id), "session_id": "s1", "is_visible": False}
        )

        assert profile.is_visible is False


class TestDeleteProfile:
    @pytest.mark.asyncio
    async def test_delete(self, service, uow, make_profile, event_id):
        uow.profiles.get_by_session.return_value = make_profile(event_id, "s1")
        uow.profiles.delete.return_value = True

        assert await service.delete_profile(event_id, "s1") is True
        assert uow.committed

    @pytest.mark.asyncio
    async def test_delete_missing(self, service, uow, event_id):
        uow.profiles.get_by_session.return_value = None

        assert await service.delete_profile(event_id, "s1") is False
        uow.profiles.delete.assert_not_called()


class TestMatchesAndBlocks:
    @pytest.mark.asyncio
    async def test_list_matches_excludes_blocked(self, service, uow, make_profile, event_id):
        bob = make_profile(event_id, "bob")
        carol = make_profile(event_id, "carol")
        uow.likes.list_mutual.return_value = [
            Like(event_id, "alice", "bob", bob.id, bob.id, is_mutual=True),
            Like(event_id, "alice", "carol", carol.id, carol.id, is_mutual=True),
        ]
        uow.moderation.list_blocks_involving.return_value = [
            BlockedMatch(event_id=event_id, blocker_session_id="carol", blocked_session_id="alice")
        ]
        uow.profiles.get_by_session.side_effect = lambda ev, sid: {"bob": bob, "carol": carol}[sid]

        matches = await service.list_matches(event_id, "alice")

        assert matches == [bob]

    @pytest.mark.asyncio
    async def test_block(self, service, uow, fake_executor, event_id):
        uow.moderation.create_block.side_effect = lambda block: block

        block = await service.block(event_id, "alice", "bob")

        assert block.blocker_session_id == "alice"
        assert block.blocked_session_id == "bob"
        assert uow.committed
        assert fake_executor.runs[-1][1][0] == REPLAY_BLOCK

    @pytest.mark.asyncio
    async def test_cannot_block_self(self, service, uow, event_id):
        with pytest.raises(ValidationError):
            await service.block(event_id, "alice", "alice")
        uow.moderation.create_block.assert_not_called()

    @pytest.mark.asyncio
    async def test_blocked_sessions_in_both_directions(self, service, uow, event_id):
        uow.moderation.list_blocks_involving.return_value = [
            BlockedMatch(event_id=event_id, blocker_session_id="alice", blocked_session_id="bob"),
            BlockedMatch(event_id=event_id, blocker_session_id="carol", blocked_session_id="alice"),
        ]

        assert await service.list_blocked_sessions(event_id, "alice") == {"bob", "carol"}


class TestCandidates:
    @pytest.mark.asyncio
    async def test_candidates_are_filtered(self, service, uow, make_profile, event_id):
        me = make_profile(event_id, "me", gender_identity="man", interested_in="women")
        match = make_profile(event_id, "w1", interested_in="men")
        wrong_orientation = make_profile(event_id, "w2", interested_in="women")
        blocked = make_profile(event_id, "w3", interested_in="men")
        uow.profiles.get_by_session.return_value = me
        uow.profiles.list_for_event.return_value = [me, match, wrong_orientation, blocked]
        uow.moderation.list_blocks_involving.return_value = [
            BlockedMatch(event_id=event_id, blocker_session_id="me", blocked_session_id="w3")
        ]

        result = await service.get_candidates(event_id, "me", DiscoveryFilters())

        assert result == [match]
        uow.profiles.list_for_event.assert_awaited_once_with(event_id, visible_only=True)

    @pytest.mark.asyncio
    async def test_candidates_require_own_profile(self, service, uow, event_id):
        uow.profiles.get_by_session.return_value = None

        with pytest.raises(ProfileNotFoundError):
            await service.get_candidates(event_id, "me", DiscoveryFilters())
