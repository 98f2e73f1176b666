"""End-to-end like and match flow against a real SQLite store."""

import asyncio

import pytest

from core.exceptions import OperationQueuedError, ProfileNotFoundError
from domain.entities.like import Like, MatchState
from domain.entities.profile import EventProfile
from domain.services.directory_service import DirectoryService
from domain.services.like_service import LikeService


@pytest.fixture
def directory(uow_factory, executor):
    return DirectoryService(uow_factory, executor)


@pytest.fixture
def likes(uow_factory, executor):
    return LikeService(uow_factory, executor)


@pytest.fixture
async def attendees(directory, event):
    created = []
    for session_id in ("alice", "bob"):
        created.append(
            await directory.create_profile(
                EventProfile(
                    event_id=event.id,
                    session_id=session_id,
                    first_name=session_id.title(),
                    age=27,
                    gender_identity="woman",
                    interested_in="everyone",
                )
            )
        )
    return created


class TestMatchFlow:
    @pytest.mark.asyncio
    async def test_match_sets_both_rows(self, likes, uow_factory, event, attendees):
        await likes.like(event.id, "alice", "bob")
        result = await likes.like(event.id, "bob", "alice")

        assert result.is_match
        async with uow_factory() as uow:
            first = await uow.likes.get_between(event.id, "alice", "bob")
            second = await uow.likes.get_between(event.id, "bob", "alice")

        assert first.is_mutual and second.is_mutual
        assert first.liker_notified_of_match and not first.liked_notified_of_match
        assert second.liked_notified_of_match and not second.liker_notified_of_match

    @pytest.mark.asyncio
    async def test_concurrent_reciprocal_likes_become_mutual(self, likes, event, attendees):
        results = await asyncio.gather(
            likes.like(event.id, "alice", "bob"),
            likes.like(event.id, "bob", "alice"),
        )

        assert all(result.created for result in results)
        assert any(result.is_match for result in results)
        assert await likes.get_state(event.id, "alice", "bob") is MatchState.MUTUAL
        assert await likes.get_state(event.id, "bob", "alice") is MatchState.MUTUAL

    @pytest.mark.asyncio
    async def test_get_state_without_like(self, likes, event, attendees):
        assert await likes.get_state(event.id, "alice", "bob") is MatchState.NO_LIKE

    @pytest.mark.asyncio
    async def test_reconcile_repairs_half_written_match(self, likes, uow_factory, event, attendees):
        alice, bob = attendees
        async with uow_factory() as uow:
            await uow.likes.create(Like(event.id, "alice", "bob", alice.id, bob.id))
            await uow.likes.create(
                Like(event.id, "bob", "alice", bob.id, alice.id, is_mutual=True,
                     liked_notified_of_match=True)
            )
            await uow.commit()

        assert await likes.reconcile(event.id, "alice") == 1
        assert await likes.reconcile(event.id, "alice") == 0
        assert await likes.get_state(event.id, "alice", "bob") is MatchState.MUTUAL

    @pytest.mark.asyncio
    async def test_blocked_attendee_cannot_complete_match(
        self, likes, directory, event, attendees
    ):
        await likes.like(event.id, "alice", "bob")
        await directory.block(event.id, "alice", "bob")

        with pytest.raises(ProfileNotFoundError):
            await likes.like(event.id, "bob", "alice")

        assert await likes.get_state(event.id, "alice", "bob") is MatchState.ONE_SIDED
        assert await likes.get_state(event.id, "bob", "alice") is MatchState.NO_LIKE
        assert await likes.reconcile(event.id, "alice") == 0


class TestOfflineLike:
    @pytest.mark.asyncio
    async def test_offline_like_replays_on_reconnect(
        self, likes, event, attendees, connectivity, offline_queue, sleep
    ):
        connectivity.set_online(False)
        checks_before = connectivity.checks

        with pytest.raises(OperationQueuedError):
            await likes.like(event.id, "alice", "bob")

        # Three gated attempts, two backoffs, nothing reached the store
        assert connectivity.checks - checks_before == 3
        assert len(sleep.delays) == 2
        assert [item.operation for item in offline_queue.items] == ["like.create"]

        connectivity.set_online(True)
        for _ in range(200):
            if not len(offline_queue):
                break
            await asyncio.sleep(0.01)

        assert len(offline_queue) == 0
        assert offline_queue.dropped_count == 0
        assert await likes.get_state(event.id, "alice", "bob") is MatchState.ONE_SIDED
