"""Unit tests for the persisted offline queue."""

import asyncio

import orjson
import pytest

from core.exceptions import ProfileHiddenError, StoreError, StoreErrorKind
from infrastructure.resilience.offline_queue import STORAGE_KEY, OfflineQueue


class Recorder:
    """Replay handler that records payloads and can fail on demand."""

    def __init__(self, *errors: Exception) -> None:
        self.errors = list(errors)
        self.payloads: list[dict] = []

    async def __call__(self, payload: dict) -> None:
        if self.errors:
            raise self.errors.pop(0)
        self.payloads.append(payload)


async def _drain(queue: OfflineQueue) -> None:
    for _ in range(200):
        if not len(queue):
            return
        await asyncio.sleep(0.01)


class TestEnqueue:
    @pytest.mark.asyncio
    async def test_enqueue_persists(self, offline_queue, kv_store):
        item = await offline_queue.enqueue("like.create", {"liked_session_id": "bob"})

        stored = orjson.loads(await kv_store.get(STORAGE_KEY))
        assert [entry["id"] for entry in stored] == [item.id]
        assert stored[0]["payload"] == {"liked_session_id": "bob"}
        assert stored[0]["retries"] == 0

    @pytest.mark.asyncio
    async def test_full_queue_evicts_oldest(self, kv_store, connectivity):
        queue = OfflineQueue(kv_store, connectivity, max_size=3, auto_process=False)
        await queue.initialize()
        try:
            items = [await queue.enqueue("op", {"n": n}) for n in range(5)]

            assert [item.id for item in queue.items] == [item.id for item in items[2:]]
            assert queue.dropped_count == 2
        finally:
            await queue.close()

    @pytest.mark.asyncio
    async def test_survives_restart(self, kv_store, connectivity):
        first = OfflineQueue(kv_store, connectivity, auto_process=False)
        await first.initialize()
        queued = await first.enqueue("message.send", {"content": "hi"})
        await first.close()

        second = OfflineQueue(kv_store, connectivity, auto_process=False)
        await second.initialize()
        try:
            assert [item.id for item in second.items] == [queued.id]
            assert second.items[0].payload == {"content": "hi"}
        finally:
            await second.close()

    @pytest.mark.asyncio
    async def test_corrupt_storage_starts_empty(self, kv_store, connectivity):
        await kv_store.set(STORAGE_KEY, "[{broken")
        queue = OfflineQueue(kv_store, connectivity, auto_process=False)
        await queue.initialize()
        try:
            assert len(queue) == 0
        finally:
            await queue.close()

    @pytest.mark.asyncio
    async def test_auto_process_replays_in_background(self, kv_store, connectivity):
        handler = Recorder()
        queue = OfflineQueue(kv_store, connectivity)
        queue.register("op", handler)
        await queue.initialize()
        try:
            await queue.enqueue("op", {"n": 1})
            await _drain(queue)

            assert handler.payloads == [{"n": 1}]
            assert len(queue) == 0
        finally:
            await queue.close()


class TestProcessQueue:
    @pytest.mark.asyncio
    async def test_processes_in_order(self, offline_queue):
        handler = Recorder()
        offline_queue.register("op", handler)
        for n in range(3):
            await offline_queue.enqueue("op", {"n": n})

        await offline_queue.process_queue()

        assert handler.payloads == [{"n": 0}, {"n": 1}, {"n": 2}]
        assert len(offline_queue) == 0

    @pytest.mark.asyncio
    async def test_offline_is_noop(self, offline_queue, connectivity):
        handler = Recorder()
        offline_queue.register("op", handler)
        await offline_queue.enqueue("op", {})
        connectivity.online = False

        await offline_queue.process_queue()

        assert handler.payloads == []
        assert len(offline_queue) == 1

    @pytest.mark.asyncio
    async def test_unknown_operation_is_dropped(self, offline_queue):
        await offline_queue.enqueue("nobody.handles.this", {})

        await offline_queue.process_queue()

        assert len(offline_queue) == 0
        assert offline_queue.dropped_count == 1

    @pytest.mark.asyncio
    async def test_transient_failures_retry_then_drop(self, offline_queue, kv_store):
        handler = Recorder(*[StoreError(StoreErrorKind.UNAVAILABLE) for _ in range(3)])
        offline_queue.register("op", handler)
        await offline_queue.enqueue("op", {})

        await offline_queue.process_queue()
        assert offline_queue.items[0].retries == 1
        stored = orjson.loads(await kv_store.get(STORAGE_KEY))
        assert stored[0]["retries"] == 1

        await offline_queue.process_queue()
        await offline_queue.process_queue()

        assert len(offline_queue) == 0
        assert offline_queue.dropped_count == 1
        assert handler.payloads == []

    @pytest.mark.asyncio
    async def test_recovers_before_retry_cap(self, offline_queue):
        handler = Recorder(StoreError(StoreErrorKind.TIMEOUT))
        offline_queue.register("op", handler)
        await offline_queue.enqueue("op", {"n": 1})

        await offline_queue.process_queue()
        await offline_queue.process_queue()

        assert handler.payloads == [{"n": 1}]
        assert offline_queue.dropped_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [StoreError(StoreErrorKind.PERMISSION_DENIED), ProfileHiddenError()]
    )
    async def test_permanent_failure_drops_immediately(self, offline_queue, error):
        offline_queue.register("op", Recorder(error))
        await offline_queue.enqueue("op", {})

        await offline_queue.process_queue()

        assert len(offline_queue) == 0
        assert offline_queue.dropped_count == 1

    @pytest.mark.asyncio
    async def test_failure_does_not_block_later_items(self, offline_queue):
        failing = Recorder(StoreError(StoreErrorKind.UNAVAILABLE))
        succeeding = Recorder()
        offline_queue.register("fails", failing)
        offline_queue.register("works", succeeding)
        await offline_queue.enqueue("fails", {})
        await offline_queue.enqueue("works", {"n": 2})

        await offline_queue.process_queue()

        assert succeeding.payloads == [{"n": 2}]
        assert [item.operation for item in offline_queue.items] == ["fails"]

    @pytest.mark.asyncio
    async def test_concurrent_processing_is_guarded(self, offline_queue):
        started = asyncio.Event()
        release = asyncio.Event()
        calls = 0

        async def slow(payload: dict) -> None:
            nonlocal calls
            calls += 1
            started.set()
            await release.wait()

        offline_queue.register("op", slow)
        await offline_queue.enqueue("op", {})

        first = asyncio.create_task(offline_queue.process_queue())
        await started.wait()
        await offline_queue.process_queue()
        release.set()
        await first

        assert calls == 1
        assert len(offline_queue) == 0


class TestConnectivityListener:
    @pytest.mark.asyncio
    async def test_reconnect_triggers_processing(self, offline_queue, connectivity):
        handler = Recorder()
        offline_queue.register("op", handler)
        connectivity.set_online(False)
        await offline_queue.enqueue("op", {"n": 1})

        connectivity.set_online(True)
        await _drain(offline_queue)

        assert handler.payloads == [{"n": 1}]

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, kv_store, connectivity):
        handler = Recorder()
        queue = OfflineQueue(kv_store, connectivity, settle_delay_ms=0, auto_process=False)
        queue.register("op", handler)
        await queue.initialize()
        connectivity.set_online(False)
        await queue.enqueue("op", {})
        await queue.close()

        connectivity.set_online(True)
        await asyncio.sleep(0)

        assert handler.payloads == []
