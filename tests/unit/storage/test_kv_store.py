"""Unit tests for the SQLite-backed local key/value storage."""

import pytest

from infrastructure.storage.sqlalchemy_kv_store import SQLAlchemyKeyValueStore


class TestKeyValueStore:
    @pytest.mark.asyncio
    async def test_get_missing(self, kv_store):
        assert await kv_store.get("nothing") is None

    @pytest.mark.asyncio
    async def test_set_overwrites(self, kv_store):
        await kv_store.set("current_session_id", "s1")
        await kv_store.set("current_session_id", "s2")

        assert await kv_store.get("current_session_id") == "s2"

    @pytest.mark.asyncio
    async def test_remove(self, kv_store):
        await kv_store.set("k", "v")
        await kv_store.remove("k")
        await kv_store.remove("k")

        assert await kv_store.get("k") is None

    @pytest.mark.asyncio
    async def test_multi_remove(self, kv_store):
        for key in ("a", "b", "c"):
            await kv_store.set(key, key)

        await kv_store.multi_remove(["a", "b", "missing"])

        assert await kv_store.get("a") is None
        assert await kv_store.get("b") is None
        assert await kv_store.get("c") == "c"

    @pytest.mark.asyncio
    async def test_values_survive_reopen(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'device.db'}"
        first = SQLAlchemyKeyValueStore(url)
        await first.initialize()
        await first.set("offline_queue", "[]")
        await first.dispose()

        second = SQLAlchemyKeyValueStore(url)
        await second.initialize()
        try:
            assert await second.get("offline_queue") == "[]"
        finally:
            await second.dispose()
