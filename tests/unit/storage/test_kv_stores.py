# tests/unit/storage/test_kv_stores.py
"""Tests for the memory, JSON-file and SQLite key-value stores."""

from __future__ import annotations

import pytest

from muscleai.storage.json_store import JsonFileKeyValueStore
from muscleai.storage.memory_store import MemoryKeyValueStore
from muscleai.storage.sqlite_store import SqliteKeyValueStore


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        kv = MemoryKeyValueStore()
    elif request.param == "json":
        kv = JsonFileKeyValueStore(root=tmp_path / "kv")
    else:
        kv = SqliteKeyValueStore(db_path=tmp_path / "kv" / "test.db")
    yield kv
    if isinstance(kv, SqliteKeyValueStore):
        kv._conn.close()


class TestKeyValueStoreContract:
    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        await store.set_item("a", '{"x": 1}')
        assert await store.get_item("a") == '{"x": 1}'

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get_item("nope") is None

    @pytest.mark.asyncio
    async def test_overwrite(self, store):
        await store.set_item("a", "1")
        await store.set_item("a", "2")
        assert await store.get_item("a") == "2"

    @pytest.mark.asyncio
    async def test_remove(self, store):
        await store.set_item("a", "1")
        await store.remove_item("a")
        assert await store.get_item("a") is None

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, store):
        await store.remove_item("never-set")

    @pytest.mark.asyncio
    async def test_all_keys(self, store):
        await store.set_item("muscle_ai_cache_abc", "1")
        await store.set_item("muscle_ai_request_queue", "[]")
        assert sorted(await store.get_all_keys()) == [
            "muscle_ai_cache_abc",
            "muscle_ai_request_queue",
        ]

    @pytest.mark.asyncio
    async def test_multi_remove(self, store):
        for key in ("a", "b", "c"):
            await store.set_item(key, key)
        await store.multi_remove(["a", "c", "missing"])
        assert await store.get_all_keys() == ["b"]

    @pytest.mark.asyncio
    async def test_keys_with_special_characters(self, store):
        key = "queue:history/with spaces?"
        await store.set_item(key, "v")
        assert await store.get_item(key) == "v"
        assert key in await store.get_all_keys()


class TestJsonFileKeyValueStore:
    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        await JsonFileKeyValueStore(tmp_path).set_item("k", "v")
        assert await JsonFileKeyValueStore(tmp_path).get_item("k") == "v"

    @pytest.mark.asyncio
    async def test_corrupt_file_reads_as_missing(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path)
        await store.set_item("k", "v")
        (tmp_path / "k.json").write_text("{not json")
        assert await store.get_item("k") is None

    @pytest.mark.asyncio
    async def test_no_tmp_file_left(self, tmp_path):
        await JsonFileKeyValueStore(tmp_path).set_item("k", "v")
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]


class TestSqliteKeyValueStore:
    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        first = SqliteKeyValueStore(tmp_path / "kv.db")
        await first.set_item("k", "v")
        await first.close()
        second = SqliteKeyValueStore(tmp_path / "kv.db")
        try:
            assert await second.get_item("k") == "v"
        finally:
            await second.close()
