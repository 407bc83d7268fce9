# tests/unit/storage/test_store_factory.py
"""Tests for storage/store_factory.py."""

from __future__ import annotations

import pytest

from muscleai.config.settings import Settings
from muscleai.storage.json_store import JsonFileKeyValueStore
from muscleai.storage.memory_store import MemoryKeyValueStore
from muscleai.storage.sqlite_store import SqliteKeyValueStore
from muscleai.storage.store_factory import create_kv_store


class TestCreateKvStore:
    def test_memory_backend(self):
        s = Settings(_env_file=None, storage_backend="memory")
        assert isinstance(create_kv_store(s), MemoryKeyValueStore)

    def test_json_backend(self, tmp_path):
        s = Settings(_env_file=None, storage_backend="json", storage_root=tmp_path)
        assert isinstance(create_kv_store(s), JsonFileKeyValueStore)

    @pytest.mark.asyncio
    async def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, storage_backend="sqlite", storage_root=tmp_path)
        store = create_kv_store(s)
        assert isinstance(store, SqliteKeyValueStore)
        assert (tmp_path / "muscleai.db").exists()
        await store.close()

    def test_redis_missing_url(self):
        s = Settings.model_construct(storage_backend="redis", storage_redis_url="")
        with pytest.raises(ValueError, match="STORAGE_REDIS_URL"):
            create_kv_store(s)

    def test_unsupported_backend(self):
        s = Settings.model_construct(storage_backend="etcd")
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_kv_store(s)

    def test_settings_reject_unknown_backend(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, storage_backend="etcd")
