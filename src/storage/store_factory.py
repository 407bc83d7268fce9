# src/storage/store_factory.py
"""Factory for key-value store instantiation."""

from __future__ import annotations

from pathlib import Path

from muscleai.config.settings import Settings
from muscleai.storage.base_kv_store import BaseKeyValueStore

_DEFAULT_ROOT = Path("~/.muscleai/storage")


def create_kv_store(settings: Settings | None = None) -> BaseKeyValueStore:
    """Instantiate the configured storage backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseKeyValueStore implementation.
    """
    backend = "json" if settings is None else settings.storage_backend
    root = _DEFAULT_ROOT if settings is None else settings.storage_root

    if backend == "memory":
        from muscleai.storage.memory_store import MemoryKeyValueStore
        return MemoryKeyValueStore()

    if backend == "json":
        from muscleai.storage.json_store import JsonFileKeyValueStore
        return JsonFileKeyValueStore(root=root)

    if backend == "sqlite":
        from muscleai.storage.sqlite_store import SqliteKeyValueStore
        return SqliteKeyValueStore(db_path=Path(root) / "muscleai.db")

    if backend == "redis":
        from muscleai.storage.redis_store import RedisKeyValueStore
        if settings is None or not settings.storage_redis_url:
            raise ValueError(
                "STORAGE_REDIS_URL must be set when STORAGE_BACKEND=redis"
            )
        return RedisKeyValueStore(redis_url=settings.storage_redis_url)

    raise ValueError(f"Unsupported storage backend: {backend!r}")
