# src/storage/redis_store.py
"""Redis-based key-value store (STORAGE_BACKEND=redis).

Requires 'redis' package: pip install muscleai[redis].
All keys live under a namespace prefix so the store can share a database.
"""

from __future__ import annotations

import logging

from muscleai.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

_NAMESPACE = "muscleai:kv:"


class RedisKeyValueStore(BaseKeyValueStore):
    """Redis-backed key-value store."""

    def __init__(self, redis_url: str, namespace: str = _NAMESPACE) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._namespace = namespace

    async def get_item(self, key: str) -> str | None:
        return self._client.get(f"{self._namespace}{key}")

    async def set_item(self, key: str, value: str) -> None:
        self._client.set(f"{self._namespace}{key}", value)

    async def remove_item(self, key: str) -> None:
        self._client.delete(f"{self._namespace}{key}")

    async def get_all_keys(self) -> list[str]:
        offset = len(self._namespace)
        return [k[offset:] for k in self._client.scan_iter(match=f"{self._namespace}*")]

    async def multi_remove(self, keys: list[str]) -> None:
        if keys:
            self._client.delete(*(f"{self._namespace}{k}" for k in keys))

    async def close(self) -> None:
        self._client.close()
