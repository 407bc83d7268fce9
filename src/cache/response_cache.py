# src/cache/response_cache.py
"""Content-keyed response cache with TTL and capacity-bounded eviction.

Entries live in a BaseKeyValueStore under ``<prefix><fingerprint>``. A
single index record at ``<prefix>index`` lists ``{key, timestamp}`` for every
stored entry and is updated on every insert and removal, so eviction only
reads the index.

A caching failure must never break an analysis: every store error is logged
and swallowed, and reads degrade to a miss.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Literal

from pydantic import TypeAdapter

from muscleai.cache.fingerprint import fingerprint_file, fingerprint_reference
from muscleai.cache.models import CacheEntry, CacheIndexItem, CacheStats
from muscleai.core.models import AnalysisResult
from muscleai.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

INDEX_SUFFIX = "index"

_INDEX_ADAPTER = TypeAdapter(list[CacheIndexItem])


def _now_ms() -> int:
    return int(time.time() * 1000)


class ResponseCache:
    """Persisted cache of AnalysisResult keyed by image fingerprint.

    Args:
        store: Durable key-value store.
        key_prefix: Namespace prefix for every record this cache owns.
        ttl_ms: Entry lifetime; 0 means entries never expire.
        max_entries: Capacity that triggers eviction on insert.
        eviction_ratio: Share of ``max_entries`` evicted (oldest first).
        key_mode: "reference" hashes the reference string, "content" the bytes.
        clock: Returns current time in epoch milliseconds.
    """

    def __init__(
        self,
        store: BaseKeyValueStore,
        key_prefix: str = "muscle_ai_cache_",
        ttl_ms: int = 0,
        max_entries: int = 50,
        eviction_ratio: float = 0.2,
        key_mode: Literal["reference", "content"] = "reference",
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._prefix = key_prefix
        self._ttl_ms = ttl_ms
        self._max_entries = max_entries
        self._eviction_ratio = eviction_ratio
        self._key_mode = key_mode
        self._clock = clock

    @property
    def index_key(self) -> str:
        return f"{self._prefix}{INDEX_SUFFIX}"

    def set_ttl(self, ttl_ms: int) -> None:
        """Change the lifetime applied to future puts (0 = never expire)."""
        self._ttl_ms = max(0, ttl_ms)

    def fingerprint(self, image_ref: str) -> str:
        if self._key_mode == "content":
            return fingerprint_file(image_ref)
        return fingerprint_reference(image_ref)

    # --- Public API ---

    async def get(self, image_ref: str) -> AnalysisResult | None:
        """Return the cached result, or None on miss, expiry or any error."""
        try:
            key = self._entry_key(image_ref)
            raw = await self._store.get_item(key)
            if raw is None:
                return None

            entry = CacheEntry.model_validate_json(raw)
            if entry.is_expired(self._clock()):
                logger.debug("Cache entry %s expired at %d", key, entry.expires_at)
                await self._remove_entry(key)
                return None

            logger.info("Cache hit for image %s", image_ref)
            return entry.payload
        except Exception as e:
            logger.warning("Failed to read cache for %s: %s", image_ref, e)
            return None

    async def put(self, image_ref: str, result: AnalysisResult) -> None:
        """Store result for image_ref, evicting old entries when full. Never raises."""
        try:
            image_hash = self.fingerprint(image_ref)
            key = f"{self._prefix}{image_hash}"
            now = self._clock()
            entry = CacheEntry(
                key=key,
                image_hash=image_hash,
                payload=result,
                created_at=now,
                expires_at=now + self._ttl_ms if self._ttl_ms > 0 else 0,
            )

            index = await self._read_index()
            if all(item.key != key for item in index):
                index = await self._evict_if_full(index)

            await self._store.set_item(key, entry.model_dump_json(by_alias=True))

            index = [item for item in index if item.key != key]
            index.append(CacheIndexItem(key=key, timestamp=now))
            await self._write_index(index)
            logger.info("Analysis cached for image %s", image_ref)
        except Exception as e:
            logger.warning("Failed to cache analysis for %s: %s", image_ref, e)

    async def invalidate(self, image_ref: str) -> None:
        try:
            await self._remove_entry(self._entry_key(image_ref))
            logger.info("Cache invalidated for image %s", image_ref)
        except Exception as e:
            logger.warning("Failed to invalidate cache for %s: %s", image_ref, e)

    async def clear(self) -> None:
        """Remove every record under this cache's prefix, index included."""
        try:
            keys = [k for k in await self._store.get_all_keys() if k.startswith(self._prefix)]
            await self._store.multi_remove(keys)
            logger.info("Cleared %d cache records", len(keys))
        except Exception as e:
            logger.warning("Failed to clear cache: %s", e)

    async def stats(self) -> CacheStats:
        try:
            index = await self._read_index()
            total_bytes = 0
            for item in index:
                raw = await self._store.get_item(item.key)
                if raw is not None:
                    total_bytes += len(raw)
            timestamps = [item.timestamp for item in index]
            return CacheStats(
                count=len(index),
                total_bytes=total_bytes,
                oldest=min(timestamps) if timestamps else None,
                newest=max(timestamps) if timestamps else None,
            )
        except Exception as e:
            logger.warning("Failed to compute cache stats: %s", e)
            return CacheStats()

    async def is_cached(self, image_ref: str) -> bool:
        return await self.get(image_ref) is not None

    # --- Internals ---

    def _entry_key(self, image_ref: str) -> str:
        return f"{self._prefix}{self.fingerprint(image_ref)}"

    async def _evict_if_full(self, index: list[CacheIndexItem]) -> list[CacheIndexItem]:
        """Drop the oldest share of entries once the index is at capacity."""
        if len(index) < self._max_entries:
            return index

        n_evict = max(1, math.floor(self._max_entries * self._eviction_ratio))
        ordered = sorted(index, key=lambda item: item.timestamp)
        victims, survivors = ordered[:n_evict], ordered[n_evict:]

        await self._store.multi_remove([item.key for item in victims])
        await self._write_index(survivors)
        logger.info("Evicted %d old cache entries", len(victims))
        return survivors

    async def _remove_entry(self, key: str) -> None:
        await self._store.remove_item(key)
        index = await self._read_index()
        remaining = [item for item in index if item.key != key]
        if len(remaining) != len(index):
            await self._write_index(remaining)

    async def _read_index(self) -> list[CacheIndexItem]:
        raw = await self._store.get_item(self.index_key)
        if not raw:
            return []
        try:
            return _INDEX_ADAPTER.validate_json(raw)
        except Exception as e:
            logger.warning("Cache index unreadable, rebuilding empty: %s", e)
            return []

    async def _write_index(self, index: list[CacheIndexItem]) -> None:
        await self._store.set_item(self.index_key, _INDEX_ADAPTER.dump_json(index).decode())
