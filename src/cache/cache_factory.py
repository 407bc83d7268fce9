# src/cache/cache_factory.py
"""Factory for the response cache."""

from __future__ import annotations

from muscleai.cache.response_cache import ResponseCache
from muscleai.config.settings import Settings
from muscleai.storage.base_kv_store import BaseKeyValueStore


def create_response_cache(
    store: BaseKeyValueStore, settings: Settings | None = None
) -> ResponseCache | None:
    """Build the configured ResponseCache over store.

    Returns:
        ResponseCache, or None when CACHE_ENABLED is false.
    """
    settings = settings or Settings()
    if not settings.cache_enabled:
        return None
    return ResponseCache(
        store=store,
        key_prefix=settings.cache_key_prefix,
        ttl_ms=settings.cache_ttl_ms,
        max_entries=settings.cache_max_entries,
        eviction_ratio=settings.cache_eviction_ratio,
        key_mode=settings.cache_key_mode,
    )
