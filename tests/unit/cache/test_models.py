# tests/unit/cache/test_models.py
"""Tests for cache/models.py."""

from __future__ import annotations

from muscleai.cache.models import CacheEntry, CacheStats


def _entry(analysis, expires_at: int) -> CacheEntry:
    return CacheEntry(
        key="muscle_ai_cache_abc",
        image_hash="abc",
        payload=analysis,
        created_at=1_000,
        expires_at=expires_at,
    )


class TestCacheEntry:
    def test_never_expires_when_zero(self, analysis):
        assert _entry(analysis, 0).is_expired(10**15) is False

    def test_not_expired_at_boundary(self, analysis):
        assert _entry(analysis, 2_000).is_expired(2_000) is False

    def test_expired_after_boundary(self, analysis):
        assert _entry(analysis, 2_000).is_expired(2_001) is True

    def test_payload_serialized_with_wire_names(self, analysis):
        dumped = _entry(analysis, 0).model_dump(by_alias=True)
        assert dumped["payload"]["muscle_analysis"][0]["muscle_name"] == "Pectoralis Major"


class TestCacheStats:
    def test_defaults(self):
        stats = CacheStats()
        assert stats.count == 0
        assert stats.total_bytes == 0
        assert stats.oldest is None and stats.newest is None
