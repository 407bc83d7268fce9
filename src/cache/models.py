# src/cache/models.py
"""Cache domain models: CacheEntry, CacheIndexItem, CacheStats."""

from __future__ import annotations

from pydantic import BaseModel

from muscleai.core.models import AnalysisResult


class CacheEntry(BaseModel):
    """Single cache entry linking an image fingerprint to its analysis."""

    key: str
    image_hash: str
    payload: AnalysisResult
    created_at: int  # epoch ms
    expires_at: int = 0  # epoch ms, 0 = never

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at != 0 and now_ms > self.expires_at


class CacheIndexItem(BaseModel):
    """Index row tracking every stored entry, so eviction needs no full scan."""

    key: str
    timestamp: int


class CacheStats(BaseModel):
    count: int = 0
    total_bytes: int = 0
    oldest: int | None = None
    newest: int | None = None
