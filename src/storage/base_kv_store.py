# src/storage/base_kv_store.py
"""Abstract durable key-value store.

String keys, string values, async API. The response cache and the request
queue persist through this interface and never touch a backend directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseKeyValueStore(ABC):
    """Unified interface for key-value persistence backends."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store value under key (overwrite)."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Remove key. Removing an absent key is a no-op."""

    @abstractmethod
    async def get_all_keys(self) -> list[str]:
        """List every stored key."""

    async def multi_remove(self, keys: list[str]) -> None:
        """Remove several keys."""
        for key in keys:
            await self.remove_item(key)

    async def close(self) -> None:
        """Release backend resources."""
