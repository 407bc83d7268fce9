# src/llm/cancellation.py
"""Cooperative cancellation token for a single HTTP attempt."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot flag the HTTP layer races against the request."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
