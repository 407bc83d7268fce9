# src/jobs/request_queue.py
"""Persisted, priority-ordered queue of pending analysis requests.

Ordering is ``(priority ascending, submitted_at ascending)``. Handler
execution is serialized: at most one request is processing at any time, and
a second ``process_all`` call while one is draining returns immediately (the
running drain picks up anything enqueued meanwhile).

Every status transition is written to the key-value store, the in-flight
request included, so a crash mid-processing is recoverable: on ``load()``
any request left in ``processing`` goes back to ``pending``. Persistence
errors are logged and swallowed; the in-memory queue is authoritative.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from typing import Awaitable, Callable

from pydantic import TypeAdapter

from muscleai.jobs.models import (
    PRIORITY_HIGH,
    PRIORITY_NORMAL,
    AnalysisRequest,
    QueueStatus,
    RequestStatus,
)
from muscleai.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

RequestHandler = Callable[[AnalysisRequest], Awaitable[None]]

_REQUESTS_ADAPTER = TypeAdapter(list[AnalysisRequest])
_HISTORY_LIMIT = 100


def _now_ms() -> int:
    return int(time.time() * 1000)


class RequestQueue:
    """Priority queue of AnalysisRequest with durable state.

    Args:
        store: Durable key-value store.
        storage_key: Key holding the JSON array of live requests.
        max_attempts: A failing request is re-queued while its retry count
            stays below this bound, then marked failed.
        request_estimate_ms: Per-request duration used by estimate_wait_ms().
        clock: Returns current time in epoch milliseconds.
    """

    def __init__(
        self,
        store: BaseKeyValueStore,
        storage_key: str = "muscle_ai_request_queue",
        max_attempts: int = 3,
        request_estimate_ms: int = 30_000,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._storage_key = storage_key
        self._history_key = f"{storage_key}:history"
        self._max_attempts = max_attempts
        self._request_estimate_ms = request_estimate_ms
        self._clock = clock

        self._queue: list[AnalysisRequest] = []
        self._current: AnalysisRequest | None = None
        self._history: OrderedDict[str, AnalysisRequest] = OrderedDict()
        self._is_processing = False

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    def __len__(self) -> int:
        return len(self._queue)

    # --- Lifecycle ---

    async def load(self) -> None:
        """Restore persisted state, resetting requests orphaned mid-processing."""
        try:
            raw = await self._store.get_item(self._storage_key)
            requests = _REQUESTS_ADAPTER.validate_json(raw) if raw else []
        except Exception as e:
            logger.warning("Failed to load request queue, starting empty: %s", e)
            requests = []

        orphaned = 0
        for request in requests:
            if request.status == "processing":
                request.status = "pending"
                orphaned += 1
        self._queue = [r for r in requests if r.status == "pending"]
        self._sort()

        try:
            raw_history = await self._store.get_item(self._history_key)
            history = _REQUESTS_ADAPTER.validate_json(raw_history) if raw_history else []
            self._history = OrderedDict((r.id, r) for r in history)
        except Exception as e:
            logger.warning("Failed to load request history: %s", e)
            self._history = OrderedDict()

        if orphaned:
            logger.info("Recovered %d request(s) interrupted mid-processing", orphaned)
            await self._save()
        logger.debug("Request queue loaded with %d pending request(s)", len(self._queue))

    # --- Public API ---

    async def enqueue(self, image_ref: str, priority: int = PRIORITY_NORMAL) -> str:
        """Add a pending request and return its id."""
        now = self._clock()
        request = AnalysisRequest(
            id=f"req_{now}_{uuid.uuid4().hex[:9]}",
            image_ref=image_ref,
            priority=priority,
            submitted_at=now,
        )
        self._queue.append(request)
        self._sort()
        await self._save()
        logger.info("Request %s added to queue (priority=%d)", request.id, priority)
        return request.id

    async def process_all(self, handler: RequestHandler) -> None:
        """Drain the queue through handler, one request at a time."""
        if self._is_processing or not self._queue:
            return

        self._is_processing = True
        try:
            while self._queue:
                request = self._queue.pop(0)
                self._current = request
                request.status = "processing"
                await self._save()

                try:
                    await handler(request)
                    request.status = "completed"
                except Exception as e:
                    request.retry_count += 1
                    if request.retry_count < self._max_attempts:
                        logger.warning(
                            "Request %s failed (attempt %d/%d), re-queued: %s",
                            request.id, request.retry_count, self._max_attempts, e,
                        )
                        request.status = "pending"
                        request.priority = PRIORITY_HIGH
                        self._queue.append(request)
                        self._sort()
                    else:
                        logger.error(
                            "Request %s failed permanently after %d attempts: %s",
                            request.id, request.retry_count, e,
                        )
                        request.status = "failed"

                self._current = None
                if request.status in ("completed", "failed"):
                    self._record_history(request)
                await self._save()
        finally:
            self._current = None
            self._is_processing = False

    async def cancel(self, request_id: str) -> bool:
        """Remove a pending request. The in-flight request cannot be cancelled here."""
        for i, request in enumerate(self._queue):
            if request.id == request_id:
                del self._queue[i]
                await self._save()
                logger.info("Request %s cancelled", request_id)
                return True
        return False

    async def update_priority(self, request_id: str, priority: int) -> bool:
        request = self._find_pending(request_id)
        if request is None:
            return False
        request.priority = priority
        self._sort()
        await self._save()
        return True

    async def clear(self) -> None:
        self._queue = []
        await self._save()
        logger.info("Queue cleared")

    def get_request(self, request_id: str) -> AnalysisRequest | None:
        if self._current is not None and self._current.id == request_id:
            return self._current
        return self._find_pending(request_id) or self._history.get(request_id)

    def get_status(self, request_id: str) -> RequestStatus | None:
        request = self.get_request(request_id)
        return None if request is None else request.status

    def get_position(self, request_id: str) -> int:
        """1-based position among pending requests, or -1 if not queued."""
        for i, request in enumerate(self._queue):
            if request.id == request_id:
                return i + 1
        return -1

    def estimate_wait_ms(self, request_id: str) -> int:
        position = self.get_position(request_id)
        if position <= 0:
            return 0
        return position * self._request_estimate_ms

    def status(self) -> QueueStatus:
        return QueueStatus(
            pending=sum(1 for r in self._queue if r.status == "pending"),
            processing=self._current,
            total=len(self._queue),
        )

    def pending_requests(self) -> list[AnalysisRequest]:
        return list(self._queue)

    # --- Internals ---

    def _sort(self) -> None:
        self._queue.sort(key=lambda r: r.sort_key)

    def _find_pending(self, request_id: str) -> AnalysisRequest | None:
        return next((r for r in self._queue if r.id == request_id), None)

    def _record_history(self, request: AnalysisRequest) -> None:
        self._history[request.id] = request
        self._history.move_to_end(request.id)
        while len(self._history) > _HISTORY_LIMIT:
            self._history.popitem(last=False)

    async def _save(self) -> None:
        live = ([self._current] if self._current is not None else []) + self._queue
        try:
            await self._store.set_item(
                self._storage_key, _REQUESTS_ADAPTER.dump_json(live).decode()
            )
            await self._store.set_item(
                self._history_key,
                _REQUESTS_ADAPTER.dump_json(list(self._history.values())).decode(),
            )
        except Exception as e:
            logger.warning("Failed to save request queue: %s", e)
