# src/pipeline/orchestrator.py
"""Analysis orchestrator: cache check, queueing, model call, parse, write-through.

Per request:
    Idle -> CacheCheck -> HitDone
                       -> MissQueued -> Calling -> Parsing -> CacheWrite -> Done
    Failed from any state after CacheCheck.

With a queue, analyze() enqueues the request and waits for the shared drain
task to run it; the queue guarantees that only one request is calling the
model at a time. Every failure is converted to an AnalysisOutcome, so
analyze() never raises.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable

from muscleai.api.models import AnalysisOutcome
from muscleai.core.errors import AnalysisError, RequestCancelledError, UnknownAPIError
from muscleai.jobs.models import PRIORITY_NORMAL, AnalysisRequest, QueueStatus
from muscleai.logging.context import clear_context, set_request_context, set_stage_context
from muscleai.parsing.response_parser import parse_model_body
from muscleai.pipeline.progress import ProgressListener, ProgressState, ProgressTracker

if TYPE_CHECKING:
    from muscleai.cache.models import CacheStats
    from muscleai.cache.response_cache import ResponseCache
    from muscleai.image.base_preprocessor import BaseImagePreprocessor
    from muscleai.jobs.request_queue import RequestQueue
    from muscleai.llm.base_client import BaseVisionClient
    from muscleai.llm.models import ProgressEvent

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class AnalysisOrchestrator:
    """Drives one image through cache, queue, vision client and parser.

    Args:
        client: Retrying vision client.
        preprocessor: Turns an image reference into a base64 payload.
        cache: Optional write-through response cache.
        queue: Optional request queue (loaded by the caller).
        clock: Returns current time in epoch milliseconds.
    """

    def __init__(
        self,
        client: BaseVisionClient,
        preprocessor: BaseImagePreprocessor,
        cache: ResponseCache | None = None,
        queue: RequestQueue | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._client = client
        self._preprocessor = preprocessor
        self._cache = cache
        self._queue = queue
        self._clock = clock

        self._listeners: list[ProgressListener] = []
        self._current: ProgressTracker | None = None
        self._waiters: dict[str, asyncio.Future[AnalysisOutcome]] = {}
        self._trackers: dict[str, ProgressTracker] = {}
        self._drain_task: asyncio.Task[None] | None = None
        self._running = False
        self._cancel_requested = False

    @property
    def cache(self) -> ResponseCache | None:
        return self._cache

    @property
    def queue(self) -> RequestQueue | None:
        return self._queue

    @property
    def progress(self) -> ProgressState:
        """Progress of the most recently started request."""
        return self._current.state if self._current is not None else ProgressState()

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Observe progress of every request started after this call."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Public API ---

    async def analyze(
        self, image_ref: str, on_progress: ProgressListener | None = None
    ) -> AnalysisOutcome:
        """Analyze one image. Never raises; failures come back as data."""
        tracker = self._new_tracker(on_progress)
        tracker.start("Checking cache...")
        set_request_context(None, image_ref)
        try:
            if self._cache is not None:
                set_stage_context("cache_check")
                cached = await self._cache.get(image_ref)
                if cached is not None:
                    tracker.complete("Loaded from cache")
                    return AnalysisOutcome(
                        success=True, data=cached, cached=True, timestamp=self._clock()
                    )

            if self._queue is None:
                return await self._run_pipeline(image_ref, tracker)
            return await self._analyze_queued(self._queue, image_ref, tracker)
        except Exception as e:
            return self._failure(tracker, e)
        finally:
            clear_context()

    def cancel(self) -> None:
        """Cancel the running request and reset progress."""
        if self._running:
            self._cancel_requested = True
        self._client.cancel()
        if self._current is not None:
            self._current.reset()

    async def cancel_queued(self, request_id: str) -> bool:
        """Remove a waiting request; its caller receives a CANCELLED outcome."""
        if self._queue is None or not await self._queue.cancel(request_id):
            return False
        future = self._waiters.get(request_id)
        if future is not None and not future.done():
            tracker = self._trackers.get(request_id) or ProgressTracker()
            future.set_result(self._failure(tracker, RequestCancelledError(), request_id))
        return True

    async def clear_cache(self) -> None:
        if self._cache is not None:
            await self._cache.clear()

    async def cache_stats(self) -> CacheStats | None:
        if self._cache is None:
            return None
        return await self._cache.stats()

    def queue_status(self) -> QueueStatus | None:
        return None if self._queue is None else self._queue.status()

    async def test_connection(self) -> bool:
        return await self._client.test_connection()

    async def aclose(self) -> None:
        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()
            try:
                await self._drain_task
            except asyncio.CancelledError:
                logger.info("Queue drain stopped; unfinished requests resume on next load")
        for request_id, future in list(self._waiters.items()):
            if not future.done():
                tracker = self._trackers.get(request_id) or ProgressTracker()
                future.set_result(self._failure(tracker, RequestCancelledError(), request_id))
        await self._client.aclose()

    # --- Queueing ---

    async def _analyze_queued(
        self, queue: RequestQueue, image_ref: str, tracker: ProgressTracker
    ) -> AnalysisOutcome:
        request_id = await queue.enqueue(image_ref, PRIORITY_NORMAL)
        set_request_context(request_id, image_ref)

        future: asyncio.Future[AnalysisOutcome] = asyncio.get_running_loop().create_future()
        self._waiters[request_id] = future
        self._trackers[request_id] = tracker
        try:
            position = queue.get_position(request_id)
            if position > 0:
                tracker.update(5, f"Queued for analysis (position {position})")
            self._ensure_draining(queue)
            return await future
        finally:
            self._waiters.pop(request_id, None)
            self._trackers.pop(request_id, None)

    def _ensure_draining(self, queue: RequestQueue) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.ensure_future(queue.process_all(self._handle_request))

    async def _handle_request(self, request: AnalysisRequest) -> None:
        future = self._waiters.get(request.id)
        if future is not None and future.done():
            return
        tracker = self._trackers.get(request.id) or ProgressTracker()
        outcome = await self._run_pipeline(request.image_ref, tracker, request.id)
        if future is not None and not future.done():
            future.set_result(outcome)

    # --- Pipeline ---

    async def _run_pipeline(
        self, image_ref: str, tracker: ProgressTracker, request_id: str | None = None
    ) -> AnalysisOutcome:
        set_request_context(request_id, image_ref)

        def relay(event: ProgressEvent) -> None:
            tracker.update(event.progress, event.message, event.retry_count)

        self._running = True
        self._cancel_requested = False
        try:
            set_stage_context("preprocess")
            tracker.update(10, "Processing image...")
            image = await self._preprocessor.process(image_ref)
            if self._cancel_requested:
                raise RequestCancelledError()

            raw = await self._client.analyze(
                image.base64, on_progress=relay, media_type=image.media_type
            )

            set_stage_context("parsing")
            tracker.update(85, "Parsing analysis results...")
            result = parse_model_body(raw.body)

            if self._cache is not None:
                set_stage_context("cache_write")
                tracker.update(95, "Saving results...")
                await self._cache.put(image_ref, result)

            tracker.complete("Analysis complete!")
            logger.info(
                "Analysis complete for %s: %d muscles scored", image_ref, len(result.muscle_scores)
            )
            return AnalysisOutcome(
                success=True,
                data=result,
                cached=False,
                timestamp=self._clock(),
                request_id=request_id,
            )
        except Exception as e:
            return self._failure(tracker, e, request_id)
        finally:
            self._running = False

    def _failure(
        self, tracker: ProgressTracker, exc: Exception, request_id: str | None = None
    ) -> AnalysisOutcome:
        if isinstance(exc, AnalysisError):
            error = exc
        else:
            logger.exception("Unexpected failure during analysis")
            error = UnknownAPIError(str(exc) or type(exc).__name__, details=type(exc).__name__)

        logger.error("Analysis failed [%s]: %s", error.code.value, error.message)
        info = error.to_info()
        tracker.fail(info)
        return AnalysisOutcome(
            success=False, error=info, timestamp=self._clock(), request_id=request_id
        )

    def _new_tracker(self, on_progress: ProgressListener | None) -> ProgressTracker:
        tracker = ProgressTracker()
        for listener in self._listeners:
            tracker.subscribe(listener)
        if on_progress is not None:
            tracker.subscribe(on_progress)
        self._current = tracker
        return tracker
