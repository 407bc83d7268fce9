# src/api/facade.py
"""Public API facade: composition root for the analysis services.

Usage:
    from muscleai.api.facade import analyze_image
    outcome = await analyze_image("photo.jpg")

Store, cache, queue, client and preprocessor are built once here and
injected into the orchestrator; nothing else constructs them.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from muscleai.api.models import AnalysisOutcome
from muscleai.cache.cache_factory import create_response_cache
from muscleai.config.settings import Settings
from muscleai.image.file_preprocessor import FileImagePreprocessor
from muscleai.jobs.request_queue import RequestQueue
from muscleai.llm.client_factory import create_vision_client
from muscleai.pipeline.orchestrator import AnalysisOrchestrator
from muscleai.storage.store_factory import create_kv_store

if TYPE_CHECKING:
    import httpx

    from muscleai.image.base_preprocessor import BaseImagePreprocessor
    from muscleai.pipeline.progress import ProgressListener
    from muscleai.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)


async def create_orchestrator(
    settings: Settings | None = None,
    store: BaseKeyValueStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    preprocessor: BaseImagePreprocessor | None = None,
    use_cache: bool = True,
    use_queue: bool = True,
) -> AnalysisOrchestrator:
    """Build a fully wired AnalysisOrchestrator.

    Args:
        settings: Global settings. Loaded from .env if None.
        store: Durable key-value store. Built from settings if None.
        http_client: Injected HTTP client for the vision endpoint.
        preprocessor: Image preprocessor. File-backed if None.
        use_cache: Disable the response cache for this orchestrator.
        use_queue: Disable the request queue for this orchestrator.

    Returns:
        Orchestrator whose queue (if any) has been loaded from storage.
    """
    settings = settings or Settings()
    store = store if store is not None else create_kv_store(settings)

    cache = create_response_cache(store, settings) if use_cache else None

    queue = None
    if use_queue and settings.queue_enabled:
        queue = RequestQueue(
            store=store,
            storage_key=settings.queue_storage_key,
            max_attempts=settings.queue_max_attempts,
            request_estimate_ms=settings.queue_request_estimate_ms,
        )
        await queue.load()

    client_kwargs = {"http_client": http_client} if http_client is not None else {}
    client = create_vision_client(settings, **client_kwargs)

    preprocessor = preprocessor or FileImagePreprocessor(
        supported_formats=settings.image_supported_formats_list,
        max_bytes=settings.image_max_bytes,
    )

    logger.debug(
        "Orchestrator ready: backend=%s, cache=%s, queue=%s",
        settings.storage_backend, cache is not None, queue is not None,
    )
    return AnalysisOrchestrator(
        client=client, preprocessor=preprocessor, cache=cache, queue=queue
    )


@asynccontextmanager
async def orchestrator_session(
    settings: Settings | None = None, **kwargs: object
) -> AsyncIterator[AnalysisOrchestrator]:
    """Yield an orchestrator and release its client and store afterwards."""
    settings = settings or Settings()
    store = create_kv_store(settings)
    orchestrator = await create_orchestrator(settings, store=store, **kwargs)  # type: ignore[arg-type]
    try:
        yield orchestrator
    finally:
        await orchestrator.aclose()
        await store.close()


async def analyze_image(
    image_ref: str,
    settings: Settings | None = None,
    on_progress: ProgressListener | None = None,
) -> AnalysisOutcome:
    """Analyze a single image end-to-end. Never raises on analysis failure."""
    async with orchestrator_session(settings) as orchestrator:
        return await orchestrator.analyze(image_ref, on_progress=on_progress)
