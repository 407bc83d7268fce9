# tests/integration/jobs/test_int_queue_recovery.py
"""Queue persistence over SQLite: a request interrupted mid-processing is resumed.

Coverage targets: jobs/request_queue.py, storage/sqlite_store.py, api/facade.py
"""

from __future__ import annotations

import pytest

from muscleai.api.facade import create_orchestrator
from muscleai.jobs.request_queue import RequestQueue
from muscleai.storage.sqlite_store import SqliteKeyValueStore


class TestQueueRecovery:
    @pytest.mark.asyncio
    async def test_interrupted_request_resumes(
        self, vision_server, fast_settings, tmp_path, analysis_dict
    ):
        db_path = tmp_path / "kv.db"
        interrupted = tmp_path / "interrupted.jpg"
        interrupted.write_bytes(b"\xff\xd8\xff\xe0interrupted")
        fresh = tmp_path / "fresh.jpg"
        fresh.write_bytes(b"\xff\xd8\xff\xe0fresh")

        # Simulate a crash: request persisted while processing.
        store = SqliteKeyValueStore(db_path)
        crashed = RequestQueue(store)
        request_id = await crashed.enqueue(str(interrupted))
        crashed._current = crashed._queue.pop(0)
        crashed._current.status = "processing"
        await crashed._save()
        await store.close()

        vision_server.respond_with_content(analysis_dict)
        store = SqliteKeyValueStore(db_path)
        http = vision_server.client()
        orchestrator = await create_orchestrator(fast_settings, store=store, http_client=http)
        try:
            assert orchestrator.queue_status().pending == 1
            outcome = await orchestrator.analyze(str(fresh))
            assert outcome.success is True
            assert vision_server.calls == 2
            assert orchestrator.queue.get_status(request_id) == "completed"
            assert await orchestrator.cache.get(str(interrupted)) is not None
        finally:
            await orchestrator.aclose()
            await http.aclose()
            await store.close()

    @pytest.mark.asyncio
    async def test_pending_requests_survive_restart(self, tmp_path):
        db_path = tmp_path / "kv.db"
        store = SqliteKeyValueStore(db_path)
        queue = RequestQueue(store)
        low = await queue.enqueue("low.jpg", priority=10)
        high = await queue.enqueue("high.jpg", priority=1)
        await store.close()

        store = SqliteKeyValueStore(db_path)
        try:
            restored = RequestQueue(store)
            await restored.load()
            assert [r.id for r in restored.pending_requests()] == [high, low]
        finally:
            await store.close()
