# tests/integration/conftest.py
"""Shared fixtures for integration tests.

The vision endpoint is a scripted httpx.MockTransport; storage is real
(in-memory, JSON files or SQLite under tmp_path). No network access.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
import pytest

from muscleai.config.settings import Settings

logger = logging.getLogger(__name__)


# ── Pytest markers ──────────────────────────────────────────────

def pytest_collection_modifyitems(config, items):
    for item in items:
        if "tests/integration" in item.path.as_posix():
            item.add_marker(pytest.mark.integration)


# =====================================================================
#  SCRIPTED VISION ENDPOINT
# =====================================================================

class ScriptedVisionServer:
    """Replays queued responses; the last one repeats once the script runs out."""

    def __init__(self) -> None:
        self.script: list[Any] = []
        self.requests: list[httpx.Request] = []

    def respond(self, *steps: Any) -> None:
        self.script.extend(steps)

    def respond_with_content(self, content: Any) -> None:
        if not isinstance(content, str):
            content = json.dumps(content)
        self.respond(httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": content}}]}
        ))

    @property
    def calls(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.script:
            raise AssertionError("Vision endpoint called with no scripted response")
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, int):
            return httpx.Response(step, json={"error": {"message": f"status {step}"}})
        logger.debug("Scripted response %d for %s", step.status_code, request.url)
        return step

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def vision_server() -> ScriptedVisionServer:
    return ScriptedVisionServer()


@pytest.fixture
def fast_settings(tmp_path) -> Settings:
    """Settings with millisecond backoff so retries run quickly."""
    return Settings(
        _env_file=None,
        api_key="sk-integration",
        storage_backend="memory",
        storage_root=tmp_path / "storage",
        retry_base_delay_ms=1,
        retry_max_delay_ms=5,
        retry_jitter_ms=0,
    )
