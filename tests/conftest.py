# tests/conftest.py
"""Shared test fixtures for all unit and integration tests.

Provides sample analysis payloads, an in-memory store, a controllable clock
and chat-completion body builders. No network access; HTTP goes through
httpx.MockTransport.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from muscleai.core.models import AnalysisResult
from muscleai.storage.memory_store import MemoryKeyValueStore


class FakeClock:
    """Epoch-millisecond clock advanced by hand."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


# === FIXTURES: Sample data ===


def _muscle(name: str, common: str, group: str, score: float) -> dict[str, Any]:
    return {
        "muscle_name": name,
        "common_name": common,
        "muscle_group": group,
        "development_score": score,
        "development_category": "moderate",
        "specific_notes": f"{common} shows visible definition",
        "visibility_in_photo": "clearly_visible",
    }


@pytest.fixture
def analysis_dict() -> dict[str, Any]:
    """Valid wire-format analysis with three muscles."""
    return {
        "analysis_metadata": {
            "image_quality": "good",
            "visible_muscle_groups": ["chest", "arms", "abs"],
            "analysis_confidence": 82,
            "photo_angle": "front",
        },
        "muscle_analysis": [
            _muscle("Pectoralis Major", "Chest", "chest", 7),
            _muscle("Biceps Brachii", "Biceps", "arms", 6),
            _muscle("Rectus Abdominis", "Abs", "abs", 5),
        ],
        "overall_assessment": {
            "strongest_muscles": ["Pectoralis Major"],
            "weakest_muscles": ["Rectus Abdominis"],
            "overall_physique_score": 6,
            "body_symmetry_score": 7,
            "muscle_proportion_balance": "good",
        },
        "recommendations": [
            {
                "muscle_target": "Rectus Abdominis",
                "priority": "high",
                "suggested_exercises": ["Hanging leg raise", "Cable crunch"],
                "training_frequency": "3x per week",
            }
        ],
        "limitations": ["Single front-facing photo"],
    }


@pytest.fixture
def minimal_analysis_dict() -> dict[str, Any]:
    """Smallest payload that passes validation: one muscle scored 7."""
    return {
        "analysis_metadata": {"image_quality": "fair", "analysis_confidence": 60},
        "muscle_analysis": [{"muscle_name": "Deltoid", "development_score": 7}],
        "overall_assessment": {},
        "recommendations": [],
    }


@pytest.fixture
def analysis(analysis_dict: dict[str, Any]) -> AnalysisResult:
    return AnalysisResult.model_validate(analysis_dict)


@pytest.fixture
def make_chat_body() -> Callable[[Any], dict[str, Any]]:
    """Wrap content (str or JSON-able) in a chat completion body."""

    def _make(content: Any) -> dict[str, Any]:
        if not isinstance(content, str):
            content = json.dumps(content)
        return {"choices": [{"message": {"role": "assistant", "content": content}}]}

    return _make


# === FIXTURES: Storage & time ===


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# === FIXTURES: Images ===


@pytest.fixture
def jpeg_file(tmp_path: Path) -> Path:
    """Small file with a JPEG signature."""
    path = tmp_path / "front.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 256 + b"\xff\xd9")
    return path


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    path = tmp_path / "back.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 128)
    return path
