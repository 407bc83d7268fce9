# tests/unit/llm/test_models.py
"""Tests for llm/models.py: chat request wire format."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from muscleai.llm.models import (
    ChatMessage,
    ChatRequest,
    ImagePart,
    ProgressEvent,
    TextPart,
)


class TestChatRequest:
    def test_payload_shape(self):
        request = ChatRequest(
            model="vision-model",
            messages=[
                ChatMessage(
                    role="user",
                    content=[TextPart(text="Analyze"), ImagePart.from_base64("QUJD")],
                )
            ],
            max_tokens=2500,
            temperature=0.1,
            top_p=0.9,
        )
        payload = request.to_payload()
        assert payload["model"] == "vision-model"
        assert payload["max_tokens"] == 2500
        content = payload["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "Analyze"}
        assert content[1] == {
            "type": "image_url",
            "image_url": {"url": "data:image/jpeg;base64,QUJD"},
        }

    def test_none_sampling_params_omitted(self):
        request = ChatRequest(
            model="m",
            messages=[ChatMessage(role="user", content=[TextPart(text="Test connection")])],
            max_tokens=10,
        )
        payload = request.to_payload()
        assert "temperature" not in payload
        assert "top_p" not in payload

    def test_png_data_url(self):
        part = ImagePart.from_base64("QUJD", media_type="image/png")
        assert part.image_url.url.startswith("data:image/png;base64,")


class TestProgressEvent:
    def test_bounds(self):
        with pytest.raises(ValidationError):
            ProgressEvent(progress=101, message="x")

    def test_default_retry_count(self):
        assert ProgressEvent(progress=30, message="Sending").retry_count == 0
