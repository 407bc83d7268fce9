# src/llm/models.py
"""Vision API wire types: chat request body, raw response, progress events."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageURL(BaseModel):
    url: str


class ImagePart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageURL

    @classmethod
    def from_base64(cls, image_base64: str, media_type: str = "image/jpeg") -> ImagePart:
        return cls(image_url=ImageURL(url=f"data:{media_type};base64,{image_base64}"))


class ChatMessage(BaseModel):
    """Single message in a chat completion request."""

    role: Literal["user", "assistant", "system"]
    content: list[TextPart | ImagePart]


class ChatRequest(BaseModel):
    """OpenAI-compatible chat completion body sent to the vision endpoint."""

    model: str
    messages: list[ChatMessage]
    max_tokens: int
    temperature: float | None = None
    top_p: float | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RawModelResponse(BaseModel):
    """Unparsed response from the vision endpoint, plus call bookkeeping."""

    status_code: int
    body: Any
    attempts: int = 1
    latency_ms: int = 0


class ProgressEvent(BaseModel):
    """Advisory progress milestone emitted during a client call."""

    progress: int = Field(ge=0, le=100)
    message: str
    retry_count: int = 0
