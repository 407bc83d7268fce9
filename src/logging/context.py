# src/logging/context.py
"""Contextual logging support: attach request_id, image_ref, stage and attempt to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per analysis request.
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_image_ref: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "image_ref", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)
_attempt: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "attempt", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    image_ref: str | None = None
    stage: str | None = None
    attempt: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        image_ref=_image_ref.get(),
        stage=_stage.get(),
        attempt=_attempt.get(),
    )


def set_request_context(request_id: str | None, image_ref: str | None) -> None:
    """Set request-level context (called once per orchestrated analysis)."""
    _request_id.set(request_id)
    _image_ref.set(image_ref)


def set_stage_context(stage: str, attempt: int | None = None) -> None:
    """Set stage-level context (cache, queue, calling, parsing ...)."""
    _stage.set(stage)
    _attempt.set(attempt)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _image_ref.set(None)
    _stage.set(None)
    _attempt.set(None)
