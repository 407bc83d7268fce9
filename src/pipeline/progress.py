# src/pipeline/progress.py
"""Per-request progress state with an observer registry.

Progress is clamped to [0, 100] and never moves backwards within a request,
except when a new retry starts (retry_count increases), which may reset it
to an earlier milestone. A failing listener is logged and skipped.
"""

from __future__ import annotations

import logging
from typing import Callable

from pydantic import BaseModel, Field

from muscleai.core.errors import ErrorInfo

logger = logging.getLogger(__name__)


class ProgressState(BaseModel):
    """Snapshot delivered to listeners."""

    is_loading: bool = False
    progress: int = Field(default=0, ge=0, le=100)
    status_message: str = ""
    error: ErrorInfo | None = None
    retry_count: int = 0


ProgressListener = Callable[[ProgressState], None]


class ProgressTracker:
    """Observable progress of one analysis request."""

    def __init__(self) -> None:
        self._state = ProgressState()
        self._listeners: list[ProgressListener] = []

    @property
    def state(self) -> ProgressState:
        return self._state.model_copy()

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, message: str = "Starting analysis...") -> None:
        self._state = ProgressState(is_loading=True, progress=0, status_message=message)
        self._notify()

    def update(self, progress: int, message: str, retry_count: int | None = None) -> None:
        progress = max(0, min(100, int(progress)))
        retrying = retry_count is not None and retry_count > self._state.retry_count
        if not retrying:
            progress = max(progress, self._state.progress)
        self._state = self._state.model_copy(
            update={
                "progress": progress,
                "status_message": message,
                "retry_count": retry_count if retrying else self._state.retry_count,
            }
        )
        self._notify()

    def complete(self, message: str = "Analysis complete!") -> None:
        self._state = self._state.model_copy(
            update={"is_loading": False, "progress": 100, "status_message": message}
        )
        self._notify()

    def fail(self, error: ErrorInfo) -> None:
        self._state = self._state.model_copy(
            update={"is_loading": False, "status_message": error.user_message, "error": error}
        )
        self._notify()

    def reset(self) -> None:
        self._state = ProgressState()
        self._notify()

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning("Progress listener %r failed: %s", listener, e)
