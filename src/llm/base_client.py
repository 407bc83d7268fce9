# src/llm/base_client.py
"""Abstract vision client interface consumed by the orchestrator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from muscleai.llm.models import ProgressEvent, RawModelResponse

ProgressCallback = Callable[[ProgressEvent], None]


class BaseVisionClient(ABC):
    """Unified interface for hosted vision-model endpoints."""

    @abstractmethod
    async def analyze(
        self,
        image_base64: str,
        on_progress: ProgressCallback | None = None,
        media_type: str = "image/jpeg",
    ) -> RawModelResponse:
        """Send one image for analysis, retrying transient failures.

        Raises:
            AnalysisError: Classified terminal failure.
        """

    @abstractmethod
    def cancel(self) -> None:
        """Abort the in-flight attempt, if any."""

    @abstractmethod
    async def test_connection(self) -> bool:
        """Cheap reachability and credential check."""

    async def aclose(self) -> None:
        """Release network resources."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier for logs."""
