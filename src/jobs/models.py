# src/jobs/models.py
"""Request queue models: AnalysisRequest, QueueStatus, priority levels."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

# Lower value = more urgent.
PRIORITY_HIGH = 1
PRIORITY_NORMAL = 5
PRIORITY_LOW = 10

RequestStatus = Literal["pending", "processing", "completed", "failed"]


class AnalysisRequest(BaseModel):
    """One queued analysis job. Owned by the RequestQueue until terminal."""

    id: str
    image_ref: str
    priority: int = PRIORITY_NORMAL
    submitted_at: int  # epoch ms
    retry_count: int = 0
    status: RequestStatus = "pending"

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.priority, self.submitted_at)


class QueueStatus(BaseModel):
    pending: int
    processing: AnalysisRequest | None = None
    total: int
