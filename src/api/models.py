# src/api/models.py
"""API-level models returned to callers of the analysis facade."""

from __future__ import annotations

from pydantic import BaseModel

from muscleai.core.errors import ErrorInfo
from muscleai.core.models import AnalysisResult


class AnalysisOutcome(BaseModel):
    """Structured result of one analysis; failures are data, not exceptions."""

    success: bool
    data: AnalysisResult | None = None
    error: ErrorInfo | None = None
    cached: bool = False
    timestamp: int
    request_id: str | None = None
