# src/llm/retry.py
"""Retry policy with exponential backoff and bounded jitter.

Retryable: no response at all (connection failure, timeout) or an HTTP
status of 429, 503 or any 5xx. Everything else stops the loop.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from muscleai.core.errors import AnalysisError

RETRYABLE_STATUSES = frozenset({429, 503})


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff configuration for the vision API client."""

    max_retries: int = 3
    base_delay_ms: int = 1000
    backoff_factor: float = 2.0
    max_delay_ms: int = 30_000
    jitter_ms: int = 1000

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


@dataclass
class RetryState:
    """Per-call retry bookkeeping."""

    attempt: int = 0
    last_error: AnalysisError | None = None
    next_delay_ms: int = 0


def is_retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUSES or status >= 500


def compute_delay_ms(
    policy: RetryPolicy, retry: int, rng: random.Random | None = None
) -> int:
    """Delay before retry number ``retry`` (1-based).

    ``min(max_delay, base * factor**(retry-1) + uniform(0, jitter))``.
    """
    rng = rng or random.Random()  # noqa: S311
    exponential = policy.base_delay_ms * (policy.backoff_factor ** (retry - 1))
    jitter = rng.uniform(0, policy.jitter_ms) if policy.jitter_ms > 0 else 0.0
    return int(min(policy.max_delay_ms, exponential + jitter))
