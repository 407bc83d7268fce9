# tests/unit/llm/test_retry.py
"""Tests for llm/retry.py: retryable statuses and backoff delays."""

from __future__ import annotations

import random

import pytest

from muscleai.llm.retry import RetryPolicy, compute_delay_ms, is_retryable_status


class TestIsRetryableStatus:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504, 599])
    def test_retryable(self, status):
        assert is_retryable_status(status) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 408, 422])
    def test_terminal(self, status):
        assert is_retryable_status(status) is False


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.max_attempts == 4
        assert policy.base_delay_ms == 1000
        assert policy.backoff_factor == 2.0
        assert policy.max_delay_ms == 30_000


class TestComputeDelay:
    def test_exponential_without_jitter(self):
        policy = RetryPolicy(jitter_ms=0)
        assert [compute_delay_ms(policy, n) for n in (1, 2, 3)] == [1000, 2000, 4000]

    def test_capped(self):
        policy = RetryPolicy(jitter_ms=0, max_delay_ms=3000)
        assert compute_delay_ms(policy, 3) == 3000
        assert compute_delay_ms(policy, 10) == 3000

    def test_jitter_bounded(self):
        policy = RetryPolicy()
        rng = random.Random(42)
        for _ in range(200):
            delay = compute_delay_ms(policy, 1, rng)
            assert 1000 <= delay <= 2000

    def test_jitter_never_exceeds_cap(self):
        policy = RetryPolicy(max_delay_ms=1500)
        rng = random.Random(7)
        assert all(compute_delay_ms(policy, 2, rng) == 1500 for _ in range(50))

    def test_deterministic_with_seed(self):
        policy = RetryPolicy()
        a = compute_delay_ms(policy, 2, random.Random(1))
        b = compute_delay_ms(policy, 2, random.Random(1))
        assert a == b
