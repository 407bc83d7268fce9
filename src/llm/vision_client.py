# src/llm/vision_client.py
"""Retrying HTTP client for an OpenAI-compatible vision chat endpoint.

Each attempt is one POST raced against a fresh CancellationToken. Transport
failures and 429/503/5xx responses are retried with exponential backoff;
every other status stops the loop with a classified error.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable

import httpx

from muscleai.core.errors import (
    AnalysisError,
    AuthError,
    MalformedResponseError,
    NetworkError,
    RequestCancelledError,
    classify_http_status,
)
from muscleai.llm.base_client import BaseVisionClient, ProgressCallback
from muscleai.llm.cancellation import CancellationToken
from muscleai.llm.models import (
    ChatMessage,
    ChatRequest,
    ImagePart,
    ProgressEvent,
    RawModelResponse,
    TextPart,
)
from muscleai.llm.prompts import ANALYSIS_PROMPT, CONNECTION_TEST_PROMPT
from muscleai.llm.retry import RetryPolicy, RetryState, compute_delay_ms, is_retryable_status
from muscleai.logging.context import set_stage_context

logger = logging.getLogger(__name__)

CONNECTION_TEST_TIMEOUT_S = 5.0


class VisionAPIClient(BaseVisionClient):
    """Vision endpoint client with retry, backoff and cooperative cancellation.

    Args:
        api_url: Full chat completions URL.
        api_key: Bearer credential. An empty key fails fast with AuthError.
        model: Model identifier sent in the request body.
        timeout_ms: Per-attempt HTTP timeout.
        retry_policy: Backoff configuration.
        http_client: Injected httpx.AsyncClient (not closed by aclose()).
        sleep: Awaitable used between retries.
        rng: Random source for backoff jitter.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        timeout_ms: int = 60_000,
        retry_policy: RetryPolicy | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.1,
        top_p: float = 0.9,
        prompt: str = ANALYSIS_PROMPT,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._timeout_s = timeout_ms / 1000.0
        self._policy = retry_policy or RetryPolicy()
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._top_p = top_p
        self._prompt = prompt
        self._client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep
        self._rng = rng or random.Random()  # noqa: S311
        self._token: CancellationToken | None = None

    @property
    def provider_name(self) -> str:
        return "openai-compatible"

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    # --- Public API ---

    async def analyze(
        self,
        image_base64: str,
        on_progress: ProgressCallback | None = None,
        media_type: str = "image/jpeg",
    ) -> RawModelResponse:
        """Send one image for analysis.

        Raises:
            AuthError: Missing key, or 401/403 from the endpoint.
            RequestCancelledError: cancel() was called during the call.
            AnalysisError: Any other classified terminal failure.
        """
        if not self._api_key:
            raise AuthError(
                "API key is not configured",
                user_message="Authentication Error: No API key configured. Set API_KEY and restart.",
            )

        payload = self._build_request(image_base64, media_type).to_payload()
        self._token = None
        state = RetryState()
        total_attempts = self._policy.max_attempts
        t0 = time.monotonic()

        for attempt in range(total_attempts):
            state.attempt = attempt
            if self._token is not None and self._token.cancelled:
                raise RequestCancelledError()

            if attempt == 0:
                self._emit(on_progress, 30, "Sending image to AI for analysis...", 0)
            else:
                self._emit(
                    on_progress,
                    min(30 + 10 * attempt, 80),
                    f"Retrying analysis (attempt {attempt + 1}/{total_attempts})...",
                    attempt,
                )

            set_stage_context("calling", attempt + 1)
            token = CancellationToken()
            self._token = token
            try:
                response = await self._post(payload, token, self._timeout_s)
            except httpx.TimeoutException as e:
                error: AnalysisError = NetworkError(f"Request timed out: {e!r}")
            except httpx.TransportError as e:
                error = NetworkError(f"Network error: {e!r}")
            else:
                if response.is_success:
                    body = self._decode_body(response)
                    self._emit(on_progress, 75, "Processing AI response...", attempt)
                    latency = int((time.monotonic() - t0) * 1000)
                    logger.info(
                        "Vision API responded %d after %d attempt(s) in %d ms",
                        response.status_code, attempt + 1, latency,
                    )
                    return RawModelResponse(
                        status_code=response.status_code,
                        body=body,
                        attempts=attempt + 1,
                        latency_ms=latency,
                    )

                error = classify_http_status(response.status_code, self._error_body(response))
                if not is_retryable_status(response.status_code):
                    logger.error(
                        "Vision API returned non-retryable status %d: %s",
                        response.status_code, error.message,
                    )
                    raise error

            state.last_error = error
            if attempt + 1 >= total_attempts:
                logger.error(
                    "Vision API failed after %d attempts: %s", total_attempts, error.message
                )
                raise error

            state.next_delay_ms = compute_delay_ms(self._policy, attempt + 1, self._rng)
            logger.warning(
                "Vision API attempt %d/%d failed (%s), retrying in %d ms",
                attempt + 1, total_attempts, error.code.value, state.next_delay_ms,
            )
            await self._sleep(state.next_delay_ms / 1000.0)

        # Unreachable: the loop either returns or raises.
        raise state.last_error or NetworkError("No attempt was made")

    def cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()
            logger.info("Vision API request cancelled")

    async def test_connection(self) -> bool:
        """POST a 10-token text-only request; True on any 2xx."""
        if not self._api_key:
            return False
        request = ChatRequest(
            model=self._model,
            messages=[ChatMessage(role="user", content=[TextPart(text=CONNECTION_TEST_PROMPT)])],
            max_tokens=10,
        )
        try:
            response = await self._get_client().post(
                self._api_url,
                json=request.to_payload(),
                headers=self._headers(),
                timeout=CONNECTION_TEST_TIMEOUT_S,
            )
        except httpx.HTTPError as e:
            logger.warning("Connection test failed: %s", e)
            return False
        if not response.is_success:
            logger.warning("Connection test returned status %d", response.status_code)
        return response.is_success

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # --- Internals ---

    def _build_request(self, image_base64: str, media_type: str) -> ChatRequest:
        return ChatRequest(
            model=self._model,
            messages=[
                ChatMessage(
                    role="user",
                    content=[
                        TextPart(text=self._prompt),
                        ImagePart.from_base64(image_base64, media_type),
                    ],
                )
            ],
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            top_p=self._top_p,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_s)
            self._owns_client = True
        return self._client

    async def _post(
        self, payload: dict[str, Any], token: CancellationToken, timeout: float
    ) -> httpx.Response:
        """POST payload, abandoning the request if token fires first."""
        post = asyncio.ensure_future(
            self._get_client().post(
                self._api_url, json=payload, headers=self._headers(), timeout=timeout
            )
        )
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({post, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not post.done():
                post.cancel()

        if post in done:
            return post.result()
        raise RequestCancelledError()

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Response body is not JSON", details=response.text[:500]
            ) from e

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _emit(
        on_progress: ProgressCallback | None, progress: int, message: str, retry_count: int
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(ProgressEvent(progress=progress, message=message, retry_count=retry_count))
        except Exception as e:
            logger.warning("Progress callback failed: %s", e)
