# src/core/errors.py
"""Error taxonomy for the analysis pipeline.

Every terminal failure carries a machine-readable ``code``, an internal
``message`` and a short ``user_message`` for display, so presentation layers
never interpret codes themselves.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorCode(str, Enum):
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    AUTH_ERROR = "AUTH_ERROR"
    API_TIMEOUT = "API_TIMEOUT"
    SERVER_ERROR = "SERVER_ERROR"
    INVALID_IMAGE = "INVALID_IMAGE"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    CANCELLED = "CANCELLED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NETWORK_ERROR: "Unable to connect. Please check your internet connection.",
    ErrorCode.RATE_LIMIT: "Too many requests. Please wait a moment and try again.",
    ErrorCode.AUTH_ERROR: "Authentication failed. Please check your API key.",
    ErrorCode.API_TIMEOUT: "Analysis is taking longer than expected. Please try again.",
    ErrorCode.SERVER_ERROR: "Server error occurred. Please try again later.",
    ErrorCode.INVALID_IMAGE: "Please upload a clear muscle photo in JPEG or PNG format.",
    ErrorCode.INVALID_RESPONSE: "Unable to analyze the image. Please try another photo.",
    ErrorCode.CANCELLED: "Analysis was cancelled.",
    ErrorCode.UNKNOWN_ERROR: "An unexpected error occurred. Please try again.",
}


class ErrorInfo(BaseModel):
    """Serializable view of an AnalysisError, safe to hand to a UI layer."""

    code: ErrorCode
    message: str
    retryable: bool
    user_message: str
    status_code: int | None = None
    details: Any = None


class AnalysisError(Exception):
    """Base class for all classified analysis failures."""

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        user_message: str | None = None,
        status_code: int | None = None,
        details: Any = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or USER_MESSAGES[self.code]
        self.status_code = status_code
        self.details = details
        if retryable is not None:
            self.retryable = retryable

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(
            code=self.code,
            message=self.message,
            retryable=self.retryable,
            user_message=self.user_message,
            status_code=self.status_code,
            details=self.details,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value}, message={self.message!r})"


class NetworkError(AnalysisError):
    """No response reached us (connection failure, DNS, read timeout)."""

    code = ErrorCode.NETWORK_ERROR
    retryable = True


class RateLimitError(AnalysisError):
    code = ErrorCode.RATE_LIMIT
    retryable = True


class AuthError(AnalysisError):
    """Bad or missing credential. Never retried."""

    code = ErrorCode.AUTH_ERROR


class APITimeoutError(AnalysisError):
    code = ErrorCode.API_TIMEOUT
    retryable = True


class ServerError(AnalysisError):
    code = ErrorCode.SERVER_ERROR
    retryable = True


class InvalidImageError(AnalysisError):
    code = ErrorCode.INVALID_IMAGE


class MalformedResponseError(AnalysisError):
    """Model output unparseable or failing schema validation after repair."""

    code = ErrorCode.INVALID_RESPONSE


class RequestCancelledError(AnalysisError):
    code = ErrorCode.CANCELLED

    def __init__(self, message: str = "Request cancelled by user", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class UnknownAPIError(AnalysisError):
    code = ErrorCode.UNKNOWN_ERROR


def classify_http_status(status: int, body: Any = None) -> AnalysisError:
    """Build the classified error for an HTTP error response.

    401/403 -> AuthError, 429 -> RateLimitError, 408/504 -> APITimeoutError,
    other >= 500 -> ServerError, anything else -> UnknownAPIError.
    """
    if status == 401:
        return AuthError(
            "Authentication failed - invalid API key",
            user_message=(
                "Authentication Error: Invalid or missing API key. "
                "Set API_KEY in your environment and restart."
            ),
            status_code=status,
            details=body,
        )
    if status == 403:
        return AuthError(
            "Forbidden - insufficient permissions",
            user_message="Permission Error: Your API key does not have sufficient permissions.",
            status_code=status,
            details=body,
        )
    if status == 429:
        return RateLimitError("Rate limit exceeded", status_code=status, details=body)
    if status in (408, 504):
        return APITimeoutError(
            "Request timeout", status_code=status, details=body, retryable=status >= 500
        )
    if status >= 500:
        return ServerError(
            f"Server error: {status}",
            user_message=(
                f"Server Error ({status}): The AI service is temporarily unavailable. "
                "Please try again later."
            ),
            status_code=status,
            details=body,
        )
    if status == 404:
        return UnknownAPIError(
            "Model not found or inaccessible",
            user_message=(
                "Model Error: The requested model was not found or is inaccessible. "
                "Verify VISION_MODEL and your API key permissions."
            ),
            status_code=status,
            details=body,
        )
    if status == 400:
        return UnknownAPIError(
            f"Bad request: {body}",
            user_message="Request Error: Invalid request format. Please try with a different image.",
            status_code=status,
            details=body,
        )
    return UnknownAPIError(
        f"HTTP {status}: {body}",
        user_message=f"Unexpected Error ({status}): Please try again or contact support.",
        status_code=status,
        details=body,
    )
