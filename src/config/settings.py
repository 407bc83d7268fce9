# src/config/settings.py
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings. Every field
maps to the upper-cased environment variable of the same name
(``api_key`` -> ``API_KEY``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === VISION API ===
    vision_provider: str = "openai-compatible"
    api_base_url: str = "https://api.fireworks.ai/inference/v1/chat/completions"
    api_key: str = ""
    vision_model: str = "accounts/fireworks/models/llama-v3p2-11b-vision-instruct"
    request_timeout_ms: int = 60_000
    max_tokens: int = 2500
    temperature: float = 0.1
    top_p: float = 0.9

    # === Retry / backoff ===
    max_retries: int = 3
    retry_base_delay_ms: int = 1000
    backoff_factor: float = 2.0
    retry_max_delay_ms: int = 30_000
    retry_jitter_ms: int = 1000

    # === Image payload ===
    image_max_bytes: int = 5 * 1024 * 1024
    image_supported_formats: str = "jpg,jpeg,png"

    # === Cache ===
    cache_enabled: bool = True
    cache_ttl_ms: int = 0  # 0 = never expires
    cache_max_entries: int = 50
    cache_eviction_ratio: float = 0.2
    cache_key_prefix: str = "muscle_ai_cache_"
    cache_key_mode: Literal["reference", "content"] = "reference"

    # === Request queue ===
    queue_enabled: bool = True
    queue_storage_key: str = "muscle_ai_request_queue"
    queue_max_attempts: int = 3
    queue_request_estimate_ms: int = 30_000

    # === Durable key-value storage ===
    storage_backend: Literal["memory", "json", "sqlite", "redis"] = "json"
    storage_root: Path = Path("~/.muscleai/storage")
    storage_redis_url: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator(
        "request_timeout_ms",
        "max_retries",
        "retry_base_delay_ms",
        "retry_max_delay_ms",
        "retry_jitter_ms",
        "cache_ttl_ms",
    )
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, v: float) -> float:  # noqa: N805
        if v < 1.0:
            raise ValueError("backoff_factor must be >= 1")
        return v

    @field_validator("cache_eviction_ratio")
    @classmethod
    def validate_eviction_ratio(cls, v: float) -> float:  # noqa: N805
        if not 0.0 < v <= 1.0:
            raise ValueError("cache_eviction_ratio must be in (0, 1]")
        return v

    @field_validator("cache_max_entries", "queue_max_attempts", "image_max_bytes")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.storage_backend == "redis" and not self.storage_redis_url:
            errors.append("STORAGE_BACKEND=redis requires STORAGE_REDIS_URL")

        if self.retry_max_delay_ms < self.retry_base_delay_ms:
            errors.append("RETRY_MAX_DELAY_MS must be >= RETRY_BASE_DELAY_MS")

        if not self.image_supported_formats_list:
            errors.append("IMAGE_SUPPORTED_FORMATS must list at least one format")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def image_supported_formats_list(self) -> list[str]:
        """Parse comma-separated image formats (lower-cased, no dots)."""
        return [
            f.strip().lower().lstrip(".")
            for f in self.image_supported_formats.split(",")
            if f.strip()
        ]

    @property
    def request_timeout_s(self) -> float:
        return self.request_timeout_ms / 1000.0


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or one-off runs).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
