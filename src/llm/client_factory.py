# src/llm/client_factory.py
"""Factory: instantiate the vision client for the configured provider."""

from __future__ import annotations

import importlib
import logging

from muscleai.config.settings import Settings
from muscleai.llm.base_client import BaseVisionClient
from muscleai.llm.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Registry of provider name -> client class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "openai-compatible": "muscleai.llm.vision_client.VisionAPIClient",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def retry_policy_from_settings(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.max_retries,
        base_delay_ms=settings.retry_base_delay_ms,
        backoff_factor=settings.backoff_factor,
        max_delay_ms=settings.retry_max_delay_ms,
        jitter_ms=settings.retry_jitter_ms,
    )


def create_vision_client(
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseVisionClient:
    """Instantiate the vision client named by ``settings.vision_provider``.

    Args:
        settings: Application settings (endpoint, key, model, retry policy).
        **kwargs: Extra constructor arguments (http_client, sleep, rng).

    Returns:
        Configured BaseVisionClient instance.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    settings = settings or Settings()
    provider = settings.vision_provider
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported vision provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    client_cls = _import_class(_PROVIDER_REGISTRY[provider])
    init_kwargs: dict[str, object] = {
        "api_url": settings.api_base_url,
        "api_key": settings.api_key,
        "model": settings.vision_model,
        "timeout_ms": settings.request_timeout_ms,
        "retry_policy": retry_policy_from_settings(settings),
        "max_tokens": settings.max_tokens,
        "temperature": settings.temperature,
        "top_p": settings.top_p,
    }
    init_kwargs.update(kwargs)

    logger.debug("Creating vision client: provider=%s, model=%s", provider, settings.vision_model)
    return client_cls(**init_kwargs)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom client implementing BaseVisionClient."""
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered vision provider: %s -> %s", name, class_path)


def _import_class(class_path: str) -> type:
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
