# src/image/base_preprocessor.py
"""Abstract image preprocessor interface.

A preprocessor turns an image reference (path or URI) into the base64
payload the vision client sends. Resizing and compression belong to
concrete implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel


class ProcessedImage(BaseModel):
    """Image payload ready for the vision endpoint."""

    uri: str
    base64: str
    size: int
    format: str
    hash: str
    media_type: str = "image/jpeg"


class BaseImagePreprocessor(ABC):
    """Unified interface for image preprocessors."""

    @abstractmethod
    async def process(self, image_ref: str) -> ProcessedImage:
        """Load and encode the image behind image_ref.

        Raises:
            InvalidImageError: If the image is missing, unsupported or too large.
        """

    @property
    @abstractmethod
    def supported_formats(self) -> list[str]:
        """Lower-case extensions without dots (e.g. ['jpg', 'png'])."""
