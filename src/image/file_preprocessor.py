# src/image/file_preprocessor.py
"""Preprocessor for images stored on the local filesystem.

Validates extension, existence and size, then base64-encodes the bytes
unchanged. It does not resize or recompress.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path

from muscleai.cache.fingerprint import fingerprint_content
from muscleai.core.errors import InvalidImageError
from muscleai.image.base_preprocessor import BaseImagePreprocessor, ProcessedImage

logger = logging.getLogger(__name__)

# Mapping of extensions to MIME types
_MIME_MAP: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

_MAGIC: dict[str, tuple[bytes, ...]] = {
    "image/jpeg": (b"\xff\xd8\xff",),
    "image/png": (b"\x89PNG\r\n\x1a\n",),
    "image/webp": (b"RIFF",),
}


class FileImagePreprocessor(BaseImagePreprocessor):
    """Load, validate and encode an image file.

    Args:
        supported_formats: Accepted extensions (lower-case, no dot).
        max_bytes: Largest accepted file size.
    """

    def __init__(
        self,
        supported_formats: list[str] | None = None,
        max_bytes: int = 5 * 1024 * 1024,
    ) -> None:
        self._formats = [f.lower().lstrip(".") for f in (supported_formats or ["jpg", "jpeg", "png"])]
        self._max_bytes = max_bytes

    @property
    def supported_formats(self) -> list[str]:
        return list(self._formats)

    async def process(self, image_ref: str) -> ProcessedImage:
        path = Path(image_ref).expanduser()
        fmt = path.suffix.lower().lstrip(".")
        if fmt not in self._formats:
            raise InvalidImageError(
                f"Unsupported image format {fmt or '<none>'!r}",
                user_message=(
                    "Unsupported image format. Please use: " + ", ".join(self._formats)
                ),
            )
        if not path.is_file():
            raise InvalidImageError(f"Image file not found: {path}")

        try:
            data = path.read_bytes()
        except OSError as e:
            raise InvalidImageError(f"Failed to read image {path}: {e}") from e

        if not data:
            raise InvalidImageError(f"Image file is empty: {path}")
        if len(data) > self._max_bytes:
            raise InvalidImageError(
                f"Image is {len(data)} bytes, limit is {self._max_bytes}",
                user_message="Image is too large. Please choose a smaller photo.",
                details={"size": len(data), "max_bytes": self._max_bytes},
            )

        media_type = _MIME_MAP.get(fmt, "image/jpeg")
        if not data.startswith(_MAGIC.get(media_type, (b"",))):
            logger.warning("Image %s content does not look like %s", path, media_type)

        logger.debug("Processed image %s (%d bytes, %s)", path, len(data), media_type)
        return ProcessedImage(
            uri=str(path),
            base64=base64.b64encode(data).decode("ascii"),
            size=len(data),
            format=fmt,
            hash=fingerprint_content(data),
            media_type=media_type,
        )
