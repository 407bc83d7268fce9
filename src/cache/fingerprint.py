# src/cache/fingerprint.py
"""Image fingerprints used to key the response cache.

Two levels are available:
  - reference: 32-bit rolling hash of the image reference string. Keys match
    the ones written by the mobile client, so existing caches stay readable.
  - content: BLAKE2b digest of the image bytes. Stable across re-picks of the
    same photo, immune to path reuse.

Both are fast and non-cryptographic in intent; collisions only cost a
spurious cache hit.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def fingerprint_reference(image_ref: str) -> str:
    """Hash the reference string: ``h = h*31 + code_unit`` in signed 32-bit, |h| in base 36."""
    h = 0
    for code_unit in _utf16_code_units(image_ref):
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


def fingerprint_content(data: bytes) -> str:
    """Hash the image bytes (8-byte BLAKE2b, hex)."""
    return hashlib.blake2b(data, digest_size=8).hexdigest()


def fingerprint_file(image_ref: str | Path) -> str:
    """Content fingerprint of a file on disk."""
    return fingerprint_content(Path(image_ref).expanduser().read_bytes())


def _utf16_code_units(text: str) -> list[int]:
    """UTF-16 code units, matching JavaScript's charCodeAt over the string."""
    encoded = text.encode("utf-16-le")
    return [int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2)]


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))
