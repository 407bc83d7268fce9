# tests/unit/cache/test_fingerprint.py
"""Tests for cache/fingerprint.py: reference and content fingerprints."""

from __future__ import annotations

import pytest

from muscleai.cache.fingerprint import (
    fingerprint_content,
    fingerprint_file,
    fingerprint_reference,
)


class TestFingerprintReference:
    @pytest.mark.parametrize("ref,expected", [
        ("", "0"),
        ("a", "2p"),        # 97
        ("ab", "2e9"),      # 97*31 + 98 = 3105
        ("abc", "22ci"),    # 3105*31 + 99 = 96354
    ])
    def test_known_values(self, ref, expected):
        assert fingerprint_reference(ref) == expected

    def test_deterministic(self):
        ref = "file:///var/mobile/Containers/Data/photo-1234.jpg"
        assert fingerprint_reference(ref) == fingerprint_reference(ref)

    def test_wraps_to_32_bits(self):
        digest = fingerprint_reference("x" * 500)
        assert int(digest, 36) <= 2**31

    def test_different_refs_differ(self):
        assert fingerprint_reference("/a/front.jpg") != fingerprint_reference("/a/back.jpg")

    def test_non_bmp_characters(self):
        # Astral characters hash as two UTF-16 code units.
        # 0xD83D*31 + 0xDCAA = 1772557
        assert fingerprint_reference("\U0001F4AA") == "11zpp"


class TestFingerprintContent:
    def test_hex_digest_length(self):
        assert len(fingerprint_content(b"abc")) == 16

    def test_same_bytes_same_digest(self, tmp_path):
        a = tmp_path / "a.jpg"
        b = tmp_path / "b.jpg"
        a.write_bytes(b"same image")
        b.write_bytes(b"same image")
        assert fingerprint_file(a) == fingerprint_file(b)

    def test_different_bytes_differ(self):
        assert fingerprint_content(b"one") != fingerprint_content(b"two")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            fingerprint_file(tmp_path / "missing.jpg")
