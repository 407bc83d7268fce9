# tests/unit/llm/test_unit_base_client.py
"""Tests for llm/base_client.py: BaseVisionClient ABC is not instantiable."""

from __future__ import annotations

import pytest

from muscleai.llm.base_client import BaseVisionClient


class TestBaseVisionClient:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseVisionClient()  # type: ignore[abstract]

    def test_has_required_methods(self):
        assert hasattr(BaseVisionClient, "analyze")
        assert hasattr(BaseVisionClient, "cancel")
        assert hasattr(BaseVisionClient, "test_connection")
        assert hasattr(BaseVisionClient, "provider_name")

    @pytest.mark.asyncio
    async def test_default_aclose_is_noop(self):
        class Stub(BaseVisionClient):
            async def analyze(self, image_base64, on_progress=None, media_type="image/jpeg"):
                raise NotImplementedError

            def cancel(self):
                pass

            async def test_connection(self):
                return True

            @property
            def provider_name(self):
                return "stub"

        await Stub().aclose()
