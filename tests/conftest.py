from __future__ import annotations

import io

import pytest
from PIL import Image

from nutrilens.providers.base import ImagePayload
from nutrilens.providers.prompts import NUTRITION_PROMPT


def png_bytes(size: tuple[int, int] = (4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 120, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def png_data() -> bytes:
    return png_bytes()


@pytest.fixture()
def image_payload(png_data: bytes) -> ImagePayload:
    return ImagePayload.from_bytes(png_data)


@pytest.fixture()
def template_text() -> str:
    """The example answer embedded in the prompt, as a well-behaved model returns it."""
    start = NUTRITION_PROMPT.index("【食物识别】")
    end = NUTRITION_PROMPT.index("【分析要求】")
    return NUTRITION_PROMPT[start:end].strip()


@pytest.fixture(autouse=True)
def _no_api_key_env(monkeypatch):
    monkeypatch.delenv("QWEN_API_KEY", raising=False)
