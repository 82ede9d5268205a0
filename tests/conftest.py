from __future__ import annotations

import base64
import io
from typing import List

import numpy as np
import pytest
from langchain_core.messages import AIMessage, BaseMessage
from PIL import Image

from config.settings import get_settings


class RecordingLLM:
    """Chat model stand-in that replays canned answers and records prompts."""

    def __init__(self, responses: List[str]):
        self.responses = list(responses)
        self.calls: List[List[BaseMessage]] = []

    def invoke(self, messages):
        self.calls.append(list(messages))
        text = self.responses.pop(0) if self.responses else "ok"
        return AIMessage(content=text)


class FailingLLM:
    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    def invoke(self, messages):
        self.calls += 1
        raise self.error


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in (
        "GOOGLE_API_KEY",
        "CLASSIFIER_MODEL_PATH",
        "CLASSIFIER_LABELS_PATH",
        "CLASSIFIER_METADATA_URL",
        "TESSERACT_CMD",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def gray_image():
    return Image.new("RGB", (300, 300), (128, 128, 128))


@pytest.fixture
def white_image():
    return Image.new("RGB", (300, 300), (255, 255, 255))


@pytest.fixture
def striped_image():
    """150x150 frame of 2px black/white vertical stripes."""
    pixels = np.zeros((150, 150, 3), dtype=np.uint8)
    for x in range(150):
        if (x // 2) % 2 == 0:
            pixels[:, x, :] = 255
    return Image.fromarray(pixels)


@pytest.fixture
def data_url():
    """Encode a Pillow image the way a browser canvas capture arrives."""

    def encode(image, fmt="PNG"):
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/{fmt.lower()};base64,{encoded}"

    return encode


@pytest.fixture
def recording_llm():
    return RecordingLLM


@pytest.fixture
def failing_llm():
    return FailingLLM
