"""Pytest configuration — project root importable, OCR and classifier faked."""

import sys
from pathlib import Path

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent))

from tapu_verifier.authenticity import AuthenticityOracle  # noqa: E402
from tapu_verifier.exceptions import OcrEngineError  # noqa: E402
from tapu_verifier.models import OcrAttempt, PageSegMode  # noqa: E402
from tapu_verifier.ocr import OcrEngine  # noqa: E402


class FakeOcrEngine(OcrEngine):
    """Scripted OCR session: returns ``texts[mode]`` and records every call."""

    name = "fake"

    def __init__(self, texts=None, error=None):
        self.texts = texts or {}
        self.error = error
        self.calls: list[PageSegMode] = []
        self.images: list[Image.Image] = []
        self.closed = False

    def recognize(self, image, mode):
        self.calls.append(mode)
        self.images.append(image)
        if self.error is not None:
            raise OcrEngineError(self.error)
        return OcrAttempt(mode=mode, text=self.texts.get(mode, ""))

    def close(self):
        self.closed = True


class FakeOcrFactory:
    """Engine factory handing out FakeOcrEngine sessions, keeping them for asserts."""

    def __init__(self, text="", block_text=None, error=None):
        self.text = text
        self.block_text = text if block_text is None else block_text
        self.error = error
        self.engines: list[FakeOcrEngine] = []

    def __call__(self):
        engine = FakeOcrEngine(
            {PageSegMode.SPARSE: self.text, PageSegMode.BLOCK: self.block_text},
            error=self.error,
        )
        self.engines.append(engine)
        return engine

    @property
    def recognize_calls(self) -> int:
        return sum(len(engine.calls) for engine in self.engines)


class StubOracle(AuthenticityOracle):
    """Returns a fixed confidence and counts invocations."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    def confidence(self, pixels):
        self.calls += 1
        return self.value


@pytest.fixture
def tapu_image() -> Image.Image:
    """A small white page with a dark text block on a pink band."""
    image = Image.new("RGB", (40, 30), (255, 255, 255))
    for x in range(40):
        for y in range(0, 8):
            image.putpixel((x, y), (230, 150, 160))
    for x in range(5, 20):
        for y in range(12, 20):
            image.putpixel((x, y), (10, 10, 10))
    return image
