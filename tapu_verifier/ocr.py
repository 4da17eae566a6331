"""
OCR boundary: the engine interface and the invocation policy around it.

The pipeline never talks to Tesseract directly. It opens one engine session
per attempt, applies the mode-switch retry below, and closes the session on
every exit path.

Retry policy:
  - First pass with SPARSE (tables, scattered labels)
  - If fewer than ``min_length`` characters came back, ONE pass with BLOCK
  - The second result is final, however short; we degrade, we don't loop
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict

import pytesseract
from PIL import Image

from .exceptions import OcrEngineError
from .models import OcrAttempt, PageSegMode

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 100


class OcrEngine(ABC):
    """One OCR session. Use as a context manager or call ``close()``."""

    name = "abstract"

    @abstractmethod
    def recognize(self, image: Image.Image, mode: PageSegMode) -> OcrAttempt:
        """Read text from ``image``.

        Raises:
            OcrEngineError: If the engine cannot process the image at all.
        """

    def close(self) -> None:
        """Release the session's resources. Safe to call twice."""

    def __enter__(self) -> OcrEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class TesseractEngine(OcrEngine):
    """Tesseract via pytesseract, one ``image_to_data`` call per attempt."""

    name = "tesseract"

    def __init__(
        self,
        language: str = "tur",
        timeout: float = 0,
    ):
        self.language = language
        self.timeout = timeout
        self._closed = False

    def recognize(self, image: Image.Image, mode: PageSegMode) -> OcrAttempt:
        if self._closed:
            raise OcrEngineError("OCR session already closed")

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=f"--psm {int(mode)}",
                output_type=pytesseract.Output.DICT,
                timeout=self.timeout,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as exc:
            raise OcrEngineError(
                f"Tesseract failed: {exc}",
                {"mode": mode.name, "language": self.language},
            ) from exc

        text, confidence = _assemble_text(data)
        return OcrAttempt(mode=mode, text=text, confidence=confidence)

    def close(self) -> None:
        self._closed = True


def configure_tesseract(tesseract_cmd: str) -> None:
    """Point pytesseract at a Tesseract binary.

    pytesseract keeps the binary path in a module global, so this is
    process-wide configuration: call it once at startup, never per session.
    """
    logger.info("Using Tesseract binary at %s", tesseract_cmd)
    pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


def _assemble_text(data: dict[str, list]) -> tuple[str, float | None]:
    """Rebuild line-broken text and a mean word confidence from TSV data."""
    lines: dict[tuple[int, int, int], list[str]] = defaultdict(list)
    confidences: list[float] = []

    for idx, word in enumerate(data.get("text", [])):
        word = str(word).strip()
        if not word:
            continue
        key = (data["block_num"][idx], data["par_num"][idx], data["line_num"][idx])
        lines[key].append(word)

        conf = float(data["conf"][idx])
        # Tesseract reports -1 for non-word boxes and 0..100 otherwise
        if conf >= 0:
            confidences.append(min(conf, 100.0) / 100.0)

    text = "\n".join(" ".join(words) for words in lines.values())
    confidence = sum(confidences) / len(confidences) if confidences else None
    return text, confidence


def recognize_text(
    engine: OcrEngine, image: Image.Image, min_length: int = MIN_TEXT_LENGTH
) -> OcrAttempt:
    """Run OCR with the sparse-then-block retry policy.

    Returns:
        The retained attempt: the sparse pass if it was long enough,
        otherwise the block pass.
    """
    attempt = engine.recognize(image, PageSegMode.SPARSE)
    logger.info("OCR %s pass read %d characters", attempt.mode.name, attempt.length)

    if attempt.length < min_length:
        logger.warning(
            "OCR %s pass under %d characters, retrying with %s",
            attempt.mode.name,
            min_length,
            PageSegMode.BLOCK.name,
        )
        attempt = engine.recognize(image, PageSegMode.BLOCK)
        logger.info("OCR %s pass read %d characters", attempt.mode.name, attempt.length)

    return attempt
