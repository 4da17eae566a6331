"""
Authenticity oracle boundary.

Any classifier that maps decoded RGB pixels to a confidence in [0, 1] that
the image is a genuine Tapu satisfies the contract. The pipeline calls it
before any OCR cost is paid.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod

import numpy as np
from PIL import Image

from .exceptions import AuthenticityOracleError

logger = logging.getLogger(__name__)


class AuthenticityOracle(ABC):
    """Pluggable 'is this a real Tapu?' classifier."""

    @abstractmethod
    def confidence(self, pixels: np.ndarray) -> float:
        """Return P(genuine) for an H x W x 3 uint8 RGB array."""


class FixedConfidenceOracle(AuthenticityOracle):
    """Stand-in returning a constant. Wire a trained model in production."""

    def __init__(self, value: float = 0.96):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {value}")
        self.value = value

    def confidence(self, pixels: np.ndarray) -> float:
        return self.value


def assess_authenticity(oracle: AuthenticityOracle, image: Image.Image) -> float:
    """Run the oracle on ``image`` and enforce its output contract.

    Raises:
        AuthenticityOracleError: If the oracle raises or returns anything
            other than a finite number within [0, 1].
    """
    pixels = np.asarray(image.convert("RGB"), dtype=np.uint8)
    try:
        raw = oracle.confidence(pixels)
    except AuthenticityOracleError:
        raise
    except Exception as exc:
        raise AuthenticityOracleError(
            f"Authenticity classifier failed: {exc}",
            {"oracle": type(oracle).__name__},
        ) from exc

    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise AuthenticityOracleError(
            f"Authenticity classifier returned a non-number: {raw!r}"
        ) from exc

    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise AuthenticityOracleError(
            f"Authenticity confidence {value} outside [0, 1]",
            {"oracle": type(oracle).__name__, "value": value},
        )

    logger.info("Authenticity confidence: %.3f", value)
    return value
