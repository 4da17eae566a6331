"""
Tunable constants for the verification pipeline.

Every threshold lives here, never inline, so a new document type can be
recalibrated through the environment without touching code:

    TAPU_MATCH_THRESHOLD=0.95
    TAPU_NORMALIZER_THRESHOLD_CEILING=170
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "TAPU_"


class NormalizerSettings(BaseModel):
    """Binarization knobs for the Image Normalizer."""

    model_config = {"frozen": True}

    scale: int = Field(default=2, ge=1, le=8)
    # Decoded source pixels; the upscale multiplies this by scale**2
    max_pixels: int = Field(default=40_000_000, ge=1)
    threshold_offset: float = 20.0  # Subtracted from mean luminance
    threshold_floor: float = Field(default=100.0, ge=0, le=255)
    threshold_ceiling: float = Field(default=180.0, ge=0, le=255)

    # Reddish background accent (the pink guilloche of a Tapu)
    accent_min_red: int = Field(default=150, ge=0, le=255)
    accent_min_green: int = Field(default=100, ge=0, le=255)
    accent_min_blue: int = Field(default=100, ge=0, le=255)


class VerifierSettings(BaseModel):
    """Decision thresholds and OCR wiring."""

    model_config = {"frozen": True}

    authenticity_threshold: float = Field(default=0.80, ge=0.0, le=1.0)
    match_threshold: float = Field(default=0.90, ge=0.0, le=1.0)
    min_text_length: int = Field(default=100, ge=0)
    max_candidates: int = Field(default=10, ge=1)
    text_sample_length: int = Field(default=200, ge=0)

    ocr_language: str = "tur"
    tesseract_cmd: Optional[str] = None

    # Used only when no real classifier is wired in
    fallback_authenticity_confidence: float = Field(default=0.96, ge=0.0, le=1.0)

    normalizer: NormalizerSettings = Field(default_factory=NormalizerSettings)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> VerifierSettings:
        """Build settings from ``TAPU_*`` environment variables.

        Unset variables keep their defaults; pydantic coerces and validates
        the string values.
        """
        env = os.environ if environ is None else environ
        overrides = _env_overrides(cls, ENV_PREFIX, env, skip={"normalizer"})
        normalizer = _env_overrides(
            NormalizerSettings, f"{ENV_PREFIX}NORMALIZER_", env
        )
        return cls(**overrides, normalizer=NormalizerSettings(**normalizer))


def _env_overrides(
    model: type[BaseModel],
    prefix: str,
    env: Mapping[str, str],
    skip: set[str] | None = None,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in model.model_fields:
        if skip and name in skip:
            continue
        key = f"{prefix}{name.upper()}"
        if key in env:
            overrides[name] = env[key]
    return overrides
