"""
Image normalization for OCR legibility.

A Tapu is printed over a pink guilloche pattern that defeats naive
thresholding. The normalizer:
  1. Upscales 2x (Lanczos) so small glyphs survive recognition
  2. Derives an adaptive threshold from the mean luminance
  3. Forces reddish background pixels to white
  4. Binarizes everything else: dark text → 0, the rest → 255

Pure function of its input. No disk, no network.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from .config import NormalizerSettings
from .exceptions import ImageDecodeError

# ITU-R BT.601 luma weights
_LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

MAX_PIXELS = NormalizerSettings().max_pixels


@dataclass
class NormalizedImage:
    """Binarized image handed to the OCR engine, then discarded."""

    image: Image.Image  # mode "L", every pixel 0 or 255
    threshold: float
    mean_luminance: float


def load_document_image(data: bytes, max_pixels: int = MAX_PIXELS) -> Image.Image:
    """Decode uploaded bytes (PNG, JPEG, TIFF, ...) into a Pillow image.

    The pixel limit is checked from the header, before any pixel data is
    decompressed.

    Raises:
        ImageDecodeError: If Pillow cannot identify or read the data, or the
            image has more than ``max_pixels`` pixels.
    """
    if not data:
        raise ImageDecodeError("Empty image payload")
    try:
        image = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError(
            f"Could not decode image: {exc}", {"size_bytes": len(data)}
        ) from exc

    check_pixel_limit(image, max_pixels)

    try:
        image.load()
    except (Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError(
            f"Could not decode image: {exc}", {"size_bytes": len(data)}
        ) from exc
    return image


def check_pixel_limit(image: Image.Image, max_pixels: int = MAX_PIXELS) -> None:
    """Raise ImageDecodeError when ``image`` is too large to normalize."""
    width, height = image.size
    if width * height > max_pixels:
        raise ImageDecodeError(
            f"Image is {width}x{height} pixels, over the limit of {max_pixels}",
            {"size": [width, height], "max_pixels": max_pixels},
        )


def compute_threshold(mean_luminance: float, settings: NormalizerSettings) -> float:
    """clamp(mean - offset, floor, ceiling)"""
    return float(
        min(
            max(mean_luminance - settings.threshold_offset, settings.threshold_floor),
            settings.threshold_ceiling,
        )
    )


def normalize(
    image: Image.Image, settings: NormalizerSettings | None = None
) -> NormalizedImage:
    """Produce a binarized, upscaled copy of ``image``.

    The caller's image is never modified.
    """
    settings = settings or NormalizerSettings()

    width, height = image.size
    if width == 0 or height == 0:
        raise ImageDecodeError("Image has no pixels", {"size": [width, height]})
    check_pixel_limit(image, settings.max_pixels)

    rgb = image.convert("RGB")
    upscaled = rgb.resize(
        (width * settings.scale, height * settings.scale),
        resample=Image.Resampling.LANCZOS,
    )

    pixels = np.asarray(upscaled, dtype=np.float64)
    red, green, blue = pixels[..., 0], pixels[..., 1], pixels[..., 2]
    luminance = pixels @ _LUMA_WEIGHTS

    mean_luminance = float(luminance.mean())
    threshold = compute_threshold(mean_luminance, settings)

    accent = (
        (red > settings.accent_min_red)
        & (green > settings.accent_min_green)
        & (blue > settings.accent_min_blue)
        & (red > green)
        & (red > blue)
    )
    white = accent | (luminance >= threshold)
    binary = np.where(white, 255, 0).astype(np.uint8)

    return NormalizedImage(
        image=Image.fromarray(binary),
        threshold=threshold,
        mean_luminance=mean_luminance,
    )
