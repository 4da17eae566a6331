"""
Tests for the Image Normalizer — pure pixel arithmetic, no OCR involved.
"""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from tapu_verifier.config import NormalizerSettings
from tapu_verifier.exceptions import ImageDecodeError
from tapu_verifier.normalizer import compute_threshold, load_document_image, normalize


def _values(image: Image.Image) -> set[int]:
    return set(np.unique(np.asarray(image)).tolist())


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


# ═══════════════════════════════════════════════════════════════════════
# ADAPTIVE THRESHOLD
# ═══════════════════════════════════════════════════════════════════════


class TestThreshold:
    def test_mid_gray_subtracts_offset(self):
        assert compute_threshold(128.0, NormalizerSettings()) == pytest.approx(108.0)

    def test_dark_page_clamped_to_floor(self):
        assert compute_threshold(50.0, NormalizerSettings()) == pytest.approx(100.0)

    def test_bright_page_clamped_to_ceiling(self):
        assert compute_threshold(250.0, NormalizerSettings()) == pytest.approx(180.0)

    def test_uses_configured_values(self):
        settings = NormalizerSettings(threshold_offset=10, threshold_ceiling=150)
        assert compute_threshold(200.0, settings) == pytest.approx(150.0)
        assert compute_threshold(130.0, settings) == pytest.approx(120.0)

    @pytest.mark.parametrize(
        ("gray", "expected"), [(128, 108.0), (50, 100.0), (250, 180.0)]
    )
    def test_normalize_reports_threshold(self, gray, expected):
        image = Image.new("RGB", (6, 6), (gray, gray, gray))
        result = normalize(image)
        assert result.mean_luminance == pytest.approx(gray, abs=0.5)
        assert result.threshold == pytest.approx(expected, abs=0.5)


# ═══════════════════════════════════════════════════════════════════════
# BINARIZATION
# ═══════════════════════════════════════════════════════════════════════


class TestBinarization:
    def test_output_is_binary(self, tapu_image):
        assert _values(normalize(tapu_image).image) <= {0, 255}

    def test_noise_output_is_binary(self):
        rng = np.random.default_rng(7)
        noise = Image.fromarray(rng.integers(0, 256, (25, 31, 3), dtype=np.uint8))
        assert _values(normalize(noise).image) <= {0, 255}

    def test_output_is_upscaled_twice(self, tapu_image):
        result = normalize(tapu_image)
        assert result.image.size == (80, 60)
        assert result.image.mode == "L"

    def test_custom_scale(self, tapu_image):
        result = normalize(tapu_image, NormalizerSettings(scale=1))
        assert result.image.size == tapu_image.size

    def test_dark_text_becomes_black(self, tapu_image):
        assert normalize(tapu_image).image.getpixel((24, 32)) == 0

    def test_white_page_stays_white(self, tapu_image):
        assert normalize(tapu_image).image.getpixel((70, 50)) == 255

    def test_pink_background_is_forced_white(self, tapu_image):
        """Pink luminance (~175) is under the 180 threshold; only the accent rule whitens it."""
        result = normalize(tapu_image)
        assert result.threshold == pytest.approx(180.0)
        assert result.image.getpixel((40, 6)) == 255

    def test_same_pink_is_black_without_accent_rule(self, tapu_image):
        settings = NormalizerSettings(accent_min_red=255)
        assert normalize(tapu_image, settings).image.getpixel((40, 6)) == 0

    def test_grayscale_and_rgba_inputs(self):
        gray = Image.new("L", (5, 5), 20)
        rgba = Image.new("RGBA", (5, 5), (20, 20, 20, 255))
        assert _values(normalize(gray).image) == {0}
        assert _values(normalize(rgba).image) == {0}

    def test_input_is_not_modified(self, tapu_image):
        before = tapu_image.tobytes()
        normalize(tapu_image)
        assert tapu_image.tobytes() == before
        assert tapu_image.size == (40, 30)

    def test_deterministic(self, tapu_image):
        assert normalize(tapu_image).image.tobytes() == normalize(tapu_image).image.tobytes()


# ═══════════════════════════════════════════════════════════════════════
# DECODING
# ═══════════════════════════════════════════════════════════════════════


class TestLoadDocumentImage:
    def test_png_round_trip(self, tapu_image):
        image = load_document_image(_png_bytes(tapu_image))
        assert image.size == (40, 30)

    def test_garbage_raises(self):
        with pytest.raises(ImageDecodeError) as exc_info:
            load_document_image(b"definitely not an image")
        assert exc_info.value.code == "IMAGE_DECODE_FAILED"

    def test_empty_raises(self):
        with pytest.raises(ImageDecodeError, match="Empty"):
            load_document_image(b"")

    def test_over_pixel_limit_raises(self, tapu_image):
        with pytest.raises(ImageDecodeError) as exc_info:
            load_document_image(_png_bytes(tapu_image), max_pixels=1000)
        assert exc_info.value.details == {"size": [40, 30], "max_pixels": 1000}

    def test_exactly_at_pixel_limit_decodes(self, tapu_image):
        assert load_document_image(_png_bytes(tapu_image), max_pixels=1200).size == (40, 30)

    def test_decompression_bomb_is_a_decode_error(self, tapu_image, monkeypatch):
        """Pillow's own bomb guard must surface as ImageDecodeError, not escape."""
        data = _png_bytes(tapu_image)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(ImageDecodeError) as exc_info:
            load_document_image(data)
        assert isinstance(exc_info.value.__cause__, Image.DecompressionBombError)

    def test_normalize_refuses_oversized_image(self, tapu_image):
        with pytest.raises(ImageDecodeError):
            normalize(tapu_image, NormalizerSettings(max_pixels=1000))
