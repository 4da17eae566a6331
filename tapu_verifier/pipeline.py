"""
Main verification pipeline — the decision policy behind the registration gate.

Flow:
  ┌───────────────┐
  │ Tapu image    │
  └───────┬───────┘
          │
  ┌───────▼───────┐
  │ Authenticity  │──── < 0.80 ───▶ Rejected      (no OCR is run)
  │    oracle     │
  └───────┬───────┘
          │
  ┌───────▼───────┐
  │  Normalizer   │   ← 2x upscale, pink removal, adaptive threshold
  └───────┬───────┘
          │
  ┌───────▼───────┐
  │      OCR      │   ← SPARSE, then one BLOCK retry if short
  └───────┬───────┘     (cannot run ───▶ EngineFailure)
          │
  ┌───────▼───────┐
  │   Extractor   │   ← ordered pattern tables
  └───────┬───────┘
          │ no Ada number
  ┌───────▼───────┐
  │ Fuzzy recovery│──── miss ───▶ Unresolved    (numbers for manual review)
  └───────┬───────┘
          │
  ┌───────▼───────┐
  │  Match score  │──── < 0.90 ───▶ Mismatch
  └───────┬───────┘
          │
       Verified

Design principles:
  - Every outcome is a value. Only the caller's own mistakes raise.
  - Stages run strictly in sequence; blocking work is pushed to a thread.
  - One OCR session per attempt, closed on every exit path.
  - Nothing is shared between attempts: each owns its buffers and result.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from contextlib import closing

from PIL import Image

from .authenticity import AuthenticityOracle, FixedConfidenceOracle, assess_authenticity
from .config import VerifierSettings
from .exceptions import (
    AuthenticityOracleError,
    DocumentVerificationError,
    ImageDecodeError,
    InvalidClaimError,
    OcrEngineError,
)
from .extractor import extract_fields, find_candidate_numbers
from .models import (
    EngineFailure,
    Mismatch,
    Rejected,
    Unresolved,
    VerificationOutcome,
    Verified,
)
from .normalizer import check_pixel_limit, load_document_image, normalize
from .ocr import OcrEngine, TesseractEngine, configure_tesseract, recognize_text
from .recovery import recover_identifier
from .scoring import match_identifiers

logger = logging.getLogger(__name__)

REJECTION_REASON = "not a recognizable Tapu document"

EngineFactory = Callable[[], OcrEngine]


class DocumentVerificationPipeline:
    """Orchestrates one verification per ``verify`` call.

    Usage:
        pipeline = DocumentVerificationPipeline(oracle=my_classifier)
        outcome = await pipeline.verify(image_bytes, claimed_identifier="1234")
        if not outcome.is_verified:
            # registration must be blocked
            print(outcome.message)
    """

    def __init__(
        self,
        oracle: AuthenticityOracle | None = None,
        engine_factory: EngineFactory | None = None,
        settings: VerifierSettings | None = None,
    ):
        self.settings = settings or VerifierSettings()
        if oracle is None:
            logger.warning(
                "No authenticity classifier configured, using fixed confidence %.2f",
                self.settings.fallback_authenticity_confidence,
            )
            oracle = FixedConfidenceOracle(self.settings.fallback_authenticity_confidence)
        self.oracle = oracle
        if engine_factory is None:
            if self.settings.tesseract_cmd:
                configure_tesseract(self.settings.tesseract_cmd)
            engine_factory = functools.partial(
                TesseractEngine, language=self.settings.ocr_language
            )
        self.engine_factory = engine_factory

    async def verify(
        self, image: Image.Image | bytes, claimed_identifier: str
    ) -> VerificationOutcome:
        """Run the full pipeline on a Tapu image.

        Args:
            image: A decoded Pillow image, or the raw uploaded bytes.
            claimed_identifier: The Ada number the user typed.

        Returns:
            Exactly one of Rejected, EngineFailure, Unresolved, Mismatch,
            Verified. Only Verified may unlock registration.

        Raises:
            InvalidClaimError: If ``claimed_identifier`` is blank.
        """
        claimed = claimed_identifier.strip()
        if not claimed:
            raise InvalidClaimError(
                "Enter the Ada number before scanning; the document is "
                "verified against it."
            )

        # ── Step 0: Decode (and refuse oversized images) ────────────
        max_pixels = self.settings.normalizer.max_pixels
        try:
            if isinstance(image, (bytes, bytearray)):
                image = await asyncio.to_thread(load_document_image, bytes(image), max_pixels)
            else:
                check_pixel_limit(image, max_pixels)
        except ImageDecodeError as exc:
            return self._engine_failure(claimed, "decode", exc)

        # ── Step 1: Authenticity gate (before any OCR cost) ─────────
        try:
            confidence = await asyncio.to_thread(assess_authenticity, self.oracle, image)
        except AuthenticityOracleError as exc:
            return self._engine_failure(claimed, "authenticity", exc)

        if confidence < self.settings.authenticity_threshold:
            logger.warning(
                "Authenticity %.3f below %.2f, rejecting without OCR",
                confidence,
                self.settings.authenticity_threshold,
            )
            return Rejected(
                claimed=claimed,
                reason=REJECTION_REASON,
                authenticity_confidence=confidence,
            )

        # ── Step 2: Normalize + OCR ─────────────────────────────────
        try:
            text = await asyncio.to_thread(self._read_text, image)
        except (OcrEngineError, ImageDecodeError) as exc:
            return self._engine_failure(claimed, "ocr", exc)

        # ── Step 3: Extract, recover, score, decide ─────────────────
        return self.decide(text, claimed, confidence)

    def decide(self, text: str, claimed: str, confidence: float) -> VerificationOutcome:
        """Turn OCR text into an outcome for an already-authenticated image."""
        fields = extract_fields(text)
        source = "pattern"
        ada_number = fields.ada_number

        if ada_number is None:
            ada_number = recover_identifier(text, claimed)
            source = "fuzzy"

        if ada_number is None:
            candidates = find_candidate_numbers(text, self.settings.max_candidates)
            logger.warning("Ada number unresolved; candidates: %s", candidates)
            return Unresolved(
                claimed=claimed,
                candidate_numbers=candidates,
                district=fields.district,
                text_sample=text[: self.settings.text_sample_length],
                authenticity_confidence=confidence,
            )

        match = match_identifiers(claimed, ada_number, self.settings.match_threshold)
        logger.info(
            "Ada match score %.3f (claimed=%s, document=%s, via %s)",
            match.score,
            claimed,
            ada_number,
            source,
        )

        if not match.verified:
            return Mismatch(
                claimed=claimed,
                extracted=ada_number,
                score=match.score,
                threshold=match.threshold,
                authenticity_confidence=confidence,
            )

        return Verified(
            claimed=claimed,
            fields=fields.model_copy(update={"ada_number": ada_number}),
            match=match,
            authenticity_confidence=confidence,
            source=source,
        )

    # ─── Blocking Stages ─────────────────────────────────────────────

    def _read_text(self, image: Image.Image) -> str:
        normalized = normalize(image, self.settings.normalizer)
        logger.info(
            "Adaptive threshold %.0f (mean luminance %.0f)",
            normalized.threshold,
            normalized.mean_luminance,
        )
        with closing(self.engine_factory()) as engine:
            attempt = recognize_text(engine, normalized.image, self.settings.min_text_length)
        return attempt.text

    # ─── Failure Mapping ─────────────────────────────────────────────

    @staticmethod
    def _engine_failure(
        claimed: str, stage: str, exc: DocumentVerificationError
    ) -> EngineFailure:
        logger.error("Verification %s stage failed: %s", stage, exc)
        return EngineFailure(claimed=claimed, stage=stage, code=exc.code, reason=str(exc))
