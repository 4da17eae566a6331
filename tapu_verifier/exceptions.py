"""
Custom exception hierarchy for document verification.

Only things that could NOT run are exceptions. A rejected, mismatched or
unresolved document is an ordinary outcome, returned by the pipeline.
"""

from __future__ import annotations


class DocumentVerificationError(Exception):
    """Base exception for all verification failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ImageDecodeError(DocumentVerificationError):
    """The uploaded bytes are not a decodable raster image."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("IMAGE_DECODE_FAILED", message, details)


class OcrEngineError(DocumentVerificationError):
    """The OCR engine could not process the image at all."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("OCR_ENGINE_FAILED", message, details)


class AuthenticityOracleError(DocumentVerificationError):
    """The authenticity classifier failed or broke its [0, 1] contract."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("AUTHENTICITY_ORACLE_FAILED", message, details)


class InvalidClaimError(DocumentVerificationError):
    """No Ada number was supplied to verify against."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("CLAIM_MISSING", message, details)


class RegistrationBlockedError(DocumentVerificationError):
    """A registration was attempted without a verified document."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("REGISTRATION_BLOCKED", message, details)
