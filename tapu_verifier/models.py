"""
Pydantic models for verification data — strict typing as our first line of defense.

Every entity here lives for exactly one verification attempt. The only value
that outlives an attempt is the user's claimed Ada number, which belongs to
the caller's form and is read-only to the pipeline.
"""

from __future__ import annotations

from decimal import Decimal
from enum import IntEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field


# ─── OCR ────────────────────────────────────────────────────────────


class PageSegMode(IntEnum):
    """Page-segmentation hints, valued as Tesseract PSM numbers."""

    SPARSE = 11  # Scattered text, tables and forms
    BLOCK = 6  # One contiguous block of text


class OcrAttempt(BaseModel):
    """One OCR pass over a normalized image."""

    mode: PageSegMode
    text: str
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def length(self) -> int:
        return len(self.text)


# ─── Extraction ─────────────────────────────────────────────────────


class FieldCandidates(BaseModel):
    """What structured extraction found in the OCR text.

    Every field is Optional: a missing field is an expected state and is
    always None, never an empty string that could pass as a match.
    """

    ada_number: Optional[str] = None
    parsel_number: Optional[str] = None
    district: Optional[str] = None
    area_value: Optional[Decimal] = None


# ─── Scoring ────────────────────────────────────────────────────────


class MatchResult(BaseModel):
    """Similarity between the claimed and the extracted Ada number."""

    score: float = Field(ge=0.0, le=1.0)
    threshold: float = Field(default=0.90, ge=0.0, le=1.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def verified(self) -> bool:
        return self.score >= self.threshold


# ─── Outcomes ───────────────────────────────────────────────────────


class _Outcome(BaseModel):
    claimed: str

    @property
    def is_verified(self) -> bool:
        return False


class Rejected(_Outcome):
    """The authenticity gate refused the image; no OCR was run."""

    status: Literal["rejected"] = "rejected"
    reason: str
    authenticity_confidence: float

    @property
    def message(self) -> str:
        return (
            f"Document rejected: {self.reason}. "
            f"Authenticity confidence {self.authenticity_confidence:.1%}."
        )


class Mismatch(_Outcome):
    """The document names a different Ada number. Registration is blocked."""

    status: Literal["mismatch"] = "mismatch"
    extracted: str
    score: float
    threshold: float
    authenticity_confidence: float

    @property
    def message(self) -> str:
        return (
            f"Ada number mismatch: claimed '{self.claimed}', document "
            f"'{self.extracted}'. Match score {self.score:.1%} "
            f"(required {self.threshold:.0%})."
        )


class Unresolved(_Outcome):
    """OCR ran but no Ada number could be located. Needs manual follow-up."""

    status: Literal["unresolved"] = "unresolved"
    candidate_numbers: list[str] = Field(default_factory=list)
    district: Optional[str] = None
    text_sample: str = ""
    authenticity_confidence: float

    @property
    def message(self) -> str:
        found = ", ".join(self.candidate_numbers) or "none"
        return (
            f"Ada number not detected (authenticity confidence "
            f"{self.authenticity_confidence:.1%}). Numbers found in "
            f"document: {found}."
        )


class Verified(_Outcome):
    """The document is authentic and carries the claimed Ada number."""

    status: Literal["verified"] = "verified"
    fields: FieldCandidates
    match: MatchResult
    authenticity_confidence: float
    source: Literal["pattern", "fuzzy"] = "pattern"

    @property
    def is_verified(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return (
            f"Ada number verified: '{self.fields.ada_number}' "
            f"(match score {self.match.score:.1%}, authenticity confidence "
            f"{self.authenticity_confidence:.1%})."
        )


class EngineFailure(_Outcome):
    """A collaborator (decoder, classifier or OCR) could not run at all."""

    status: Literal["engine_failure"] = "engine_failure"
    stage: Literal["decode", "authenticity", "ocr"]
    code: str
    reason: str

    @property
    def message(self) -> str:
        return f"Error processing document ({self.stage}): {self.reason}"


VerificationOutcome = Annotated[
    Union[Rejected, Mismatch, Unresolved, Verified, EngineFailure],
    Field(discriminator="status"),
]


# ─── Caller's Form Record ───────────────────────────────────────────


class LandRecordDraft(BaseModel):
    """The registration form as the user filled it in.

    Verification may fill blanks here but never overwrites user input.
    """

    division: str = ""
    district: str = ""
    ada_number: str
    parsel_number: str = ""
    survey_no: str = ""
    area_value: str = ""
    area_unit: str = "metrekare"
