"""
Deterministic regex-based field extraction from Tapu OCR text.

Turkish Tapu documents are tables: headers and values often land on
different lines, and OCR mangles both the digits AND the labels. Each field
therefore has an ordered pattern table, most specific first. The first
pattern that matches wins; we do not rank matches.

Philosophy: It's better to extract nothing than to extract wrong data.
            A field no pattern finds stays None, it is never guessed.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from .models import FieldCandidates

logger = logging.getLogger(__name__)


# ─── Building Blocks ─────────────────────────────────────────────────

# A 1-6 character numeral as OCR renders it: digits plus the letters that
# get read instead of 1, 0, 5 and 8, in any position but the last. It always
# ends on a real digit, so "SOB" is never a number and the suffix letter of
# "1234B" is left out.
# Case-sensitive even inside IGNORECASE patterns: "s" and "o" are not digits.
NUMERAL = r"(?-i:[\dlIOSB]{0,5}\d)"

_DISTRICT_WORD = r"[A-ZİĞÜŞÖÇa-zığüşöç]"

_FLAGS = re.IGNORECASE


class FieldPattern(NamedTuple):
    """One row of an extraction table."""

    name: str  # For logs and tests
    regex: re.Pattern[str]


def _row(name: str, pattern: str, flags: int = _FLAGS) -> FieldPattern:
    return FieldPattern(name, re.compile(pattern, flags))


# ─── Pattern Tables (order matters: first match wins) ───────────────

ADA_PATTERNS: tuple[FieldPattern, ...] = (
    # "Ada No: 1234", "Ada Nu .. 1234"  (≤10 junk chars, same line)
    _row("ada_label_number", rf"Ada\s*(?:No|Nu)?[^\d\n]{{0,10}}?({NUMERAL})"),
    # "Ada No" then anything non-numeric, across lines
    _row("ada_no_any_gap", rf"Ada\s*No[^0-9]*?({NUMERAL})"),
    # "Ada: 1234" or the common misread "Ado"
    _row("ada_short_label", rf"(?:Ada|Ado)\s*[:.\s]*({NUMERAL})"),
    # Table row: Pafta ... Ada ... NUMBER ... Parsel|Nitelik
    _row(
        "ada_table_row",
        rf"Pafta.*?Ada.*?({NUMERAL}).*?(?:Parsel|Nitelik)",
        _FLAGS | re.DOTALL,
    ),
    # Bare number on a line that later mentions Parsel
    _row("ada_before_parsel", rf"({NUMERAL})\s*(?=.*Parsel)"),
)

PARSEL_PATTERNS: tuple[FieldPattern, ...] = (
    _row("parsel_label_number", rf"Parsel\s*(?:No|Nu)?[^\d\n]{{0,10}}?({NUMERAL})"),
    _row("parsel_misread_label", rf"(?:Parsel|Parse1|Porsel)\s*[:.\s]*({NUMERAL})"),
    _row("parsel_partial_label", rf"rsel\s*[:.\s]*({NUMERAL})"),
)

DISTRICT_PATTERNS: tuple[FieldPattern, ...] = (
    _row(
        "district_ilcesi",
        rf"(?:İlçesi|Ilçesi|Iicesi|ilcesi)[:\s]*({_DISTRICT_WORD}{{3,20}})",
    ),
    _row("district_il", r"İl\s+([A-ZİĞÜŞÖÇ]{3,15})"),
)

AREA_PATTERN = re.compile(r"([\d.,]+)\s*m[²2]", _FLAGS)

CANDIDATE_NUMBER = re.compile(r"\b\d{2,6}\b")

_DIGIT_LOOKALIKES = str.maketrans({"l": "1", "I": "1", "O": "0", "S": "5", "B": "8"})
_NON_DIGITS = re.compile(r"\D")


# ─── Public API ──────────────────────────────────────────────────────


def extract_fields(text: str) -> FieldCandidates:
    """Run every pattern table over the OCR text.

    Args:
        text: Raw OCR output.

    Returns:
        FieldCandidates with whatever could be deterministically located.
    """
    ada = first_match(ADA_PATTERNS, text)
    parsel = first_match(PARSEL_PATTERNS, text)
    district = first_match(DISTRICT_PATTERNS, text)

    candidates = FieldCandidates(
        ada_number=clean_number(ada) if ada else None,
        parsel_number=clean_number(parsel) if parsel else None,
        district=district.split()[0] if district else None,
        area_value=_extract_area(text),
    )
    logger.info(
        "Extracted ada=%s parsel=%s district=%s area=%s",
        candidates.ada_number or "NOT FOUND",
        candidates.parsel_number or "NOT FOUND",
        candidates.district or "NOT FOUND",
        candidates.area_value if candidates.area_value is not None else "NOT FOUND",
    )
    return candidates


def first_match(table: tuple[FieldPattern, ...], text: str) -> str | None:
    """Return group 1 of the first pattern in ``table`` that matches."""
    for row in table:
        match = row.regex.search(text)
        if match and match.group(1):
            logger.debug("Pattern %s matched %r", row.name, match.group(1))
            return match.group(1)
    return None


def clean_number(value: str) -> str:
    """Canonicalize an OCR numeral: l/I→1, O→0, S→5, B→8, drop the rest.

    Raw OCR digit strings are never compared; they always pass through here.
    """
    return _NON_DIGITS.sub("", value.translate(_DIGIT_LOOKALIKES))


def find_candidate_numbers(text: str, limit: int = 10) -> list[str]:
    """Distinct 2-6 digit tokens in first-seen order, for manual follow-up."""
    unique = dict.fromkeys(CANDIDATE_NUMBER.findall(text))
    return list(unique)[:limit]


# ─── Internal Helpers ────────────────────────────────────────────────


def _extract_area(text: str) -> Decimal | None:
    """Match '1.250,50 m2' → Decimal('1250.50').

    Turkish notation: dots group thousands, the comma is the decimal mark.
    """
    match = AREA_PATTERN.search(text)
    if not match:
        return None
    raw = match.group(1).replace(".", "").replace(",", ".", 1)
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None
