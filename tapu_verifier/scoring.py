"""
Similarity score between the claimed and the extracted Ada number.

Rules, first applicable wins (whitespace removed from both sides):
  1. Either side empty                          → 0.0
  2. Exact equality                             → 1.0
  3. Equal after l/I→1 and o/O→0 on both sides  → 0.98
  4. Position-wise matches / longer length,
     times 1 - |length difference| / longer length

Rule 4 is deliberately not an edit distance. A single inserted or dropped
leading character shifts every position and the score collapses:

    score("1234", "01234") == 0.0

That changes acceptance outcomes if "fixed", so it stays as a known
limitation. The formula uses only symmetric terms (the shared prefix zip,
the longer length, an absolute difference), so swapping the operands never
changes the score.
"""

from __future__ import annotations

import re

from .models import MatchResult

ADA_MATCH_THRESHOLD = 0.90
NEAR_EXACT_SCORE = 0.98

_WHITESPACE = re.compile(r"\s+")
_ONE_LOOKALIKES = re.compile(r"[lI]")
_ZERO_LOOKALIKES = re.compile(r"[oO]")


def canonicalize_confusions(value: str) -> str:
    """Rewrite the letterforms of 1 and 0 to digits."""
    return _ZERO_LOOKALIKES.sub("0", _ONE_LOOKALIKES.sub("1", value))


def score_identifiers(claimed: str, extracted: str) -> float:
    """Score in [0, 1]; see the module docstring for the rules."""
    user = _WHITESPACE.sub("", claimed)
    doc = _WHITESPACE.sub("", extracted)

    if not user or not doc:
        return 0.0

    if user == doc:
        return 1.0

    if canonicalize_confusions(user) == canonicalize_confusions(doc):
        return NEAR_EXACT_SCORE

    longest = max(len(user), len(doc))
    matches = sum(1 for a, b in zip(user, doc) if a == b)

    base_similarity = matches / longest
    length_penalty = 1 - abs(len(user) - len(doc)) / longest
    return base_similarity * length_penalty


def match_identifiers(
    claimed: str, extracted: str, threshold: float = ADA_MATCH_THRESHOLD
) -> MatchResult:
    """Score the pair and compare against ``threshold``."""
    return MatchResult(score=score_identifiers(claimed, extracted), threshold=threshold)
