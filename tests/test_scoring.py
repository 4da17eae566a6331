"""
Tests for the Ada match scorer.

The score gates a legal/financial write, so every rule is pinned to an
exact value, including the rule-4 weakness we deliberately keep.

Run: pytest tests/ -v
"""

from __future__ import annotations

import pytest

from tapu_verifier.models import MatchResult
from tapu_verifier.scoring import (
    ADA_MATCH_THRESHOLD,
    NEAR_EXACT_SCORE,
    canonicalize_confusions,
    match_identifiers,
    score_identifiers,
)


# ═══════════════════════════════════════════════════════════════════════
# RULE 1: EMPTY INPUT
# ═══════════════════════════════════════════════════════════════════════


class TestEmptyInput:
    @pytest.mark.parametrize("value", ["1234", "l234", "a", "999999"])
    def test_empty_extracted_scores_zero(self, value):
        assert score_identifiers(value, "") == 0.0

    @pytest.mark.parametrize("value", ["1234", "l234", "a", "999999"])
    def test_empty_claimed_scores_zero(self, value):
        assert score_identifiers("", value) == 0.0

    def test_whitespace_only_counts_as_empty(self):
        assert score_identifiers("   ", "1234") == 0.0
        assert score_identifiers("1234", "\n\t") == 0.0

    def test_both_empty_scores_zero(self):
        assert score_identifiers("", "") == 0.0


# ═══════════════════════════════════════════════════════════════════════
# RULE 2: EXACT MATCH
# ═══════════════════════════════════════════════════════════════════════


class TestExactMatch:
    @pytest.mark.parametrize("value", ["1", "1234", "105", "l234", "999999"])
    def test_identical_strings_score_one(self, value):
        assert score_identifiers(value, value) == 1.0

    def test_whitespace_is_ignored(self):
        """Documents sometimes space digits across table cells."""
        assert score_identifiers("12 34", "1234") == 1.0
        assert score_identifiers(" 1234 ", "1 2 3 4") == 1.0


# ═══════════════════════════════════════════════════════════════════════
# RULE 3: NEAR-EXACT AFTER OCR CANONICALIZATION
# ═══════════════════════════════════════════════════════════════════════


class TestNearExact:
    def test_canonicalize_letterforms(self):
        assert canonicalize_confusions("lI0oO") == "11000"

    def test_canonicalize_leaves_other_letters(self):
        assert canonicalize_confusions("S8B") == "S8B"

    @pytest.mark.parametrize(
        ("claimed", "extracted"),
        [("1234", "l234"), ("1234", "I234"), ("105", "1O5"), ("100", "Ioo")],
    )
    def test_confusion_only_difference_scores_098(self, claimed, extracted):
        assert score_identifiers(claimed, extracted) == NEAR_EXACT_SCORE

    @pytest.mark.parametrize(
        ("claimed", "extracted"),
        [("1234", "l234"), ("105", "1O5")],
    )
    def test_near_exact_is_symmetric(self, claimed, extracted):
        assert score_identifiers(claimed, extracted) == score_identifiers(extracted, claimed)

    def test_exact_wins_over_near_exact(self):
        assert score_identifiers("l234", "l234") == 1.0

    def test_s_and_b_are_not_canonicalized_by_the_scorer(self):
        """Only the extractor's cleanup maps S→5 and B→8."""
        assert score_identifiers("5234", "S234") == pytest.approx(0.75)


# ═══════════════════════════════════════════════════════════════════════
# RULE 4: POSITIONAL SIMILARITY WITH LENGTH PENALTY
# ═══════════════════════════════════════════════════════════════════════


class TestPositionalSimilarity:
    def test_completely_different_scores_zero(self):
        assert score_identifiers("1234", "5678") == 0.0

    def test_one_wrong_digit(self):
        assert score_identifiers("1234", "1239") == pytest.approx(0.75)

    def test_extra_trailing_digit(self):
        # 4 matches / 5 * (1 - 1/5)
        assert score_identifiers("1234", "12345") == pytest.approx(0.64)

    def test_leading_insertion_collapses_score(self):
        """Known limitation: no edit distance, every position shifts."""
        assert score_identifiers("1234", "01234") == 0.0

    def test_dropped_leading_digit_collapses_score(self):
        assert score_identifiers("1234", "234") == 0.0

    def test_score_stays_in_unit_interval(self):
        pairs = [("1", "123456"), ("999999", "9"), ("12", "21"), ("abc", "abd")]
        for claimed, extracted in pairs:
            assert 0.0 <= score_identifiers(claimed, extracted) <= 1.0

    @pytest.mark.parametrize(
        ("claimed", "extracted"),
        [("1234", "12345"), ("1234", "123"), ("12", "1299"), ("9876", "98")],
    )
    def test_swapping_unequal_lengths_gives_the_same_score(self, claimed, extracted):
        """Rule 4 is built from symmetric terms only: the zipped prefix,
        the longer length and an absolute difference. Swapping the operands
        therefore never changes the score, even for unequal lengths."""
        assert score_identifiers(claimed, extracted) == score_identifiers(extracted, claimed)


# ═══════════════════════════════════════════════════════════════════════
# MATCH RESULT / THRESHOLD
# ═══════════════════════════════════════════════════════════════════════


class TestMatchResult:
    def test_default_threshold(self):
        assert MatchResult(score=1.0).threshold == ADA_MATCH_THRESHOLD == 0.90

    def test_exactly_threshold_is_verified(self):
        assert MatchResult(score=0.90).verified is True

    def test_just_below_threshold_is_not_verified(self):
        assert MatchResult(score=0.8999).verified is False

    def test_match_identifiers_exact(self):
        result = match_identifiers("1234", "1234")
        assert result.score == 1.0
        assert result.verified is True

    def test_match_identifiers_near_exact_passes(self):
        assert match_identifiers("1234", "l234").verified is True

    def test_match_identifiers_custom_threshold(self):
        result = match_identifiers("1234", "l234", threshold=0.99)
        assert result.score == NEAR_EXACT_SCORE
        assert result.verified is False

    def test_verified_is_serialized(self):
        assert MatchResult(score=0.5).model_dump()["verified"] is False
