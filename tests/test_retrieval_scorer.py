"""
Unit tests for lexical retrieval scoring and hybrid blending.
"""

import sys
sys.path.insert(0, 'backend')

import math

import pytest
from services.retrieval_scorer import (
    BODY,
    FIRST_100_CHARS,
    FIRST_SENTENCE,
    HEADING,
    RetrievalScorer,
    calculate_hybrid_score,
    calculate_lexical_score,
    first_sentence_end,
)
from services.score_utils import clamp_score, round_score


@pytest.fixture
def scorer():
    return RetrievalScorer()


class TestScoreUtils:

    def test_round_half_up(self):
        assert round_score(72.5) == 73
        assert round_score(2.5) == 3
        assert round_score(2.49) == 2

    def test_clamp(self):
        assert clamp_score(120) == 100
        assert clamp_score(-3) == 0
        assert clamp_score(49.6) == 50

    @pytest.mark.parametrize("value,expected", [(math.nan, 0), (math.inf, 100), (-math.inf, 0)])
    def test_clamp_non_finite(self, value, expected):
        assert clamp_score(value) == expected


class TestFirstSentenceEnd:

    def test_first_period(self):
        assert first_sentence_end("Short one. Then more.") == 9

    def test_no_period_caps_at_150(self):
        assert first_sentence_end("no period at all") == 150

    def test_leading_period_ignored(self):
        assert first_sentence_end(".starts with a dot") == 150

    def test_late_period_capped(self):
        assert first_sentence_end("a" * 200 + ".") == 150


class TestTermPositions:

    def test_heading_recorded_once(self, scorer):
        positions = scorer.find_term_positions("", "python", ["Python Python"])
        assert [p.location for p in positions] == [HEADING]
        assert positions[0].char_index == 0

    def test_locations_by_offset(self, scorer):
        body = "Intro sentence. python " + "filler " * 20 + "python"
        locations = [p.location for p in scorer.find_term_positions(body, "python", [])]
        assert locations == [FIRST_100_CHARS, BODY]

    def test_first_sentence(self, scorer):
        positions = scorer.find_term_positions("Python is slow. It is.", "python", [])
        assert positions[0].location == FIRST_SENTENCE

    def test_matches_word_prefix_only(self, scorer):
        assert len(scorer.find_term_positions("costs rose", "cost", [])) == 1
        assert scorer.find_term_positions("do not accost", "cost", []) == []


class TestLexicalScore:
    """Test suite for RetrievalScorer.score."""

    def test_full_match(self, scorer):
        body = "The onboarding timeline is six weeks. More text follows about phases."
        result = scorer.score("# Onboarding Guide\n\n" + body, body, "onboarding timeline", ["Onboarding Guide"])

        assert result.query_terms == ["onboarding", "timeline"]
        assert result.missing_terms == []
        assert result.exact_phrase_match is True
        assert result.title_boost == 5
        assert result.position_bonus == 10
        assert result.score == 85

        onboarding = result.matched_terms[0]
        assert onboarding.best_location == HEADING
        assert onboarding.count == 2

    def test_no_terms_is_neutral(self, scorer):
        result = scorer.score("Some text", "Some text", "is it a", [])
        assert result.score == 50
        assert result.query_terms == []

    def test_nothing_matches(self, scorer):
        result = scorer.score("Nothing relevant here.", "Nothing relevant here.", "pricing tiers", [])
        assert result.score == 0
        assert result.missing_terms == ["pricing", "tiers"]
        assert result.matched_terms == []

    def test_partial_coverage(self, scorer):
        body = "Pricing is listed on the website under plans and tiers for each region."
        result = scorer.score(body, body, "pricing refunds", [])
        # one of two terms, found in the first sentence
        assert result.score == 30 + 5
        assert result.missing_terms == ["refunds"]

    def test_title_boost_capped(self, scorer):
        heading = ["alpha bravo charlie delta echo"]
        result = scorer.score("", "", "alpha bravo charlie delta echo", heading)
        assert result.title_boost == 20

    def test_score_bounded(self, scorer):
        body = "python packaging tools compared. python packaging tools."
        result = scorer.score(body, body, "python packaging tools", ["Python packaging tools"])
        assert 0 <= result.score <= 100

    def test_module_wrapper(self):
        result = calculate_lexical_score("cost of plans", "cost of plans", "plan cost", [])
        assert result.missing_terms == []


class TestHybridScore:

    def test_blend(self):
        assert calculate_hybrid_score(80, 50) == 71

    def test_bounds(self):
        assert calculate_hybrid_score(0, 0) == 0
        assert calculate_hybrid_score(100, 100) == 100

    def test_non_finite_semantic(self):
        assert calculate_hybrid_score(math.nan, 10) == 0
        assert calculate_hybrid_score(math.inf, 10) == 100
