"""
Unit tests for the RerankScorer components.
"""

import sys
sys.path.insert(0, 'backend')

import pytest
from services.rerank_scorer import (
    ANSWER_EXPLICIT,
    ANSWER_IMPLICIT,
    ANSWER_NONE,
    RESTATEMENT_EXACT,
    RESTATEMENT_NONE,
    RESTATEMENT_PARAPHRASE,
    RESTATEMENT_PARTIAL,
    RerankScorer,
    calculate_rerank_score,
)
from services.score_utils import clamp_score


@pytest.fixture
def scorer():
    return RerankScorer()


class TestEntityProminence:

    def test_query_terms_in_heading(self, scorer):
        result = scorer.entity_prominence("The GIL limits threads.", ["Why Python Is Slow"], "Python slow")

        assert result.query_entities == ["python", "slow"]
        assert result.score == 100
        assert all(match.prominence == "high" for match in result.found_entities)

    def test_first_sentence_entities(self, scorer):
        result = scorer.entity_prominence("Python is slow. Other things.", [], "python slow")
        # raw 40 normalized between -30 and 60
        assert result.score == 78
        assert {m.position for m in result.found_entities} == {"first_sentence"}

    def test_body_entity(self, scorer):
        body = "Opening sentence here. Later we mention kubernetes."
        result = scorer.entity_prominence(body, [], "kubernetes")
        assert result.found_entities[0].position == "body"
        assert result.score == round((10 + 15) / 45 * 100)

    def test_all_missing(self, scorer):
        result = scorer.entity_prominence("Nothing related.", [], "kubernetes autoscaling")
        assert result.score == 0
        assert result.missing_entities == ["kubernetes", "autoscaling"]

    def test_no_entities_is_neutral(self, scorer):
        assert scorer.entity_prominence("Some body.", [], "is it").score == 50


class TestDirectAnswer:

    def test_explicit_answer(self, scorer):
        result = scorer.direct_answer("Onboarding typically takes 6 weeks.", "How long does onboarding take?")

        assert result.score == 90
        assert result.answer_type == ANSWER_EXPLICIT
        assert result.has_direct_answer is True
        assert result.answer_position == 11
        assert result.signals == ["explicit_answer", "number_with_unit", "query_type_duration"]

    def test_implicit_quantity(self, scorer):
        result = scorer.direct_answer("Growth reached 40 percent", "growth")
        assert result.score == 30
        assert result.answer_type == ANSWER_IMPLICIT
        assert result.answer_position == 15

    def test_no_answer(self, scorer):
        result = scorer.direct_answer("Nothing to see here", "how long")
        assert result.score == 0
        assert result.answer_type == ANSWER_NONE
        assert result.has_direct_answer is False
        assert result.answer_position is None

    def test_capped_at_100(self, scorer):
        body = "RAG is a technique. The answer is 5 days. This takes 3 weeks."
        result = scorer.direct_answer(body, "how long does RAG take, what is it")
        assert result.score == 100


class TestQueryRestatement:

    def test_exact(self, scorer):
        result = scorer.query_restatement(
            "Why Python is slow comes down to the interpreter. More.", "Why Python is slow?"
        )
        assert result.score == 100
        assert result.restatement_type == RESTATEMENT_EXACT
        assert result.position == 0

    def test_paraphrase(self, scorer):
        result = scorer.query_restatement("Python runs slow because of performance overhead.", "python performance slow")
        assert result.score == 75
        assert result.restatement_type == RESTATEMENT_PARAPHRASE

    def test_partial(self, scorer):
        result = scorer.query_restatement("Python has a slow import system. Unrelated.", "python slow startup time")
        assert result.score == 40
        assert result.restatement_type == RESTATEMENT_PARTIAL

    def test_none(self, scorer):
        result = scorer.query_restatement("Completely different topic.", "python slow startup time")
        assert result.score == 0
        assert result.restated is False
        assert result.restatement_type == RESTATEMENT_NONE

    def test_only_stopwords_is_neutral(self, scorer):
        assert scorer.query_restatement("Anything.", "is it").score == 50

    def test_opening_limited_to_two_sentences(self, scorer):
        body = "First part. Second part. Kubernetes autoscaling appears late."
        assert scorer.query_restatement(body, "kubernetes autoscaling").score == 0


class TestStructuralClarity:

    def test_all_flags(self, scorer):
        body = "- Basic plan\n- Pro plan\n\nPricing is a monthly fee. You can cancel anytime."
        result = scorer.structural_clarity(body, ["Pricing"], "pricing plans")

        assert result.has_relevant_heading
        assert result.has_list_or_steps
        assert result.has_definition
        assert result.has_explicit_answer
        assert result.score == 100

    def test_no_flags(self, scorer):
        assert scorer.structural_clarity("plain words", [], "pricing").score == 0


class TestRerankScore:

    def test_weighted_total(self, scorer):
        body = "Python is slow because of the GIL. You can use multiprocessing."
        result = scorer.score("# Why Python Is Slow\n\n" + body, body, "Python slow", ["Why Python Is Slow"])

        expected = clamp_score(
            result.entity_prominence.score * 0.35
            + result.direct_answer.score * 0.30
            + result.structural_clarity.score * 0.20
            + result.query_restatement.score * 0.15
        )
        assert result.score == expected
        assert result.entity_prominence.score > 50

    def test_empty_chunk_bounded(self, scorer):
        result = scorer.score("", "", "anything at all", [])
        assert 0 <= result.score <= 100

    def test_module_wrapper(self):
        result = calculate_rerank_score("Body text here.", "Body text here.", "body text", [])
        assert 0 <= result.score <= 100
