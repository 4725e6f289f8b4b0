"""
Unit tests for citation likelihood scoring.
"""

import sys
sys.path.insert(0, 'backend')

import pytest
from services.citation_scorer import CitationScorer, calculate_citation_score, get_sentences
from services.score_utils import clamp_score


@pytest.fixture
def scorer():
    return CitationScorer()


class TestSpecificClaims:

    @pytest.mark.parametrize("sentence,claim_type", [
        ("Revenue grew 25% last year.", "statistic"),
        ("Published in 2021 for readers.", "date"),
        ("We met Acme Corp yesterday.", "name"),
        ("A vector store is a database.", "definition"),
        ("then restart the server quickly", "process"),
        ("latency stays lower than before", "comparison"),
    ])
    def test_claim_type(self, sentence, claim_type):
        claims = CitationScorer.find_specific_claims([sentence])
        assert len(claims) == 1
        assert claims[0].type == claim_type

    def test_first_pattern_wins(self):
        claims = CitationScorer.find_specific_claims(["In 2021 revenue grew 25% at Acme Corp."])
        assert [c.type for c in claims] == ["statistic"]
        assert claims[0].reason == "Contains specific statistic: 25%"

    def test_vague_claims_exclude_specific(self):
        sentences = ["Many companies often see results.", "Typically revenue grew 25% in a year."]
        claims = CitationScorer.find_specific_claims(sentences)
        assert CitationScorer.find_vague_claims(sentences, claims) == ["Many companies often see results."]


class TestAttributability:

    def test_mixed_claims(self, scorer):
        result = scorer.attributability("Revenue grew 25% last year. Many companies often see results.")

        assert result.total_sentences == 2
        assert len(result.specific_claims) == 1
        assert result.vague_claims == ["Many companies often see results."]
        # 50 specific - 15 vague + 10 statistic bonus
        assert result.score == 45

    @pytest.mark.parametrize("text", ["", "Short."])
    def test_no_sentences_is_neutral(self, scorer, text):
        result = scorer.attributability(text)
        assert result.score == 50
        assert result.total_sentences == 0

    def test_get_sentences_drops_short_units(self):
        assert get_sentences("Tiny one. This sentence is long enough.") == ["This sentence is long enough."]


class TestEvidenceStrength:

    def test_all_signals(self, scorer):
        result = scorer.evidence_strength("According to Gartner Research, spending rose 12 percent in 2023.")
        assert result.score == 100
        assert result.evidence_types == ["numeric_data", "named_entities", "dates", "source_reference"]

    def test_no_signals(self, scorer):
        result = scorer.evidence_strength("nothing here to verify")
        assert result.score == 0
        assert result.evidence_types == []


class TestCitationFormat:

    def test_quotable_standalone_opening(self, scorer):
        result = scorer.citation_format("Onboarding takes six weeks for most teams. It then moves to support.")

        assert result.quotable_sentences == ["Onboarding takes six weeks for most teams."]
        assert result.has_explicit_statement is True
        assert result.is_standalone is True
        assert result.score == 70

    def test_backward_reference_opening(self, scorer):
        result = scorer.citation_format("This approach works well for teams. More text here too.")
        assert result.is_standalone is False
        assert result.has_explicit_statement is False
        assert result.score == 0

    def test_acronym_statement_is_case_sensitive(self, scorer):
        assert scorer.citation_format("RAG is retrieval augmented generation.").has_explicit_statement is True
        assert scorer.citation_format("rag is retrieval augmented generation.").has_explicit_statement is False

    def test_questions_not_quotable(self, scorer):
        result = scorer.citation_format("Is this the right tool for our team?")
        assert result.quotable_sentences == []

    def test_quotable_points_capped(self, scorer):
        text = " ".join(f"Team {name} has shipped the release on time." for name in "ABCDEF")
        assert scorer.citation_format(text).score <= 100


class TestCitationScore:

    def test_weighted_total(self, scorer):
        body = "Onboarding takes six weeks for most teams. According to Acme Corp, 80% finish early."
        result = scorer.score("# Onboarding\n\n" + body, body)

        expected = clamp_score(
            result.attributability.score * 0.40
            + result.evidence_strength.score * 0.35
            + result.citation_format.score * 0.25
        )
        assert result.score == expected
        assert 0 <= result.score <= 100

    def test_falls_back_to_full_text(self):
        result = calculate_citation_score("Revenue grew 25% last year.", "")
        assert result.attributability.total_sentences == 1
