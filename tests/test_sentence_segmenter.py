"""
Unit tests for sentence and clause segmentation.
"""

import sys
sys.path.insert(0, 'backend')

import re
from unittest.mock import Mock

import pytest
from services.sentence_segmenter import (
    estimate_sentence_embedding_count,
    get_sentence_texts,
    split_into_sentences,
    split_prose,
    split_query_into_clauses,
)


def non_whitespace(text):
    return re.sub(r"\s+", "", text)


class TestSplitIntoSentences:
    """Test suite for split_into_sentences."""

    def test_empty_text(self):
        assert split_into_sentences("") == []
        assert split_into_sentences("   \n\n ") == []

    def test_prose_split_on_terminal_punctuation(self):
        text = "First sentence here. Second one follows! Is this third?"
        sentences = split_into_sentences(text)

        assert [s.text for s in sentences] == [
            "First sentence here.",
            "Second one follows!",
            "Is this third?",
        ]
        assert [s.index for s in sentences] == [0, 1, 2]
        assert sentences[1].char_start == text.index("Second")
        assert sentences[1].char_end == text.index("!") + 1
        assert all(s.word_count == 3 for s in sentences)

    def test_numbered_list_periods_are_not_terminators(self):
        sentences = split_into_sentences("Steps: 1. Open the settings page. 2. Click save now.")

        assert len(sentences) == 2
        assert sentences[0].text == "Steps: 1. Open the settings page."
        assert sentences[1].text == "Click save now."

    def test_bullet_lines_split_and_markers_stripped(self):
        sentences = split_into_sentences("- first item here\n- second item here")
        assert [s.text for s in sentences] == ["first item here", "second item here"]

    def test_inline_bold_list_items(self):
        sentences = split_into_sentences("Benefits: 1. **Speed** matters a lot 2. **Cost** goes down")
        assert [s.text for s in sentences] == ["**Speed** matters a lot", "**Cost** goes down"]

    def test_heading_marker_stripped(self):
        sentences = split_into_sentences("## Setup guide\n\nInstall the package first.")
        assert [s.text for s in sentences] == ["Setup guide", "Install the package first."]

    def test_single_word_units_dropped(self):
        sentences = split_into_sentences("Hello.\n\nThis is valid.")
        assert [s.text for s in sentences] == ["This is valid."]

    def test_fallback_whole_text(self):
        sentences = split_into_sentences("  Hello  ")
        assert len(sentences) == 1
        assert sentences[0].text == "Hello"
        assert sentences[0].word_count == 1

    def test_lines_without_punctuation(self):
        sentences = split_into_sentences("alpha beta gamma\ndelta epsilon zeta")
        assert [s.text for s in sentences] == ["alpha beta gamma", "delta epsilon zeta"]

    def test_spans_point_into_source(self):
        text = "Intro line goes here.\n\n- bullet point one\n- bullet point two"
        for sentence in split_into_sentences(text):
            assert text[sentence.char_start:sentence.char_end] == sentence.text

    def test_injected_logger_receives_decisions(self):
        log = Mock()
        split_into_sentences("One two three. Four five six.", log=log)
        assert log.debug.called

    def test_get_sentence_texts(self):
        assert get_sentence_texts("One two three. Four five six.") == ["One two three.", "Four five six."]


class TestSplitProse:
    """Test suite for the lossless prose splitter used by the chunker."""

    def test_empty(self):
        assert split_prose("") == []

    def test_keeps_every_character(self):
        text = "A. Short one. Then a longer sentence follows here!  And 3.5 percent grew? Tail without stop"
        pieces = split_prose(text)

        assert len(pieces) > 1
        assert non_whitespace("".join(pieces)) == non_whitespace(text)

    def test_decimal_not_split(self):
        assert split_prose("Growth was 3.5 percent this year. Costs fell.") == [
            "Growth was 3.5 percent this year.",
            "Costs fell.",
        ]


class TestSplitQueryIntoClauses:
    """Test suite for query clause splitting."""

    def test_empty_query(self):
        assert split_query_into_clauses("") == []
        assert split_query_into_clauses("   ") == []

    def test_single_clause_returns_whole_query(self):
        assert split_query_into_clauses("  what is rag  ") == ["what is rag"]

    def test_comma_and_conjunction(self):
        assert split_query_into_clauses("pricing for teams, and onboarding time") == [
            "pricing for teams",
            "onboarding time",
        ]

    def test_conjunction_case_insensitive(self):
        assert split_query_into_clauses("Setup time AND pricing tiers") == ["Setup time", "pricing tiers"]

    def test_short_clauses_fall_back_to_whole_query(self):
        assert split_query_into_clauses("cost or price") == ["cost or price"]

    @pytest.mark.parametrize("conjunction", ["but", "while", "when", "if", "or"])
    def test_other_conjunctions(self, conjunction):
        clauses = split_query_into_clauses(f"fast setup process {conjunction} low monthly cost")
        assert clauses == ["fast setup process", "low monthly cost"]


class TestEstimateSentenceEmbeddingCount:

    def test_counts(self):
        result = estimate_sentence_embedding_count(
            ["One two three. Four five six."],
            ["alpha beta, gamma delta", "single clause query"],
        )
        assert result == {"chunk_sentences": 2, "query_clauses": 3, "total": 5}

    def test_empty(self):
        assert estimate_sentence_embedding_count([], []) == {"chunk_sentences": 0, "query_clauses": 0, "total": 0}
