"""Retrieval stage scoring: BM25-style lexical matching blended with semantic similarity."""
import logging
import re
from typing import List, Optional

from models.scores import LexicalScore, TermMatch, TermPosition
from services.query_analyzer import clean_query, tokenize_query
from services.score_utils import clamp_score

logger = logging.getLogger(__name__)

HEADING = "heading"
FIRST_SENTENCE = "first_sentence"
FIRST_100_CHARS = "first_100_chars"
BODY = "body"

# Most prominent first
LOCATION_PRIORITY = [HEADING, FIRST_SENTENCE, FIRST_100_CHARS, BODY]

SEMANTIC_WEIGHT = 0.70
LEXICAL_WEIGHT = 0.30

NEUTRAL_SCORE = 50


def first_sentence_end(body: str) -> int:
    """End offset of the rough first sentence: the first period, capped at 150 chars."""
    period = body.find(".")
    return min(period if period > 0 else 150, 150)


def term_pattern(term: str) -> "re.Pattern":
    """Case-insensitive match anchored at a word start, so plurals and suffixed forms match."""
    return re.compile(r"\b" + re.escape(term), re.IGNORECASE)


def calculate_hybrid_score(semantic: float, lexical: float) -> int:
    """Blend semantic (0-100) and lexical (0-100) scores 70/30."""
    return clamp_score(semantic * SEMANTIC_WEIGHT + lexical * LEXICAL_WEIGHT)


class RetrievalScorer:
    """
    Scores the retrieval stage of a RAG pipeline for one chunk and query.

    Lexical score:
        term coverage (up to 60) + heading boost (5 per term, up to 20)
        + position bonus (5 per early term, up to 15) + exact phrase (10)
    """

    COVERAGE_POINTS = 60
    HEADING_POINTS_PER_TERM = 5
    MAX_HEADING_BOOST = 20
    POSITION_POINTS_PER_TERM = 5
    MAX_POSITION_BONUS = 15
    EXACT_PHRASE_BONUS = 10

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def find_term_positions(self, body: str, term: str, heading_path: List[str]) -> List[TermPosition]:
        """
        Find every occurrence of term, tagged with where it appears.

        A heading hit is recorded once at char_index 0. Body hits are tagged
        first_sentence, first_100_chars or body by offset.
        """
        pattern = term_pattern(term)
        positions: List[TermPosition] = []

        if pattern.search(" ".join(heading_path)):
            positions.append(TermPosition(char_index=0, location=HEADING))

        sentence_end = first_sentence_end(body)
        for match in pattern.finditer(body):
            index = match.start()
            if index < sentence_end:
                location = FIRST_SENTENCE
            elif index < 100:
                location = FIRST_100_CHARS
            else:
                location = BODY
            positions.append(TermPosition(char_index=index, location=location))
        return positions

    def score(self, chunk_text: str, chunk_body: str, query: str, heading_path: List[str]) -> LexicalScore:
        """
        Calculate the lexical score for a chunk.

        Args:
            chunk_text: Full chunk text including cascade
            chunk_body: Chunk text without cascade
            query: Query text
            heading_path: Heading texts from root to leaf

        Returns:
            LexicalScore with the matched and missing terms
        """
        body = chunk_body or chunk_text or ""
        terms = tokenize_query(query)
        phrase = clean_query(query)
        exact_phrase_match = bool(phrase) and phrase in (chunk_text or body).lower()

        if not terms:
            return LexicalScore(
                score=NEUTRAL_SCORE,
                query_terms=[],
                matched_terms=[],
                missing_terms=[],
                exact_phrase_match=exact_phrase_match,
                title_boost=0,
                position_bonus=0,
            )

        matched: List[TermMatch] = []
        missing: List[str] = []
        for term in terms:
            positions = self.find_term_positions(body, term, heading_path)
            if not positions:
                missing.append(term)
                continue
            locations = {position.location for position in positions}
            best = next(location for location in LOCATION_PRIORITY if location in locations)
            matched.append(TermMatch(term=term, count=len(positions), positions=positions, best_location=best))

        heading_terms = sum(1 for match in matched if match.best_location == HEADING)
        title_boost = min(heading_terms * self.HEADING_POINTS_PER_TERM, self.MAX_HEADING_BOOST)

        early_terms = sum(
            1 for match in matched
            if any(p.location in (FIRST_SENTENCE, FIRST_100_CHARS) for p in match.positions)
        )
        position_bonus = min(early_terms * self.POSITION_POINTS_PER_TERM, self.MAX_POSITION_BONUS)

        coverage = len(matched) / len(terms) * self.COVERAGE_POINTS
        phrase_bonus = self.EXACT_PHRASE_BONUS if exact_phrase_match else 0
        score = clamp_score(coverage + title_boost + position_bonus + phrase_bonus)

        self.logger.debug(
            f"Lexical score {score} for '{query}': {len(matched)}/{len(terms)} terms, "
            f"title_boost={title_boost}, position_bonus={position_bonus}, exact={exact_phrase_match}"
        )

        return LexicalScore(
            score=score,
            query_terms=terms,
            matched_terms=matched,
            missing_terms=missing,
            exact_phrase_match=exact_phrase_match,
            title_boost=title_boost,
            position_bonus=position_bonus,
        )


_default_scorer = RetrievalScorer()


def calculate_lexical_score(chunk_text: str, chunk_body: str, query: str, heading_path: List[str]) -> LexicalScore:
    return _default_scorer.score(chunk_text, chunk_body, query, heading_path)
