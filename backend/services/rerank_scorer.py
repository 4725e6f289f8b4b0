"""
Rerank stage scoring.

Simulates a cross-encoder's second pass over retrieved chunks. Where retrieval
asks "is this chunk about the query", rerank asks "does this chunk answer it".
"""
import logging
import re
from typing import List, Optional

from models.scores import (
    DirectAnswerScore,
    EntityMatch,
    EntityProminenceScore,
    QueryRestatementScore,
    RerankScore,
    StructuralClarityScore,
)
from services.query_analyzer import STOPWORDS, clean_query, extract_query_entities, tokenize_query
from services.retrieval_scorer import first_sentence_end
from services.score_utils import clamp_score

logger = logging.getLogger(__name__)

ANSWER_EXPLICIT = "explicit"
ANSWER_IMPLICIT = "implicit"
ANSWER_NONE = "none"

RESTATEMENT_EXACT = "exact"
RESTATEMENT_PARAPHRASE = "paraphrase"
RESTATEMENT_PARTIAL = "partial"
RESTATEMENT_NONE = "none"


class RerankScorer:
    """
    Scores how well a chunk answers a query after retrieval.

    score = entity prominence * 0.35 + direct answer * 0.30
            + structural clarity * 0.20 + query restatement * 0.15
    """

    ENTITY_WEIGHT = 0.35
    DIRECT_ANSWER_WEIGHT = 0.30
    STRUCTURE_WEIGHT = 0.20
    RESTATEMENT_WEIGHT = 0.15

    NEUTRAL_SCORE = 50

    # Entity prominence raw points
    HEADING_POINTS = 30
    FIRST_SENTENCE_POINTS = 20
    BODY_POINTS = 10
    MISSING_PENALTY = -15

    # Direct answer patterns
    DEFINITION_PATTERN = re.compile(
        r"\b(?:is|are|refers?\s+to|means?|defined?\s+as|represents?|consists?\s+of)\b", re.IGNORECASE
    )
    STRONG_DEFINITION_PATTERN = re.compile(
        r"\b(?:is\s+defined\s+as|refers?\s+to|means|is\s+an?)\b", re.IGNORECASE
    )
    EXPLICIT_ANSWER_PATTERN = re.compile(
        r"\b(?:the\s+answer|this\s+(?:takes?|costs?|requires?|includes?|provides?)"
        r"|typically\s+(?:takes?|costs?|is|ranges?)|usually\s+(?:takes?|costs?|is)"
        r"|generally\s+(?:takes?|costs?|is))\b",
        re.IGNORECASE,
    )
    NUMBER_UNIT_PATTERN = re.compile(
        r"\b\d+(?:[-–]\d+)?\s*(?:days?|weeks?|months?|hours?|minutes?|dollars?|\$|%|percent"
        r"|times?|steps?|phases?|stages?)(?!\w)",
        re.IGNORECASE,
    )

    # (name, query pattern, chunk pattern); each match adds QUERY_TYPE_BONUS
    QUERY_TYPE_CHECKS = [
        ("duration",
         re.compile(r"how\s+long", re.IGNORECASE),
         re.compile(r"\b\d+\s*(?:days?|weeks?|months?|hours?|years?)\b", re.IGNORECASE)),
        ("cost",
         re.compile(r"how\s+much|cost|price|fee", re.IGNORECASE),
         re.compile(r"\$\s*\d+|\b\d+\s*(?:dollars?|%|percent)", re.IGNORECASE)),
        ("definition",
         re.compile(r"what\s+(?:is|are)", re.IGNORECASE),
         re.compile(r"^[A-Z][^.\n]+\s+(?:is|are)\s+", re.MULTILINE)),
    ]
    QUERY_TYPE_BONUS = 20

    # Structural clarity patterns
    LIST_PATTERNS = [
        re.compile(r"^\s*[-•*]\s+", re.MULTILINE),
        re.compile(r"^\s*\d+[.)]\s+", re.MULTILINE),
        re.compile(r"\b(?:step\s+\d+|first|second|third|finally)\b", re.IGNORECASE),
    ]
    DEFINITION_STRUCTURE_PATTERNS = [
        re.compile(r"\b\w+\s+(?:is|are)\s+(?:a|an|the)\s+\w+", re.IGNORECASE),
        re.compile(r"\b\w+\s+means\s+", re.IGNORECASE),
        re.compile(r"\b\w+\s+refers?\s+to\s+", re.IGNORECASE),
        re.compile(r"\bdefined?\s+as\s+", re.IGNORECASE),
    ]
    EXPLICIT_STRUCTURE_PATTERNS = [
        re.compile(r"\b(?:the|this)\s+(?:answer|solution|result|outcome)\s+is\b", re.IGNORECASE),
        re.compile(r"\byou\s+(?:can|should|need\s+to|must)\b", re.IGNORECASE),
        re.compile(r"\b(?:typically|usually|generally)\s+(?:takes?|costs?|requires?)\s+\d+", re.IGNORECASE),
        re.compile(r"\b(?:includes?|provides?|offers?|contains?)\s*:", re.IGNORECASE),
    ]

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def entity_prominence(self, body: str, heading_path: List[str], query: str) -> EntityProminenceScore:
        """
        Score how prominently the query's entities appear.

        Entities in a heading score highest, then the first sentence, then
        anywhere in the body; missing entities are penalized. When the query
        has no recognizable entities its content terms stand in for them.
        The raw total is normalized between the all-missing and all-in-heading
        extremes.
        """
        entities = extract_query_entities(query) or tokenize_query(query)
        if not entities:
            return EntityProminenceScore(
                score=self.NEUTRAL_SCORE, query_entities=[], found_entities=[], missing_entities=[]
            )

        heading_text = " ".join(heading_path).lower()
        body_lower = body.lower()
        first_sentence = body_lower[:first_sentence_end(body)]

        found: List[EntityMatch] = []
        missing: List[str] = []
        raw = 0
        for entity in entities:
            if entity in heading_text:
                found.append(EntityMatch(entity=entity, position="heading", prominence="high"))
                raw += self.HEADING_POINTS
            elif entity in first_sentence:
                found.append(EntityMatch(entity=entity, position="first_sentence", prominence="medium"))
                raw += self.FIRST_SENTENCE_POINTS
            elif entity in body_lower:
                found.append(EntityMatch(entity=entity, position="body", prominence="low"))
                raw += self.BODY_POINTS
            else:
                missing.append(entity)
                raw += self.MISSING_PENALTY

        low = self.MISSING_PENALTY * len(entities)
        high = self.HEADING_POINTS * len(entities)
        score = clamp_score((raw - low) / (high - low) * 100)

        return EntityProminenceScore(
            score=score, query_entities=entities, found_entities=found, missing_entities=missing
        )

    def direct_answer(self, body: str, query: str) -> DirectAnswerScore:
        """
        Detect whether the chunk directly answers the query.

        Definition language (+30), explicit answer phrasing (+40), numbers with
        units (+30) and query-type matches (+20 each) add up to at most 100.
        The answer is explicit when answer phrasing or a query-type match is
        present, implicit when only a quantity or a strong definition is.
        """
        score = 0
        signals: List[str] = []
        explicit_positions: List[int] = []
        implicit_positions: List[int] = []

        definition = self.DEFINITION_PATTERN.search(body)
        if definition:
            score += 30
            signals.append("definition")
            strong = self.STRONG_DEFINITION_PATTERN.search(body)
            if strong:
                implicit_positions.append(strong.start())

        explicit = self.EXPLICIT_ANSWER_PATTERN.search(body)
        if explicit:
            score += 40
            signals.append("explicit_answer")
            explicit_positions.append(explicit.start())

        quantity = self.NUMBER_UNIT_PATTERN.search(body)
        if quantity:
            score += 30
            signals.append("number_with_unit")
            implicit_positions.append(quantity.start())

        for name, query_pattern, chunk_pattern in self.QUERY_TYPE_CHECKS:
            if not query_pattern.search(query or ""):
                continue
            match = chunk_pattern.search(body)
            if match:
                score += self.QUERY_TYPE_BONUS
                signals.append(f"query_type_{name}")
                explicit_positions.append(match.start())

        if explicit_positions:
            answer_type = ANSWER_EXPLICIT
        elif implicit_positions:
            answer_type = ANSWER_IMPLICIT
        else:
            answer_type = ANSWER_NONE

        positions = explicit_positions + implicit_positions
        return DirectAnswerScore(
            score=min(100, score),
            has_direct_answer=answer_type != ANSWER_NONE,
            answer_position=min(positions) if positions else None,
            answer_type=answer_type,
            signals=signals,
        )

    def query_restatement(self, body: str, query: str) -> QueryRestatementScore:
        """
        Detect whether the chunk opening echoes the query.

        The opening is the first two sentences, at most 300 characters.
        """
        opening = ". ".join(re.split(r"[.!?]+", body)[:2])[:300].lower()
        cleaned = clean_query(query)
        query_words = [w for w in cleaned.split() if len(w) > 2 and w not in STOPWORDS]

        if not cleaned or not query_words:
            return QueryRestatementScore(
                score=self.NEUTRAL_SCORE, restated=False, restatement_type=RESTATEMENT_NONE, position=None
            )

        if cleaned in opening:
            return QueryRestatementScore(
                score=100, restated=True, restatement_type=RESTATEMENT_EXACT, position=opening.index(cleaned)
            )

        chunk_words = {
            w for w in re.sub(r"[^a-z\s]", "", opening).split()
            if len(w) > 2 and w not in STOPWORDS
        }
        matched = [w for w in query_words if w in chunk_words]
        ratio = len(matched) / len(query_words)
        position = opening.find(matched[0]) if matched else None

        if ratio >= 0.6:
            return QueryRestatementScore(
                score=75, restated=True, restatement_type=RESTATEMENT_PARAPHRASE, position=position
            )
        if ratio >= 0.3:
            return QueryRestatementScore(
                score=40, restated=True, restatement_type=RESTATEMENT_PARTIAL, position=position
            )
        return QueryRestatementScore(score=0, restated=False, restatement_type=RESTATEMENT_NONE, position=None)

    def structural_clarity(self, body: str, heading_path: List[str], query: str) -> StructuralClarityScore:
        """+25 each for a relevant heading, list or steps, a definition and explicit answer phrasing."""
        heading_text = " ".join(heading_path).lower()
        has_relevant_heading = any(term in heading_text for term in tokenize_query(query))
        has_list_or_steps = any(p.search(body) for p in self.LIST_PATTERNS)
        has_definition = any(p.search(body) for p in self.DEFINITION_STRUCTURE_PATTERNS)
        has_explicit_answer = any(p.search(body) for p in self.EXPLICIT_STRUCTURE_PATTERNS)

        flags = [has_relevant_heading, has_list_or_steps, has_definition, has_explicit_answer]
        return StructuralClarityScore(
            score=min(100, 25 * sum(flags)),
            has_relevant_heading=has_relevant_heading,
            has_list_or_steps=has_list_or_steps,
            has_definition=has_definition,
            has_explicit_answer=has_explicit_answer,
        )

    def score(self, chunk_text: str, chunk_body: str, query: str, heading_path: List[str]) -> RerankScore:
        """
        Calculate the full rerank score for a chunk.

        Args:
            chunk_text: Full chunk text including cascade
            chunk_body: Chunk text without cascade (preferred for analysis)
            query: Query text
            heading_path: Heading texts from root to leaf

        Returns:
            RerankScore with all four component scores
        """
        body = chunk_body or chunk_text or ""

        entity = self.entity_prominence(body, heading_path, query)
        answer = self.direct_answer(body, query)
        structure = self.structural_clarity(body, heading_path, query)
        restatement = self.query_restatement(body, query)

        score = clamp_score(
            entity.score * self.ENTITY_WEIGHT
            + answer.score * self.DIRECT_ANSWER_WEIGHT
            + structure.score * self.STRUCTURE_WEIGHT
            + restatement.score * self.RESTATEMENT_WEIGHT
        )

        self.logger.debug(
            f"Rerank score {score} for '{query}': entity={entity.score}, answer={answer.score}, "
            f"structure={structure.score}, restatement={restatement.score}"
        )

        return RerankScore(
            score=score,
            entity_prominence=entity,
            direct_answer=answer,
            query_restatement=restatement,
            structural_clarity=structure,
        )


_default_scorer = RerankScorer()


def calculate_rerank_score(chunk_text: str, chunk_body: str, query: str, heading_path: List[str]) -> RerankScore:
    return _default_scorer.score(chunk_text, chunk_body, query, heading_path)
