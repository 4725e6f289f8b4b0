"""
Chunk diagnosis.

Explains why a chunk underperforms for a query using a first-match decision
list over the retrieval, rerank and citation results, and recommends a fix.
"""
import logging
from typing import List, Optional

from models.scores import ChunkDiagnosis, CitationScore, LexicalScore, RerankScore
from services.query_analyzer import decompose_query_facets, describe_query_need
from services.retrieval_scorer import calculate_hybrid_score

logger = logging.getLogger(__name__)


class FailureMode:
    TOPIC_MISMATCH = "topic_mismatch"
    MISSING_SPECIFICS = "missing_specifics"
    BURIED_ANSWER = "buried_answer"
    VOCABULARY_GAP = "vocabulary_gap"
    NO_DIRECT_ANSWER = "no_direct_answer"
    STRUCTURE_PROBLEM = "structure_problem"
    ALREADY_OPTIMIZED = "already_optimized"


class FixPriority:
    CRITICAL = "critical"
    IMPORTANT = "important"
    MINOR = "minor"
    NONE = "none"


class DiagnosisEngine:
    """
    Deterministic failure-mode classifier.

    Rules are evaluated in order and the first match wins:
        1. already_optimized   hybrid >= 75 and rerank >= 70
        2. topic_mismatch      semantic < 50 and lexical < 40
        3. vocabulary_gap      semantic >= 50 and lexical < 40
        4. buried_answer       direct answer starts after character 150
        5. no_direct_answer    no direct answer detected
        6. missing_specifics   attributability < 40
        7. structure_problem   structural clarity < 50
        8. missing_specifics   fallback
    """

    OPTIMIZED_HYBRID_THRESHOLD = 75
    OPTIMIZED_RERANK_THRESHOLD = 70
    SEMANTIC_THRESHOLD = 50
    LEXICAL_THRESHOLD = 40
    BURIED_POSITION = 150
    SPECIFICITY_THRESHOLD = 40
    STRUCTURE_THRESHOLD = 50

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def diagnose(
        self,
        semantic: float,
        lexical: LexicalScore,
        rerank: RerankScore,
        citation: CitationScore,
        query: str,
    ) -> ChunkDiagnosis:
        """
        Diagnose the primary failure mode of a chunk for a query.

        Args:
            semantic: Semantic similarity (0-100)
            lexical: Lexical score for the pair
            rerank: Rerank score for the pair
            citation: Citation score for the chunk
            query: Query text

        Returns:
            ChunkDiagnosis with the failure mode, fix and expected gain
        """
        hybrid = calculate_hybrid_score(semantic, lexical.score)
        answer = rerank.direct_answer

        if hybrid >= self.OPTIMIZED_HYBRID_THRESHOLD and rerank.score >= self.OPTIMIZED_RERANK_THRESHOLD:
            diagnosis = ChunkDiagnosis(
                primary_failure_mode=FailureMode.ALREADY_OPTIMIZED,
                confidence=90,
                missing_facets=[],
                present_strengths=["Good semantic match", "Strong rerank signals"],
                recommended_fix="Content is well-optimized. Minor polish only if needed.",
                fix_priority=FixPriority.NONE,
                expected_improvement=0,
                rule_triggered="already_optimized",
            )
            self._log(query, diagnosis)
            return diagnosis

        if semantic < self.SEMANTIC_THRESHOLD and lexical.score < self.LEXICAL_THRESHOLD:
            missing = ", ".join(lexical.missing_terms[:3]) or "the query topic"
            mode, confidence, priority, improvement, rule = (
                FailureMode.TOPIC_MISMATCH, 85, FixPriority.CRITICAL, 5, "low_semantic_low_lexical"
            )
            fix = (
                f"Content discusses a different topic. Either reassign the query to a better chunk "
                f"or add content about: {missing}."
            )
        elif semantic >= self.SEMANTIC_THRESHOLD and lexical.score < self.LEXICAL_THRESHOLD:
            missing = ", ".join(lexical.missing_terms[:4]) or "the query's key terms"
            mode, confidence, priority, improvement, rule = (
                FailureMode.VOCABULARY_GAP, 80, FixPriority.IMPORTANT, 15, "semantic_ok_low_lexical"
            )
            fix = f"Add missing query terms naturally: {missing}."
        elif (
            answer.has_direct_answer
            and answer.answer_position is not None
            and answer.answer_position > self.BURIED_POSITION
        ):
            mode, confidence, priority, improvement, rule = (
                FailureMode.BURIED_ANSWER, 85, FixPriority.IMPORTANT, 20, "answer_after_150_chars"
            )
            fix = "Move the direct answer to the first sentence. Front-load the key information."
        elif not answer.has_direct_answer:
            mode, confidence, priority, improvement, rule = (
                FailureMode.NO_DIRECT_ANSWER, 75, FixPriority.CRITICAL, 25, "no_direct_answer"
            )
            fix = f"Add an explicit answer to the query. Include specific {describe_query_need(query)}."
        elif citation.attributability.score < self.SPECIFICITY_THRESHOLD:
            mode, confidence, priority, improvement, rule = (
                FailureMode.MISSING_SPECIFICS, 70, FixPriority.IMPORTANT, 15, "low_attributability"
            )
            fix = "Add specific data: numbers, timeframes, names, examples."
        elif rerank.structural_clarity.score < self.STRUCTURE_THRESHOLD:
            mode, confidence, priority, improvement, rule = (
                FailureMode.STRUCTURE_PROBLEM, 65, FixPriority.MINOR, 10, "low_structural_clarity"
            )
            fix = "Improve structure: add a relevant heading, use list format, or add a definition."
        else:
            mode, confidence, priority, improvement, rule = (
                FailureMode.MISSING_SPECIFICS, 50, FixPriority.MINOR, 10, "fallback"
            )
            fix = "Strengthen content with more specific claims and evidence."

        diagnosis = ChunkDiagnosis(
            primary_failure_mode=mode,
            confidence=confidence,
            missing_facets=self.missing_facets(query, lexical),
            present_strengths=self.present_strengths(semantic, lexical, rerank, citation),
            recommended_fix=fix,
            fix_priority=priority,
            expected_improvement=improvement,
            rule_triggered=rule,
        )
        self._log(query, diagnosis)
        return diagnosis

    @staticmethod
    def missing_facets(query: str, lexical: LexicalScore) -> List[str]:
        """Query facets not covered by any matched lexical term."""
        matched = [match.term.lower() for match in lexical.matched_terms]
        return [
            facet for facet in decompose_query_facets(query)
            if not any(facet in term for term in matched)
        ]

    @staticmethod
    def present_strengths(
        semantic: float, lexical: LexicalScore, rerank: RerankScore, citation: CitationScore
    ) -> List[str]:
        """What the chunk already does well and should keep."""
        strengths = []
        if semantic >= 60:
            strengths.append("Good semantic relevance")
        if lexical.exact_phrase_match:
            strengths.append("Contains query phrase")
        if lexical.title_boost > 10:
            strengths.append("Query terms in heading")
        if rerank.direct_answer.has_direct_answer:
            strengths.append("Has direct answer")
        if citation.evidence_strength.score >= 75:
            strengths.append("Contains specific data")
        if len(citation.citation_format.quotable_sentences) >= 2:
            strengths.append("Has quotable sentences")
        return strengths

    def _log(self, query: str, diagnosis: ChunkDiagnosis) -> None:
        self.logger.debug(
            f"Diagnosis for '{query}': {diagnosis.primary_failure_mode} "
            f"(rule={diagnosis.rule_triggered}, priority={diagnosis.fix_priority})"
        )
