"""Score result models for retrieval, rerank, citation and diagnosis."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models.chunk import LayoutAwareChunk


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TermPosition:
    """Where a query term was found; location is heading, first_sentence, first_100_chars or body."""
    char_index: int
    location: str


@dataclass(frozen=True)
class TermMatch:
    term: str
    count: int
    positions: List[TermPosition]
    best_location: str


@dataclass(frozen=True)
class LexicalScore:
    """BM25-style term matching result."""
    score: int
    query_terms: List[str]
    matched_terms: List[TermMatch]
    missing_terms: List[str]
    exact_phrase_match: bool
    title_boost: int
    position_bonus: int


# ---------------------------------------------------------------------------
# Rerank
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntityMatch:
    entity: str
    position: str  # heading | first_sentence | body
    prominence: str  # high | medium | low


@dataclass(frozen=True)
class EntityProminenceScore:
    score: int
    query_entities: List[str]
    found_entities: List[EntityMatch]
    missing_entities: List[str]


@dataclass(frozen=True)
class DirectAnswerScore:
    """
    Direct answer detection.

    Attributes:
        score: Additive pattern score (0-100)
        has_direct_answer: Whether any answer signal was found
        answer_position: Character offset of the earliest answer signal
        answer_type: explicit, implicit or none
        signals: Names of the patterns that fired
    """
    score: int
    has_direct_answer: bool
    answer_position: Optional[int]
    answer_type: str
    signals: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class QueryRestatementScore:
    score: int
    restated: bool
    restatement_type: str  # exact | paraphrase | partial | none
    position: Optional[int]


@dataclass(frozen=True)
class StructuralClarityScore:
    score: int
    has_relevant_heading: bool
    has_list_or_steps: bool
    has_definition: bool
    has_explicit_answer: bool


@dataclass(frozen=True)
class RerankScore:
    """Simulated cross-encoder judgment and its four components."""
    score: int
    entity_prominence: EntityProminenceScore
    direct_answer: DirectAnswerScore
    query_restatement: QueryRestatementScore
    structural_clarity: StructuralClarityScore


# ---------------------------------------------------------------------------
# Citation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpecificClaim:
    sentence: str
    type: str  # statistic | date | name | definition | process | comparison
    reason: str


@dataclass(frozen=True)
class AttributabilityScore:
    score: int
    specific_claims: List[SpecificClaim]
    vague_claims: List[str]
    total_sentences: int


@dataclass(frozen=True)
class EvidenceScore:
    score: int
    has_numbers: bool
    has_names: bool
    has_dates: bool
    has_source_reference: bool
    evidence_types: List[str]


@dataclass(frozen=True)
class FormatScore:
    score: int
    quotable_sentences: List[str]
    has_explicit_statement: bool
    is_standalone: bool


@dataclass(frozen=True)
class CitationScore:
    """Predicted likelihood that a generator quotes or cites the chunk."""
    score: int
    attributability: AttributabilityScore
    evidence_strength: EvidenceScore
    citation_format: FormatScore


# ---------------------------------------------------------------------------
# Diagnosis and composite
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChunkDiagnosis:
    """
    Why a chunk underperforms for a query and what to change.

    Attributes:
        primary_failure_mode: One of FailureMode's values
        confidence: 0-100
        missing_facets: Query facets the chunk does not cover
        present_strengths: What the chunk already does well
        recommended_fix: One-sentence guidance
        fix_priority: critical, important, minor or none
        expected_improvement: Estimated score gain
        rule_triggered: Which diagnosis rule produced this result
    """
    primary_failure_mode: str
    confidence: int
    missing_facets: List[str]
    present_strengths: List[str]
    recommended_fix: str
    fix_priority: str
    expected_improvement: int
    rule_triggered: str = ""


@dataclass(frozen=True)
class DiagnosticScores:
    """Every score for one (chunk, query) pair."""
    chunk_id: str
    query: str
    semantic: int
    lexical: LexicalScore
    hybrid_retrieval: int
    rerank: RerankScore
    citation: CitationScore
    passage_score: int
    passage_band: str
    diagnosis: ChunkDiagnosis


@dataclass(frozen=True)
class DocumentAnalysis:
    """Chunks of one document and, per query, one DiagnosticScores per chunk in chunk order."""
    chunks: List[LayoutAwareChunk]
    results: Dict[str, List[DiagnosticScores]]
