"""
Composite passage scoring.

Combines retrieval, rerank and citation into one 0-100 passage score, attaches
a diagnosis, and scores whole documents against query sets.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from config import SCORING_WORKERS
from models.chunk import ChunkerOptions, LayoutAwareChunk
from models.scores import DiagnosticScores, DocumentAnalysis
from services.chunking_engine import ChunkingEngine
from services.citation_scorer import CitationScorer
from services.diagnosis import DiagnosisEngine
from services.rerank_scorer import RerankScorer
from services.retrieval_scorer import RetrievalScorer, calculate_hybrid_score
from services.score_utils import clamp_score
from services.similarity import normalize_semantic_score, semantic_scale

logger = logging.getLogger(__name__)

RETRIEVAL_WEIGHT = 0.40
RERANK_WEIGHT = 0.35
CITATION_WEIGHT = 0.25

BAND_STRONG = "strong"
BAND_NEEDS_WORK = "needs_work"
BAND_GAP = "gap"

TIER_THRESHOLDS = [
    (90, "excellent"),
    (75, "good"),
    (60, "moderate"),
    (40, "weak"),
]

TIER_INTERPRETATIONS = {
    "excellent": "High retrieval probability. Very likely to make top 5 results in RAG systems.",
    "good": "Good retrieval probability. Strong candidate for top 10 results.",
    "moderate": "Moderate retrieval probability. Competitive but depends on other content.",
    "weak": "Weak retrieval probability. May be retrieved if competition is low.",
    "poor": "Poor retrieval probability. Likely filtered out during initial retrieval.",
}

TIER_RECOMMENDATIONS = {
    "excellent": "Content is well-optimized. Monitor for changes and maintain quality.",
    "good": "Content performs well. Consider minor improvements to reach excellent tier.",
    "moderate": "Optimize passage boundaries, add context, or improve semantic relevance.",
    "weak": "Significant restructuring needed. Review heading hierarchy and passage atomicity.",
    "poor": "Major optimization required. Content may not be relevant to query or poorly structured.",
}


def calculate_passage_score(retrieval: float, rerank: float, citation: float) -> int:
    """Passage score = retrieval 40% + rerank 35% + citation 25%."""
    return clamp_score(retrieval * RETRIEVAL_WEIGHT + rerank * RERANK_WEIGHT + citation * CITATION_WEIGHT)


def get_passage_score_band(score: float) -> str:
    """strong (70+), needs_work (45-69) or gap (below 45)."""
    if score >= 70:
        return BAND_STRONG
    if score >= 45:
        return BAND_NEEDS_WORK
    return BAND_GAP


def get_passage_score_tier(score: float) -> str:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return "poor"


def get_passage_score_interpretation(score: float) -> str:
    return TIER_INTERPRETATIONS[get_passage_score_tier(score)]


def get_passage_score_recommendation(score: float) -> str:
    return TIER_RECOMMENDATIONS[get_passage_score_tier(score)]


class PassageScorer:
    """Runs every scoring stage for one (chunk, query) pair."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.retrieval = RetrievalScorer(self.logger)
        self.rerank = RerankScorer(self.logger)
        self.citation = CitationScorer(self.logger)
        self.diagnosis = DiagnosisEngine(self.logger)

    def score(self, chunk: LayoutAwareChunk, query: str, semantic: float) -> DiagnosticScores:
        """
        Score a chunk against a query.

        Args:
            chunk: Chunk to score
            query: Query text
            semantic: Externally supplied semantic similarity on a 0-100 scale

        Returns:
            DiagnosticScores bundle for the pair
        """
        semantic = clamp_score(semantic)
        lexical = self.retrieval.score(chunk.text, chunk.text_without_cascade, query, chunk.heading_path)
        hybrid = calculate_hybrid_score(semantic, lexical.score)
        rerank = self.rerank.score(chunk.text, chunk.text_without_cascade, query, chunk.heading_path)
        citation = self.citation.score(chunk.text, chunk.text_without_cascade)
        passage = calculate_passage_score(hybrid, rerank.score, citation.score)
        diagnosis = self.diagnosis.diagnose(semantic, lexical, rerank, citation, query)

        return DiagnosticScores(
            chunk_id=chunk.id,
            query=query,
            semantic=semantic,
            lexical=lexical,
            hybrid_retrieval=hybrid,
            rerank=rerank,
            citation=citation,
            passage_score=passage,
            passage_band=get_passage_score_band(passage),
            diagnosis=diagnosis,
        )


_default_scorer = PassageScorer()


def calculate_all_diagnostics(chunk: LayoutAwareChunk, query: str, semantic: float) -> DiagnosticScores:
    return _default_scorer.score(chunk, query, semantic)


class DocumentScorer:
    """
    Scores a whole document against a set of queries.

    The document is chunked once; the chunk x query cross product is then
    scored on a thread pool. Scorers hold no mutable state, so pairs run
    without coordination.
    """

    def __init__(
        self,
        options: Optional[ChunkerOptions] = None,
        max_workers: int = SCORING_WORKERS,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize DocumentScorer.

        Args:
            options: Chunker options; defaults come from configuration
            max_workers: Thread pool size for pair scoring
            logger: Optional logger shared by the chunker and scorers

        Raises:
            ConfigurationError: If the chunker options are invalid
        """
        self.logger = logger or logging.getLogger(__name__)
        self.engine = ChunkingEngine(options, logger=self.logger)
        self.scorer = PassageScorer(self.logger)
        self.max_workers = max(1, max_workers)

    def score_chunks(
        self,
        chunks: List[LayoutAwareChunk],
        queries: List[str],
        semantic_scores: Optional[Dict[str, Sequence[float]]] = None,
    ) -> Dict[str, List[DiagnosticScores]]:
        """
        Score pre-built chunks against queries.

        Args:
            chunks: Chunks in document order
            queries: Query strings
            semantic_scores: Per query, one similarity per chunk (0-1 or 0-100).
                Missing queries or positions count as 0.

        Returns:
            Per query, one DiagnosticScores per chunk in chunk order
        """
        semantic_scores = semantic_scores or {}
        queries = list(dict.fromkeys(queries))
        pairs = []
        for query in queries:
            values = list(semantic_scores.get(query) or [])
            scale = semantic_scale(values)
            for index, chunk in enumerate(chunks):
                raw = values[index] if index < len(values) else 0
                pairs.append((chunk, query, normalize_semantic_score(raw, scale)))

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            scored = list(executor.map(lambda pair: self.scorer.score(*pair), pairs))

        results: Dict[str, List[DiagnosticScores]] = {query: [] for query in queries}
        for bundle in scored:
            results[bundle.query].append(bundle)

        self.logger.info(f"Scored {len(chunks)} chunks against {len(queries)} queries")
        return results

    def score_document(
        self,
        markdown: str,
        queries: List[str],
        semantic_scores: Optional[Dict[str, Sequence[float]]] = None,
    ) -> DocumentAnalysis:
        """Chunk markdown, then score every chunk against every query."""
        chunks = self.engine.chunk(markdown)
        return DocumentAnalysis(chunks=chunks, results=self.score_chunks(chunks, queries, semantic_scores))
