"""Services for the chunk scoring service."""
from .chunking_engine import ChunkingEngine
from .citation_scorer import CitationScorer
from .diagnosis import DiagnosisEngine, FailureMode, FixPriority
from .passage_scorer import DocumentScorer, PassageScorer
from .rerank_scorer import RerankScorer
from .retrieval_scorer import RetrievalScorer
from .similarity import SimilarityError

__all__ = ['ChunkingEngine', 'CitationScorer', 'DiagnosisEngine', 'FailureMode', 'FixPriority', 'DocumentScorer', 'PassageScorer', 'RerankScorer', 'RetrievalScorer', 'SimilarityError']
