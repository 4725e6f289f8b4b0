"""Data models for the chunk scoring service."""
from .chunk import (
    BodyElement,
    ChunkMetadata,
    ChunkerOptions,
    ConfigurationError,
    HeadingInfo,
    LayoutAwareChunk,
    Section,
    Sentence,
)
from .scores import (
    AttributabilityScore,
    ChunkDiagnosis,
    CitationScore,
    DiagnosticScores,
    DirectAnswerScore,
    DocumentAnalysis,
    EntityMatch,
    EntityProminenceScore,
    EvidenceScore,
    FormatScore,
    LexicalScore,
    QueryRestatementScore,
    RerankScore,
    SpecificClaim,
    StructuralClarityScore,
    TermMatch,
    TermPosition,
)
from .assignment import ChunkAssignment, ChunkScoreData, QueryAssignment, QueryAssignmentMap
from .api import AnalyzeRequest, AnalyzeResponse, ChunkingOptionsPayload, ChunkRequest, ChunkResponse

__all__ = [
    "BodyElement",
    "ChunkMetadata",
    "ChunkerOptions",
    "ConfigurationError",
    "HeadingInfo",
    "LayoutAwareChunk",
    "Section",
    "Sentence",
    "AttributabilityScore",
    "ChunkDiagnosis",
    "CitationScore",
    "DiagnosticScores",
    "DirectAnswerScore",
    "DocumentAnalysis",
    "EntityMatch",
    "EntityProminenceScore",
    "EvidenceScore",
    "FormatScore",
    "LexicalScore",
    "QueryRestatementScore",
    "RerankScore",
    "SpecificClaim",
    "StructuralClarityScore",
    "TermMatch",
    "TermPosition",
    "ChunkAssignment",
    "ChunkScoreData",
    "QueryAssignment",
    "QueryAssignmentMap",
    "AnalyzeRequest",
    "AnalyzeResponse",
    "ChunkingOptionsPayload",
    "ChunkRequest",
    "ChunkResponse",
]
