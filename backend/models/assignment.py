"""Query-to-chunk assignment models."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ChunkScoreData:
    """Passage scores of one chunk, keyed by query."""
    chunk_index: int
    text: str
    scores: Dict[str, float]
    heading: Optional[str] = None


@dataclass(frozen=True)
class QueryAssignment:
    query: str
    assigned_chunk_index: int
    score: float
    is_primary: bool


@dataclass(frozen=True)
class ChunkAssignment:
    """Queries assigned to one chunk, primary query first then by score."""
    chunk_index: int
    chunk_preview: str
    assigned_queries: List[QueryAssignment]
    average_score: float
    chunk_heading: Optional[str] = None


@dataclass(frozen=True)
class QueryAssignmentMap:
    assignments: List[QueryAssignment] = field(default_factory=list)
    chunk_assignments: List[ChunkAssignment] = field(default_factory=list)
    unassigned_queries: List[str] = field(default_factory=list)
