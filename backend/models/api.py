"""API request and response payloads."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

import config
from models.chunk import ChunkerOptions


class ChunkingOptionsPayload(BaseModel):
    """Chunker options; unset values fall back to configuration."""

    max_chunk_size: Optional[int] = None
    chunk_overlap: Optional[int] = None
    cascade_headings: Optional[bool] = None

    def to_options(self) -> ChunkerOptions:
        return ChunkerOptions(
            max_chunk_size=self.max_chunk_size if self.max_chunk_size is not None else config.CHUNK_SIZE,
            chunk_overlap=self.chunk_overlap if self.chunk_overlap is not None else config.CHUNK_OVERLAP,
            cascade_headings=(
                self.cascade_headings if self.cascade_headings is not None else config.CASCADE_HEADINGS
            ),
        )


class ChunkRequest(BaseModel):
    markdown: str
    options: ChunkingOptionsPayload = Field(default_factory=ChunkingOptionsPayload)


class ChunkResponse(BaseModel):
    chunks: List[Dict[str, Any]] = Field(default_factory=list)
    stats: Dict[str, int] = Field(default_factory=dict)


class AnalyzeRequest(BaseModel):
    """
    Document analysis request.

    semantic_scores maps each query to one similarity per chunk, in chunk
    order, on a 0-1 or 0-100 scale. Missing values count as 0.
    """

    markdown: str
    queries: List[str] = Field(default_factory=list)
    semantic_scores: Dict[str, List[float]] = Field(default_factory=dict)
    options: ChunkingOptionsPayload = Field(default_factory=ChunkingOptionsPayload)
    min_assignment_score: Optional[float] = None


class AnalyzeResponse(BaseModel):
    chunks: List[Dict[str, Any]] = Field(default_factory=list)
    results: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)
    assignments: Dict[str, Any] = Field(default_factory=dict)
