"""Chunk data models."""
from dataclasses import dataclass, field
from typing import List, Tuple

import config


class ConfigurationError(ValueError):
    """Raised when chunker options are rejected before chunking begins."""


@dataclass(frozen=True)
class HeadingInfo:
    """A markdown heading; level is the count of leading '#' characters."""
    level: int
    text: str


@dataclass(frozen=True)
class BodyElement:
    """One parsed block of body content under a heading."""
    type: str  # paragraph | list | table | blockquote | code
    content: str
    tokens: int
    line_start: int
    line_end: int


@dataclass
class Section:
    """All body content under one heading stack, up to the next heading."""
    headings: List[HeadingInfo]
    body_elements: List[BodyElement] = field(default_factory=list)
    body_tokens: int = 0
    line_start: int = 0
    line_end: int = 0

    @property
    def body_text(self) -> str:
        return "\n\n".join(element.content for element in self.body_elements)


@dataclass(frozen=True)
class ChunkMetadata:
    """Size and structure facts about a chunk; token_estimate excludes the cascade."""
    has_cascade: bool
    heading_levels: List[int]
    word_count: int
    char_count: int
    token_estimate: int
    cascade_tokens: int


@dataclass(frozen=True)
class LayoutAwareChunk:
    """Represents a layout-aware chunk: heading cascade plus body."""
    id: str  # Format: "chunk-{index}"
    text: str
    text_without_cascade: str
    heading_path: List[str]
    source_lines: Tuple[int, int]
    metadata: ChunkMetadata


@dataclass(frozen=True)
class ChunkerOptions:
    """
    Options for the layout-aware chunker.

    Attributes:
        max_chunk_size: Body-token budget per chunk (cascade is free)
        chunk_overlap: Token overlap carried between sub-chunks of a split section
        cascade_headings: Prefix each chunk with its ancestor headings
    """
    max_chunk_size: int = 512
    chunk_overlap: int = 50
    cascade_headings: bool = True

    @classmethod
    def from_config(cls) -> "ChunkerOptions":
        """Build options from environment-backed configuration."""
        return cls(
            max_chunk_size=config.CHUNK_SIZE,
            chunk_overlap=config.CHUNK_OVERLAP,
            cascade_headings=config.CASCADE_HEADINGS,
        )

    def validate(self) -> "ChunkerOptions":
        """
        Reject invalid option combinations.

        Raises:
            ConfigurationError: If the size or overlap values are unusable
        """
        if not isinstance(self.max_chunk_size, int) or self.max_chunk_size <= 0:
            raise ConfigurationError(
                f"max_chunk_size must be a positive integer, got {self.max_chunk_size!r}"
            )
        if not isinstance(self.chunk_overlap, int) or self.chunk_overlap < 0:
            raise ConfigurationError(
                f"chunk_overlap must be a non-negative integer, got {self.chunk_overlap!r}"
            )
        if self.chunk_overlap >= self.max_chunk_size:
            raise ConfigurationError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"max_chunk_size ({self.max_chunk_size})"
            )
        return self


@dataclass(frozen=True)
class Sentence:
    """A sentence-like unit with its character span in the source text."""
    text: str
    index: int
    char_start: int
    char_end: int
    word_count: int
