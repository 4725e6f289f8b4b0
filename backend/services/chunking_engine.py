"""Layout-aware chunking engine with heading cascade injection."""
import logging
import math
import re
from typing import Dict, List, Optional, Tuple

from models.chunk import (
    BodyElement,
    ChunkMetadata,
    ChunkerOptions,
    HeadingInfo,
    LayoutAwareChunk,
    Section,
)
from services.sentence_segmenter import split_prose

logger = logging.getLogger(__name__)

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
FENCE_PATTERN = re.compile(r"^(```|~~~)")
TABLE_PATTERN = re.compile(r"^\|")
BLOCKQUOTE_PATTERN = re.compile(r"^>")
LIST_ITEM_PATTERN = re.compile(r"^(?:[-*+]\s+|\d+\.\s+)")
INDENTED_PATTERN = re.compile(r"^\s+\S")
PARAGRAPH_STOP_PATTERN = re.compile(r"^(?:#{1,6}\s|[-*+]\s+|\d+\.\s+|\||```|~~~|>)")

# Blocks that open with a list or table marker stay whole when a section is split
STRUCTURED_BLOCK_PATTERN = re.compile(r"^(?:[-*+]|\d+\.|\|)", re.MULTILINE)

SMALL_SEGMENT_TOKENS = 100


def estimate_tokens(text: str) -> int:
    """Estimate token count from text (1 token ~ 4 characters)."""
    return math.ceil(len(text) / 4)


def get_word_count(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def build_cascade_text(headings: List[HeadingInfo]) -> str:
    """Render a heading stack as markdown headings separated by blank lines."""
    return "\n\n".join("#" * heading.level + " " + heading.text for heading in headings)


class ChunkingEngine:
    """Splits markdown into layout-aware, token-bounded chunks with cascading headings."""

    def __init__(self, options: Optional[ChunkerOptions] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize ChunkingEngine.

        Args:
            options: Chunker options; defaults come from configuration
            logger: Optional logger that receives parse and split decisions

        Raises:
            ConfigurationError: If the options are invalid
        """
        self.options = (options or ChunkerOptions.from_config()).validate()
        self.logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Phase A: section parsing
    # ------------------------------------------------------------------

    def parse_sections(self, markdown: str) -> List[Section]:
        """
        Parse markdown into sections.

        A section is all body content under one heading stack, up to the next
        heading. Sections without body content are dropped.

        Args:
            markdown: Raw markdown text

        Returns:
            Ordered list of Section objects
        """
        lines = markdown.replace("\r\n", "\n").split("\n")
        sections: List[Section] = []
        heading_stack: List[HeadingInfo] = []
        current: Optional[Section] = None

        i = 0
        while i < len(lines):
            line = lines[i]

            heading_match = HEADING_PATTERN.match(line)
            if heading_match:
                if current is not None and current.body_elements:
                    sections.append(current)

                level = len(heading_match.group(1))
                while heading_stack and heading_stack[-1].level >= level:
                    heading_stack.pop()
                heading_stack.append(HeadingInfo(level=level, text=heading_match.group(2).strip()))

                current = Section(headings=list(heading_stack), line_start=i, line_end=i)
                i += 1
                continue

            if not line.strip():
                i += 1
                continue

            if current is None:
                # Content before the first heading
                current = Section(headings=[], line_start=i, line_end=i)

            element = self._parse_body_element(lines, i)
            current.body_elements.append(element)
            current.body_tokens += element.tokens
            current.line_end = element.line_end
            i = element.line_end + 1

        if current is not None and current.body_elements:
            sections.append(current)

        self.logger.debug(f"Parsed {len(sections)} sections from {len(lines)} lines")
        return sections

    def _parse_body_element(self, lines: List[str], start: int) -> BodyElement:
        line = lines[start]
        if FENCE_PATTERN.match(line):
            return self._parse_code_block(lines, start)
        if TABLE_PATTERN.match(line):
            return self._parse_table(lines, start)
        if BLOCKQUOTE_PATTERN.match(line):
            return self._parse_blockquote(lines, start)
        if LIST_ITEM_PATTERN.match(line):
            return self._parse_list(lines, start)
        return self._parse_paragraph(lines, start)

    @staticmethod
    def _element(element_type: str, element_lines: List[str], start: int, end: int) -> BodyElement:
        content = "\n".join(element_lines)
        return BodyElement(
            type=element_type,
            content=content,
            tokens=estimate_tokens(content),
            line_start=start,
            line_end=end,
        )

    def _parse_code_block(self, lines: List[str], start: int) -> BodyElement:
        fence = FENCE_PATTERN.match(lines[start]).group(1)
        code_lines = [lines[start]]
        i = start + 1
        while i < len(lines):
            code_lines.append(lines[i])
            if lines[i].startswith(fence):
                break
            i += 1
        else:
            self.logger.debug(f"Unterminated code fence at line {start}, consuming to end of document")
        return self._element("code", code_lines, start, min(i, len(lines) - 1))

    def _parse_table(self, lines: List[str], start: int) -> BodyElement:
        i = start
        while i < len(lines) and TABLE_PATTERN.match(lines[i]):
            i += 1
        return self._element("table", lines[start:i], start, i - 1)

    def _parse_blockquote(self, lines: List[str], start: int) -> BodyElement:
        i = start
        while i < len(lines):
            if BLOCKQUOTE_PATTERN.match(lines[i]):
                i += 1
            elif not lines[i].strip() and i + 1 < len(lines) and BLOCKQUOTE_PATTERN.match(lines[i + 1]):
                i += 1
            else:
                break
        return self._element("blockquote", lines[start:i], start, i - 1)

    def _parse_list(self, lines: List[str], start: int) -> BodyElement:
        i = start
        while i < len(lines):
            line = lines[i]
            if LIST_ITEM_PATTERN.match(line) or INDENTED_PATTERN.match(line):
                i += 1
            elif not line.strip() and i + 1 < len(lines) and (
                LIST_ITEM_PATTERN.match(lines[i + 1]) or INDENTED_PATTERN.match(lines[i + 1])
            ):
                i += 1
            else:
                break
        return self._element("list", lines[start:i], start, i - 1)

    def _parse_paragraph(self, lines: List[str], start: int) -> BodyElement:
        i = start + 1
        while i < len(lines):
            line = lines[i]
            if not line.strip() or PARAGRAPH_STOP_PATTERN.match(line):
                break
            i += 1
        return self._element("paragraph", lines[start:i], start, i - 1)

    # ------------------------------------------------------------------
    # Phase B: chunk assembly
    # ------------------------------------------------------------------

    def chunk(self, markdown: str) -> List[LayoutAwareChunk]:
        """
        Create layout-aware chunks from markdown.

        Args:
            markdown: Raw markdown text

        Returns:
            Ordered list of LayoutAwareChunk objects with deterministic ids
        """
        if not markdown or not markdown.strip():
            return []
        return self.chunk_sections(self.parse_sections(markdown))

    def chunk_sections(self, sections: List[Section]) -> List[LayoutAwareChunk]:
        """Assemble chunks from parsed sections, splitting any that exceed the budget."""
        max_tokens = self.options.max_chunk_size
        chunks: List[LayoutAwareChunk] = []

        for section in sections:
            cascade = build_cascade_text(section.headings) if self.options.cascade_headings else ""

            if section.body_tokens <= max_tokens:
                chunks.append(self._create_chunk(len(chunks), cascade, section.body_text, section, section.body_tokens))
                continue

            self.logger.debug(
                f"Section {[h.text for h in section.headings]} has {section.body_tokens} tokens "
                f"(max {max_tokens}), splitting with overlap {self.options.chunk_overlap}"
            )
            for content, tokens in self._split_section(section):
                chunks.append(self._create_chunk(len(chunks), cascade, content, section, tokens))

        self.logger.info(f"Created {len(chunks)} chunks from {len(sections)} sections")
        return chunks

    def _split_into_segments(self, body: str) -> List[str]:
        """Split section body into segments; lists and tables stay whole, long prose splits by sentence."""
        segments: List[str] = []
        for block in re.split(r"\n\n+", body):
            if not block.strip():
                continue
            if estimate_tokens(block) <= SMALL_SEGMENT_TOKENS or STRUCTURED_BLOCK_PATTERN.search(block):
                segments.append(block)
            else:
                segments.extend(split_prose(block))

        bounded: List[str] = []
        for segment in segments:
            if estimate_tokens(segment) > self.options.max_chunk_size:
                bounded.extend(self._hard_split(segment))
            else:
                bounded.append(segment)
        return bounded

    def _hard_split(self, segment: str) -> List[str]:
        """Break an oversized segment by lines, then words, then characters."""
        limit = self.options.max_chunk_size * 4
        pieces: List[str] = []

        def pack(parts: List[str], joiner: str) -> None:
            current = ""
            for part in parts:
                candidate = part if not current else current + joiner + part
                if len(candidate) <= limit:
                    current = candidate
                    continue
                if current:
                    pieces.append(current)
                current = part
            if current:
                pieces.append(current)

        units: List[str] = []
        for line in segment.split("\n"):
            if len(line) <= limit:
                units.append(line)
                continue
            for word in line.split():
                if len(word) <= limit:
                    units.append(word)
                else:
                    units.extend(word[k:k + limit] for k in range(0, len(word), limit))

        # Lines and words are packed greedily with newline joins
        pack([unit for unit in units if unit.strip()], "\n")
        self.logger.debug(f"Hard-split oversized segment of {len(segment)} chars into {len(pieces)} pieces")
        return pieces

    def _split_section(self, section: Section) -> List[Tuple[str, int]]:
        """
        Split a section's body into token-bounded chunks with overlap.

        Segments are accumulated greedily. When the next segment would exceed
        the budget the chunk is flushed and the next chunk is seeded with the
        trailing segments whose combined size fits within chunk_overlap.
        """
        max_tokens = self.options.max_chunk_size
        overlap_tokens = self.options.chunk_overlap
        results: List[Tuple[str, int]] = []

        current: List[str] = []
        current_tokens = 0
        has_new_content = False

        for segment in self._split_into_segments(section.body_text):
            segment_tokens = estimate_tokens(segment)

            if current and current_tokens + segment_tokens > max_tokens:
                if has_new_content:
                    results.append(("\n\n".join(current), current_tokens))
                    current = self._overlap_buffer(current, overlap_tokens)
                    has_new_content = False
                while current and sum(estimate_tokens(s) for s in current) + segment_tokens > max_tokens:
                    current.pop(0)
                current_tokens = sum(estimate_tokens(s) for s in current)

            current.append(segment)
            current_tokens += segment_tokens
            has_new_content = True

        if current and has_new_content:
            results.append(("\n\n".join(current), current_tokens))

        return results

    @staticmethod
    def _overlap_buffer(segments: List[str], overlap_tokens: int) -> List[str]:
        """
        Trailing segments whose combined size fits within overlap_tokens.

        Empty when the last segment alone exceeds overlap_tokens, so the next
        chunk then starts with no overlap.
        """
        buffer: List[str] = []
        total = 0
        for segment in reversed(segments):
            tokens = estimate_tokens(segment)
            if total + tokens > overlap_tokens:
                break
            buffer.insert(0, segment)
            total += tokens
        return buffer

    @staticmethod
    def _create_chunk(index: int, cascade: str, body: str, section: Section, body_tokens: int) -> LayoutAwareChunk:
        return LayoutAwareChunk(
            id=f"chunk-{index}",
            text=f"{cascade}\n\n{body}" if cascade else body,
            text_without_cascade=body,
            heading_path=[heading.text for heading in section.headings],
            source_lines=(section.line_start, section.line_end),
            metadata=ChunkMetadata(
                has_cascade=bool(cascade),
                heading_levels=[heading.level for heading in section.headings],
                word_count=get_word_count(body),
                char_count=len(body),
                token_estimate=body_tokens,
                cascade_tokens=estimate_tokens(cascade),
            ),
        )

    # ------------------------------------------------------------------
    # Document statistics
    # ------------------------------------------------------------------

    def get_document_stats(self, markdown: str) -> Dict[str, int]:
        """
        Summarize document structure.

        Heading counts include only headings that own body content.

        Returns:
            Dictionary with char/word counts, paragraph (body element) count,
            heading count and per-level h1..h6 counts
        """
        sections = self.parse_sections(markdown) if markdown else []
        stats = {
            "char_count": len(markdown or ""),
            "word_count": get_word_count(markdown or ""),
            "paragraph_count": sum(len(section.body_elements) for section in sections),
            "heading_count": 0,
        }
        level_counts = {f"h{level}_count": 0 for level in range(1, 7)}
        for section in sections:
            if section.headings:
                stats["heading_count"] += 1
                level_counts[f"h{section.headings[-1].level}_count"] += 1
        stats.update(level_counts)
        return stats

    def preview_chunk_count(self, markdown: str) -> int:
        """Number of chunks the document would produce with these options."""
        return len(self.chunk(markdown))


def create_layout_aware_chunks(markdown: str, options: Optional[ChunkerOptions] = None) -> List[LayoutAwareChunk]:
    """Chunk markdown with the given options (defaults from configuration)."""
    return ChunkingEngine(options).chunk(markdown)


def get_document_stats(markdown: str) -> Dict[str, int]:
    return ChunkingEngine(ChunkerOptions()).get_document_stats(markdown)


def preview_chunk_count(markdown: str, options: Optional[ChunkerOptions] = None) -> int:
    return ChunkingEngine(options).preview_chunk_count(markdown)
