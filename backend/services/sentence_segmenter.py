"""Sentence and clause segmentation used by the chunker and the scorers."""
import logging
import re
from typing import Dict, List, Optional

from models.chunk import Sentence

logger = logging.getLogger(__name__)

# Blank-line blocks, newlines before list items, and inline list items that lead with bold text
_STRUCTURAL_BOUNDARY = re.compile(
    r"\n[ \t]*\n+"
    r"|\n(?=[ \t]*(?:[-*+•]|\d+[.)])\s)"
    r"|[ \t]+(?=\d+\.\s+\*\*)"
    r"|[ \t]+(?=[-•]\s+\*\*)"
)

_TERMINATOR = re.compile(r"[.!?]+(?=\s|$)")
_NUMBERED_MARKER_END = re.compile(r"(?:^|\s)\d+\.$")
_LEADING_MARKER = re.compile(r"^\s*(?:#{1,6}\s+|>\s*|[-*+•]\s+|\d+[.)]\s+)")

_CLAUSE_BOUNDARY = re.compile(r"[,;]|\s+(?:and|or|but|while|when|if)\s+", re.IGNORECASE)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def _split_on_terminators(text: str) -> List[str]:
    """
    Split text after sentence-terminal punctuation followed by whitespace.

    A period that closes a numbered-list marker such as "2." is not treated as
    a sentence end. Pieces are stripped; empty pieces are dropped. No
    non-whitespace character is lost.
    """
    pieces = []
    start = 0
    for match in _TERMINATOR.finditer(text):
        candidate = text[start:match.end()]
        if match.group() == "." and _NUMBERED_MARKER_END.search(candidate):
            continue
        if candidate.strip():
            pieces.append(candidate.strip())
        start = match.end()

    tail = text[start:].strip()
    if tail:
        pieces.append(tail)
    return pieces


def _split_block(block: str) -> List[str]:
    if _TERMINATOR.search(block):
        return _split_on_terminators(block)
    return [line.strip() for line in block.split("\n") if line.strip()]


def split_prose(text: str) -> List[str]:
    """
    Split prose into sentence pieces without discarding anything.

    Used when a block must be broken up for token budgeting, so joining the
    pieces with whitespace reproduces every non-whitespace character.
    """
    if not text or not text.strip():
        return []
    return _split_on_terminators(text)


def split_into_sentences(text: str, log: Optional[logging.Logger] = None) -> List[Sentence]:
    """
    Split text into sentence-like units.

    The text is first cut at markdown structure (blank lines, newlines that
    start a list item, list items that lead with bold text). Each block is then
    split on terminal punctuation, or on newlines when it has none. Leading
    list and heading markers are stripped and units of fewer than two words are
    dropped. If nothing survives, the whole text becomes one sentence.

    Args:
        text: Raw text, markdown allowed
        log: Optional logger for segmentation decisions

    Returns:
        Ordered list of Sentence objects with character spans into text
    """
    log = log or logger
    if not text or not text.strip():
        return []

    units = []
    for block in _STRUCTURAL_BOUNDARY.split(text):
        if not block or not block.strip():
            continue
        for piece in _split_block(block):
            cleaned = _LEADING_MARKER.sub("", piece, count=1).strip()
            if count_words(cleaned) >= 2:
                units.append(cleaned)

    log.debug(f"Segmented {len(text)} chars into {len(units)} sentence units")

    if not units:
        stripped = text.strip()
        return [Sentence(
            text=stripped,
            index=0,
            char_start=text.find(stripped),
            char_end=text.find(stripped) + len(stripped),
            word_count=count_words(stripped),
        )]

    sentences = []
    cursor = 0
    for index, unit in enumerate(units):
        start = text.find(unit, cursor)
        if start < 0:
            start = cursor
        end = start + len(unit)
        cursor = max(cursor, end)
        sentences.append(Sentence(
            text=unit,
            index=index,
            char_start=start,
            char_end=end,
            word_count=count_words(unit),
        ))
    return sentences


def get_sentence_texts(text: str) -> List[str]:
    """Return just the sentence strings for text."""
    return [sentence.text for sentence in split_into_sentences(text)]


def split_query_into_clauses(query: str) -> List[str]:
    """
    Split a query into clauses on commas, semicolons and conjunctions.

    Clauses under two words are dropped. When fewer than two clauses remain the
    whole trimmed query is returned as the only clause.
    """
    if not query or not query.strip():
        return []

    clauses = [
        clause.strip()
        for clause in _CLAUSE_BOUNDARY.split(query)
        if clause and count_words(clause) >= 2
    ]
    if len(clauses) < 2:
        return [query.strip()]
    return clauses


def estimate_sentence_embedding_count(chunks: List[str], queries: List[str]) -> Dict[str, int]:
    """Estimate how many embeddings sentence-level analysis of chunks x queries needs."""
    chunk_sentences = sum(len(split_into_sentences(chunk)) for chunk in chunks)
    query_clauses = sum(len(split_query_into_clauses(query)) for query in queries)
    return {
        "chunk_sentences": chunk_sentences,
        "query_clauses": query_clauses,
        "total": chunk_sentences + query_clauses,
    }
