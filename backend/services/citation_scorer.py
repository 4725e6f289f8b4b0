"""
Citation stage scoring.

Predicts whether a generator would quote or cite a chunk, from three signals:
attributability (specific vs vague claims), evidence strength (verifiable
data) and citation format (quotable, standalone sentences).
"""
import logging
import re
from typing import List, Optional

from models.scores import (
    AttributabilityScore,
    CitationScore,
    EvidenceScore,
    FormatScore,
    SpecificClaim,
)
from services.score_utils import clamp_score
from services.sentence_segmenter import split_into_sentences

logger = logging.getLogger(__name__)

STATISTIC_PATTERN = re.compile(
    r"\d+(?:\.\d+)?%|\$\d+[\d,]*|\d+\s*(?:percent|dollars|million|billion|thousand|k|M)\b", re.IGNORECASE
)
DATE_PATTERN = re.compile(
    r"\b(?:19|20)\d{2}\b|\b(?:January|February|March|April|May|June|July|August|September|October"
    r"|November|December)\s+\d{1,2}(?:,?\s+\d{4})?",
    re.IGNORECASE,
)
NAMED_ENTITY_PATTERN = re.compile(r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+")
DEFINITION_PATTERN = re.compile(
    r"\b(?:is defined as|refers to|means|is called|is a type of|is an?|are)\b", re.IGNORECASE
)
PROCESS_PATTERN = re.compile(r"\b(?:first|second|third|then|next|finally|step \d|phase \d|stage \d)\b", re.IGNORECASE)
COMPARISON_PATTERN = re.compile(
    r"\b(?:compared to|versus|vs\.?|more than|less than|better than|worse than|higher than|lower than"
    r"|greater than|fewer than|unlike|whereas)\b",
    re.IGNORECASE,
)

# First match wins
CLAIM_PATTERNS = [
    ("statistic", STATISTIC_PATTERN, "Contains specific statistic: {}"),
    ("date", DATE_PATTERN, "Contains specific date: {}"),
    ("name", NAMED_ENTITY_PATTERN, "Contains named entity: {}"),
    ("definition", DEFINITION_PATTERN, "Contains definition structure"),
    ("process", PROCESS_PATTERN, "Describes a step or process"),
    ("comparison", COMPARISON_PATTERN, "Contains explicit comparison"),
]

VAGUE_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"\b(?:many|some|most|few|various|several)\s+(?:people|companies|organizations|experts|users"
        r"|customers|businesses|teams)\b",
        r"\b(?:often|sometimes|frequently|occasionally|typically|usually|generally|commonly|regularly)\b",
        r"\bit is (?:said|believed|thought|known|important|essential|crucial|vital|key|necessary)\b",
        r"\bthere are (?:many|some|various|numerous) (?:benefits|advantages|reasons|factors|ways|options|methods)\b",
        r"\b(?:can|may|might|could) (?:help|improve|enhance|boost|increase|reduce|minimize|optimize)\b",
        r"\b(?:significant|substantial|considerable|notable|meaningful) (?:impact|effect|improvement|benefit"
        r"|difference|change)\b",
        r"\b(?:in general|for the most part|by and large|more or less|to some extent)\b",
        r"\b(?:things|stuff|aspects|elements|components) (?:like|such as)\b",
        r"\b(?:it'?s?\s+worth\s+noting|importantly|interestingly|notably)\b",
    )
]

SOURCE_REFERENCE_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"\baccording to\b",
        r"\bresearch (?:shows?|suggests?|indicates?|demonstrates?)\b",
        r"\bstud(?:y|ies) (?:by|from|shows?|found)\b",
        r"\breport(?:s|ed)? (?:by|from|that)\b",
        r"\b(?:data|statistics|findings) (?:from|show|indicate)\b",
        r"\[\d+\]|\[citation\]|\(source\)",
        r"\bsurve(?:y|yed)\s+\d+",
    )
]

CONTEXT_DEPENDENT_START = re.compile(
    r"^(?:this|it|they|these|those|however|therefore|thus|hence|moreover|furthermore|additionally"
    r"|also|but|and|so|yet|still|meanwhile|consequently|as a result)\b",
    re.IGNORECASE,
)
BACKWARD_REFERENCE_START = re.compile(
    r"^(?:this|it|they|these|those|he|she|such|the\s+above|the\s+following)\b", re.IGNORECASE
)
NOUN_VERB_PATTERN = re.compile(
    r"\b(?:the|a|an|\w+s?)\b.*\b(?:is|are|was|were|has|have|had|does|do|did|can|will|would|should|must"
    r"|takes?|costs?|requires?|provides?|includes?|shows?|means?)\b",
    re.IGNORECASE,
)
EXPLICIT_STATEMENT_PATTERNS = [
    re.compile(r"^[A-Z][a-z]+(?:\s+[A-Z]?[a-z]+)*\s+(?:is|are|was|were|has|have|provides?|includes?|requires?"
               r"|takes?|costs?)\b"),
    re.compile(r"^The\s+\w+\s+(?:is|are|was|were)\b"),
    re.compile(r"^[A-Z][A-Z]+\s+(?:is|are|stands for)\b"),
]


def get_sentences(text: str) -> List[str]:
    """Sentences long enough to carry a claim (more than 10 characters)."""
    return [s.text.strip() for s in split_into_sentences(text) if len(s.text.strip()) > 10]


class CitationScorer:
    """
    Scores citation likelihood for a chunk.

    score = attributability * 0.40 + evidence strength * 0.35 + citation format * 0.25
    """

    ATTRIBUTABILITY_WEIGHT = 0.40
    EVIDENCE_WEIGHT = 0.35
    FORMAT_WEIGHT = 0.25

    NEUTRAL_SCORE = 50
    VAGUE_PENALTY = 30

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def find_specific_claims(sentences: List[str]) -> List[SpecificClaim]:
        """Classify each sentence into at most one specific claim type."""
        claims = []
        for sentence in sentences:
            for claim_type, pattern, reason in CLAIM_PATTERNS:
                match = pattern.search(sentence)
                if match:
                    claims.append(SpecificClaim(sentence=sentence, type=claim_type, reason=reason.format(match.group())))
                    break
        return claims

    @staticmethod
    def find_vague_claims(sentences: List[str], claims: List[SpecificClaim]) -> List[str]:
        specific = {claim.sentence for claim in claims}
        return [
            sentence for sentence in sentences
            if sentence not in specific and any(p.search(sentence) for p in VAGUE_PATTERNS)
        ]

    @staticmethod
    def find_quotable_sentences(sentences: List[str], claims: List[SpecificClaim]) -> List[str]:
        """
        Sentences suitable for direct quotation.

        Declarative, 5-30 words, not opening with a context-dependent word, and
        either a specific claim or containing a noun and verb.
        """
        specific = {claim.sentence for claim in claims}
        quotable = []
        for sentence in sentences:
            if sentence.endswith("?"):
                continue
            if not 5 <= len(sentence.split()) <= 30:
                continue
            if CONTEXT_DEPENDENT_START.search(sentence):
                continue
            if sentence in specific or NOUN_VERB_PATTERN.search(sentence):
                quotable.append(sentence)
        return quotable

    def attributability(self, text: str) -> AttributabilityScore:
        """
        Score specific versus vague claims.

        100 * specific/total - 30 * vague/total, plus 10 for a statistic, 5 for a
        definition and 5 for a comparison. Text with no sentences is neutral.
        """
        sentences = get_sentences(text)
        claims = self.find_specific_claims(sentences)
        vague = self.find_vague_claims(sentences, claims)
        total = len(sentences)

        if total == 0:
            return AttributabilityScore(
                score=self.NEUTRAL_SCORE, specific_claims=[], vague_claims=[], total_sentences=0
            )

        raw = len(claims) / total * 100 - len(vague) / total * self.VAGUE_PENALTY
        claim_types = {claim.type for claim in claims}
        if "statistic" in claim_types:
            raw += 10
        if "definition" in claim_types:
            raw += 5
        if "comparison" in claim_types:
            raw += 5

        return AttributabilityScore(
            score=clamp_score(raw), specific_claims=claims, vague_claims=vague, total_sentences=total
        )

    @staticmethod
    def evidence_strength(text: str) -> EvidenceScore:
        """+25 each for numbers, named entities, dates and source references."""
        has_numbers = bool(re.search(r"\d+(?:\.\d+)?", text))
        has_names = bool(NAMED_ENTITY_PATTERN.search(text))
        has_dates = bool(DATE_PATTERN.search(text))
        has_source_reference = any(p.search(text) for p in SOURCE_REFERENCE_PATTERNS)

        evidence_types = [
            name for name, present in (
                ("numeric_data", has_numbers),
                ("named_entities", has_names),
                ("dates", has_dates),
                ("source_reference", has_source_reference),
            ) if present
        ]
        return EvidenceScore(
            score=min(100, 25 * len(evidence_types)),
            has_numbers=has_numbers,
            has_names=has_names,
            has_dates=has_dates,
            has_source_reference=has_source_reference,
            evidence_types=evidence_types,
        )

    def citation_format(self, text: str) -> FormatScore:
        """
        Score quotability.

        10 per quotable sentence (up to 40), 30 for an explicit declarative
        opening and 30 when the first sentence stands alone.
        """
        sentences = get_sentences(text)
        quotable = self.find_quotable_sentences(sentences, self.find_specific_claims(sentences))
        opening = text.strip()

        has_explicit_statement = any(p.search(opening) for p in EXPLICIT_STATEMENT_PATTERNS)
        first = sentences[0] if sentences else ""
        is_standalone = bool(first) and not BACKWARD_REFERENCE_START.search(first)

        score = min(40, 10 * len(quotable))
        if has_explicit_statement:
            score += 30
        if is_standalone:
            score += 30

        return FormatScore(
            score=min(100, score),
            quotable_sentences=quotable,
            has_explicit_statement=has_explicit_statement,
            is_standalone=is_standalone,
        )

    def score(self, chunk_text: str, chunk_body: str) -> CitationScore:
        """
        Calculate the complete citation score for a chunk.

        Args:
            chunk_text: Full chunk text including cascade
            chunk_body: Chunk text without cascade (preferred for analysis)

        Returns:
            CitationScore with attributability, evidence and format sub-scores
        """
        text = chunk_body or chunk_text or ""

        attributability = self.attributability(text)
        evidence = self.evidence_strength(text)
        citation_format = self.citation_format(text)

        score = clamp_score(
            attributability.score * self.ATTRIBUTABILITY_WEIGHT
            + evidence.score * self.EVIDENCE_WEIGHT
            + citation_format.score * self.FORMAT_WEIGHT
        )

        self.logger.debug(
            f"Citation score {score}: attributability={attributability.score}, "
            f"evidence={evidence.score}, format={citation_format.score}"
        )

        return CitationScore(
            score=score,
            attributability=attributability,
            evidence_strength=evidence,
            citation_format=citation_format,
        )


_default_scorer = CitationScorer()


def calculate_citation_score(chunk_text: str, chunk_body: str) -> CitationScore:
    return _default_scorer.score(chunk_text, chunk_body)
