"""
Query analysis: term tokenization, heuristic entity extraction and query typing.

Entity extraction is regex based. It recognizes capitalized phrases, known
domain acronyms, all-caps tokens, numbers with units and quoted phrases.
"""
import re
from typing import List

STOPWORDS = frozenset({
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "dare",
    "to", "of", "in", "for", "on", "with", "at", "by", "from", "as",
    "into", "through", "during", "before", "after", "above", "below",
    "between", "under", "again", "further", "then", "once", "here",
    "there", "when", "where", "why", "how", "all", "each", "few",
    "more", "most", "other", "some", "such", "no", "nor", "not",
    "only", "own", "same", "so", "than", "too", "very", "just",
    "and", "but", "if", "or", "because", "until", "while", "this",
    "that", "these", "those", "what", "which", "who", "whom", "am",
    "i", "me", "my", "myself", "we", "our", "ours", "you", "your", "yours",
    "he", "him", "his", "she", "her", "hers", "it", "its", "itself",
    "they", "them", "their", "theirs", "us",
})

DOMAIN_ACRONYMS = frozenset({
    "RPO", "ATS", "SAAS", "API", "ROI", "KPI", "B2B", "B2C", "GDPR",
    "CRM", "ERP", "HR", "HCM", "AI", "ML", "NLP", "LLM", "RAG",
    "SEO", "PPC", "CTR", "CPM", "CPC", "CAC", "LTV", "MRR", "ARR",
    "SLA", "SOC", "ISO", "PCI", "HIPAA", "CCPA", "SDK", "REST",
    "JSON", "SQL", "NOSQL", "ETL", "BI", "KYC", "AML", "PII",
    "SSO", "MFA", "RBAC", "VPN", "CDN", "DNS", "SSL", "TLS",
    "MVP", "POC", "UAT", "QA", "CI", "CD", "DEVOPS", "SRE",
})

_PUNCTUATION = re.compile(r"[^\w\s-]")
_PROPER_NOUN_PHRASE = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)\b")
_CAPITALIZED_WORD = re.compile(r"\b([A-Z][a-z]{2,})\b")
_SENTENCE_START = re.compile(r"(?:^|[.!?]\s+)$")
_NUMBER_WITH_UNIT = re.compile(
    r"\b(\d+(?:[-–]\d+)?\s*(?:days?|weeks?|months?|years?|hours?|minutes?|dollars?|%|percent|k|m|million|billion))(?!\w)",
    re.IGNORECASE,
)
_QUOTED = re.compile(r"[\"“”']([^\"“”']+)[\"“”']")
_ALL_CAPS = re.compile(r"\b([A-Z]{2,})\b")

# Query type detection, in priority order
QUERY_TYPES = [
    ("duration", re.compile(r"how\s+long|duration|time|take", re.IGNORECASE),
     "timeframes (days, weeks, phases)"),
    ("cost", re.compile(r"how\s+much|cost|price|fee", re.IGNORECASE),
     "pricing data ($X, ranges)"),
    ("definition", re.compile(r"what\s+is|what\s+are|define", re.IGNORECASE),
     "clear definition"),
    ("reason", re.compile(r"why|reason", re.IGNORECASE),
     "explicit reasons/causes"),
    ("process", re.compile(r"how\s+to|steps|process", re.IGNORECASE),
     "step-by-step process"),
    ("recommendation", re.compile(r"best|top|recommend", re.IGNORECASE),
     "specific recommendations with criteria"),
    ("comparison", re.compile(r"\bvs\b|versus|compare|difference", re.IGNORECASE),
     "explicit comparison points"),
]
DEFAULT_QUERY_NEED = "concrete facts and examples"

IMPLIED_FACETS = [
    (re.compile(r"how\s+long", re.IGNORECASE), ["duration", "timeline", "phases"]),
    (re.compile(r"how\s+much|cost", re.IGNORECASE), ["price", "cost", "budget", "fees"]),
    (re.compile(r"why", re.IGNORECASE), ["reasons", "benefits", "causes"]),
    (re.compile(r"how\s+to", re.IGNORECASE), ["steps", "process", "method"]),
]


def _unique(items: List[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


def clean_query(query: str) -> str:
    """Lowercase the query and drop sentence punctuation."""
    return re.sub(r"[?!.,]", "", (query or "").lower()).strip()


def tokenize_query(query: str) -> List[str]:
    """
    Extract meaningful query terms.

    Lowercases, strips punctuation (hyphens are kept), splits on whitespace
    and drops tokens of two characters or fewer and stopwords. Order is
    preserved and duplicates are removed.
    """
    if not query:
        return []
    words = _PUNCTUATION.sub(" ", query.lower()).split()
    return _unique([
        word.strip("-") for word in words
        if len(word.strip("-")) > 2 and word.strip("-") not in STOPWORDS
    ])


def extract_query_entities(query: str) -> List[str]:
    """
    Extract entities that a relevant chunk should mention.

    Args:
        query: Query text

    Returns:
        Lowercased, de-duplicated entities in discovery order
    """
    if not query or not query.strip():
        return []

    entities: List[str] = []

    for match in _PROPER_NOUN_PHRASE.finditer(query):
        entities.append(match.group(1).lower())

    for match in _CAPITALIZED_WORD.finditer(query):
        # Capitalization at the start of a sentence carries no signal
        if _SENTENCE_START.search(query[:match.start(1)]):
            continue
        entities.append(match.group(1).lower())

    for match in _NUMBER_WITH_UNIT.finditer(query):
        entities.append(re.sub(r"\s+", " ", match.group(1).lower()))

    for match in _QUOTED.finditer(query):
        entities.append(match.group(1).strip().lower())

    for word in query.split():
        cleaned = re.sub(r"[^A-Za-z0-9]", "", word).upper()
        if cleaned in DOMAIN_ACRONYMS:
            entities.append(cleaned.lower())

    for match in _ALL_CAPS.finditer(query):
        entities.append(match.group(1).lower())

    return _unique(entities)


def detect_query_type(query: str) -> str:
    """Classify the query by the kind of answer it asks for."""
    for name, pattern, _ in QUERY_TYPES:
        if pattern.search(query or ""):
            return name
    return "general"


def describe_query_need(query: str) -> str:
    """Describe what kind of specifics would answer the query."""
    for _, pattern, need in QUERY_TYPES:
        if pattern.search(query or ""):
            return need
    return DEFAULT_QUERY_NEED


def decompose_query_facets(query: str) -> List[str]:
    """Query terms plus facets implied by the question form."""
    facets = tokenize_query(query)
    for pattern, implied in IMPLIED_FACETS:
        if pattern.search(query or ""):
            facets.extend(implied)
    return _unique(facets)
