"""
Similarity helpers for externally supplied embeddings.

Embeddings are never generated here. These helpers turn vectors produced by an
embedding provider into the semantic numbers the scorers consume.
"""
import logging
from typing import Optional, Sequence

import numpy as np

from services.score_utils import clamp_score, round_score

logger = logging.getLogger(__name__)


class SimilarityError(ValueError):
    """Raised when vectors cannot be compared (dimension mismatch, ragged sets)."""


def _as_vector(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).ravel()


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors, in [-1, 1].

    Returns 0 when either vector has zero magnitude.

    Raises:
        SimilarityError: If the vectors differ in length
    """
    a = _as_vector(vec_a)
    b = _as_vector(vec_b)
    if a.shape != b.shape:
        raise SimilarityError(f"Vectors must have the same length ({a.shape[0]} != {b.shape[0]})")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def _normalized_rows(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    try:
        matrix = np.asarray(vectors, dtype=np.float64)
    except ValueError as e:
        raise SimilarityError("All vectors must have the same dimensionality") from e
    if matrix.ndim != 2:
        raise SimilarityError("All vectors must have the same dimensionality")
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    # Zero vectors stay zero, giving cosine 0 against everything
    return np.divide(matrix, norms, out=np.zeros_like(matrix), where=norms != 0)


def chamfer_distance(set_a: Sequence[Sequence[float]], set_b: Sequence[Sequence[float]]) -> float:
    """
    Bidirectional Chamfer distance between two sets of vectors.

    Averages each vector's nearest cosine distance in the other set, in both
    directions, and sums the two averages. Ranges 0-4.

    Raises:
        SimilarityError: If a set is empty or dimensions differ
    """
    if len(set_a) == 0 or len(set_b) == 0:
        raise SimilarityError("Both sets must contain at least one vector")

    a = _normalized_rows(set_a)
    b = _normalized_rows(set_b)
    if a.shape[1] != b.shape[1]:
        raise SimilarityError(f"All vectors must have the same dimensionality ({a.shape[1]} != {b.shape[1]})")

    distances = 1.0 - a @ b.T
    return float(distances.min(axis=1).mean() + distances.min(axis=0).mean())


def chamfer_similarity(set_a: Sequence[Sequence[float]], set_b: Sequence[Sequence[float]]) -> float:
    """Chamfer distance mapped to a 0-1 similarity; 0 when either set is empty."""
    if len(set_a) == 0 or len(set_b) == 0:
        return 0.0
    similarity = max(0.0, 1.0 - chamfer_distance(set_a, set_b) / 4)
    logger.debug(f"Chamfer similarity {similarity:.4f} over {len(set_a)} x {len(set_b)} vectors")
    return similarity


def _is_usable(value) -> bool:
    return value is not None and bool(np.isfinite(value))


def semantic_scale(values: Sequence[float]) -> float:
    """
    Multiplier that puts one query's similarity list on a 0-100 scale.

    The whole list is read as 0-1 when no usable value exceeds 1, otherwise
    as 0-100, so every chunk of a query is normalized the same way.
    """
    usable = [float(value) for value in values if _is_usable(value)]
    if not usable or max(usable) <= 1:
        return 100.0
    return 1.0


def normalize_semantic_score(value: float, scale: Optional[float] = None) -> int:
    """
    Normalize an external similarity number to 0-100.

    Without an explicit scale the value is read on its own: at or below 1 it
    is taken as 0-1. None, NaN and infinities count as 0.
    """
    if not _is_usable(value):
        return 0
    if scale is None:
        scale = semantic_scale([value])
    return clamp_score(float(value) * scale)


def calculate_semantic_passage_score(cosine: float, chamfer: float) -> int:
    """
    Embedding-only passage score: 70% chunk cosine, 30% document chamfer.

    Both inputs are 0-1 and are clamped before weighting; unusable values count as 0.
    """
    cosine = max(0.0, min(1.0, float(cosine))) if _is_usable(cosine) else 0.0
    chamfer = max(0.0, min(1.0, float(chamfer))) if _is_usable(chamfer) else 0.0
    return round_score((cosine * 0.7 + chamfer * 0.3) * 100)
