"""
Unit tests for similarity helpers over externally supplied embeddings.
"""

import sys
sys.path.insert(0, 'backend')

import math

import pytest
from services.similarity import (
    SimilarityError,
    calculate_semantic_passage_score,
    chamfer_distance,
    chamfer_similarity,
    cosine_similarity,
    normalize_semantic_score,
    semantic_scale,
)


class TestCosineSimilarity:

    def test_orthogonal(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_parallel(self):
        assert cosine_similarity([1, 2], [2, 4]) == pytest.approx(1.0)

    def test_opposite(self):
        assert cosine_similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)

    def test_zero_vector(self):
        assert cosine_similarity([0, 0], [1, 1]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(SimilarityError):
            cosine_similarity([1, 2, 3], [1, 2])


class TestChamfer:

    def test_identical_sets(self):
        vectors = [[1, 0], [0, 1]]
        assert chamfer_distance(vectors, vectors) == pytest.approx(0.0)
        assert chamfer_similarity(vectors, vectors) == pytest.approx(1.0)

    def test_orthogonal_sets(self):
        assert chamfer_distance([[1, 0]], [[0, 1]]) == pytest.approx(2.0)
        assert chamfer_similarity([[1, 0]], [[0, 1]]) == pytest.approx(0.5)

    def test_empty_set(self):
        assert chamfer_similarity([], [[1, 0]]) == 0.0
        with pytest.raises(SimilarityError):
            chamfer_distance([], [[1, 0]])

    def test_dimension_mismatch(self):
        with pytest.raises(SimilarityError):
            chamfer_distance([[1, 0]], [[1, 0, 0]])

    def test_ragged_set(self):
        with pytest.raises(SimilarityError):
            chamfer_distance([[1, 0], [1]], [[1, 0]])

    def test_similarity_error_is_value_error(self):
        with pytest.raises(ValueError):
            chamfer_distance([[1, 0]], [[1, 0, 0]])


class TestNormalization:

    @pytest.mark.parametrize("value,expected", [
        (None, 0),
        (math.nan, 0),
        (math.inf, 0),
        (-math.inf, 0),
        (0.85, 85),
        (1, 100),
        (72.4, 72),
        (150, 100),
        (-0.2, 0),
    ])
    def test_normalize_semantic_score(self, value, expected):
        assert normalize_semantic_score(value) == expected

    def test_semantic_passage_score(self):
        assert calculate_semantic_passage_score(0.8, 0.5) == 71

    def test_semantic_passage_score_clamps_inputs(self):
        assert calculate_semantic_passage_score(1.5, -1) == 70

    def test_semantic_passage_score_non_finite_inputs(self):
        assert calculate_semantic_passage_score(math.nan, 1.0) == 30
        assert calculate_semantic_passage_score(1.0, math.inf) == 70


class TestSemanticScale:

    @pytest.mark.parametrize("values,expected", [
        ([0.9, 0.2, 1], 100.0),
        ([1, 45, 1.5], 1.0),
        ([0.9, 45], 1.0),
        ([], 100.0),
        ([None, math.nan], 100.0),
    ])
    def test_scale_chosen_per_list(self, values, expected):
        assert semantic_scale(values) == expected

    def test_low_value_on_percent_scale(self):
        """Test that 1 on a 0-100 list stays 1 instead of becoming 100."""
        scale = semantic_scale([1, 45, 1.5])
        assert [normalize_semantic_score(v, scale) for v in [1, 45, 1.5]] == [1, 45, 2]

    def test_non_finite_values_ignored_when_choosing_scale(self):
        assert semantic_scale([math.inf, 0.4]) == 100.0
