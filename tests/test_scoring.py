"""Tests for vector normalization and ranking."""

import math

import pytest

from contextvault.exceptions import ValidationError
from contextvault.rag import (
    PassageRecord,
    dot_similarity,
    is_zero_vector,
    normalize_vector,
    top_k,
)


def make_record(key: str, embedding: list[float], **metadata) -> PassageRecord:
    return PassageRecord(key=key, text=f"text of {key}", embedding=embedding, metadata=metadata)


class TestNormalizeVector:
    """Tests for normalize_vector."""

    def test_unit_length(self):
        """Normalized vectors have magnitude 1."""
        vector = normalize_vector([3.0, 4.0])

        assert vector == pytest.approx([0.6, 0.8])
        assert math.sqrt(sum(x * x for x in vector)) == pytest.approx(1.0)

    def test_idempotent(self):
        """Normalizing twice changes nothing."""
        once = normalize_vector([1.0, -2.0, 5.0, 0.5])
        twice = normalize_vector(once)

        assert twice == pytest.approx(once)

    def test_zero_vector_unchanged(self):
        """A zero vector is returned as is."""
        assert normalize_vector([0.0, 0.0, 0.0]) == [0.0, 0.0, 0.0]
        assert is_zero_vector([0.0, 0.0])
        assert not is_zero_vector([0.0, 1e-9])


class TestDotSimilarity:
    """Tests for dot_similarity."""

    def test_self_similarity(self):
        v = normalize_vector([2.0, 1.0, 3.0])
        assert dot_similarity(v, v) == pytest.approx(1.0)

    def test_bounds(self):
        """Unit vectors score within [-1, 1]."""
        a = normalize_vector([1.0, 2.0])
        b = normalize_vector([-1.0, -2.0])

        assert dot_similarity(a, b) == pytest.approx(-1.0)
        assert -1.0 <= dot_similarity(a, normalize_vector([2.0, -1.0])) <= 1.0

    def test_dimension_mismatch(self):
        """Vectors of different length cannot be compared."""
        with pytest.raises(ValidationError):
            dot_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestTopK:
    """Tests for the brute-force ranker."""

    def test_orthogonal_scenario(self):
        """The matching passage scores 1.0 and the orthogonal one 0.0."""
        records = [make_record("doc:0", [1.0, 0.0]), make_record("doc:1", [0.0, 1.0])]
        results = top_k([1.0, 0.0], records, k=5)

        assert [r.key for r in results] == ["doc:0", "doc:1"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].score == pytest.approx(0.0)

    def test_sorted_descending(self):
        records = [
            make_record("a:0", normalize_vector([1.0, 1.0])),
            make_record("a:1", [0.0, 1.0]),
            make_record("a:2", [1.0, 0.0]),
            make_record("a:3", [-1.0, 0.0]),
        ]
        results = top_k([1.0, 0.0], records, k=10)

        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert len(results) == 4
        assert results[0].key == "a:2"
        assert results[-1].key == "a:3"

    def test_truncates_to_k(self):
        records = [make_record(f"d:{i}", [1.0, 0.0]) for i in range(10)]
        assert len(top_k([1.0, 0.0], records, k=3)) == 3

    def test_ties_keep_input_order(self):
        """Equal scores come back in the order they were supplied."""
        records = [make_record(f"d:{i}", [0.0, 1.0]) for i in range(5)]
        results = top_k([1.0, 0.0], records, k=5)

        assert [r.key for r in results] == [f"d:{i}" for i in range(5)]

    def test_non_positive_k(self):
        records = [make_record("d:0", [1.0, 0.0])]
        assert top_k([1.0, 0.0], records, k=0) == []
        assert top_k([1.0, 0.0], records, k=-1) == []

    def test_non_finite_scores_count_as_zero(self):
        records = [
            make_record("d:0", [float("nan"), 0.0]),
            make_record("d:1", [float("inf"), 0.0]),
            make_record("d:2", [0.5, 0.0]),
        ]
        results = top_k([1.0, 0.0], records, k=3)

        assert results[0].key == "d:2"
        assert [r.score for r in results[1:]] == [0.0, 0.0]

    def test_dimension_mismatch_surfaces(self):
        records = [make_record("d:0", [1.0, 0.0, 0.0])]
        with pytest.raises(ValidationError):
            top_k([1.0, 0.0], records, k=1)

    def test_carries_metadata(self):
        records = [make_record("d:0", [1.0, 0.0], file_name="notes.txt")]
        result = top_k([1.0, 0.0], records, k=1)[0]

        assert result.file_name == "notes.txt"
        assert result.text == "text of d:0"

    def test_missing_file_name(self):
        result = top_k([1.0, 0.0], [make_record("d:0", [1.0, 0.0])], k=1)[0]
        assert result.file_name == "Unknown"
