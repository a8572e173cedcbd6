"""Vector normalization and brute-force top-k ranking."""

import math
from typing import Iterable, Sequence

from contextvault.exceptions import ValidationError

from .document import PassageRecord, ScoredPassage


def normalize_vector(vector: Sequence[float]) -> list[float]:
    """Rescale a vector to unit length.

    A zero vector has no direction and is returned unchanged; callers
    decide what to do with it (see :func:`is_zero_vector`).
    """
    magnitude = math.sqrt(sum(x * x for x in vector))
    if magnitude == 0:
        return list(vector)
    return [x / magnitude for x in vector]


def is_zero_vector(vector: Sequence[float]) -> bool:
    return all(x == 0 for x in vector)


def dot_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product of two vectors; cosine similarity when both are unit length."""
    if len(a) != len(b):
        raise ValidationError(
            f"Vector dimension mismatch: {len(a)} != {len(b)}"
        )
    return sum(x * y for x, y in zip(a, b))


def top_k(
    query_embedding: Sequence[float],
    records: Iterable[PassageRecord],
    k: int = 5,
) -> list[ScoredPassage]:
    """Score every record against the query and keep the best ``k``.

    Non-finite scores count as 0.0. Equal scores keep the order in which
    the records were supplied.

    Raises:
        ValidationError: A record's embedding length differs from the query's
    """
    if k <= 0:
        return []

    scored = []
    for record in records:
        score = dot_similarity(query_embedding, record.embedding)
        if not math.isfinite(score):
            score = 0.0
        scored.append(ScoredPassage(
            key=record.key,
            text=record.text,
            score=score,
            metadata=record.metadata,
        ))

    # sorted() is stable, also with reverse=True
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:k]
