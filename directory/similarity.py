"""Cosine-similarity ranking of candidates against a query embedding."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cosine_similarity(vec1, vec2) -> float:
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    norm1 = np.linalg.norm(a)
    norm2 = np.linalg.norm(b)
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return float(np.dot(a, b) / (norm1 * norm2))


def rank_by_similarity(
    query_vector: Sequence[float],
    candidates: Iterable[tuple[T, Sequence[float]]],
    limit: int = 10,
) -> list[tuple[T, float]]:
    """
    Highest-similarity candidates first, at most ``limit`` of them.

    Candidates whose vector dimension differs from the query are skipped.
    Ties keep their input order.
    """
    query = np.asarray(query_vector, dtype=np.float64)
    scored = []
    for item, vector in candidates:
        if len(vector) != len(query):
            logger.debug("Skipping candidate with %d-dim vector (query is %d-dim)", len(vector), len(query))
            continue
        scored.append((item, cosine_similarity(query, vector)))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:max(0, limit)]
