"""Cosine-similarity nearest-neighbor ranking over stored report embeddings."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence

import numpy as np

from reportmap.core.exceptions import EmbeddingDimensionError, ValidationError
from reportmap.models.clean_report import CleanReport, SimilarReport

DEFAULT_LIMIT = 5


def as_vector(embedding: Sequence[float], dimensions: int | None = None) -> np.ndarray:
    """Validate an embedding and return it as a float64 array.

    Rejects empty, non-finite and zero-norm vectors, since cosine
    similarity is undefined for them.
    """
    try:
        vector = np.asarray(embedding, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Embedding must be a sequence of numbers") from exc
    if vector.ndim != 1 or vector.size == 0:
        raise ValidationError("Embedding must be a non-empty one-dimensional vector")
    if dimensions is not None and vector.size != dimensions:
        raise EmbeddingDimensionError(dimensions, vector.size)
    if not np.all(np.isfinite(vector)):
        raise ValidationError("Embedding contains NaN or infinite values")
    if not np.any(vector):
        raise ValidationError("Embedding must not be the zero vector")
    return vector


def validate_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")
    return limit


def format_vector(embedding: Sequence[float]) -> str:
    """Encode a vector as a bracketed comma-separated literal, e.g. ``[0.1,0.2]``."""
    return "[" + ",".join(repr(float(v)) for v in embedding) + "]"


def parse_vector(literal: str) -> list[float]:
    """Decode a literal written by :func:`format_vector`."""
    values = json.loads(literal)
    return [float(v) for v in values]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``1 - cosine_distance(a, b)``, clipped to ``[-1, 1]``."""
    va, vb = as_vector(a), as_vector(b)
    if va.size != vb.size:
        raise EmbeddingDimensionError(va.size, vb.size)
    score = float(np.dot(va, vb) / (np.linalg.norm(va) * np.linalg.norm(vb)))
    return min(1.0, max(-1.0, score))


def rank_by_similarity(
    query: Sequence[float],
    reports: Iterable[CleanReport],
    company_id: str,
    limit: int = DEFAULT_LIMIT,
) -> list[SimilarReport]:
    """Rank a tenant's embedded reports by cosine similarity to ``query``.

    Reports from other tenants and reports without an embedding are
    skipped, never scored. Ties keep their input order.
    """
    validate_limit(limit)
    q = as_vector(query)

    candidates = [r for r in reports if r.company_id == company_id and r.embedding]
    if not candidates:
        return []

    for report in candidates:
        if len(report.embedding) != q.size:
            raise EmbeddingDimensionError(q.size, len(report.embedding))

    matrix = np.asarray([r.embedding for r in candidates], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1)
    # Zero-norm rows cannot be written through the store; guard anyway
    norms[norms == 0.0] = np.inf
    scores = np.clip(matrix @ q / (norms * np.linalg.norm(q)), -1.0, 1.0)

    order = np.argsort(-scores, kind="stable")[:limit]
    return [
        SimilarReport(report=candidates[i], similarity=float(scores[i]))
        for i in order
    ]
