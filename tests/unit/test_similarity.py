"""Tests for cosine similarity ranking and vector literal encoding."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone

import pytest

from reportmap.core.exceptions import EmbeddingDimensionError, ValidationError
from reportmap.models.clean_report import CleanReport
from reportmap.persistence.similarity import (
    as_vector,
    cosine_similarity,
    format_vector,
    parse_vector,
    rank_by_similarity,
)


def _vector_at(similarity: float) -> list[float]:
    """2-d unit vector whose cosine similarity to [1, 0] is ``similarity``."""
    return [similarity, math.sqrt(1.0 - similarity ** 2)]


def _report(report_id: str, company_id: str, embedding: list[float] | None) -> CleanReport:
    return CleanReport(
        id=report_id,
        company_id=company_id,
        template_id="tpl",
        period_start=date(2024, 1, 1),
        period_end=date(2024, 1, 31),
        final_text="text",
        embedding=embedding,
        created_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
    )


class TestCosineSimilarity:
    def test_identical_direction_is_one(self):
        assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)

    def test_opposite_is_minus_one(self):
        assert cosine_similarity([1.0, 0.0], [-3.0, 0.0]) == pytest.approx(-1.0)

    def test_orthogonal_is_zero(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 5.0]) == pytest.approx(0.0)

    def test_result_is_clipped(self):
        v = [0.1] * 1536
        assert -1.0 <= cosine_similarity(v, v) <= 1.0

    def test_dimension_mismatch(self):
        with pytest.raises(EmbeddingDimensionError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestAsVector:
    @pytest.mark.parametrize("embedding", [[], [0.0, 0.0], [math.nan, 1.0], [math.inf], [[1.0], [2.0]], ["a"]])
    def test_rejects_invalid(self, embedding):
        with pytest.raises(ValidationError):
            as_vector(embedding)

    def test_fixed_dimension_enforced(self):
        with pytest.raises(EmbeddingDimensionError):
            as_vector([1.0, 2.0], dimensions=3)


class TestRankBySimilarity:
    def test_orders_by_descending_similarity(self):
        reports = [
            _report("low", "acme", _vector_at(0.1)),
            _report("high", "acme", _vector_at(0.9)),
            _report("mid", "acme", _vector_at(0.5)),
        ]
        results = rank_by_similarity([1.0, 0.0], reports, "acme", limit=5)
        assert [r.report.id for r in results] == ["high", "mid", "low"]
        assert [r.similarity for r in results] == pytest.approx([0.9, 0.5, 0.1])

    def test_limit_keeps_top_k(self):
        reports = [_report(f"r{i}", "acme", _vector_at(i / 10)) for i in range(10)]
        results = rank_by_similarity([1.0, 0.0], reports, "acme", limit=3)
        assert [r.report.id for r in results] == ["r9", "r8", "r7"]

    def test_skips_other_tenants_and_missing_embeddings(self):
        reports = [
            _report("mine", "acme", _vector_at(0.2)),
            _report("theirs", "globex", _vector_at(0.99)),
            _report("no-vector", "acme", None),
        ]
        results = rank_by_similarity([1.0, 0.0], reports, "acme")
        assert [r.report.id for r in results] == ["mine"]

    def test_ties_keep_input_order(self):
        reports = [_report("first", "acme", [1.0, 0.0]), _report("second", "acme", [2.0, 0.0])]
        results = rank_by_similarity([1.0, 0.0], reports, "acme")
        assert [r.report.id for r in results] == ["first", "second"]

    def test_empty_candidates(self):
        assert rank_by_similarity([1.0, 0.0], [], "acme") == []

    @pytest.mark.parametrize("limit", [0, -1, 2.5, True, "3"])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValidationError):
            rank_by_similarity([1.0, 0.0], [], "acme", limit=limit)

    def test_stored_dimension_mismatch(self):
        reports = [_report("r", "acme", [1.0, 0.0, 0.0])]
        with pytest.raises(EmbeddingDimensionError):
            rank_by_similarity([1.0, 0.0], reports, "acme")


class TestVectorLiteral:
    def test_format(self):
        assert format_vector([0.1, -2.0, 3]) == "[0.1,-2.0,3.0]"

    def test_parse_restores_values(self):
        vector = [0.123456789012345, -1e-12, 42.0]
        assert parse_vector(format_vector(vector)) == vector
