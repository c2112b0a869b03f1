"""Unit tests for RagService and its text helpers."""

from __future__ import annotations

import json
from datetime import date
from typing import Any

import pytest

from reportmap.core.exceptions import ConfigurationError, ProviderError, ValidationError
from reportmap.models.clean_report import CanonicalData, EmbeddingResult, SimilarReport
from reportmap.services.rag_service import (
    RagService,
    SaveCleanReportInput,
    build_embedding_text,
    calculate_confidence,
    default_insight,
)
from tests.fakes import MemoryCleanReportStore, MemoryFileStore, MockMappingProvider
from tests.fakes.store_contract import make_input


class SourceEmbeddings:
    """Embeds by data source so similarity is predictable."""

    VECTORS = {"google_ads": [1.0, 0.0], "meta_ads": [0.6, 0.8], "ga4": [0.0, 1.0]}

    def __init__(self) -> None:
        self.texts: list[str] = []

    def generate_embedding(self, text: str) -> EmbeddingResult:
        self.texts.append(text)
        for source, vector in self.VECTORS.items():
            if f"Data source: {source}" in text:
                return EmbeddingResult(embedding=vector, model="test")
        return EmbeddingResult(embedding=[0.7071, 0.7071], model="test")

    def generate_embeddings(self, texts: list[str]) -> list[EmbeddingResult]:
        return [self.generate_embedding(t) for t in texts]


class RecordingGenerator:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def generate_text(self, prompt: str, **kwargs: Any) -> str:
        self.calls.append((prompt, kwargs))
        if self.error:
            raise self.error
        return self.reply


def canonical(source: str = "google_ads", **summary: float) -> CanonicalData:
    return CanonicalData(
        source=source,
        periodStart=date(2024, 1, 1),
        periodEnd=date(2024, 1, 31),
        dimensions=["campaign"],
        metrics=list(summary),
        summary=summary or None,
    )


def save_input(company_id: str = "acme", source: str = "google_ads") -> SaveCleanReportInput:
    return SaveCleanReportInput(
        company_id=company_id,
        template_id="tpl-1",
        period_start=date(2024, 1, 1),
        period_end=date(2024, 1, 31),
        canonical_data=canonical(source, ad_spend=1200.0, roas=3.25),
        final_text="ROAS improved after budget shift.",
    )


@pytest.fixture
def store():
    return MemoryCleanReportStore(dimensions=2)


@pytest.fixture
def embeddings():
    return SourceEmbeddings()


def make_service(store, embeddings, **kwargs) -> RagService:
    return RagService(report_store=store, embeddings=embeddings, **kwargs)


# ---------- text helpers ----------

class TestBuildEmbeddingText:
    def test_includes_source_period_metrics_and_dimensions(self):
        text = build_embedding_text(canonical(ad_spend=1200.0, clicks=340.0))
        assert text.splitlines() == [
            "Data source: google_ads",
            "Period: 2024-01-01 ~ 2024-01-31",
            "Key metrics: Ad Spend: 1200.0, Clicks: 340.0",
            "Dimensions: campaign",
        ]

    def test_unknown_metric_keeps_raw_key(self):
        assert "custom_kpi: 1.5" in build_embedding_text(canonical(custom_kpi=1.5))

    def test_additional_text_appended_as_insight(self):
        text = build_embedding_text(canonical(), "Spend rose.")
        assert text.endswith("Insight: Spend rose.")


class TestCalculateConfidence:
    def _similar(self, *scores: float) -> list[SimilarReport]:
        report = MemoryCleanReportStore().create(make_input())
        return [SimilarReport(report=report, similarity=s) for s in scores]

    def test_empty_is_zero(self):
        assert calculate_confidence([]) == 0.0

    def test_mean_of_top_three(self):
        assert calculate_confidence(self._similar(0.9, 0.6, 0.3, 0.0)) == pytest.approx(0.6)

    def test_clamped_to_zero(self):
        assert calculate_confidence(self._similar(-0.5, -0.2)) == 0.0


class TestDefaultInsight:
    def test_formats_known_metrics(self):
        draft = default_insight(canonical(ad_spend=1234567.0, roas=2.5, ctr=0.0123))
        assert draft.key_findings == ["Total ad spend: 1,234,567", "ROAS: 2.50", "CTR: 1.23%"]

    def test_placeholder_finding_without_metrics(self):
        assert default_insight(canonical()).key_findings == ["More data is needed for analysis."]


# ---------- save ----------

class TestSaveCleanReport:
    def test_stores_embedding_and_canonical_metrics(self, store, embeddings):
        report = make_service(store, embeddings).save_clean_report(save_input())
        stored = store.find_by_id(report.id)
        assert stored.embedding == [1.0, 0.0]
        assert stored.metrics_json["source"] == "google_ads"
        assert stored.metrics_json["periodStart"] == "2024-01-01"
        assert embeddings.texts[0].endswith("Insight: ROAS improved after budget shift.")

    def test_uploads_file_and_records_url(self, store, embeddings):
        files = MemoryFileStore(bucket="reports")
        service = make_service(store, embeddings, file_store=files)
        report = service.save_clean_report(
            save_input(), file_name="jan.hwpx", file_data=b"PK", content_type="application/hwp+zip"
        )
        assert report.file_url.startswith("memory://reports/clean-reports/acme/")
        assert report.file_url.endswith("/jan.hwpx")
        key = report.file_url.removeprefix("memory://reports/")
        assert files.read(key) == b"PK"

    def test_file_data_ignored_without_file_store(self, store, embeddings):
        report = make_service(store, embeddings).save_clean_report(save_input(), file_data=b"PK")
        assert report.file_url is None


# ---------- retrieval ----------

class TestFindSimilarReports:
    def test_ranks_within_tenant_only(self, store, embeddings):
        service = make_service(store, embeddings)
        near = service.save_clean_report(save_input(source="google_ads"))
        mid = service.save_clean_report(save_input(source="meta_ads"))
        service.save_clean_report(save_input(company_id="other", source="google_ads"))

        results = service.find_similar_reports("acme", canonical("google_ads"), top_k=5)
        assert [r.report.id for r in results] == [near.id, mid.id]
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].similarity == pytest.approx(0.6)

    def test_respects_top_k(self, store, embeddings):
        service = make_service(store, embeddings)
        for source in ("google_ads", "meta_ads", "ga4"):
            service.save_clean_report(save_input(source=source))
        assert len(service.find_similar_reports("acme", canonical(), top_k=2)) == 2

    def test_listing_and_delete_pass_through(self, store, embeddings):
        service = make_service(store, embeddings)
        report = service.save_clean_report(save_input())
        assert [r.id for r in service.get_reports_by_company("acme")] == [report.id]
        assert [r.id for r in service.get_reports_by_template("tpl-1")] == [report.id]
        service.delete_report(report.id)
        assert service.get_report(report.id) is None


# ---------- insight ----------

class TestGenerateInsight:
    REPLY = json.dumps({
        "summary": "Spend efficiency improved.",
        "keyFindings": ["ROAS up"],
        "recommendations": ["Shift budget to search"],
    })

    def test_uses_generator_answer_and_similar_context(self, store, embeddings):
        generator = RecordingGenerator(reply=f"Here you go:\n{self.REPLY}")
        service = make_service(store, embeddings, text_generator=generator, insight_model="insight-model")
        service.save_clean_report(save_input())

        insight = service.generate_insight("acme", canonical(ad_spend=900.0))
        assert insight.summary == "Spend efficiency improved."
        assert insight.key_findings == ["ROAS up"]
        assert insight.recommendations == ["Shift budget to search"]
        assert len(insight.similar_reports) == 1
        assert insight.confidence == pytest.approx(1.0)

        prompt, kwargs = generator.calls[0]
        assert "Written insight: ROAS improved after budget shift." in prompt
        assert "=== Current data ===" in prompt
        assert kwargs["model"] == "insight-model"

    def test_default_insight_without_generator(self, store, embeddings):
        insight = make_service(store, embeddings).generate_insight("acme", canonical(roas=2.0))
        assert insight.key_findings == ["ROAS: 2.00"]
        assert insight.similar_reports == []
        assert insight.confidence == 0.0

    @pytest.mark.parametrize("generator", [
        RecordingGenerator(reply="no json here"),
        RecordingGenerator(reply='{"summary": 42}'),
        RecordingGenerator(reply=""),
        RecordingGenerator(error=ProviderError("boom", status_code=500)),
        RecordingGenerator(error=ConfigurationError("no key")),
    ])
    def test_falls_back_to_default_insight(self, store, embeddings, generator):
        service = make_service(store, embeddings, text_generator=generator)
        insight = service.generate_insight("acme", canonical(ad_spend=100.0))
        assert insight.summary == "Analysis of google_ads data."
        assert insight.key_findings == ["Total ad spend: 100"]

    def test_mock_provider_as_generator(self, store, embeddings):
        generator = MockMappingProvider()
        generator.set_response("Similar past reports", self.REPLY)
        service = make_service(store, embeddings, text_generator=generator)
        assert service.generate_insight("acme", canonical()).summary == "Spend efficiency improved."


class TestTopKValidation:
    @pytest.mark.parametrize("top_k", [0, -1])
    def test_similar_rejects_before_embedding(self, store, embeddings, top_k):
        service = make_service(store, embeddings)
        with pytest.raises(ValidationError):
            service.find_similar_reports("acme", canonical(), top_k=top_k)
        assert embeddings.texts == []

    def test_insight_rejects_before_embedding(self, store, embeddings):
        generator = RecordingGenerator(reply=TestGenerateInsight.REPLY)
        service = make_service(store, embeddings, text_generator=generator)
        with pytest.raises(ValidationError):
            service.generate_insight("acme", canonical(), top_k=0)
        assert embeddings.texts == []
        assert generator.calls == []
