"""RagService: clean report persistence with embeddings, similarity search and insights."""

from __future__ import annotations

import logging
import uuid
from datetime import date

import pydantic
from pydantic import BaseModel

from reportmap.core.exceptions import (
    ConfigurationError,
    NoContentError,
    ParseError,
    ProviderError,
)
from reportmap.core.protocols import (
    ICleanReportStore,
    IEmbeddingProvider,
    IFileStore,
    ITextGenerator,
)
from reportmap.model_providers.parsing import decode_json_object
from reportmap.model_providers.prompts import build_insight_prompt
from reportmap.models.clean_report import (
    CanonicalData,
    CleanReport,
    CreateCleanReportInput,
    GeneratedInsight,
    InsightDraft,
    SimilarReport,
)
from reportmap.persistence.similarity import validate_limit

logger = logging.getLogger(__name__)

METRIC_NAMES: dict[str, str] = {
    "ad_spend": "Ad Spend",
    "cpc": "Cost Per Click",
    "cpm": "Cost Per Mille",
    "cpa": "Cost Per Acquisition",
    "revenue": "Revenue",
    "roas": "Return on Ad Spend",
    "conversion_value": "Conversion Value",
    "impressions": "Impressions",
    "clicks": "Clicks",
    "ctr": "Click-Through Rate",
    "conversions": "Conversions",
    "conversion_rate": "Conversion Rate",
    "sessions": "Sessions",
    "users": "Users",
    "new_users": "New Users",
    "bounce_rate": "Bounce Rate",
    "avg_session_duration": "Avg. Session Duration",
    "pageviews": "Pageviews",
}

INSIGHT_TEMPERATURE = 0.7
INSIGHT_MAX_OUTPUT_TOKENS = 1024


class SaveCleanReportInput(BaseModel):
    """A finished report to be embedded and stored."""

    company_id: str
    template_id: str
    period_start: date
    period_end: date
    canonical_data: CanonicalData
    final_text: str
    file_url: str | None = None


def _summary_line(summary: dict[str, float]) -> str:
    return ", ".join(f"{METRIC_NAMES.get(k, k)}: {v}" for k, v in summary.items())


def build_embedding_text(data: CanonicalData, additional_text: str | None = None) -> str:
    """Render a canonical metrics snapshot as the text that gets embedded."""
    parts = [
        f"Data source: {data.source}",
        f"Period: {data.period_start.isoformat()} ~ {data.period_end.isoformat()}",
    ]
    if data.summary:
        parts.append(f"Key metrics: {_summary_line(data.summary)}")
    if data.dimensions:
        parts.append(f"Dimensions: {', '.join(data.dimensions)}")
    if additional_text:
        parts.append(f"Insight: {additional_text}")
    return "\n".join(parts)


def calculate_confidence(similar_reports: list[SimilarReport]) -> float:
    """Mean similarity of the top three results, clamped to ``[0, 1]``."""
    if not similar_reports:
        return 0.0
    top = [r.similarity for r in similar_reports[:3]]
    return min(1.0, max(0.0, sum(top) / len(top)))


def default_insight(data: CanonicalData) -> InsightDraft:
    """Metric-only insight used when no text generator answer is available."""
    findings: list[str] = []
    summary = data.summary or {}
    if summary.get("ad_spend"):
        findings.append(f"Total ad spend: {summary['ad_spend']:,.0f}")
    if summary.get("roas"):
        findings.append(f"ROAS: {summary['roas']:.2f}")
    if summary.get("ctr"):
        findings.append(f"CTR: {summary['ctr'] * 100:.2f}%")
    return InsightDraft(
        summary=f"Analysis of {data.source} data.",
        keyFindings=findings or ["More data is needed for analysis."],
        recommendations=["Register past reports to receive more accurate insights."],
    )


class RagService:
    """Retrieval-augmented workflows over the clean report store."""

    def __init__(
        self,
        *,
        report_store: ICleanReportStore,
        embeddings: IEmbeddingProvider,
        text_generator: ITextGenerator | None = None,
        file_store: IFileStore | None = None,
        insight_model: str | None = None,
    ) -> None:
        self._reports = report_store
        self._embeddings = embeddings
        self._text_generator = text_generator
        self._file_store = file_store
        self._insight_model = insight_model

    def save_clean_report(
        self,
        data: SaveCleanReportInput,
        file_name: str | None = None,
        file_data: bytes | None = None,
        content_type: str = "application/octet-stream",
    ) -> CleanReport:
        """Embed and persist a finished report, uploading its file when given."""
        text = build_embedding_text(data.canonical_data, data.final_text)
        embedding = self._embeddings.generate_embedding(text).embedding

        file_url = data.file_url
        if file_data is not None and self._file_store is not None:
            key = f"clean-reports/{data.company_id}/{uuid.uuid4().hex}/{file_name or 'report.bin'}"
            file_url = self._file_store.upload(key, file_data, content_type)

        report = self._reports.create(CreateCleanReportInput(
            company_id=data.company_id,
            template_id=data.template_id,
            period_start=data.period_start,
            period_end=data.period_end,
            metrics_json=data.canonical_data.model_dump(mode="json", by_alias=True),
            final_text=data.final_text,
            embedding=embedding,
            file_url=file_url,
        ))
        logger.info("Saved clean report %s for company %s", report.id, report.company_id)
        return report

    def find_similar_reports(
        self, company_id: str, canonical_data: CanonicalData, top_k: int = 5
    ) -> list[SimilarReport]:
        validate_limit(top_k)
        embedding = self._embeddings.generate_embedding(build_embedding_text(canonical_data)).embedding
        return self._reports.find_similar_by_embedding(embedding, company_id, top_k)

    def generate_insight(
        self, company_id: str, canonical_data: CanonicalData, top_k: int = 3
    ) -> GeneratedInsight:
        similar = self.find_similar_reports(company_id, canonical_data, top_k)
        draft = self._draft_insight(self._build_context(similar, canonical_data), canonical_data)
        return GeneratedInsight(
            summary=draft.summary,
            key_findings=draft.key_findings,
            recommendations=draft.recommendations,
            similar_reports=similar,
            confidence=calculate_confidence(similar),
        )

    def get_reports_by_company(self, company_id: str) -> list[CleanReport]:
        return self._reports.find_by_company_id(company_id)

    def get_reports_by_template(self, template_id: str) -> list[CleanReport]:
        return self._reports.find_by_template_id(template_id)

    def get_report(self, report_id: str) -> CleanReport | None:
        return self._reports.find_by_id(report_id)

    def delete_report(self, report_id: str) -> None:
        self._reports.delete(report_id)

    # ---- helpers ----

    @staticmethod
    def _build_context(similar: list[SimilarReport], current: CanonicalData) -> str:
        lines = ["=== Similar past reports ==="]
        for i, result in enumerate(similar, start=1):
            report = result.report
            lines.append(f"\n[Report {i}] (similarity: {result.similarity * 100:.1f}%)")
            lines.append(f"Period: {report.period_start.isoformat()} ~ {report.period_end.isoformat()}")
            summary = report.metrics_json.get("summary")
            if isinstance(summary, dict) and summary:
                lines.append(f"Metrics: {_summary_line(summary)}")
            lines.append(f"Written insight: {report.final_text}")
        lines.append("\n=== Current data ===")
        lines.append(build_embedding_text(current))
        return "\n".join(lines)

    def _draft_insight(self, context: str, current: CanonicalData) -> InsightDraft:
        if self._text_generator is None:
            return default_insight(current)

        kwargs: dict = {
            "temperature": INSIGHT_TEMPERATURE,
            "max_output_tokens": INSIGHT_MAX_OUTPUT_TOKENS,
        }
        if self._insight_model:
            kwargs["model"] = self._insight_model
        try:
            text = self._text_generator.generate_text(build_insight_prompt(context), **kwargs)
            return InsightDraft.model_validate(decode_json_object(text))
        except ConfigurationError:
            logger.info("Text generator not configured; using default insight")
        except (ProviderError, NoContentError, ParseError, pydantic.ValidationError) as exc:
            logger.warning("Insight generation failed, using default insight: %s", exc)
        return default_insight(current)
