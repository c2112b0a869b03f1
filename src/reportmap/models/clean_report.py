"""Clean report entities, canonical metrics snapshot, and RAG outputs."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CanonicalData(BaseModel):
    """Standardized metrics snapshot produced from a source data file."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    source: str
    period_start: date = Field(alias="periodStart")
    period_end: date = Field(alias="periodEnd")
    dimensions: list[str] = Field(default_factory=list)
    metrics: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    summary: dict[str, float] | None = None
    metadata: dict[str, Any] | None = None


class CreateCleanReportInput(BaseModel):
    """Fields supplied by the caller when persisting a clean report."""

    company_id: str
    template_id: str
    period_start: date
    period_end: date
    metrics_json: dict[str, Any] = Field(default_factory=dict)
    final_text: str
    embedding: list[float] | None = None
    file_url: str | None = None


class CleanReport(BaseModel):
    """Snapshot of a persisted clean report. Not live-updated."""

    id: str
    company_id: str
    template_id: str
    period_start: date
    period_end: date
    metrics_json: dict[str, Any] = Field(default_factory=dict)
    final_text: str
    embedding: list[float] | None = None
    file_url: str | None = None
    created_at: datetime

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class SimilarReport(BaseModel):
    """A clean report paired with its cosine similarity to a query vector."""

    report: CleanReport
    similarity: float = Field(ge=-1.0, le=1.0)


class EmbeddingResult(BaseModel):
    """Vector produced by an embedding provider."""

    embedding: list[float]
    model: str
    token_count: int = 0


class InsightDraft(BaseModel):
    """Strict schema for the text generator's insight answer."""

    summary: str = ""
    key_findings: list[str] = Field(default_factory=list, alias="keyFindings")
    recommendations: list[str] = Field(default_factory=list)


class GeneratedInsight(BaseModel):
    """RAG insight built from the tenant's most similar past reports."""

    summary: str
    key_findings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    similar_reports: list[SimilarReport] = Field(default_factory=list)
    confidence: float = 0.0
