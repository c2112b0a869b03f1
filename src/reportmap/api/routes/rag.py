"""Clean report management, similarity search and RAG insight endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field

from reportmap.core.exceptions import NotFoundError, ValidationError
from reportmap.models.clean_report import CanonicalData, CleanReport, SimilarReport
from reportmap.services.rag_service import RagService, SaveCleanReportInput

router = APIRouter(tags=["rag"])

PREVIEW_LENGTH = 200


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateCleanReportRequest(_CamelModel):
    company_id: str = Field(alias="companyId")
    template_id: str = Field(alias="templateId")
    period_start: date = Field(alias="periodStart")
    period_end: date = Field(alias="periodEnd")
    canonical_data: CanonicalData = Field(alias="canonicalData")
    final_text: str = Field(alias="finalText")
    file_url: str | None = Field(default=None, alias="fileUrl")


class FindSimilarRequest(_CamelModel):
    company_id: str = Field(alias="companyId")
    canonical_data: CanonicalData = Field(alias="canonicalData")
    top_k: int = Field(default=5, alias="topK", gt=0)


class GenerateInsightRequest(_CamelModel):
    company_id: str = Field(alias="companyId")
    canonical_data: CanonicalData = Field(alias="canonicalData")
    top_k: int = Field(default=3, alias="topK", gt=0)


def get_rag_service(request: Request) -> RagService:
    return request.app.state.rag_service


def _report_json(report: CleanReport, preview: bool = False) -> dict[str, Any]:
    text = report.final_text
    if preview and len(text) > PREVIEW_LENGTH:
        text = text[:PREVIEW_LENGTH] + "..."
    return {
        "id": report.id,
        "companyId": report.company_id,
        "templateId": report.template_id,
        "periodStart": report.period_start.isoformat(),
        "periodEnd": report.period_end.isoformat(),
        "finalText": text,
        "fileUrl": report.file_url,
        "hasEmbedding": report.has_embedding,
        "createdAt": report.created_at.isoformat(),
    }


def _similar_json(result: SimilarReport) -> dict[str, Any]:
    return {
        "report": {
            **_report_json(result.report),
            "summary": result.report.metrics_json.get("summary"),
        },
        "similarity": result.similarity,
        "similarityPercent": f"{result.similarity * 100:.1f}%",
    }


@router.post("/clean-reports", status_code=status.HTTP_201_CREATED)
def create_clean_report(
    body: CreateCleanReportRequest,
    service: RagService = Depends(get_rag_service),
) -> dict[str, Any]:
    report = service.save_clean_report(SaveCleanReportInput(
        company_id=body.company_id,
        template_id=body.template_id,
        period_start=body.period_start,
        period_end=body.period_end,
        canonical_data=body.canonical_data,
        final_text=body.final_text,
        file_url=body.file_url,
    ))
    return {"data": _report_json(report)}


@router.get("/clean-reports")
def list_clean_reports(
    companyId: str | None = None,
    templateId: str | None = None,
    service: RagService = Depends(get_rag_service),
) -> dict[str, Any]:
    """List reports by template or by company, newest first.

    The template listing spans tenants unless ``companyId`` is also given.
    """
    if not companyId and not templateId:
        raise ValidationError("companyId or templateId is required")
    if templateId:
        reports = service.get_reports_by_template(templateId)
        if companyId:
            reports = [r for r in reports if r.company_id == companyId]
    else:
        reports = service.get_reports_by_company(companyId)
    return {"data": [_report_json(r, preview=True) for r in reports], "count": len(reports)}


@router.get("/clean-reports/{report_id}")
def get_clean_report(report_id: str, service: RagService = Depends(get_rag_service)) -> dict[str, Any]:
    report = service.get_report(report_id)
    if report is None:
        raise NotFoundError(f"Clean report {report_id!r} not found")
    return {"data": {**_report_json(report), "metricsJson": report.metrics_json}}


@router.delete("/clean-reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_clean_report(report_id: str, service: RagService = Depends(get_rag_service)) -> Response:
    service.delete_report(report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/similar")
def find_similar_reports(
    body: FindSimilarRequest,
    service: RagService = Depends(get_rag_service),
) -> dict[str, Any]:
    results = service.find_similar_reports(body.company_id, body.canonical_data, body.top_k)
    return {"data": [_similar_json(r) for r in results]}


@router.post("/insight")
def generate_insight(
    body: GenerateInsightRequest,
    service: RagService = Depends(get_rag_service),
) -> dict[str, Any]:
    insight = service.generate_insight(body.company_id, body.canonical_data, body.top_k)
    return {
        "data": {
            "summary": insight.summary,
            "keyFindings": insight.key_findings,
            "recommendations": insight.recommendations,
            "confidence": insight.confidence,
            "confidencePercent": f"{insight.confidence * 100:.1f}%",
            "similarReportsCount": len(insight.similar_reports),
            "similarReports": [
                {
                    "id": r.report.id,
                    "periodStart": r.report.period_start.isoformat(),
                    "periodEnd": r.report.period_end.isoformat(),
                    "similarity": f"{r.similarity * 100:.1f}%",
                }
                for r in insight.similar_reports[:3]
            ],
        }
    }


@router.get("/health")
async def rag_health(request: Request) -> dict[str, Any]:
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "features": {
            "embedding": f"{settings.embedding.provider}:{settings.embedding.model}",
            "vectorStore": settings.report_store,
            "llm": settings.mapping_provider,
        },
    }
