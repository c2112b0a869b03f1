"""In-memory backends for unit tests and local development: dict-backed fakes."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timezone

import numpy as np

from reportmap.core.exceptions import NotFoundError, StorageError
from reportmap.models.clean_report import CleanReport, CreateCleanReportInput, SimilarReport
from reportmap.persistence.similarity import DEFAULT_LIMIT, as_vector, rank_by_similarity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryCleanReportStore:
    """Dict-backed ICleanReportStore."""

    def __init__(
        self,
        dimensions: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._dimensions = dimensions
        self._clock = clock
        self._reports: dict[str, CleanReport] = {}

    def _write_vector(self, embedding: list[float]) -> np.ndarray:
        # Without configured dimensions the first stored vector pins them
        vector = as_vector(embedding, self._dimensions)
        if self._dimensions is None:
            self._dimensions = vector.size
        return vector

    def _newest_first(self, reports: list[CleanReport]) -> list[CleanReport]:
        # Reverse insertion order first so equal timestamps still list newest first
        ordered = sorted(reversed(reports), key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in ordered]

    def create(self, data: CreateCleanReportInput) -> CleanReport:
        embedding = None
        if data.embedding:
            embedding = self._write_vector(data.embedding).tolist()
        report = CleanReport(
            id=str(uuid.uuid4()),
            company_id=data.company_id,
            template_id=data.template_id,
            period_start=data.period_start,
            period_end=data.period_end,
            metrics_json=data.metrics_json,
            final_text=data.final_text,
            embedding=embedding,
            file_url=data.file_url,
            created_at=self._clock(),
        )
        self._reports[report.id] = report.model_copy(deep=True)
        return report

    def find_by_id(self, report_id: str) -> CleanReport | None:
        report = self._reports.get(report_id)
        return report.model_copy(deep=True) if report else None

    def find_by_company_id(self, company_id: str) -> list[CleanReport]:
        return self._newest_first([r for r in self._reports.values() if r.company_id == company_id])

    def find_by_template_id(self, template_id: str) -> list[CleanReport]:
        return self._newest_first([r for r in self._reports.values() if r.template_id == template_id])

    def find_similar_by_embedding(
        self, embedding: list[float], company_id: str, limit: int = DEFAULT_LIMIT
    ) -> list[SimilarReport]:
        as_vector(embedding, self._dimensions)
        tenant_reports = self._newest_first(
            [r for r in self._reports.values() if r.company_id == company_id]
        )
        return rank_by_similarity(embedding, tenant_reports, company_id, limit)

    def update_embedding(self, report_id: str, embedding: list[float]) -> None:
        vector = self._write_vector(embedding).tolist()
        report = self._reports.get(report_id)
        if report is None:
            raise NotFoundError(f"Clean report {report_id!r} not found")
        self._reports[report_id] = report.model_copy(update={"embedding": vector})

    def delete(self, report_id: str) -> None:
        self._reports.pop(report_id, None)


class MemoryCacheBackend:
    """Dict-backed ICacheBackend for unit tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value
        self.ttls[key] = ttl

    def delete(self, key: str) -> None:
        self._store.pop(key, None)
        self.ttls.pop(key, None)


class MemoryFileStore:
    """Dict-backed IFileStore for unit tests."""

    def __init__(self, bucket: str = "memory") -> None:
        self._bucket = bucket
        self._files: dict[str, bytes] = {}

    def upload(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self._files[key] = data
        return f"memory://{self._bucket}/{key}"

    def read(self, key: str) -> bytes:
        try:
            return self._files[key]
        except KeyError as exc:
            raise StorageError(f"File {key!r} not found") from exc

    def delete(self, key: str) -> None:
        self._files.pop(key, None)
