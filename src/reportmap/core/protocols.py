"""Protocol interfaces for all reportmap abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reportmap.models.clean_report import (
        CleanReport,
        CreateCleanReportInput,
        EmbeddingResult,
        SimilarReport,
    )
    from reportmap.models.mapping import ColumnMapping


# ---------------------------------------------------------------------------
# Model Providers
# ---------------------------------------------------------------------------

@runtime_checkable
class IMappingProvider(Protocol):
    """Turns two column lists into validated column mappings."""

    def generate_mappings(
        self,
        template_columns: list[str],
        data_columns: list[str],
        command: str | None = None,
    ) -> list[ColumnMapping]: ...


@runtime_checkable
class ITextGenerator(Protocol):
    """Opaque prompt-in, text-out completion capability."""

    def generate_text(self, prompt: str, **kwargs) -> str: ...


@runtime_checkable
class IEmbeddingProvider(Protocol):
    """Turns text into fixed-dimension dense vectors."""

    def generate_embedding(self, text: str) -> EmbeddingResult: ...

    def generate_embeddings(self, texts: list[str]) -> list[EmbeddingResult]: ...


# ---------------------------------------------------------------------------
# Persistence: Clean Report Store
# ---------------------------------------------------------------------------

@runtime_checkable
class ICleanReportStore(Protocol):
    """Clean report persistence with tenant-scoped similarity search."""

    def create(self, data: CreateCleanReportInput) -> CleanReport: ...

    def find_by_id(self, report_id: str) -> CleanReport | None: ...

    def find_by_company_id(self, company_id: str) -> list[CleanReport]: ...

    def find_by_template_id(self, template_id: str) -> list[CleanReport]: ...

    def find_similar_by_embedding(
        self, embedding: list[float], company_id: str, limit: int = 5
    ) -> list[SimilarReport]: ...

    def update_embedding(self, report_id: str, embedding: list[float]) -> None: ...

    def delete(self, report_id: str) -> None: ...


# ---------------------------------------------------------------------------
# Persistence: Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# Persistence: File Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """S3-compatible storage for rendered report files."""

    def upload(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str: ...

    def read(self, key: str) -> bytes: ...

    def delete(self, key: str) -> None: ...
