"""FastAPI application with lifespan, router mounting and error translation."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from reportmap.api.routes import health, mapping, rag
from reportmap.core.config import AppSettings
from reportmap.core.exceptions import (
    CacheError,
    ConfigurationError,
    NoContentError,
    NotFoundError,
    ParseError,
    ProviderError,
    ProviderTimeoutError,
    ReportMapError,
    StorageError,
    ValidationError,
)
from reportmap.core.logging import configure_logging
from reportmap.core.protocols import ICacheBackend
from reportmap.model_providers import create_embedding_provider, create_mapping_provider
from reportmap.model_providers.gemini_provider import GeminiMappingProvider
from reportmap.persistence import create_persistence
from reportmap.services.mapping_service import MappingService
from reportmap.services.rag_service import RagService

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
ERROR_STATUS: list[tuple[type[ReportMapError], int]] = [
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ProviderTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (ProviderError, status.HTTP_502_BAD_GATEWAY),
    (NoContentError, status.HTTP_502_BAD_GATEWAY),
    (ParseError, status.HTTP_502_BAD_GATEWAY),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (CacheError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: ReportMapError) -> int:
    for exc_type, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_reportmap_error(request: Request, exc: ReportMapError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(
        status_code=code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def build_services(
    settings: AppSettings,
) -> tuple[MappingService, RagService, ICacheBackend | None]:
    """Wire providers and persistence into the application services.

    Insights are only drafted by a configured Gemini provider; otherwise the
    RAG service answers with the metrics-based default insight.
    """
    report_store, cache, file_store = create_persistence(settings)
    mapping_provider = create_mapping_provider(settings)
    text_generator = None
    if isinstance(mapping_provider, GeminiMappingProvider) and mapping_provider.is_configured:
        text_generator = mapping_provider
    rag_service = RagService(
        report_store=report_store,
        embeddings=create_embedding_provider(settings, cache=cache),
        text_generator=text_generator,
        file_store=file_store,
        insight_model=settings.gemini.insight_model if text_generator else None,
    )
    return MappingService(mapping_provider), rag_service, cache


def create_app(
    settings: AppSettings | None = None,
    *,
    mapping_service: MappingService | None = None,
    rag_service: RagService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Prebuilt services may be injected (tests, embedding the app elsewhere);
    anything not injected is built from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize and tear down application resources."""
        app_settings = settings or AppSettings()
        configure_logging(app_settings.log_level)
        app.state.settings = app_settings
        app.state.mapping_service = mapping_service
        app.state.rag_service = rag_service
        app.state.cache = None
        if mapping_service is None or rag_service is None:
            built_mapping, built_rag, app.state.cache = build_services(app_settings)
            app.state.mapping_service = mapping_service or built_mapping
            app.state.rag_service = rag_service or built_rag
        logger.info(
            "reportmap started",
            extra={
                "environment": app_settings.environment,
                "mapping_provider": app_settings.mapping_provider,
                "report_store": app_settings.report_store,
            },
        )
        yield

    app = FastAPI(
        title="reportmap: column mapping and clean report retrieval",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(ReportMapError, handle_reportmap_error)
    app.include_router(health.router)
    app.include_router(mapping.router, prefix="/mapping")
    app.include_router(rag.router, prefix="/rag")
    return app
