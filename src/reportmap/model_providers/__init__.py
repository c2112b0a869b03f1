"""Pluggable model providers behind Protocol interfaces."""

from __future__ import annotations

from reportmap.core.config import AppSettings
from reportmap.core.protocols import ICacheBackend
from reportmap.model_providers.gemini_provider import GeminiMappingProvider
from reportmap.model_providers.mock_provider import MockEmbeddingProvider, MockMappingProvider
from reportmap.model_providers.openai_embedding import OpenAIEmbeddingProvider


def create_mapping_provider(settings: AppSettings | None = None):
    """Create the configured mapping provider (also used as text generator)."""
    if settings is None:
        settings = AppSettings()
    if settings.mapping_provider == "gemini":
        return GeminiMappingProvider.from_config(settings.gemini)
    return MockMappingProvider()


def create_embedding_provider(settings: AppSettings | None = None, cache: ICacheBackend | None = None):
    """Create the configured embedding provider."""
    if settings is None:
        settings = AppSettings()
    if settings.embedding.provider == "openai":
        return OpenAIEmbeddingProvider.from_config(settings.embedding, cache=cache)
    return MockEmbeddingProvider(dimensions=settings.embedding.dimensions)
