"""Shared test doubles: re-export memory backends and mock providers."""

from __future__ import annotations

from reportmap.model_providers.mock_provider import MockEmbeddingProvider, MockMappingProvider
from reportmap.persistence.memory_backend import (
    MemoryCacheBackend,
    MemoryCleanReportStore,
    MemoryFileStore,
)

__all__ = [
    "MemoryCacheBackend",
    "MemoryCleanReportStore",
    "MemoryFileStore",
    "MockEmbeddingProvider",
    "MockMappingProvider",
]
