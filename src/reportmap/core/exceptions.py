"""reportmap exception hierarchy."""

from __future__ import annotations


class ReportMapError(Exception):
    """Base exception for all reportmap errors."""


class ConfigurationError(ReportMapError):
    """A required credential or endpoint is not configured."""


class ProviderError(ReportMapError):
    """The inference or embedding provider answered with a failure."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""


class NoContentError(ReportMapError):
    """The provider succeeded but returned no usable text."""


class ParseError(ReportMapError):
    """Provider text could not be reduced to structured mappings."""


class InvalidMappingError(ParseError):
    """An entry of the provider's mappings array failed validation."""

    def __init__(self, index: int, message: str) -> None:
        self.index = index
        super().__init__(f"Invalid mapping at index {index}: {message}")


class ValidationError(ReportMapError):
    """Caller input violates a precondition."""


class EmbeddingDimensionError(ValidationError):
    """Embedding length does not match the store's fixed dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding has {actual} dimensions, expected {expected}")


class NotFoundError(ReportMapError):
    """No clean report exists for the given id."""


class StorageError(ReportMapError):
    """Report store or file store operation failed."""


class CacheError(ReportMapError):
    """Redis cache operation failed."""
