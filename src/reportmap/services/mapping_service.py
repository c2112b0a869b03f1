"""MappingService: the seam between callers and the configured mapping provider."""

from __future__ import annotations

from reportmap.core.protocols import IMappingProvider
from reportmap.models.mapping import ColumnMapping


class MappingService:
    """Delegates mapping generation to an injected provider.

    Callers depend on this class rather than on a concrete provider, so the
    provider can be swapped per deployment or per test. Errors from the
    provider propagate unchanged.
    """

    def __init__(self, provider: IMappingProvider) -> None:
        self._provider = provider

    def generate_mapping(
        self,
        template_columns: list[str],
        data_columns: list[str],
        command: str | None = None,
    ) -> list[ColumnMapping]:
        return self._provider.generate_mappings(template_columns, data_columns, command)
