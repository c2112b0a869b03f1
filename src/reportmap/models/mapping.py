"""Column mapping value objects and the strict provider reply schema."""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from reportmap.core.exceptions import ValidationError


class ColumnMapping(BaseModel):
    """Mapping from a template column to a source data column.

    ``data_column`` is ``None`` when the model found no suitable source column.
    ``confidence`` is model certainty, not a calibrated probability.
    """

    model_config = ConfigDict(
        frozen=True,
        strict=True,
        populate_by_name=True,
        allow_inf_nan=False,
    )

    template_column: str = Field(alias="templateColumn", min_length=1)
    data_column: str | None = Field(default=None, alias="dataColumn")
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str = ""

    @field_validator("template_column")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("templateColumn must not be blank")
        return value

    @classmethod
    def create(cls, data: Any) -> ColumnMapping:
        """Validate a loosely-typed payload, raising ``ValidationError`` on failure."""
        if not isinstance(data, dict):
            raise ValidationError(f"Mapping entry must be an object, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(_summarize(exc)) from exc

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class MappingReply(BaseModel):
    """Top-level shape of the provider's JSON answer.

    Entries stay untyped here so each one can be validated individually
    and reported with its index.
    """

    model_config = ConfigDict(strict=True, extra="ignore")

    mappings: list[Any] = Field(default_factory=list)

    @field_validator("mappings", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class GenerateMappingRequest(BaseModel):
    """HTTP request body for mapping generation."""

    model_config = ConfigDict(populate_by_name=True)

    template_columns: list[str] = Field(alias="templateColumns")
    data_columns: list[str] = Field(alias="dataColumns")
    command: str | None = None


class GenerateMappingResponse(BaseModel):
    """HTTP response body for mapping generation."""

    mappings: list[dict[str, Any]]


def _summarize(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "entry"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)
