"""Deterministic prompt construction for column mapping and report insights."""

from __future__ import annotations

from reportmap.core.exceptions import ValidationError

MAPPING_REPLY_FORMAT = """{
  "mappings": [
    {
      "templateColumn": "<template column name>",
      "dataColumn": "<matched data column name, or null>",
      "confidence": <number between 0.0 and 1.0>,
      "reason": "<short justification>"
    }
  ]
}"""

INSIGHT_REPLY_FORMAT = """{
  "summary": "<overall summary in one or two sentences>",
  "keyFindings": ["<finding 1>", "<finding 2>", "<finding 3>"],
  "recommendations": ["<recommendation 1>", "<recommendation 2>"]
}"""


def validate_columns(template_columns: list[str], data_columns: list[str]) -> None:
    """Reject empty column lists or blank column names before any network call."""
    for label, columns in (("templateColumns", template_columns), ("dataColumns", data_columns)):
        if isinstance(columns, str) or not columns:
            raise ValidationError(f"{label} must be a non-empty list of column names")
        for position, column in enumerate(columns, start=1):
            if not isinstance(column, str) or not column.strip():
                raise ValidationError(f"{label}[{position}] must be a non-empty string")


def _enumerate(columns: list[str]) -> str:
    return "\n".join(f"{i}. {column}" for i, column in enumerate(columns, start=1))


def build_mapping_prompt(
    template_columns: list[str],
    data_columns: list[str],
    command: str | None = None,
) -> str:
    """Build the mapping prompt. Identical inputs always yield identical text."""
    sections = [
        "You are an expert in mapping spreadsheet data to report templates.",
        "Map the template columns to the data columns.",
        "",
        "Template columns (report layout):",
        _enumerate(template_columns),
        "",
        "Data columns (source data):",
        _enumerate(data_columns),
        "",
    ]
    if command and command.strip():
        sections += [f"User instruction: {command.strip()}", ""]
    sections += [
        "For each template column choose the single most suitable data column.",
        "If no data column fits, set dataColumn to null.",
        "",
        "Respond with exactly one JSON object in this format and nothing else:",
        MAPPING_REPLY_FORMAT,
    ]
    return "\n".join(sections)


def build_insight_prompt(context: str) -> str:
    """Build the insight prompt around a similar-report context block."""
    return "\n".join([
        "You are a marketing data analyst.",
        "Use the similar past reports below to write insights about the current data.",
        "",
        context,
        "",
        "Respond with exactly one JSON object in this format:",
        INSIGHT_REPLY_FORMAT,
        "",
        "Give actionable insights from a business perspective.",
    ])
