"""Strict decoding of free-text model replies into structured records."""

from __future__ import annotations

import json
from typing import Any

import pydantic

from reportmap.core.exceptions import InvalidMappingError, NoContentError, ParseError, ValidationError
from reportmap.models.mapping import ColumnMapping, MappingReply


def extract_json_object(text: str) -> str:
    """Return the substring from the first ``{`` to the last ``}``.

    Models often wrap JSON in prose or code fences; the greedy span
    covers a single top-level object either way.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ParseError("Could not find a JSON object in the model response")
    return text[start:end + 1]


def decode_json_object(text: str | None) -> dict[str, Any]:
    """Extract and decode the JSON object embedded in a model reply."""
    if text is None or not text.strip():
        raise NoContentError("Model response contained no text")
    raw = extract_json_object(text)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON in model response: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ParseError("Model response JSON is not an object")
    return payload


def parse_mapping_reply(text: str | None) -> list[ColumnMapping]:
    """Decode a mapping reply, rejecting the whole reply on any invalid entry."""
    payload = decode_json_object(text)
    try:
        reply = MappingReply.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ParseError("Model response field 'mappings' must be a list") from exc

    mappings: list[ColumnMapping] = []
    for index, entry in enumerate(reply.mappings):
        try:
            mappings.append(ColumnMapping.create(entry))
        except ValidationError as exc:
            raise InvalidMappingError(index, str(exc)) from exc
    return mappings
