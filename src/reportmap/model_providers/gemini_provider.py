"""Gemini model provider over the generateContent REST API.

Used for column mapping (strict JSON reply) and report insight drafting.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field

from reportmap.core.config import GeminiConfig
from reportmap.core.exceptions import (
    ConfigurationError,
    NoContentError,
    ProviderError,
    ProviderTimeoutError,
)
from reportmap.model_providers.parsing import parse_mapping_reply
from reportmap.model_providers.prompts import build_mapping_prompt, validate_columns
from reportmap.models.mapping import ColumnMapping

logger = logging.getLogger(__name__)


class _Part(BaseModel):
    text: str | None = None


class _Content(BaseModel):
    parts: list[_Part] = Field(default_factory=list)


class _Candidate(BaseModel):
    content: _Content | None = None


class _GenerateContentResponse(BaseModel):
    candidates: list[_Candidate] = Field(default_factory=list)

    def first_text(self) -> str | None:
        if not self.candidates or self.candidates[0].content is None:
            return None
        parts = self.candidates[0].content.parts
        return parts[0].text if parts else None


class GeminiMappingProvider:
    """IMappingProvider and ITextGenerator backed by Google Gemini."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta/models",
        model: str = "gemini-1.5-flash",
        temperature: float = 0.2,
        top_k: int = 40,
        top_p: float = 0.95,
        max_output_tokens: int = 2048,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._generation_config = {
            "temperature": temperature,
            "topK": top_k,
            "topP": top_p,
            "maxOutputTokens": max_output_tokens,
        }
        self._timeout = timeout
        self._transport = transport
        if not api_key:
            logger.warning("Gemini API key is not set; mapping requests will fail")

    @classmethod
    def from_config(
        cls, config: GeminiConfig, transport: httpx.BaseTransport | None = None
    ) -> GeminiMappingProvider:
        return cls(
            config.api_key,
            base_url=config.base_url,
            model=config.model,
            temperature=config.temperature,
            top_k=config.top_k,
            top_p=config.top_p,
            max_output_tokens=config.max_output_tokens,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def generate_mappings(
        self,
        template_columns: list[str],
        data_columns: list[str],
        command: str | None = None,
    ) -> list[ColumnMapping]:
        """Ask Gemini to map template columns onto data columns.

        Raises:
            ConfigurationError: API key missing (checked before anything else).
            ValidationError: empty column lists or blank column names.
            ProviderError: non-success response or transport failure.
            NoContentError: successful response without answer text.
            ParseError: answer text is not a valid mappings object.
        """
        self._require_api_key()
        validate_columns(template_columns, data_columns)
        prompt = build_mapping_prompt(template_columns, data_columns, command)
        logger.debug(
            "Requesting column mapping",
            extra={
                "model": self._model,
                "template_columns": len(template_columns),
                "data_columns": len(data_columns),
            },
        )
        mappings = parse_mapping_reply(self.generate_text(prompt))
        logger.info("Gemini proposed %d column mappings", len(mappings))
        return mappings

    def generate_text(self, prompt: str, **kwargs: Any) -> str:
        """Send a single prompt and return the first candidate's text.

        Keyword overrides: ``model``, ``temperature``, ``max_output_tokens``.
        """
        self._require_api_key()
        model = kwargs.get("model") or self._model
        generation_config = dict(self._generation_config)
        if "temperature" in kwargs:
            generation_config["temperature"] = kwargs["temperature"]
        if "max_output_tokens" in kwargs:
            generation_config["maxOutputTokens"] = kwargs["max_output_tokens"]

        url = f"{self._base_url}/{model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        headers = {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Gemini request timed out after %ss", self._timeout)
            raise ProviderTimeoutError(f"Gemini API timed out after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            logger.warning("Gemini request failed: %s", exc)
            raise ProviderError(f"Failed to call Gemini API: {exc}") from exc

        if response.is_error:
            body = response.text
            logger.warning(
                "Gemini API error",
                extra={"status_code": response.status_code, "error_body": body[:500]},
            )
            raise ProviderError(
                f"Gemini API error: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            envelope = _GenerateContentResponse.model_validate(response.json())
        except ValueError as exc:
            raise ProviderError(
                "Gemini API returned a malformed body",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        text = envelope.first_text()
        if not text or not text.strip():
            raise NoContentError("No response text from Gemini")
        return text

    def _require_api_key(self) -> None:
        if not self._api_key:
            raise ConfigurationError("Gemini API key is not configured (REPORTMAP_GEMINI_API_KEY)")
