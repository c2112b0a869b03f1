"""Mock model providers for local development and testing.

Returns canned or deterministic responses. No real LLM calls.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

import numpy as np

from reportmap.model_providers.parsing import parse_mapping_reply
from reportmap.model_providers.prompts import build_mapping_prompt, validate_columns
from reportmap.models.clean_report import EmbeddingResult
from reportmap.models.mapping import ColumnMapping


def _normalize(name: str) -> str:
    return "".join(ch for ch in name.casefold() if ch.isalnum())


class MockMappingProvider:
    """IMappingProvider + ITextGenerator returning deterministic replies.

    Without a canned reply, template columns are matched to data columns
    by normalized name. Every reply goes through the same strict parser
    as a real provider's.
    """

    def __init__(self, default_response: str = "{}") -> None:
        self._default_response = default_response
        self._canned_responses: dict[str, str] = {}
        self.prompts: list[str] = []

    def set_response(self, prompt_contains: str, response: str) -> None:
        """Register a canned response for prompts containing a keyword."""
        self._canned_responses[prompt_contains] = response

    def generate_text(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        for keyword, response in self._canned_responses.items():
            if keyword in prompt:
                return response
        return self._default_response

    def generate_mappings(
        self,
        template_columns: list[str],
        data_columns: list[str],
        command: str | None = None,
    ) -> list[ColumnMapping]:
        validate_columns(template_columns, data_columns)
        prompt = build_mapping_prompt(template_columns, data_columns, command)
        self.prompts.append(prompt)
        for keyword, response in self._canned_responses.items():
            if keyword in prompt:
                return parse_mapping_reply(response)
        return parse_mapping_reply(self._name_match_reply(template_columns, data_columns))

    @staticmethod
    def _name_match_reply(template_columns: list[str], data_columns: list[str]) -> str:
        by_name = {_normalize(c): c for c in data_columns}
        mappings = []
        for column in template_columns:
            match = by_name.get(_normalize(column))
            mappings.append({
                "templateColumn": column,
                "dataColumn": match,
                "confidence": 1.0 if match else 0.0,
                "reason": "identical column name" if match else "no matching column name",
            })
        return json.dumps({"mappings": mappings})


class MockEmbeddingProvider:
    """IEmbeddingProvider producing deterministic unit vectors seeded by text."""

    def __init__(self, dimensions: int = 1536, model: str = "mock-embedding") -> None:
        self._dimensions = dimensions
        self._model = model

    def generate_embedding(self, text: str) -> EmbeddingResult:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        vector = np.random.default_rng(seed).standard_normal(self._dimensions)
        vector /= np.linalg.norm(vector)
        return EmbeddingResult(embedding=vector.tolist(), model=self._model, token_count=len(text.split()))

    def generate_embeddings(self, texts: list[str]) -> list[EmbeddingResult]:
        return [self.generate_embedding(t) for t in texts]
