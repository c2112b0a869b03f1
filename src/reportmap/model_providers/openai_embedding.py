"""OpenAI embedding provider (text-embedding-3-small) with optional cache."""

from __future__ import annotations

import hashlib
import json
import logging

import httpx

from reportmap.core.config import EmbeddingConfig
from reportmap.core.exceptions import (
    ConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    ValidationError,
)
from reportmap.core.protocols import ICacheBackend
from reportmap.models.clean_report import EmbeddingResult

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider:
    """Production IEmbeddingProvider backed by the OpenAI embeddings API."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        timeout: float = 30.0,
        cache: ICacheBackend | None = None,
        cache_ttl: int = 86400,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._dimensions = dimensions
        self._timeout = timeout
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: EmbeddingConfig,
        cache: ICacheBackend | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> OpenAIEmbeddingProvider:
        return cls(
            config.api_key,
            base_url=config.base_url,
            model=config.model,
            dimensions=config.dimensions,
            timeout=config.timeout,
            cache=cache,
            cache_ttl=config.cache_ttl,
            transport=transport,
        )

    def _cache_key(self, text: str) -> str:
        digest = hashlib.sha256(f"{self._model}:{self._dimensions}:{text}".encode("utf-8")).hexdigest()
        return f"embedding:{digest}"

    def generate_embedding(self, text: str) -> EmbeddingResult:
        return self.generate_embeddings([text])[0]

    def generate_embeddings(self, texts: list[str]) -> list[EmbeddingResult]:
        if not self._api_key:
            raise ConfigurationError("OpenAI API key is not configured (REPORTMAP_EMBEDDING_API_KEY)")
        if not texts or any(not t or not t.strip() for t in texts):
            raise ValidationError("Embedding input must be a non-empty list of non-empty texts")

        results: list[EmbeddingResult | None] = [None] * len(texts)

        # Check cache first
        if self._cache is not None:
            for i, text in enumerate(texts):
                cached = self._cache.get(self._cache_key(text))
                if cached is not None:
                    results[i] = EmbeddingResult(**json.loads(cached))

        missing = [i for i, r in enumerate(results) if r is None]
        if missing:
            fetched = self._request([texts[i] for i in missing])
            for i, result in zip(missing, fetched):
                results[i] = result
                # Write to cache
                if self._cache is not None:
                    self._cache.setex(
                        self._cache_key(texts[i]), self._cache_ttl, result.model_dump_json()
                    )

        return [r for r in results if r is not None]

    def _request(self, texts: list[str]) -> list[EmbeddingResult]:
        payload = {"model": self._model, "input": texts, "dimensions": self._dimensions}
        headers = {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(f"{self._base_url}/embeddings", json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(f"OpenAI embeddings timed out after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Failed to call OpenAI embeddings: {exc}") from exc

        if response.is_error:
            body = response.text
            logger.warning("OpenAI embeddings error %s: %s", response.status_code, body[:500])
            raise ProviderError(
                f"OpenAI API error: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
            items = sorted(data["data"], key=lambda item: item["index"])
            usage = data.get("usage") or {}
            token_count = int(usage.get("total_tokens", 0))
            model = data.get("model", self._model)
            results = [
                EmbeddingResult(embedding=item["embedding"], model=model, token_count=token_count)
                for item in items
            ]
        except (ValueError, KeyError, TypeError) as exc:
            raise ProviderError(
                "OpenAI embeddings returned a malformed body",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        if len(results) != len(texts):
            raise ProviderError(
                f"OpenAI embeddings returned {len(results)} vectors for {len(texts)} inputs",
                status_code=response.status_code,
            )
        return results
