"""Embeddings API resource with token usage tracking.

This resource is a thin HTTP client for an OpenAI-compatible /embeddings
endpoint. It handles:
- Authentication
- Request formatting
- Usage accounting (tokens and calls, reported to the Dagster logger)

Caching, batching and fallback live in role_matching.matching.embedder; this
class only knows how to make one request.
"""

import os
import time
from dataclasses import dataclass, field
from typing import Any

import httpx
from dagster import ConfigurableResource, get_dagster_logger
from pydantic import Field, PrivateAttr

from role_matching.matching.errors import EmbeddingProviderError

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass
class EmbeddingUsage:
    """Accumulates embeddings API usage across calls made by one resource instance."""

    total_input_tokens: int = 0
    api_calls: int = 0
    texts_embedded: int = 0
    tokens_by_model: dict[str, int] = field(default_factory=dict)

    def add(self, model: str, input_tokens: int, texts: int) -> None:
        self.total_input_tokens += input_tokens
        self.api_calls += 1
        self.texts_embedded += texts
        self.tokens_by_model[model] = self.tokens_by_model.get(model, 0) + input_tokens

    def to_metadata(self) -> dict:
        """Return as Dagster metadata dict."""
        return {
            "embeddings/total_input_tokens": self.total_input_tokens,
            "embeddings/api_calls": self.api_calls,
            "embeddings/texts_embedded": self.texts_embedded,
            "embeddings/tokens_by_model": dict(self.tokens_by_model),
        }


def _input_tokens(data: Any) -> int:
    """Prompt tokens from the response usage block; 0 when absent or unreadable."""
    usage = data.get("usage") if isinstance(data, dict) else None
    if not isinstance(usage, dict):
        return 0
    try:
        return int(usage.get("prompt_tokens", usage.get("total_tokens", 0)) or 0)
    except (TypeError, ValueError):
        return 0


class EmbeddingAPIResource(ConfigurableResource):
    """HTTP client for the embeddings API.

    An empty api_key is a normal configuration: build_provider() then picks the
    local fallback generator and this client is never called.

    Example usage:
        client = EmbeddingAPIResource(api_key=os.environ["OPENAI_API_KEY"])
        data = asyncio.run(client.embed(["python developer"]))
        vectors = [item["embedding"] for item in data["data"]]
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", ""),
        description="Embeddings API key (leave empty to use local fallback embeddings)",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_BASE_URL", DEFAULT_BASE_URL),
        description="Base URL of an OpenAI-compatible API",
    )
    model: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
        description="Embedding model (text-embedding-3-small returns 1536 dimensions)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for one embeddings request",
    )
    _usage: EmbeddingUsage = PrivateAttr(default_factory=EmbeddingUsage)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def get_usage(self) -> EmbeddingUsage:
        return self._usage

    def reset_usage(self) -> None:
        self._usage = EmbeddingUsage()

    def _log_usage(self, model: str, input_tokens: int, texts: int, elapsed_ms: int) -> None:
        """Log usage to Dagster logger."""
        logger = get_dagster_logger()
        logger.info(
            f"Embeddings: {model} | {texts} texts | {input_tokens} tokens | {elapsed_ms}ms"
        )

    async def embed(
        self,
        input: str | list[str],
        model: str | None = None,
    ) -> dict[str, Any]:
        """Request embeddings for one or more texts.

        Args:
            input: Text or list of texts to embed
            model: Embedding model to use (defaults to self.model)

        Returns:
            Full API response dict including "data" and "usage"

        Raises:
            httpx.HTTPError: on transport errors, timeouts and non-2xx responses
            EmbeddingProviderError: when the body is not JSON
        """
        if isinstance(input, str):
            input = [input]
        model = model or self.model

        started = time.monotonic()
        async with httpx.AsyncClient(base_url=self.base_url) as client:
            response = await client.post(
                "/embeddings",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={"model": model, "input": input},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            try:
                data = response.json()
            except ValueError as e:
                raise EmbeddingProviderError(
                    f"Embeddings response is not JSON (HTTP {response.status_code})"
                ) from e
        elapsed_ms = int((time.monotonic() - started) * 1000)

        input_tokens = _input_tokens(data)
        self._usage.add(model, input_tokens, len(input))
        self._log_usage(model, input_tokens, len(input), elapsed_ms)

        return data
