"""Embedding provider capability and its two implementations.

The provider is chosen once, from configuration, when the engine is built:
no API key means FallbackProvider, otherwise NetworkProvider. NetworkProvider
can still fail at call time; the EmbeddingService catches that and falls back
per batch.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from role_matching.matching.errors import EmbeddingProviderError
from role_matching.matching.fallback import fallback_embedding
from role_matching.matching.types import (
    DEFAULT_DIMENSIONS,
    PROVENANCE_FALLBACK,
    PROVENANCE_PROVIDER,
)

if TYPE_CHECKING:
    from role_matching.resources.embeddings import EmbeddingAPIResource

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Turns a list of normalized texts into one vector per text, in order."""

    name: str = "provider"
    provenance: str = PROVENANCE_PROVIDER

    def __init__(self, dimensions: int = DEFAULT_DIMENSIONS):
        self.dimensions = dimensions

    @property
    def is_network(self) -> bool:
        return False

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]: ...


class FallbackProvider(EmbeddingProvider):
    """Local deterministic embeddings. Never raises, never touches the network."""

    name = "fallback"
    provenance = PROVENANCE_FALLBACK

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return self.embed_sync(texts)

    def embed_sync(self, texts: list[str]) -> list[list[float]]:
        return [fallback_embedding(t, self.dimensions) for t in texts]


class NetworkProvider(EmbeddingProvider):
    """Embeddings from the HTTP API, validated for count and dimension."""

    name = "network"
    provenance = PROVENANCE_PROVIDER

    def __init__(self, client: "EmbeddingAPIResource", dimensions: int = DEFAULT_DIMENSIONS):
        super().__init__(dimensions)
        self.client = client

    @property
    def is_network(self) -> bool:
        return True

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        data = await self.client.embed(texts)
        return self._parse_response(data, len(texts))

    def _parse_response(self, data: Any, expected: int) -> list[list[float]]:
        """Extract vectors from an embeddings response, ordered by item index."""
        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            raise EmbeddingProviderError("Embeddings response has no 'data' list")
        items = data["data"]
        if len(items) != expected:
            raise EmbeddingProviderError(
                f"Embeddings response has {len(items)} items, expected {expected}"
            )

        vectors: list[list[float] | None] = [None] * expected
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                raise EmbeddingProviderError(f"Embedding item {position} is not an object")
            index = item.get("index", position)
            if (
                not isinstance(index, int)
                or not 0 <= index < expected
                or vectors[index] is not None
            ):
                raise EmbeddingProviderError(f"Embedding item {position} has bad index {index!r}")
            embedding = item.get("embedding")
            if not isinstance(embedding, list) or len(embedding) != self.dimensions:
                raise EmbeddingProviderError(
                    f"Embedding {index} is not a {self.dimensions}-dimension vector"
                )
            try:
                vectors[index] = [float(x) for x in embedding]
            except (TypeError, ValueError) as e:
                raise EmbeddingProviderError(f"Embedding {index} has non-numeric values") from e
        return vectors


def build_provider(
    client: "EmbeddingAPIResource | None",
    dimensions: int = DEFAULT_DIMENSIONS,
) -> EmbeddingProvider:
    """Pick the provider from configuration. A missing key is not an error."""
    if client is None or not client.is_configured:
        logger.info("No embeddings API key configured; using local fallback embeddings")
        return FallbackProvider(dimensions)
    return NetworkProvider(client, dimensions)
