"""Batched, cached embedding of free text.

embed_batch always returns one vector per input, in input order, and never
raises on provider trouble:

1. Texts are normalized; empty ones get the zero vector and go nowhere.
2. Cache hits are served from EmbeddingCache.
3. Misses go to the provider in a single batched call (duplicates sent once).
4. Provider vectors are cached under the text fingerprint with the request TTL.
5. If the network provider fails (HTTP error, timeout, malformed body) every
   miss is synthesized locally instead. Those fallback vectors are not cached,
   so the next request tries the provider again.
"""

import asyncio
import logging
import time

import httpx

from role_matching.matching.cache import EmbeddingCache, get_embedding_cache
from role_matching.matching.errors import EmbeddingProviderError
from role_matching.matching.fallback import fallback_embedding
from role_matching.matching.providers import EmbeddingProvider
from role_matching.matching.text import DEFAULT_MAX_TEXT_LENGTH, fingerprint, normalize_text
from role_matching.matching.types import (
    PROVENANCE_CACHE,
    PROVENANCE_EMPTY,
    PROVENANCE_FALLBACK,
    EmbeddingBatch,
)

logger = logging.getLogger(__name__)

HEALTH_CHECK_TEXT = "test"


class EmbeddingService:
    """Owns the provider and cache used to turn texts into vectors."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: EmbeddingCache | None = None,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
        request_timeout_seconds: float | None = None,
        ttl_seconds: float | None = None,
    ):
        self.provider = provider
        self.cache = cache if cache is not None else get_embedding_cache()
        self.max_text_length = max_text_length
        self.request_timeout_seconds = request_timeout_seconds
        self.ttl_seconds = ttl_seconds

    @property
    def dimensions(self) -> int:
        return self.provider.dimensions

    async def embed_batch(
        self,
        texts: list[str],
        sources: list[str] | None = None,
        ttl_seconds: float | None = None,
    ) -> list[list[float]]:
        """Embed texts; see embed_batch_detailed for provenance information."""
        batch = await self.embed_batch_detailed(texts, sources, ttl_seconds)
        return batch.vectors

    async def embed_batch_detailed(
        self,
        texts: list[str],
        sources: list[str] | None = None,
        ttl_seconds: float | None = None,
    ) -> EmbeddingBatch:
        """Embed texts and report, per item, whether it came from cache, provider or fallback.

        Args:
            texts: Raw texts (normalized here)
            sources: Optional labels for log lines, e.g. "role-12" or "employee-7"
            ttl_seconds: Cache lifetime for newly fetched vectors (service, then cache default if None)
        """
        if not texts:
            return EmbeddingBatch(vectors=[], provenance=[], sources=[])

        sources = sources or []
        labels = [
            sources[i] if i < len(sources) and sources[i] else f"item-{i}"
            for i in range(len(texts))
        ]
        dims = self.dimensions
        if ttl_seconds is None:
            ttl_seconds = self.ttl_seconds

        vectors: list[list[float] | None] = [None] * len(texts)
        provenance: list[str] = [""] * len(texts)
        # normalized text -> positions in the input waiting for it
        pending: dict[str, list[int]] = {}

        for i, raw in enumerate(texts):
            normalized = normalize_text(raw, self.max_text_length)
            if not normalized:
                vectors[i] = [0.0] * dims
                provenance[i] = PROVENANCE_EMPTY
                continue
            cached = self.cache.get(fingerprint(normalized))
            if cached is not None and len(cached) == dims:
                vectors[i] = cached
                provenance[i] = PROVENANCE_CACHE
                continue
            pending.setdefault(normalized, []).append(i)

        if pending:
            misses = list(pending)
            fetched, origin = await self._resolve_misses(misses, labels, pending)
            for normalized, vector in zip(misses, fetched):
                if origin != PROVENANCE_FALLBACK:
                    self.cache.put(fingerprint(normalized), vector, ttl_seconds)
                for i in pending[normalized]:
                    vectors[i] = list(vector)
                    provenance[i] = origin

        logger.debug(
            "Embedded %d texts (%d unique misses) via %s",
            len(texts),
            len(pending),
            self.provider.name,
        )
        return EmbeddingBatch(vectors=vectors, provenance=provenance, sources=labels)

    async def _resolve_misses(
        self,
        misses: list[str],
        labels: list[str],
        pending: dict[str, list[int]],
    ) -> tuple[list[list[float]], str]:
        if not self.provider.is_network:
            return await self.provider.embed(misses), self.provider.provenance

        started = time.monotonic()
        try:
            call = self.provider.embed(misses)
            if self.request_timeout_seconds:
                fetched = await asyncio.wait_for(call, timeout=self.request_timeout_seconds)
            else:
                fetched = await call
        except (httpx.HTTPError, EmbeddingProviderError, asyncio.TimeoutError) as e:
            failed = [labels[i] for text in misses for i in pending[text]]
            logger.warning(
                "Embedding provider failed for %d texts (%s): %s; using fallback embeddings",
                len(misses),
                ", ".join(failed[:10]),
                e,
            )
            return [fallback_embedding(t, self.dimensions) for t in misses], PROVENANCE_FALLBACK

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info("Fetched %d embeddings from provider (%dms)", len(fetched), elapsed_ms)
        return fetched, self.provider.provenance

    async def check_provider(self) -> tuple[bool, int]:
        """Probe the provider with a tiny request. Returns (ok, elapsed_ms).

        With no network provider configured this returns (False, 0) without any
        request being made.
        """
        if not self.provider.is_network:
            logger.info("Embedding provider check skipped: no API key configured")
            return False, 0
        started = time.monotonic()
        try:
            await self.provider.embed([HEALTH_CHECK_TEXT])
        except (httpx.HTTPError, EmbeddingProviderError) as e:
            logger.error("Embedding provider check failed: %s", e)
            return False, int((time.monotonic() - started) * 1000)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info("Embedding provider check passed (%dms)", elapsed_ms)
        return True, elapsed_ms
