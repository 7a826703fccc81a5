"""Matching engine resource: configuration and wiring for MatchOrchestrator.

Builds the embedding service (provider chosen once from the API key) and the
similarity worker pool, and shares them across every ranking in a run. The pool
is released when the run finishes.
"""

import os

from dagster import ConfigurableResource, InitResourceContext, get_dagster_logger
from pydantic import Field, PrivateAttr

from role_matching.matching.cache import PROFILE_TEXT_TTL_SECONDS
from role_matching.matching.embedder import EmbeddingService
from role_matching.matching.orchestrator import MatchOrchestrator
from role_matching.matching.providers import build_provider
from role_matching.matching.similarity import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_SPREAD_BAND,
    DEFAULT_SPREAD_THRESHOLD,
    DEFAULT_TIMEOUT_SECONDS,
    WORKER_KIND_PROCESS,
    ParallelSimilarityEngine,
)
from role_matching.matching.text import DEFAULT_MAX_TEXT_LENGTH
from role_matching.matching.types import DEFAULT_DIMENSIONS
from role_matching.resources.embeddings import EmbeddingAPIResource


class MatchingEngineResource(ConfigurableResource):
    """Ranks candidates for roles.

    Example usage:
        engine = MatchingEngineResource(embeddings=EmbeddingAPIResource(api_key=""))
        result = asyncio.run(engine.get_orchestrator().match_role(role, candidates))
    """

    embeddings: EmbeddingAPIResource
    dimensions: int = Field(
        default=DEFAULT_DIMENSIONS,
        description="Embedding vector length (must match the provider model)",
    )
    max_text_length: int = Field(
        default=DEFAULT_MAX_TEXT_LENGTH,
        description="Normalized texts are truncated to this many characters",
    )
    cache_ttl_seconds: float = Field(
        default=PROFILE_TEXT_TTL_SECONDS,
        description="Lifetime of cached provider embeddings",
    )
    provider_timeout_seconds: float | None = Field(
        default=None,
        description="Upper bound for one batched provider call (None: client timeout only)",
    )
    worker_kind: str = Field(
        default_factory=lambda: os.getenv("MATCHING_WORKER_KIND", WORKER_KIND_PROCESS),
        description="Similarity worker pool: 'process' or 'thread'",
    )
    max_workers: int | None = Field(
        default=None,
        description="Similarity pool size (executor default if unset)",
    )
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, description="Candidates per worker job")
    worker_timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        description="Upper bound for one similarity dispatch before the synchronous path",
    )
    spread_low: int = Field(default=DEFAULT_SPREAD_BAND[0])
    spread_high: int = Field(default=DEFAULT_SPREAD_BAND[1])
    spread_threshold: int = Field(default=DEFAULT_SPREAD_THRESHOLD)

    _orchestrator: MatchOrchestrator | None = PrivateAttr(default=None)

    def build_orchestrator(self) -> MatchOrchestrator:
        """Build a fresh orchestrator from the current configuration."""
        provider = build_provider(self.embeddings, self.dimensions)
        service = EmbeddingService(
            provider,
            max_text_length=self.max_text_length,
            request_timeout_seconds=self.provider_timeout_seconds,
            ttl_seconds=self.cache_ttl_seconds,
        )
        engine = ParallelSimilarityEngine(
            worker_kind=self.worker_kind,
            max_workers=self.max_workers,
            chunk_size=self.chunk_size,
            timeout_seconds=self.worker_timeout_seconds,
            spread_band=(self.spread_low, self.spread_high),
            spread_threshold=self.spread_threshold,
        )
        get_dagster_logger().info(
            f"Matching engine: provider={provider.name} workers={self.worker_kind} "
            f"dimensions={self.dimensions}"
        )
        return MatchOrchestrator(service, engine)

    def get_orchestrator(self) -> MatchOrchestrator:
        """Return the orchestrator for this resource, building it on first use."""
        if self._orchestrator is None:
            self._orchestrator = self.build_orchestrator()
        return self._orchestrator

    def shutdown(self) -> None:
        """Release the similarity worker pool."""
        if self._orchestrator is not None:
            self._orchestrator.similarity_engine.shutdown()

    def teardown_after_execution(self, context: InitResourceContext) -> None:
        self.shutdown()
