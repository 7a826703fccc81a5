"""Exceptions raised inside the matching engine.

Only InvalidMatchRequest is meant to reach callers. The other types are raised
at the provider and worker seams and handled there by switching to the local
fallback path.
"""


class MatchingError(Exception):
    """Base class for matching engine errors."""


class EmbeddingProviderError(MatchingError):
    """The embeddings API returned something we cannot use."""


class SimilarityWorkerError(MatchingError):
    """A similarity worker returned an unusable result."""


class InvalidMatchRequest(MatchingError, ValueError):
    """Malformed caller input rejected at the orchestrator boundary."""
