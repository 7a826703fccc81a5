"""Dagster resources for the role matching pipeline."""

from role_matching.resources.embeddings import EmbeddingAPIResource
from role_matching.resources.matching_engine import MatchingEngineResource
from role_matching.resources.matchmaking import MatchmakingResource

__all__ = [
    "EmbeddingAPIResource",
    "MatchingEngineResource",
    "MatchmakingResource",
]
