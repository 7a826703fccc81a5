from role_matching.matching.cache import (
    PROFILE_TEXT_TTL_SECONDS,
    SESSION_TEXT_TTL_SECONDS,
    EmbeddingCache,
    get_embedding_cache,
    reset_embedding_cache,
)
from role_matching.matching.embedder import EmbeddingService
from role_matching.matching.errors import (
    EmbeddingProviderError,
    InvalidMatchRequest,
    MatchingError,
    SimilarityWorkerError,
)
from role_matching.matching.fallback import fallback_embedding
from role_matching.matching.orchestrator import MatchOrchestrator
from role_matching.matching.providers import (
    EmbeddingProvider,
    FallbackProvider,
    NetworkProvider,
    build_provider,
)
from role_matching.matching.requests import parse_match_request
from role_matching.matching.similarity import (
    ParallelSimilarityEngine,
    cosine_similarity,
    spread_flat_scores,
)
from role_matching.matching.skill_match import compute_skill_match
from role_matching.matching.text import fingerprint, normalize_text
from role_matching.matching.types import (
    CandidateMatch,
    CandidateProfile,
    EmployeeSkillRecord,
    RankingResult,
    RoleProfile,
    RoleSkillRequirement,
    Skill,
    WeightPair,
)
from role_matching.matching.weights import compute_weights

__all__ = [
    # Text
    "normalize_text",
    "fingerprint",
    # Cache
    "EmbeddingCache",
    "get_embedding_cache",
    "reset_embedding_cache",
    "PROFILE_TEXT_TTL_SECONDS",
    "SESSION_TEXT_TTL_SECONDS",
    # Embeddings
    "EmbeddingProvider",
    "FallbackProvider",
    "NetworkProvider",
    "build_provider",
    "fallback_embedding",
    "EmbeddingService",
    # Scoring
    "ParallelSimilarityEngine",
    "cosine_similarity",
    "spread_flat_scores",
    "compute_skill_match",
    "compute_weights",
    "MatchOrchestrator",
    # Requests
    "parse_match_request",
    # Types
    "Skill",
    "RoleSkillRequirement",
    "EmployeeSkillRecord",
    "RoleProfile",
    "CandidateProfile",
    "WeightPair",
    "CandidateMatch",
    "RankingResult",
    # Errors
    "MatchingError",
    "EmbeddingProviderError",
    "SimilarityWorkerError",
    "InvalidMatchRequest",
]
