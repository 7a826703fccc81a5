"""Ranks candidates for a role by blending technical and contextual scores.

    final = round(alpha * technical + beta * contextual), clamped to [0, 100]

Candidate order is preserved through every step; the only reordering is the
final stable sort by final score (ties keep input order).
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from role_matching.matching.embedder import EmbeddingService
from role_matching.matching.errors import InvalidMatchRequest
from role_matching.matching.similarity import ParallelSimilarityEngine
from role_matching.matching.skill_match import compute_skill_match
from role_matching.matching.types import (
    CandidateMatch,
    CandidateProfile,
    RankingResult,
    RoleProfile,
    Skill,
)
from role_matching.matching.weights import compute_weights

logger = logging.getLogger(__name__)


def blend_scores(alpha: float, beta: float, technical: int, contextual: int) -> int:
    return max(0, min(100, round(alpha * technical + beta * contextual)))


class MatchOrchestrator:
    """Composes embedding, similarity, skill scoring and weighting for one role."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        similarity_engine: ParallelSimilarityEngine,
    ):
        self.embedding_service = embedding_service
        self.similarity_engine = similarity_engine

    @staticmethod
    def _validate(role: RoleProfile | None, candidates: Any) -> None:
        if role is None:
            raise InvalidMatchRequest("A role is required")
        if not isinstance(candidates, (list, tuple)):
            raise InvalidMatchRequest("candidates must be a list")
        if not candidates:
            raise InvalidMatchRequest("At least one candidate is required")
        seen: set = set()
        for position, candidate in enumerate(candidates):
            if getattr(candidate, "id", None) is None:
                raise InvalidMatchRequest(f"Candidate at position {position} has no id")
            if candidate.id in seen:
                raise InvalidMatchRequest(f"Duplicate candidate id {candidate.id!r}")
            seen.add(candidate.id)

    async def rank_candidates(
        self,
        role: RoleProfile,
        candidates: Sequence[CandidateProfile],
        skill_catalog: Mapping[Any, Skill] | None = None,
    ) -> list[CandidateMatch]:
        """Matches sorted by final score, highest first."""
        result = await self.match_role(role, candidates, skill_catalog)
        return result.matches

    async def match_role(
        self,
        role: RoleProfile,
        candidates: Sequence[CandidateProfile],
        skill_catalog: Mapping[Any, Skill] | None = None,
    ) -> RankingResult:
        """Full ranking for one role, including the weights used and embedding provenance.

        Raises:
            InvalidMatchRequest: for malformed input (no role, no candidates, duplicate ids)
        """
        self._validate(role, candidates)
        logger.info("Ranking %d candidates for role %s", len(candidates), role.id)

        texts = [role.description] + [c.bio for c in candidates]
        sources = [f"role-{role.id}"] + [f"candidate-{c.id}" for c in candidates]
        batch = await self.embedding_service.embed_batch_detailed(texts, sources)
        if len(batch.vectors) != len(texts):
            raise InvalidMatchRequest(
                f"Got {len(batch.vectors)} embeddings for {len(texts)} texts"
            )
        role_vector, candidate_vectors = batch.vectors[0], batch.vectors[1:]

        contextual = await self.similarity_engine.compute(role_vector, candidate_vectors)
        role_label = role.name or str(role.id)
        technical = [
            compute_skill_match(c.skills, role.skills, c.name or str(c.id), role_label)
            for c in candidates
        ]
        weights = compute_weights(role.description, role.skills, skill_catalog)

        matches = [
            CandidateMatch(
                candidate_id=c.id,
                name=c.name,
                final_score=blend_scores(weights.alpha, weights.beta, tech, ctx),
                technical_score=tech,
                contextual_score=ctx,
            )
            for c, tech, ctx in zip(candidates, technical, contextual)
        ]
        matches.sort(key=lambda m: m.final_score, reverse=True)

        return RankingResult(
            role_id=role.id,
            matches=matches,
            weights=weights,
            embedding_provenance=batch.provenance_counts(),
        )
