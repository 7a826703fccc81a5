"""Tests for MatchOrchestrator ranking."""

import asyncio

import pytest

from role_matching.matching.cache import EmbeddingCache
from role_matching.matching.embedder import EmbeddingService
from role_matching.matching.errors import InvalidMatchRequest
from role_matching.matching.orchestrator import MatchOrchestrator, blend_scores
from role_matching.matching.providers import FallbackProvider
from role_matching.matching.similarity import ParallelSimilarityEngine
from role_matching.matching.types import (
    CandidateProfile,
    EmployeeSkillRecord,
    RoleProfile,
    RoleSkillRequirement,
    Skill,
)


class FixedSimilarity:
    """Similarity engine double returning preset contextual scores."""

    def __init__(self, scores):
        self.scores = scores
        self.calls = 0

    async def compute(self, reference, candidates):
        self.calls += 1
        assert len(candidates) == len(self.scores)
        return list(self.scores)


@pytest.fixture
def embedding_service():
    return EmbeddingService(FallbackProvider(), cache=EmbeddingCache())


@pytest.fixture
def role():
    return RoleProfile(
        id=1,
        name="Backend Developer",
        description="Senior backend developer building APIs and databases",
        skills=[
            RoleSkillRequirement(skill_id=10, importance=2, years=3),
            RoleSkillRequirement(skill_id=11, importance=1, years=1),
        ],
    )


def candidate(cid, bio="", skills=None, name=""):
    return CandidateProfile(id=cid, name=name or f"Employee {cid}", bio=bio, skills=skills or [])


class TestBlendScores:
    """Tests for the final score formula."""

    def test_weighted_blend(self):
        """Test rounding of the weighted sum."""
        assert blend_scores(0.7, 0.3, 100, 50) == 85
        assert blend_scores(0.9, 0.1, 55, 0) == 50

    def test_clamped(self):
        """Test that the final score stays within [0, 100]."""
        assert blend_scores(1.0, 0.3, 100, 100) == 100
        assert blend_scores(0.7, 0.3, 0, 0) == 0


class TestMatchOrchestrator:
    """Tests for MatchOrchestrator."""

    def test_ranks_with_fallback_embeddings(self, embedding_service, role):
        """Test an end-to-end ranking with local embeddings and a thread pool."""
        candidates = [
            candidate(1, "Gardener who loves plants"),
            candidate(
                2,
                "Senior backend developer, APIs and database design",
                [
                    EmployeeSkillRecord(skill_id=10, proficiency="Expert", years=6),
                    EmployeeSkillRecord(skill_id=11, proficiency="Advanced", years=2),
                ],
            ),
            candidate(3, "", [EmployeeSkillRecord(skill_id=11, proficiency="Low", years=0)]),
        ]
        with ParallelSimilarityEngine(worker_kind="thread") as engine:
            orchestrator = MatchOrchestrator(embedding_service, engine)
            result = asyncio.run(orchestrator.match_role(role, candidates))

        assert result.total_candidates == 3
        assert result.matches[0].candidate_id == 2
        assert result.matches[0].technical_score == 96
        finals = [m.final_score for m in result.matches]
        assert finals == sorted(finals, reverse=True)
        for m in result.matches:
            assert 0 <= m.final_score <= 100
            assert 0 <= m.technical_score <= 100
            assert 0 <= m.contextual_score <= 100
        assert result.embedding_provenance == {"fallback": 3, "empty": 1}

    def test_final_score_and_order(self, embedding_service, role):
        """Test that matches are ordered by the blended score."""
        similarity = FixedSimilarity([10, 90, 50])
        orchestrator = MatchOrchestrator(embedding_service, similarity)
        role.skills = []
        role.description = ""

        matches = asyncio.run(
            orchestrator.rank_candidates(role, [candidate("a"), candidate("b"), candidate("c")])
        )

        assert [m.candidate_id for m in matches] == ["b", "c", "a"]
        assert [m.final_score for m in matches] == [27, 15, 3]

    def test_ties_keep_input_order(self, embedding_service, role):
        """Test that equal final scores keep the caller's order."""
        orchestrator = MatchOrchestrator(embedding_service, FixedSimilarity([40, 40, 40, 40]))
        candidates = [candidate(i) for i in (4, 2, 9, 1)]

        matches = asyncio.run(orchestrator.rank_candidates(role, candidates))

        assert [m.candidate_id for m in matches] == [4, 2, 9, 1]

    def test_uses_skill_catalog_for_weights(self, embedding_service):
        """Test that catalog categories feed the weights in the result."""
        role = RoleProfile(
            id=5,
            description="",
            skills=[RoleSkillRequirement(skill_id=i) for i in (1, 2, 3, 4)],
        )
        catalog = {i: Skill(id=i, category="Technical") for i in (1, 2, 3)}
        catalog[4] = Skill(id=4, category="Soft")
        orchestrator = MatchOrchestrator(embedding_service, FixedSimilarity([0]))

        result = asyncio.run(orchestrator.match_role(role, [candidate(1)], catalog))

        assert result.weights.as_percentages() == {"technical": 75, "contextual": 25}

    def test_result_dict(self, embedding_service, role):
        """Test the serialized response shape."""
        orchestrator = MatchOrchestrator(embedding_service, FixedSimilarity([60]))
        result = asyncio.run(orchestrator.match_role(role, [candidate(7, name="Ana")]))

        data = result.to_dict()
        assert data["role_id"] == 1
        assert data["total_candidates"] == 1
        assert set(data["weights"]) == {"technical", "contextual"}
        assert data["matches"][0] == {
            "candidate_id": 7,
            "name": "Ana",
            "final_score": result.matches[0].final_score,
            "technical_score": 0,
            "contextual_score": 60,
        }

    @pytest.mark.parametrize(
        "candidates",
        [
            [],
            "not a list",
            None,
            [CandidateProfile(id=None)],
            [CandidateProfile(id=1), CandidateProfile(id=1)],
        ],
    )
    def test_invalid_requests(self, embedding_service, role, candidates):
        """Test that malformed input is rejected before any work is done."""
        similarity = FixedSimilarity([])
        orchestrator = MatchOrchestrator(embedding_service, similarity)

        with pytest.raises(InvalidMatchRequest):
            asyncio.run(orchestrator.match_role(role, candidates))
        assert similarity.calls == 0

    def test_missing_role(self, embedding_service):
        """Test that a role is required."""
        orchestrator = MatchOrchestrator(embedding_service, FixedSimilarity([0]))
        with pytest.raises(InvalidMatchRequest):
            asyncio.run(orchestrator.match_role(None, [candidate(1)]))

    def test_invalid_request_is_a_value_error(self):
        """Test that callers can catch InvalidMatchRequest as ValueError."""
        assert issubclass(InvalidMatchRequest, ValueError)
