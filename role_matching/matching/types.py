"""Value types passed through the matching engine.

These are per-request snapshots. The engine never owns the authoritative copy of
skills, roles or employees; callers (or MatchmakingResource) build them from the
external store and hand them in.
"""

from dataclasses import dataclass, field
from typing import Any

DEFAULT_DIMENSIONS = 1536

# Embedding provenance labels
PROVENANCE_PROVIDER = "provider"
PROVENANCE_FALLBACK = "fallback"
PROVENANCE_CACHE = "cache"
PROVENANCE_EMPTY = "empty"


@dataclass(frozen=True)
class Skill:
    """Catalog entry. `category` is free text (e.g. "Technical", "hard", "Soft skill")."""

    id: Any
    name: str = ""
    category: str = ""
    importance: float | None = None


@dataclass(frozen=True)
class RoleSkillRequirement:
    skill_id: Any
    importance: float = 1
    years: float = 0


@dataclass(frozen=True)
class EmployeeSkillRecord:
    skill_id: Any
    proficiency: str = "Low"
    years: float = 0


@dataclass
class RoleProfile:
    id: Any
    name: str = ""
    description: str = ""
    skills: list[RoleSkillRequirement] = field(default_factory=list)


@dataclass
class CandidateProfile:
    id: Any
    name: str = ""
    bio: str = ""
    skills: list[EmployeeSkillRecord] = field(default_factory=list)


@dataclass(frozen=True)
class WeightPair:
    """Blend of technical (alpha) and contextual (beta) scores; alpha + beta == 1."""

    alpha: float = 0.7
    beta: float = 0.3

    def as_percentages(self) -> dict[str, int]:
        return {"technical": round(self.alpha * 100), "contextual": round(self.beta * 100)}


@dataclass(frozen=True)
class CandidateMatch:
    candidate_id: Any
    final_score: int
    technical_score: int
    contextual_score: int
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "name": self.name,
            "final_score": self.final_score,
            "technical_score": self.technical_score,
            "contextual_score": self.contextual_score,
        }


@dataclass
class RankingResult:
    """Full ranking response for one role."""

    role_id: Any
    matches: list[CandidateMatch]
    weights: WeightPair
    embedding_provenance: dict[str, int] = field(default_factory=dict)

    @property
    def total_candidates(self) -> int:
        return len(self.matches)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role_id": self.role_id,
            "matches": [m.to_dict() for m in self.matches],
            "weights": self.weights.as_percentages(),
            "total_candidates": self.total_candidates,
            "embedding_provenance": dict(self.embedding_provenance),
        }


@dataclass
class EmbeddingBatch:
    """Vectors for one embed_batch call, with where each one came from."""

    vectors: list[list[float]]
    provenance: list[str]
    sources: list[str]

    def provenance_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for p in self.provenance:
            counts[p] = counts.get(p, 0) + 1
        return counts
