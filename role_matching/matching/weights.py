"""Technical/contextual blend for a role.

alpha weights the structured skill score, beta the embedding similarity. The
contextual signal is capped at 30%: alpha never drops below 0.7.

Resolution order:
1. Default (0.7, 0.3).
2. With at least 3 classified role skills, sum importance per bucket using the
   skill catalog category ("tech"/"hard" vs "soft"/"personal").
3. Otherwise (or if both sums are 0) count technical and soft keywords in the
   role description; soft hits count 1.5x.
4. Raw shares from the totals, then clamp alpha >= 0.7, beta <= 0.3 and renormalize.
5. Description markers override everything, technical marker first.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from role_matching.matching.types import RoleSkillRequirement, Skill, WeightPair
from role_matching.models.enums import SkillCategoryEnum

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = WeightPair(alpha=0.7, beta=0.3)
MIN_ALPHA = 0.7
MAX_BETA = 0.3
MIN_CLASSIFIED_SKILLS = 3
SOFT_KEYWORD_MULTIPLIER = 1.5

HIGHLY_TECHNICAL_WEIGHTS = WeightPair(alpha=0.9, beta=0.1)
SOFT_FOCUS_WEIGHTS = WeightPair(alpha=0.7, beta=0.3)

TECHNICAL_CATEGORY_MARKERS = ("tech", "hard")
SOFT_CATEGORY_MARKERS = ("soft", "personal")

TECHNICAL_KEYWORDS = (
    "programación",
    "coding",
    "desarrollo",
    "development",
    "técnico",
    "technical",
    "react",
    "javascript",
    "python",
    "java",
    "frontend",
    "backend",
    "fullstack",
    "cloud",
    "database",
    "api",
    "arquitectura",
    "devops",
    "mobile",
    "web",
    "testing",
    "qa",
    "algorithm",
    "data",
    "analytics",
    "machine learning",
)

SOFT_KEYWORDS = (
    "comunicación",
    "communication",
    "liderazgo",
    "leadership",
    "trabajo en equipo",
    "teamwork",
    "creatividad",
    "creativity",
    "resolución de problemas",
    "problem solving",
    "gestión",
    "management",
    "colaboración",
    "collaboration",
    "adaptabilidad",
    "adaptability",
    "empatía",
    "empathy",
    "organización",
    "organization",
    "pensamiento crítico",
    "critical thinking",
)

HIGHLY_TECHNICAL_MARKERS = ("highly technical", "altamente técnico")
SOFT_FOCUS_MARKERS = (
    "cultural fit",
    "soft skills",
    "teamwork",
    "leadership",
    "trabajo en equipo",
    "liderazgo",
)


def classify_category(category: str | None) -> SkillCategoryEnum | None:
    """Map a free-text skill category to TECHNICAL, SOFT or None (unclassified)."""
    value = (category or "").strip().lower()
    if not value:
        return None
    if any(m in value for m in TECHNICAL_CATEGORY_MARKERS):
        return SkillCategoryEnum.TECHNICAL
    if any(m in value for m in SOFT_CATEGORY_MARKERS):
        return SkillCategoryEnum.SOFT
    return None


def _importance(requirement: RoleSkillRequirement) -> float:
    return requirement.importance or 1


def _importance_from_skills(
    role_skills: Iterable[RoleSkillRequirement],
    skill_catalog: Mapping[Any, Skill],
) -> tuple[float, float, int]:
    """Return (technical importance, soft importance, classified count)."""
    technical = soft = 0.0
    classified = 0
    for requirement in role_skills:
        skill = skill_catalog.get(requirement.skill_id)
        if skill is None:
            continue
        bucket = classify_category(skill.category)
        if bucket is SkillCategoryEnum.TECHNICAL:
            technical += _importance(requirement)
        elif bucket is SkillCategoryEnum.SOFT:
            soft += _importance(requirement)
        else:
            continue
        classified += 1
    return technical, soft, classified


def _importance_from_description(description: str) -> tuple[float, float]:
    text = description.lower()
    technical_hits = sum(1 for kw in TECHNICAL_KEYWORDS if kw in text)
    soft_hits = sum(1 for kw in SOFT_KEYWORDS if kw in text)
    logger.debug("Description keywords: %d technical, %d soft", technical_hits, soft_hits)
    return float(technical_hits), soft_hits * SOFT_KEYWORD_MULTIPLIER


def _apply_policy(alpha: float, beta: float) -> WeightPair:
    alpha = max(alpha, MIN_ALPHA)
    beta = min(beta, MAX_BETA)
    total = alpha + beta
    return WeightPair(alpha=alpha / total, beta=beta / total)


def compute_weights(
    role_description: str | None = "",
    role_skills: Iterable[RoleSkillRequirement] | None = None,
    skill_catalog: Mapping[Any, Skill] | None = None,
) -> WeightPair:
    """Derive the technical/contextual blend for a role. Always returns a valid pair."""
    description = role_description or ""
    role_skills = list(role_skills or [])
    skill_catalog = skill_catalog or {}

    technical, soft, classified = _importance_from_skills(role_skills, skill_catalog)
    logger.debug("Classified %d role skills (%d total)", classified, len(role_skills))

    if classified < MIN_CLASSIFIED_SKILLS or (technical == 0 and soft == 0):
        technical, soft = 0.0, 0.0
        if description.strip():
            technical, soft = _importance_from_description(description)

    weights = DEFAULT_WEIGHTS
    total = technical + soft
    if total > 0:
        weights = _apply_policy(technical / total, soft / total)

    lowered = description.lower()
    if any(m in lowered for m in HIGHLY_TECHNICAL_MARKERS):
        weights = HIGHLY_TECHNICAL_WEIGHTS
        logger.debug("Highly technical role marker found")
    elif any(m in lowered for m in SOFT_FOCUS_MARKERS):
        weights = SOFT_FOCUS_WEIGHTS
        logger.debug("Soft skills / culture marker found")

    logger.info(
        "Weights: technical %d%%, contextual %d%%",
        round(weights.alpha * 100),
        round(weights.beta * 100),
    )
    return weights
