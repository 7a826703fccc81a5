"""Structured skill-overlap score (the "technical" score).

For each role requirement the employee holds:

    years_match = min(employee_years / max(required_years, 1), 1)
    skill_score = (years_match * 0.3 + proficiency_score * 0.7) * importance

Requirements the employee lacks still add their importance to the denominator,
so missing skills pull the score down in proportion to how much they matter.
"""

import logging
import math
from collections.abc import Iterable

from role_matching.matching.types import EmployeeSkillRecord, RoleSkillRequirement
from role_matching.models.enums import ProficiencyEnum

logger = logging.getLogger(__name__)

YEARS_WEIGHT = 0.3
PROFICIENCY_WEIGHT = 0.7

PROFICIENCY_SCORES: dict[ProficiencyEnum, float] = {
    ProficiencyEnum.EXPERT: 1.0,
    ProficiencyEnum.ADVANCED: 0.85,
    ProficiencyEnum.HIGH: 0.7,
    ProficiencyEnum.INTERMEDIATE: 0.6,
    ProficiencyEnum.MEDIUM: 0.5,
    ProficiencyEnum.LOW: 0.3,
}
DEFAULT_PROFICIENCY_SCORE = PROFICIENCY_SCORES[ProficiencyEnum.LOW]

_BY_LABEL = {level.value.lower(): level for level in ProficiencyEnum}

# Keeps floor() from turning an exact 100 into 99 after binary rounding
_FLOOR_EPSILON = 1e-9


def proficiency_score(proficiency: str | None) -> float:
    """Score for a proficiency label; unknown labels score as Low."""
    level = _BY_LABEL.get((proficiency or "").strip().lower())
    if level is None:
        return DEFAULT_PROFICIENCY_SCORE
    return PROFICIENCY_SCORES[level]


def compute_skill_match(
    employee_skills: Iterable[EmployeeSkillRecord] | None,
    role_skills: Iterable[RoleSkillRequirement] | None,
    employee_name: str = "Employee",
    role_name: str = "Role",
) -> int:
    """Technical compatibility in [0, 100]; 0 when either side has no skills."""
    employee_skills = list(employee_skills or [])
    role_skills = list(role_skills or [])
    if not employee_skills or not role_skills:
        return 0

    required: dict = {}
    for requirement in role_skills:
        if requirement.skill_id is not None:
            required[requirement.skill_id] = requirement
    held: dict = {}
    for record in employee_skills:
        if record.skill_id is not None:
            held[record.skill_id] = record

    total_importance = 0.0
    match_score = 0.0
    matched = 0
    for skill_id, requirement in required.items():
        importance = requirement.importance or 1
        total_importance += importance
        record = held.get(skill_id)
        if record is None:
            continue
        years_match = min(max(record.years or 0, 0) / max(requirement.years or 0, 1), 1)
        skill_score = (
            years_match * YEARS_WEIGHT
            + proficiency_score(record.proficiency) * PROFICIENCY_WEIGHT
        )
        match_score += skill_score * importance
        matched += 1

    if total_importance <= 0:
        return 0
    score = math.floor(match_score / total_importance * 100 + _FLOOR_EPSILON)
    score = max(0, min(100, score))
    logger.debug(
        "Skill match %s -> %s: %d/%d required skills held, score %d",
        employee_name,
        role_name,
        matched,
        len(required),
        score,
    )
    return score
