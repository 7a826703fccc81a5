"""Parse a JSON ranking request into engine value types.

Accepted shape (the staffing web app's payload; alternative keys in brackets):

    {
      "role": {"id", "name" [role], "description",
               "skills": [{"skill_ID" [id], "importance", "years"}]},
      "employees" [candidates]: [{"id", "name", "bio",
               "skills": [{"skill_ID" [id], "proficiency", "year_Exp" [years]}]}],
      "skillMap": {"<skill id>": {"name", "type" [category]}}
        [skills: [{"skill_ID" [id], "name", "type" [category]}]]
    }

Skill ids are compared as strings, since JSON object keys always are.
"""

from typing import Any

from role_matching.matching.errors import InvalidMatchRequest
from role_matching.matching.types import (
    CandidateProfile,
    EmployeeSkillRecord,
    RoleProfile,
    RoleSkillRequirement,
    Skill,
)


def _first(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def _skill_key(value: Any) -> str | None:
    return None if value is None else str(value)


def _number(value: Any, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidMatchRequest(f"{field} must be a number, got {value!r}") from e


def _objects(value: Any, field: str) -> list[dict]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise InvalidMatchRequest(f"{field} must be a list of objects")
    return value


def parse_role(data: Any) -> RoleProfile:
    if not isinstance(data, dict):
        raise InvalidMatchRequest("role must be an object")
    skills = [
        RoleSkillRequirement(
            skill_id=_skill_key(_first(s, "skill_ID", "id")),
            importance=_number(_first(s, "importance", default=1), "importance"),
            years=_number(_first(s, "years", default=0), "years"),
        )
        for s in _objects(data.get("skills"), "role.skills")
    ]
    return RoleProfile(
        id=data.get("id"),
        name=_first(data, "name", "role", default=""),
        description=data.get("description") or "",
        skills=skills,
    )


def parse_candidate(data: dict) -> CandidateProfile:
    skills = [
        EmployeeSkillRecord(
            skill_id=_skill_key(_first(s, "skill_ID", "id")),
            proficiency=_first(s, "proficiency", default="Low"),
            years=_number(_first(s, "year_Exp", "yearExp", "years", default=0), "years"),
        )
        for s in _objects(data.get("skills"), "employee skills")
    ]
    return CandidateProfile(
        id=data.get("id"),
        name=data.get("name") or "",
        bio=data.get("bio") or "",
        skills=skills,
    )


def parse_skill_catalog(data: dict) -> dict[str, Skill]:
    catalog: dict[str, Skill] = {}
    skill_map = data.get("skillMap")
    if isinstance(skill_map, dict):
        for key, info in skill_map.items():
            info = info if isinstance(info, dict) else {}
            catalog[str(key)] = Skill(
                id=str(key),
                name=info.get("name") or "",
                category=_first(info, "type", "skillType", "category", default=""),
            )
    for entry in _objects(data.get("skills"), "skills"):
        key = _skill_key(_first(entry, "skill_ID", "id"))
        if key is None:
            continue
        catalog[key] = Skill(
            id=key,
            name=entry.get("name") or "",
            category=_first(entry, "type", "category", default=""),
        )
    return catalog


def parse_match_request(data: Any) -> tuple[RoleProfile, list[CandidateProfile], dict[str, Skill]]:
    """Return (role, candidates, skill catalog) for MatchOrchestrator.match_role.

    Raises:
        InvalidMatchRequest: if the payload is not shaped like a ranking request
    """
    if not isinstance(data, dict):
        raise InvalidMatchRequest("Request must be a JSON object")
    if data.get("role") is None:
        raise InvalidMatchRequest("A role is required")
    role = parse_role(data["role"])
    raw_candidates = _first(data, "employees", "candidates")
    if not isinstance(raw_candidates, list):
        raise InvalidMatchRequest("employees must be a list")
    candidates = [parse_candidate(c) for c in _objects(raw_candidates, "employees")]
    return role, candidates, parse_skill_catalog(data)
