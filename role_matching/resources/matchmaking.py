"""Matchmaking resource: read-only snapshots of skills, roles and employees.

Everything returned here is a plain value from role_matching.matching.types;
ORM objects never leave the session that loaded them.
"""

from typing import Any

from dagster import ConfigurableResource, get_dagster_logger
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from role_matching.db import get_session
from role_matching.matching.types import (
    CandidateProfile,
    EmployeeSkillRecord,
    RoleProfile,
    RoleSkillRequirement,
    Skill,
)
from role_matching.models.employees import Employee
from role_matching.models.roles import Role
from role_matching.models.skills import Skill as SkillRow


def _role_profile(role: Role) -> RoleProfile:
    return RoleProfile(
        id=role.id,
        name=role.name or "",
        description=role.description or "",
        skills=[
            RoleSkillRequirement(
                skill_id=rs.skill_id,
                importance=rs.importance if rs.importance is not None else 1,
                years=rs.years or 0,
            )
            for rs in role.skills
        ],
    )


def _candidate_profile(employee: Employee) -> CandidateProfile:
    return CandidateProfile(
        id=employee.id,
        name=employee.full_name,
        bio=employee.about or "",
        skills=[
            EmployeeSkillRecord(
                skill_id=es.skill_id,
                proficiency=es.proficiency or "Low",
                years=es.year_exp or 0,
            )
            for es in employee.skills
        ],
    )


class MatchmakingResource(ConfigurableResource):
    """Loads the inputs of one ranking request from the staffing store."""

    @staticmethod
    def _get_session() -> Session:
        return get_session()

    def get_skill_catalog(self) -> dict[Any, Skill]:
        """Return every catalog skill keyed by id."""
        session = self._get_session()
        try:
            rows = session.execute(select(SkillRow)).scalars().all()
            return {
                row.id: Skill(id=row.id, name=row.name or "", category=row.type or "")
                for row in rows
            }
        finally:
            session.close()

    def get_all_role_ids(self) -> list[str]:
        """Return every role id as a string (used as Dagster partition keys)."""
        session = self._get_session()
        try:
            ids = session.execute(select(Role.id).order_by(Role.id)).scalars().all()
            return [str(i) for i in ids]
        finally:
            session.close()

    def get_role_snapshot(self, role_id: Any) -> RoleProfile | None:
        """Return the role with its skill requirements, or None if it does not exist."""
        session = self._get_session()
        try:
            role = session.execute(
                select(Role).options(selectinload(Role.skills)).where(Role.id == int(role_id))
            ).scalar_one_or_none()
            if role is None:
                get_dagster_logger().warning(f"Role {role_id} not found")
                return None
            return _role_profile(role)
        finally:
            session.close()

    def get_candidate_snapshots(self, employee_ids: list[Any] | None = None) -> list[CandidateProfile]:
        """Return employees (all of them, or only employee_ids) ordered by id.

        Args:
            employee_ids: Optional filter; unknown ids are ignored
        """
        session = self._get_session()
        try:
            stmt = select(Employee).options(selectinload(Employee.skills)).order_by(Employee.id)
            if employee_ids is not None:
                if not employee_ids:
                    return []
                stmt = stmt.where(Employee.id.in_([int(i) for i in employee_ids]))
            employees = session.execute(stmt).scalars().all()
            return [_candidate_profile(e) for e in employees]
        finally:
            session.close()
