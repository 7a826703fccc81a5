"""SQLAlchemy models for the tables the matching engine reads.

The tables belong to the staffing application; this package only maps the
columns the engine needs and never creates or migrates them in production.
"""

from role_matching.models.base import Base
from role_matching.models.employees import Employee, EmployeeSkill
from role_matching.models.enums import ProficiencyEnum, SkillCategoryEnum
from role_matching.models.roles import Role, RoleSkill
from role_matching.models.skills import Skill

__all__ = [
    # Base
    "Base",
    # Enums
    "ProficiencyEnum",
    "SkillCategoryEnum",
    # Catalog
    "Skill",
    # Roles
    "Role",
    "RoleSkill",
    # Employees
    "Employee",
    "EmployeeSkill",
]
