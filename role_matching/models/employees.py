"""Employees and their declared skills."""

from sqlalchemy import Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from role_matching.models.base import Base


class Employee(Base):
    """A person who can be matched to roles. `about` is the free-text profile."""

    __tablename__ = "User"

    id: Mapped[int] = mapped_column("user_ID", Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    about: Mapped[str | None] = mapped_column(Text, nullable=True)

    skills: Mapped[list["EmployeeSkill"]] = relationship("EmployeeSkill", back_populates="employee")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.name, self.last_name) if part)


class EmployeeSkill(Base):
    """Skill held by an employee. Proficiency is free text (see ProficiencyEnum)."""

    __tablename__ = "UserSkill"

    employee_id: Mapped[int] = mapped_column(
        "user_ID", Integer, ForeignKey("User.user_ID", ondelete="CASCADE"), primary_key=True
    )
    skill_id: Mapped[int] = mapped_column(
        "skill_ID", Integer, ForeignKey("Skill.skill_ID", ondelete="CASCADE"), primary_key=True
    )
    proficiency: Mapped[str | None] = mapped_column(Text, nullable=True)
    year_exp: Mapped[float | None] = mapped_column("year_Exp", Float, nullable=True)

    employee: Mapped["Employee"] = relationship("Employee", back_populates="skills")
