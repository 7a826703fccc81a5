"""Project roles and their skill requirements."""

from sqlalchemy import Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from role_matching.models.base import Base


class Role(Base):
    """An open role on a project."""

    __tablename__ = "Role"

    id: Mapped[int] = mapped_column("role_ID", Integer, primary_key=True)
    project_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    skills: Mapped[list["RoleSkill"]] = relationship("RoleSkill", back_populates="role")


class RoleSkill(Base):
    """Skill a role asks for, with importance and minimum years."""

    __tablename__ = "RoleSkill"

    role_id: Mapped[int] = mapped_column(
        "role_ID", Integer, ForeignKey("Role.role_ID", ondelete="CASCADE"), primary_key=True
    )
    skill_id: Mapped[int] = mapped_column(
        "skill_ID", Integer, ForeignKey("Skill.skill_ID", ondelete="CASCADE"), primary_key=True
    )
    importance: Mapped[float | None] = mapped_column(Float, nullable=True)
    years: Mapped[float | None] = mapped_column(Float, nullable=True)

    role: Mapped["Role"] = relationship("Role", back_populates="skills")
