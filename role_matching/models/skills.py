"""Skill catalog model."""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from role_matching.models.base import Base


class Skill(Base):
    """Catalog skill.

    `type` is free text in the store ("Technical", "hard", "Soft Skill", ...);
    role_matching.matching.weights.classify_category interprets it.
    """

    __tablename__ = "Skill"

    id: Mapped[int] = mapped_column("skill_ID", Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str | None] = mapped_column(Text, nullable=True)
