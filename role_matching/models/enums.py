"""Enums shared by the ORM models and the scorers."""

import enum


class ProficiencyEnum(str, enum.Enum):
    """Employee skill proficiency, strongest first.

    The store keeps proficiency as free text; values outside this list are
    scored as LOW.
    """

    EXPERT = "Expert"
    ADVANCED = "Advanced"
    HIGH = "High"
    INTERMEDIATE = "Intermediate"
    MEDIUM = "Medium"
    LOW = "Low"


class SkillCategoryEnum(str, enum.Enum):
    """Canonical skill categories. Stored categories are matched tolerantly."""

    TECHNICAL = "technical"
    SOFT = "soft"
