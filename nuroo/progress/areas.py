"""
Development areas and difficulty tiers.

Profiles store free-form area labels chosen during onboarding ("speech",
"motor", ...). Each label maps to exactly one progress field through
AREA_ALIASES; a label outside the table is rejected.
"""

from __future__ import annotations

from enum import StrEnum

from nuroo.errors import ValidationError


class DevelopmentArea(StrEnum):
    COMMUNICATION = "communication"
    MOTOR_SKILLS = "motor_skills"
    SOCIAL = "social"
    COGNITIVE = "cognitive"
    SENSORY = "sensory"
    BEHAVIOR = "behavior"


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


AREA_ALIASES: dict[str, DevelopmentArea] = {
    "speech": DevelopmentArea.COMMUNICATION,
    "language": DevelopmentArea.COMMUNICATION,
    "communication": DevelopmentArea.COMMUNICATION,
    "motor": DevelopmentArea.MOTOR_SKILLS,
    "motor_skills": DevelopmentArea.MOTOR_SKILLS,
    "social": DevelopmentArea.SOCIAL,
    "cognitive": DevelopmentArea.COGNITIVE,
    "sensory": DevelopmentArea.SENSORY,
    "behavior": DevelopmentArea.BEHAVIOR,
}

BEGINNER_BELOW = 30
INTERMEDIATE_BELOW = 70


def resolve_area(label: str | DevelopmentArea) -> DevelopmentArea:
    """Map a profile area label to its progress field.

    Raises:
        ValidationError: if the label is not a known area or alias
    """
    if isinstance(label, DevelopmentArea):
        return label

    key = str(label).strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return AREA_ALIASES[key]
    except KeyError:
        raise ValidationError(
            f"Unknown development area: {label!r}. Known: {sorted(AREA_ALIASES)}"
        ) from None


def calculate_difficulty(value: float) -> Difficulty:
    if value < BEGINNER_BELOW:
        return Difficulty.BEGINNER
    if value < INTERMEDIATE_BELOW:
        return Difficulty.INTERMEDIATE
    return Difficulty.ADVANCED
