"""UserProgress: six area scores, each kept within [0, 100]."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

from nuroo.progress.areas import DevelopmentArea

DEFAULT_PROGRESS_VALUE = 25
MIN_PROGRESS = 0
MAX_PROGRESS = 100


def clamp(value: float) -> float:
    return max(MIN_PROGRESS, min(MAX_PROGRESS, value))


@dataclass
class UserProgress:
    communication: float = DEFAULT_PROGRESS_VALUE
    motor_skills: float = DEFAULT_PROGRESS_VALUE
    social: float = DEFAULT_PROGRESS_VALUE
    cognitive: float = DEFAULT_PROGRESS_VALUE
    sensory: float = DEFAULT_PROGRESS_VALUE
    behavior: float = DEFAULT_PROGRESS_VALUE

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, clamp(getattr(self, f.name)))

    def get(self, area: DevelopmentArea) -> float:
        return getattr(self, area.value)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserProgress:
        """Build from a stored record; missing or unreadable areas get the default."""
        values = {}
        for area in DevelopmentArea:
            raw = data.get(area.value, DEFAULT_PROGRESS_VALUE)
            try:
                values[area.value] = float(raw)
            except (TypeError, ValueError):
                values[area.value] = DEFAULT_PROGRESS_VALUE
        return cls(**values)
