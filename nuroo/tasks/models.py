"""Task records as stored in the document store."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Optional

from nuroo.clock import is_bonus_key
from nuroo.progress.areas import DevelopmentArea, Difficulty


def generate_id() -> str:
    """Generate a short unique ID."""
    return uuid.uuid4().hex[:12]


@dataclass
class Task:
    id: str
    title: str
    description: str
    category: str
    time: str
    emoji: str
    user_id: str
    daily_id: str
    created_at: str
    development_area: DevelopmentArea
    difficulty: Difficulty
    estimated_duration: int
    completed: bool = False
    completed_at: Optional[str] = None

    @property
    def is_bonus(self) -> bool:
        return is_bonus_key(self.daily_id)

    def with_completed(self, completed: bool, completed_at: Optional[str]) -> Task:
        return replace(self, completed=completed, completed_at=completed_at)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["development_area"] = self.development_area.value
        data["difficulty"] = self.difficulty.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["development_area"] = DevelopmentArea(values["development_area"])
        values["difficulty"] = Difficulty(values["difficulty"])
        values["completed"] = bool(values.get("completed", False))
        return cls(**values)


@dataclass
class DailyTaskSet:
    """Write-once audit record of one generated batch."""

    id: str
    user_id: str
    date: str
    batch_key: str
    tasks: list[Task]
    generated_at: str
    progress_snapshot: dict[str, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date,
            "batch_key": self.batch_key,
            "tasks": [t.to_dict() for t in self.tasks],
            "generated_at": self.generated_at,
            "progress_snapshot": dict(self.progress_snapshot),
        }


@dataclass
class ChildProfile:
    name: str
    age: str
    diagnosis: str
    development_areas: list[str] = field(default_factory=list)
    preferred_language: str = "en"
    last_task_date: Optional[str] = None
    onboarding_completed: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChildProfile:
        return cls(
            name=str(data.get("name", "")),
            age=str(data.get("age", "")),
            diagnosis=str(data.get("diagnosis", "")),
            development_areas=list(data.get("development_areas") or []),
            preferred_language=data.get("preferred_language") or "en",
            last_task_date=data.get("last_task_date"),
            onboarding_completed=bool(data.get("onboarding_completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
