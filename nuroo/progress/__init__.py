"""Child progress - per-area proficiency (0-100) and difficulty tiers

Components:
    areas.py: development areas, label aliases, difficulty tiers
    models.py: UserProgress record
    store.py: ProgressStore (read, initialise, clamp-and-write)
"""

from nuroo.progress.areas import DevelopmentArea, Difficulty, calculate_difficulty, resolve_area
from nuroo.progress.models import DEFAULT_PROGRESS_VALUE, UserProgress
from nuroo.progress.store import ProgressStore

__all__ = [
    "DEFAULT_PROGRESS_VALUE",
    "DevelopmentArea",
    "Difficulty",
    "ProgressStore",
    "UserProgress",
    "calculate_difficulty",
    "resolve_area",
]
