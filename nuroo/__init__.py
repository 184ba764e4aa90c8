"""
Nuroo - daily development tasks for parents of neurodivergent children

Philosophy:
    One small, doable activity per focus area, every day.
    Unfinished work is never buried under new tasks.
    Availability beats strictness: when a check fails, the parent still
    gets their tasks.

Components:
    security/: rate limiting and input sanitisation
    storage/: local key-value persistence and offline copies
    store/: remote document store (profiles, tasks, daily sets)
    progress/: per-area proficiency and difficulty tiers
    tasks/: generation, scheduling gate, cache, completion
    agent/: OpenAI chat client and prompt templates
    limits/: daily chat limits and morning schedule
    automation/: local notifications and background generation
    api/: FastAPI REST surface
    cli.py: the `nuroo` command

Configuration: args/nuroo.yaml
Databases: data/local.db, data/store.db, data/notifications.db
"""

from pathlib import Path

__version__ = "0.3.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = ARGS_DIR / "nuroo.yaml"

__all__ = [
    "__version__",
    "PROJECT_ROOT",
    "DATA_DIR",
    "ARGS_DIR",
    "CONFIG_PATH",
]
