"""Shared test fixtures for Nuroo tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- A controllable clock
- A fake AI assistant that never touches the network
- Fully wired services pointing at temporary storage

Usage:
    def test_something(services, mock_user_id):
        # services use temp databases and a fixed clock
        ...
"""

import os
import tempfile
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from nuroo.config_models import NurooConfig, StorageConfig
from nuroo.progress.store import ProgressStore
from nuroo.services import build_services
from nuroo.storage.local import LocalStore
from nuroo.store.sqlite_store import SQLiteDocumentStore
from nuroo.tasks.models import ChildProfile


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = PROJECT_ROOT / "nuroo"


# ─────────────────────────────────────────────────────────────────────────────
# Clock
# ─────────────────────────────────────────────────────────────────────────────


class MutableClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def timestamp(self) -> float:
        return self.now.timestamp()


@pytest.fixture
def fixed_now() -> datetime:
    """Monday morning, 08:00 UTC."""
    return datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now: datetime) -> MutableClock:
    return MutableClock(fixed_now)


@pytest.fixture
def device_clock() -> MutableClock:
    """Device-local time, 10:00, inside the chat window."""
    return MutableClock(datetime(2026, 10, 19, 10, 0).astimezone())


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory structure.

    Returns:
        Path to temporary data directory
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


@pytest.fixture
def local_store(temp_data_dir: Path) -> LocalStore:
    return LocalStore(temp_data_dir / "local.db")


@pytest.fixture
def doc_store(temp_data_dir: Path) -> SQLiteDocumentStore:
    return SQLiteDocumentStore(temp_data_dir / "store.db")


@pytest.fixture
def progress_store(doc_store: SQLiteDocumentStore, clock: MutableClock) -> ProgressStore:
    return ProgressStore(doc_store, clock=clock)


# ─────────────────────────────────────────────────────────────────────────────
# User Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test user ID."""
    return "test_user_123"


@pytest.fixture
def sample_child() -> ChildProfile:
    """Onboarded child with two focus areas."""
    return ChildProfile(
        name="Alice",
        age="5",
        diagnosis="Autism spectrum",
        development_areas=["speech", "social"],
        preferred_language="en",
        onboarding_completed=True,
    )


@pytest.fixture
def sample_profile(sample_child: ChildProfile) -> dict:
    """Stored profile document for sample_child."""
    return sample_child.to_dict()


# ─────────────────────────────────────────────────────────────────────────────
# Assistant Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_assistant() -> MagicMock:
    """Assistant double: numbered task replies, canned chat answers."""
    assistant = MagicMock()
    counter = {"n": 0}

    def task_text(prompt, child=None, language="en"):
        counter["n"] += 1
        return f"Activity {counter['n']}\n1. Sit together\n2. Take turns"

    assistant.generate_task_text = AsyncMock(side_effect=task_text)
    assistant.ask = AsyncMock(return_value="Try short, playful sessions.")
    return assistant


# ─────────────────────────────────────────────────────────────────────────────
# Service Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def test_config(temp_data_dir: Path) -> NurooConfig:
    """Default config with every database under the temp directory."""
    return NurooConfig(
        storage=StorageConfig(
            local_db=str(temp_data_dir / "local.db"),
            store_db=str(temp_data_dir / "store.db"),
            notifications_db=str(temp_data_dir / "notifications.db"),
        )
    )


@pytest.fixture
def services(test_config, clock, device_clock, fake_assistant):
    """Fully wired services on temp storage with a fake assistant."""
    built = build_services(
        test_config, clock=clock, assistant=fake_assistant, device_clock=device_clock
    )
    yield built
    built.task_manager.close()


# ─────────────────────────────────────────────────────────────────────────────
# Task Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_task(mock_user_id, fixed_now):
    """Factory for Task records with generator-style ids."""
    from nuroo.progress.areas import DevelopmentArea, Difficulty
    from nuroo.tasks.models import Task, generate_id

    def factory(
        slot: int = 1,
        daily_id: str = "2026-10-19",
        completed: bool = False,
        area: DevelopmentArea = DevelopmentArea.SOCIAL,
        user_id: str | None = None,
        created_at: str | None = None,
    ) -> Task:
        return Task(
            id=f"task-{generate_id()}-{slot}",
            title=f"Activity {slot}",
            description=f"Activity {slot}\n1. Play together",
            category="Social Development",
            time="10-15 min",
            emoji="😊",
            user_id=user_id or mock_user_id,
            daily_id=daily_id,
            created_at=created_at or fixed_now.isoformat(),
            development_area=area,
            difficulty=Difficulty.BEGINNER,
            estimated_duration=15,
            completed=completed,
            completed_at=fixed_now.isoformat() if completed else None,
        )

    return factory


@pytest.fixture
def seed_batch(doc_store, make_task, clock):
    """Store a batch directly, bypassing generation."""
    from nuroo.tasks.repository import TaskRepository

    repository = TaskRepository(doc_store)

    async def seed(user_id: str, daily_id: str, count: int = 2, completed: bool = False, areas=None):
        tasks = [
            make_task(
                slot=i + 1,
                daily_id=daily_id,
                completed=completed,
                user_id=user_id,
                **({"area": areas[i % len(areas)]} if areas else {}),
            )
            for i in range(count)
        ]
        await repository.store_batch(user_id, tasks, daily_id, None, clock())
        return tasks

    return seed
