"""
Task persistence on top of the document store.

"Today's tasks" are looked up in this order:
    1. tasks whose daily_id is today's ISO date
    2. tasks keyed with the legacy date string ("Mon Oct 19 2026")
    3. the most recently created tasks (four by default)

When the regular batch is fully completed and a bonus batch exists for the
day, the bonus batch is returned instead.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from nuroo.clock import BONUS_PREFIX, bonus_key, is_bonus_key, legacy_date_key, today_key
from nuroo.progress.models import UserProgress
from nuroo.store.base import DocumentStore
from nuroo.tasks.models import DailyTaskSet, Task

logger = logging.getLogger(__name__)


def batch_id(user_id: str, batch_key: str) -> str:
    if is_bonus_key(batch_key):
        return f"bonus-{user_id}-{batch_key.removeprefix(BONUS_PREFIX)}"
    return f"daily-{user_id}-{batch_key}"


def _slot_number(task_id: str) -> int:
    # generated ids end with the slot number: task-<hex>-<slot>
    suffix = task_id.rsplit("-", 1)[-1]
    return int(suffix) if suffix.isdigit() else 0


class TaskRepository:
    def __init__(self, store: DocumentStore, recent_fallback_count: int = 4):
        self.store = store
        self.recent_fallback_count = recent_fallback_count

    @staticmethod
    def _to_tasks(docs: list[dict[str, Any]]) -> list[Task]:
        tasks = []
        for doc in docs:
            try:
                tasks.append(Task.from_dict(doc))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping unreadable task {doc.get('id')}: {e}")
        return tasks

    async def fetch_today_tasks(self, user_id: str, now: datetime) -> list[Task]:
        today = today_key(now)

        tasks = self._to_tasks(await self.store.query_tasks(user_id, daily_id=today))

        if not tasks:
            tasks = self._to_tasks(
                await self.store.query_tasks(user_id, daily_id=legacy_date_key(now))
            )

        if not tasks:
            return self._sorted(
                self._to_tasks(
                    await self.store.query_tasks(user_id, limit=self.recent_fallback_count)
                )
            )

        if all(t.completed for t in tasks):
            bonus = self._to_tasks(await self.store.query_tasks(user_id, daily_id=bonus_key(today)))
            if bonus:
                return self._sorted(bonus)

        return self._sorted(tasks)

    @staticmethod
    def _sorted(tasks: list[Task]) -> list[Task]:
        return sorted(tasks, key=lambda t: (t.created_at, _slot_number(t.id)))

    async def fetch_batch(self, user_id: str, daily_id: str) -> list[Task]:
        return self._sorted(self._to_tasks(await self.store.query_tasks(user_id, daily_id=daily_id)))

    async def fetch_task_by_id(self, task_id: str) -> Optional[Task]:
        doc = await self.store.get_task(task_id)
        return Task.from_dict(doc) if doc else None

    async def store_batch(
        self,
        user_id: str,
        tasks: list[Task],
        batch_key: str,
        progress: Optional[UserProgress],
        generated_at: datetime,
    ) -> bool:
        """Persist a batch and its audit record. False if the batch already exists."""
        task_set = DailyTaskSet(
            id=batch_id(user_id, batch_key),
            user_id=user_id,
            date=generated_at.date().isoformat(),
            batch_key=batch_key,
            tasks=tasks,
            generated_at=generated_at.isoformat(),
            progress_snapshot=(progress or UserProgress()).to_dict(),
        )
        created = await self.store.create_daily_batch(
            task_set.to_dict(), [t.to_dict() for t in tasks]
        )
        if created:
            logger.info(f"Stored {len(tasks)} tasks in {task_set.id}")
        return created

    async def set_completed(self, task_id: str, completed: bool, completed_at: Optional[str]) -> None:
        await self.store.set_task_fields(
            task_id, {"completed": completed, "completed_at": completed_at}
        )
