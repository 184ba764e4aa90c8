"""
Tool: Completion Orchestrator
Purpose: Celebrate a finished batch and start a bonus round

When every task in a batch is completed:
    1. record a celebration notification and emit BATCH_COMPLETED
    2. add the bonus bump (+5) to each distinct area in the batch
    3. generate one bonus batch keyed bonus_<date> and store it
    4. if bonus tasks were stored, notify again and return them

Each step catches and logs its own failure; a failed bonus generation does
not undo the progress bump. A persisted marker makes the whole sequence run
at most once per batch. Finishing a bonus batch celebrates and bumps but
does not start another bonus round.
"""

from __future__ import annotations

import logging
from typing import Optional

from nuroo.automation.notify import Notifier
from nuroo.clock import Clock, bonus_key, is_bonus_key, today_key, utc_now
from nuroo.events import EventBus, TaskEvent
from nuroo.progress.store import ProgressStore
from nuroo.storage.local import LocalStore
from nuroo.tasks.generator import TaskGenerator
from nuroo.tasks.models import ChildProfile, Task
from nuroo.tasks.repository import TaskRepository

logger = logging.getLogger(__name__)

MARKER_PREFIX = "batch_celebrated_"


class CompletionOrchestrator:
    def __init__(
        self,
        progress_store: ProgressStore,
        generator: TaskGenerator,
        repository: TaskRepository,
        notifier: Notifier,
        local_store: LocalStore,
        events: Optional[EventBus] = None,
        bonus_bump: int = 5,
        clock: Clock = utc_now,
    ):
        self.progress_store = progress_store
        self.generator = generator
        self.repository = repository
        self.notifier = notifier
        self.local_store = local_store
        self.events = events
        self.bonus_bump = bonus_bump
        self.clock = clock

    @staticmethod
    def _marker_key(user_id: str, batch_key: str) -> str:
        return f"{MARKER_PREFIX}{user_id}_{batch_key}"

    def _claim(self, user_id: str, batch_key: str) -> bool:
        """Set the once-per-batch marker. False if it was already set."""
        key = self._marker_key(user_id, batch_key)
        try:
            if self.local_store.get_item(key):
                return False
            self.local_store.set_item(key, {"handled_at": self.clock().isoformat()})
        except Exception as e:
            logger.error(f"Completion marker unavailable for {user_id}/{batch_key}: {e}")
        return True

    async def handle_all_tasks_completed(
        self,
        user_id: str,
        completed_tasks: list[Task],
        child: Optional[ChildProfile] = None,
        language: str = "en",
    ) -> list[Task]:
        """Run the completion sequence; returns the bonus tasks, if any."""
        if not completed_tasks or not all(t.completed for t in completed_tasks):
            return []

        batch_key = completed_tasks[0].daily_id
        if not self._claim(user_id, batch_key):
            logger.debug(f"Batch {batch_key} for {user_id} already handled")
            return []

        try:
            self.notifier.send_celebration(user_id, len(completed_tasks))
            if self.events is not None:
                self.events.emit(
                    TaskEvent.BATCH_COMPLETED,
                    {"user_id": user_id, "batch_key": batch_key, "count": len(completed_tasks)},
                )
        except Exception as e:
            logger.error(f"Celebration failed for {user_id}: {e}")

        areas = list(dict.fromkeys(t.development_area for t in completed_tasks))
        for area in areas:
            try:
                await self.progress_store.award(user_id, area, self.bonus_bump)
            except Exception as e:
                logger.error(f"Bonus progress for {user_id}/{area} failed: {e}")

        if is_bonus_key(batch_key):
            return []
        if child is None:
            logger.info(f"No child profile for {user_id}, skipping bonus round")
            return []

        now = self.clock()
        key = bonus_key(today_key(now))
        try:
            bonus_tasks = await self.generator.generate_personalized_tasks(
                user_id, child, language, daily_id=key
            )
            if not bonus_tasks:
                return []

            progress = await self.progress_store.get_progress(user_id)
            if not await self.repository.store_batch(user_id, bonus_tasks, key, progress, now):
                return []
        except Exception as e:
            logger.error(f"Bonus round failed for {user_id}: {e}")
            return []

        try:
            self.notifier.send_bonus_notification(user_id, len(bonus_tasks))
            if self.events is not None:
                self.events.emit(
                    TaskEvent.BONUS_GENERATED,
                    {"user_id": user_id, "batch_key": key, "count": len(bonus_tasks)},
                )
        except Exception as e:
            logger.error(f"Bonus notification failed for {user_id}: {e}")

        logger.info(f"Bonus round {key} ready for {user_id}: {len(bonus_tasks)} tasks")
        return bonus_tasks
