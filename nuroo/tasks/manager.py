"""
Tool: Task Manager
Purpose: Today's task list with optimistic completion toggles

Features:
- fetch_tasks: today's batch from the store, merged with local edits
  (local ``completed`` wins), cached per (user, date)
- Fetch timeout: returns [] on expiry and leaves local state untouched
- toggle_task_completion: flip locally, then write remotely; a failed
  remote write reverts the local flip and raises TaskUpdateError
- Completing a task adds the completion bump (+2) to its area
- A fully completed batch hands over to the CompletionOrchestrator
- REFRESH_TASKS events drop the user's cache entry

Usage:
    python -m nuroo.tasks.manager --action list --user alice
    python -m nuroo.tasks.manager --action toggle --user alice --task-id task-abc123-1

Dependencies:
    - nuroo.store (document store)
    - nuroo.progress (completion bump)
"""

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from nuroo.automation.notify import Notifier
from nuroo.clock import Clock, bonus_key, today_key, utc_now
from nuroo.errors import TaskNotFoundError, TaskUpdateError
from nuroo.events import EventBus, TaskEvent
from nuroo.progress.store import ProgressStore
from nuroo.storage.offline import OfflineCache
from nuroo.store.base import DocumentStore
from nuroo.tasks.cache import TaskCache, merge_with_local
from nuroo.tasks.completion import CompletionOrchestrator
from nuroo.tasks.models import ChildProfile, Task
from nuroo.tasks.repository import TaskRepository

logger = logging.getLogger(__name__)


@dataclass
class ToggleResult:
    task: Task
    bonus_tasks: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task.to_dict(),
            "bonus_tasks": [t.to_dict() for t in self.bonus_tasks],
        }


class TaskManager:
    def __init__(
        self,
        store: DocumentStore,
        repository: TaskRepository,
        progress_store: ProgressStore,
        orchestrator: Optional[CompletionOrchestrator] = None,
        events: Optional[EventBus] = None,
        offline: Optional[OfflineCache] = None,
        notifier: Optional[Notifier] = None,
        completion_bump: int = 2,
        fetch_timeout: float = 5.0,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.repository = repository
        self.progress_store = progress_store
        self.orchestrator = orchestrator
        self.events = events
        self.offline = offline
        self.notifier = notifier
        self.completion_bump = completion_bump
        self.fetch_timeout = fetch_timeout
        self.clock = clock

        self.cache = TaskCache()
        self.local_tasks: dict[str, list[Task]] = {}
        self._unsubscribe = None

        if events is not None:
            self._unsubscribe = events.subscribe(TaskEvent.REFRESH_TASKS, self._on_refresh)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_refresh(self, payload: dict[str, Any]) -> None:
        user_id = payload.get("user_id")
        if user_id:
            self.cache.invalidate(user_id, today_key(self.clock()))
        else:
            self.cache.clear()

    # -------------------------------------------------------------------------
    # Fetch
    # -------------------------------------------------------------------------

    async def fetch_tasks(self, user_id: str, force_refresh: bool = False) -> list[Task]:
        now = self.clock()
        day = today_key(now)

        if self.cache.is_new_day(day):
            logger.info(f"New day {day}, clearing task cache")
            self.cache.clear()

        if not force_refresh and self.cache.should_skip_fetch(user_id, day):
            return list(self.local_tasks.get(user_id, []))

        try:
            server = await asyncio.wait_for(
                self.repository.fetch_today_tasks(user_id, now), timeout=self.fetch_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Task fetch for {user_id} timed out after {self.fetch_timeout}s")
            return []
        except Exception as e:
            logger.error(f"Task fetch for {user_id} failed: {e}")
            return []

        merged = merge_with_local(server, self.local_tasks.get(user_id, []))
        self.local_tasks[user_id] = merged
        self.cache.put(user_id, day, merged)

        if self.offline is not None:
            self.offline.save_tasks(user_id, [t.to_dict() for t in merged])
            self.offline.set_last_sync(user_id)

        if merged and all(t.completed for t in merged) and merged[0].daily_id in (day, bonus_key(day)):
            bonus = await self._complete_batch(user_id, merged)
            if bonus:
                return bonus

        return list(merged)

    # -------------------------------------------------------------------------
    # Toggle
    # -------------------------------------------------------------------------

    def _find_local(self, task_id: str) -> Optional[Task]:
        for tasks in self.local_tasks.values():
            for task in tasks:
                if task.id == task_id:
                    return task
        return None

    def _put_local(self, task: Task) -> None:
        tasks = self.local_tasks.setdefault(task.user_id, [])
        for i, existing in enumerate(tasks):
            if existing.id == task.id:
                tasks[i] = task
                return
        tasks.append(task)

    async def toggle_task_completion(self, task_id: str) -> ToggleResult:
        """Flip a task's completion state.

        Raises:
            TaskNotFoundError: the task is neither local nor in the store
            TaskUpdateError: the remote write failed; local state was reverted
        """
        task = self._find_local(task_id)
        was_local = task is not None
        if task is None:
            task = await self.repository.fetch_task_by_id(task_id)
            if task is None:
                raise TaskNotFoundError(f"Task {task_id} not found")

        now = self.clock()
        completed = not task.completed
        updated = replace(task, completed=completed, completed_at=now.isoformat() if completed else None)

        self._put_local(updated)
        self.cache.invalidate(task.user_id, today_key(now))

        try:
            await self.repository.set_completed(task_id, updated.completed, updated.completed_at)
        except Exception as e:
            self._put_local(task)
            logger.error(f"Reverted toggle of {task_id}: {e}")
            raise TaskUpdateError("Could not update the task. Please try again.") from e

        if not completed:
            return ToggleResult(updated)

        try:
            await self.progress_store.award(task.user_id, task.development_area, self.completion_bump)
        except Exception as e:
            logger.error(f"Completion progress for {task_id} failed: {e}")

        if self.notifier is not None:
            try:
                self.notifier.send_task_completion_notification(task.user_id, task.title)
            except Exception as e:
                logger.error(f"Completion notification for {task_id} failed: {e}")

        if self.events is not None:
            self.events.emit(
                TaskEvent.TASK_COMPLETED,
                {"user_id": task.user_id, "task_id": task_id, "area": task.development_area.value},
            )

        batch = [t for t in self.local_tasks.get(task.user_id, []) if t.daily_id == task.daily_id]
        if not was_local:
            batch = merge_with_local(
                await self._safe_batch(task.user_id, task.daily_id), [updated]
            )

        bonus: list[Task] = []
        if batch and all(t.completed for t in batch):
            bonus = await self._complete_batch(task.user_id, batch)
        return ToggleResult(updated, bonus)

    async def _safe_batch(self, user_id: str, daily_id: str) -> list[Task]:
        try:
            return await self.repository.fetch_batch(user_id, daily_id)
        except Exception as e:
            logger.error(f"Could not read batch {daily_id} for {user_id}: {e}")
            return []

    async def _complete_batch(self, user_id: str, batch: list[Task]) -> list[Task]:
        if self.orchestrator is None:
            return []

        child: Optional[ChildProfile] = None
        try:
            profile = await self.store.get_profile(user_id)
            if profile:
                child = ChildProfile.from_dict(profile)
        except Exception as e:
            logger.error(f"Could not load profile for {user_id}: {e}")

        bonus = await self.orchestrator.handle_all_tasks_completed(
            user_id, batch, child, child.preferred_language if child else "en"
        )
        if bonus:
            self.local_tasks[user_id] = list(bonus)
            self.cache.put(user_id, today_key(self.clock()), bonus)
        return bonus


async def _run(args) -> Any:
    from nuroo.services import build_services

    services = build_services()
    if args.action == "list":
        return [t.to_dict() for t in await services.task_manager.fetch_tasks(args.user, force_refresh=True)]

    await services.task_manager.fetch_tasks(args.user)
    return (await services.task_manager.toggle_task_completion(args.task_id)).to_dict()


def main():
    parser = argparse.ArgumentParser(description="Task Manager")
    parser.add_argument("--action", required=True, choices=["list", "toggle"])
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--task-id", help="Task ID (for toggle)")
    args = parser.parse_args()

    if args.action == "toggle" and not args.task_id:
        parser.error("--task-id is required for toggle")

    try:
        result = asyncio.run(_run(args))
    except (TaskNotFoundError, TaskUpdateError) as e:
        print(f"ERROR {e}")
        return
    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
