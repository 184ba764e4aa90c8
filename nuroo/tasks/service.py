"""
Tool: Daily Task Service
Purpose: Generate and persist today's batch when one is due

Pipeline:
    scheduling gate -> "openai_tasks" rate limit -> generator
        -> conditional batch create -> stamp last_task_date
        -> notification + TASKS_GENERATED event

Nothing here raises to the caller; every path ends in a GenerationOutcome.
An empty generation stores nothing and leaves last_task_date alone so the
next check tries again. A batch that already exists for today (another
check got there first) is reported as DUPLICATE.

Usage:
    python -m nuroo.tasks.service --user alice
    python -m nuroo.tasks.service --user alice --language ru

Dependencies:
    - nuroo.tasks (gate, generator, repository)
    - nuroo.security.ratelimit
    - nuroo.automation.notify
"""

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional

from dotenv import load_dotenv

from nuroo.automation.notify import Notifier
from nuroo.clock import Clock, today_key, utc_now
from nuroo.events import EventBus, TaskEvent
from nuroo.progress.store import ProgressStore
from nuroo.security.ratelimit import RateLimiter, format_time_until_reset
from nuroo.store.base import DocumentStore
from nuroo.tasks.generator import TaskGenerator
from nuroo.tasks.models import ChildProfile, Task
from nuroo.tasks.repository import TaskRepository
from nuroo.tasks.scheduling import DailySchedulingGate

logger = logging.getLogger(__name__)

TASKS_RATE_CATEGORY = "openai_tasks"


class GenerationStatus(StrEnum):
    GENERATED = "generated"
    NOT_DUE = "not_due"
    RATE_LIMITED = "rate_limited"
    EMPTY = "empty"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class GenerationOutcome:
    status: GenerationStatus
    tasks: list[Task] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def generated(self) -> bool:
        return self.status == GenerationStatus.GENERATED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "tasks": [t.to_dict() for t in self.tasks],
        }


class DailyTaskService:
    def __init__(
        self,
        store: DocumentStore,
        gate: DailySchedulingGate,
        rate_limiter: RateLimiter,
        generator: TaskGenerator,
        repository: TaskRepository,
        progress_store: ProgressStore,
        notifier: Optional[Notifier] = None,
        events: Optional[EventBus] = None,
        default_language: str = "en",
        clock: Clock = utc_now,
    ):
        self.store = store
        self.gate = gate
        self.rate_limiter = rate_limiter
        self.generator = generator
        self.repository = repository
        self.progress_store = progress_store
        self.notifier = notifier
        self.events = events
        self.default_language = default_language
        self.clock = clock

    async def _load_child(self, user_id: str) -> Optional[ChildProfile]:
        profile = await self.store.get_profile(user_id)
        if not profile or not profile.get("development_areas"):
            return None
        return ChildProfile.from_dict(profile)

    async def check_and_generate_daily_tasks(
        self,
        user_id: str,
        child: Optional[ChildProfile] = None,
        language: Optional[str] = None,
    ) -> GenerationOutcome:
        if not await self.gate.should_generate_tasks(user_id):
            return GenerationOutcome(GenerationStatus.NOT_DUE)

        limit = self.rate_limiter.check_rate_limit(user_id, TASKS_RATE_CATEGORY)
        if not limit.allowed:
            wait = format_time_until_reset(limit.reset_time, now=self.clock().timestamp())
            message = f"Daily task generation limit reached. Please try again in {wait}"
            logger.warning(f"{message} ({user_id})")
            return GenerationOutcome(GenerationStatus.RATE_LIMITED, message=message)

        try:
            if child is None:
                child = await self._load_child(user_id)
            if child is None:
                return GenerationOutcome(
                    GenerationStatus.FAILED, message="Complete onboarding to get daily tasks"
                )

            language = language or child.preferred_language or self.default_language
            now = self.clock()
            batch_key = today_key(now)

            tasks = await self.generator.generate_personalized_tasks(
                user_id, child, language, daily_id=batch_key
            )
            if not tasks:
                return GenerationOutcome(
                    GenerationStatus.EMPTY, message="No tasks could be generated right now"
                )

            progress = await self.progress_store.get_progress(user_id)
            if not await self.repository.store_batch(user_id, tasks, batch_key, progress, now):
                return GenerationOutcome(
                    GenerationStatus.DUPLICATE, message="Today's tasks already exist"
                )

            await self.gate.update_last_task_date(user_id)
        except Exception as e:
            logger.error(f"Daily task generation failed for {user_id}: {e}")
            return GenerationOutcome(GenerationStatus.FAILED, message=str(e))

        try:
            if self.notifier is not None:
                self.notifier.send_task_generation_notification(user_id, len(tasks))
            if self.events is not None:
                self.events.emit(
                    TaskEvent.TASKS_GENERATED,
                    {"user_id": user_id, "batch_key": batch_key, "count": len(tasks)},
                )
        except Exception as e:
            logger.error(f"Post-generation notification failed for {user_id}: {e}")

        return GenerationOutcome(GenerationStatus.GENERATED, tasks)


async def _run(args) -> dict:
    from nuroo.services import build_services

    services = build_services()
    outcome = await services.daily_task_service.check_and_generate_daily_tasks(
        args.user, language=args.language
    )
    return outcome.to_dict()


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Daily Task Service")
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--language", help="Override the profile language (en, ru)")
    args = parser.parse_args()

    print(json.dumps(asyncio.run(_run(args)), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
