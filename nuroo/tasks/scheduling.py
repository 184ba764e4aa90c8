"""
Tool: Daily Scheduling Gate
Purpose: Decide whether a user is due a new daily batch

Rules, in order:
    no profile                      -> generate
    last_task_date != today         -> generate unless any task (any day)
                                       is still incomplete (carry-over)
    last_task_date == today         -> generate only if today's batch is
                                       missing (date stamped but the
                                       batch write failed)
    any read error                  -> generate

The gate itself takes no lock. Duplicate generation from two concurrent
checks is refused later by the conditional batch create.

Usage:
    python -m nuroo.tasks.scheduling --user alice
    python -m nuroo.tasks.scheduling --user alice --stamp

Dependencies:
    - nuroo.store (document store)
"""

import argparse
import asyncio
import json
import logging

from nuroo.clock import Clock, today_key, utc_now
from nuroo.config_models import load_config, resolve_path
from nuroo.store.base import DocumentStore
from nuroo.store.sqlite_store import SQLiteDocumentStore

logger = logging.getLogger(__name__)


class DailySchedulingGate:
    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    async def should_generate_tasks(self, user_id: str) -> bool:
        today = today_key(self.clock())

        try:
            profile = await self.store.get_profile(user_id)
            if not profile:
                return True

            last_task_date = profile.get("last_task_date")

            if last_task_date != today:
                incomplete = await self.store.query_tasks(user_id, completed=False, limit=1)
                if incomplete:
                    logger.info(
                        f"Carry-over for {user_id}: task {incomplete[0].get('id')} "
                        f"from {incomplete[0].get('daily_id')} is still open"
                    )
                    return False
                return True

            todays = await self.store.query_tasks(user_id, daily_id=today, limit=1)
            if todays:
                return False

            logger.warning(f"last_task_date is {today} for {user_id} but no batch exists")
            return True

        except Exception as e:
            logger.error(f"Scheduling check failed for {user_id}, generating anyway: {e}")
            return True

    async def has_incomplete_tasks(self, user_id: str) -> bool:
        return bool(await self.store.query_tasks(user_id, completed=False, limit=1))

    async def update_last_task_date(self, user_id: str) -> None:
        await self.store.merge_profile(user_id, {"last_task_date": today_key(self.clock())})


async def _run(args) -> dict:
    config = load_config()
    gate = DailySchedulingGate(SQLiteDocumentStore(resolve_path(config.storage.store_db)))

    if args.stamp:
        await gate.update_last_task_date(args.user)

    return {
        "user_id": args.user,
        "should_generate": await gate.should_generate_tasks(args.user),
        "has_incomplete": await gate.has_incomplete_tasks(args.user),
    }


def main():
    parser = argparse.ArgumentParser(description="Daily Scheduling Gate")
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--stamp", action="store_true", help="Stamp today as the last task date first")
    args = parser.parse_args()

    print(json.dumps(asyncio.run(_run(args)), indent=2))


if __name__ == "__main__":
    main()
