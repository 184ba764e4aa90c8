"""
Tool: Background Task Runner
Purpose: Re-run the daily generation check for every user on a fixed interval

Each pass asks the DailyTaskService for every known profile; the service
applies the scheduling gate and rate limit, so extra passes are cheap and
never duplicate a batch. One user's failure does not stop the pass.

Usage:
    python -m nuroo.automation.runner --once
    python -m nuroo.automation.runner --start

Dependencies:
    - asyncio (stdlib)

Configuration:
    See args/nuroo.yaml -> background
"""

import argparse
import asyncio
import json
from collections import Counter
from datetime import datetime
from typing import Any, Optional

from nuroo.logging_config import get_logger, setup_logging
from nuroo.store.base import DocumentStore
from nuroo.tasks.service import DailyTaskService

logger = get_logger(__name__)


class BackgroundTaskRunner:
    def __init__(
        self,
        store: DocumentStore,
        service: DailyTaskService,
        interval_seconds: int = 3600,
    ):
        self.store = store
        self.service = service
        self.interval_seconds = interval_seconds
        self.running = False
        self.last_run: Optional[datetime] = None
        self.errors = 0
        self._stop = asyncio.Event()

    async def run_once(self) -> dict[str, Any]:
        """Run one generation pass; returns counts per outcome status."""
        try:
            user_ids = await self.store.list_user_ids()
        except Exception as e:
            logger.error("runner_list_users_failed", error=str(e))
            self.errors += 1
            return {"users": 0, "outcomes": {}}

        outcomes: Counter[str] = Counter()
        for user_id in user_ids:
            try:
                outcome = await self.service.check_and_generate_daily_tasks(user_id)
                outcomes[outcome.status.value] += 1
            except Exception as e:
                logger.error("runner_user_failed", user_id=user_id, error=str(e))
                outcomes["error"] += 1
                self.errors += 1

        self.last_run = datetime.now()
        logger.info("runner_pass_complete", users=len(user_ids), outcomes=dict(outcomes))
        return {"users": len(user_ids), "outcomes": dict(outcomes)}

    async def run_forever(self) -> None:
        self.running = True
        self._stop.clear()
        logger.info("runner_started", interval_seconds=self.interval_seconds)

        while not self._stop.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

        self.running = False
        logger.info("runner_stopped")

    def stop(self) -> None:
        self._stop.set()

    def status(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "errors": self.errors,
        }


def main():
    from dotenv import load_dotenv

    from nuroo.services import build_services

    load_dotenv()
    setup_logging()

    parser = argparse.ArgumentParser(description="Background Task Runner")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument("--start", action="store_true", help="Run until interrupted")
    args = parser.parse_args()

    services = build_services()
    runner = services.background_runner

    if args.once:
        print(json.dumps(asyncio.run(runner.run_once()), indent=2))
    elif args.start:
        if not services.config.background.enabled:
            print("Background runner is disabled (background.enabled: false)")
            return
        try:
            asyncio.run(runner.run_forever())
        except KeyboardInterrupt:
            pass
    else:
        parser.error("Must specify --once or --start")


if __name__ == "__main__":
    main()
