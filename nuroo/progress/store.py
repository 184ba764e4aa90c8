"""
Tool: Progress Store
Purpose: Read and update a child's per-area progress on the profile document

Progress lives at ``profile.progress`` as six numeric fields. Updates are
clamped to [0, 100] and written one field at a time
(``progress.<area>``), so updates to different areas never overwrite each
other. Two updates to the same area are last-write-wins.

Usage:
    python -m nuroo.progress.store --user alice
    python -m nuroo.progress.store --user alice --area communication --value 45
    python -m nuroo.progress.store --user alice --reset

Dependencies:
    - nuroo.store (document store)
"""

import argparse
import asyncio
import json
import logging
from typing import Optional

from nuroo.clock import Clock, today_key, utc_now
from nuroo.config_models import load_config, resolve_path
from nuroo.progress.areas import DevelopmentArea, Difficulty, calculate_difficulty, resolve_area
from nuroo.progress.models import UserProgress, clamp
from nuroo.store.base import DocumentStore
from nuroo.store.sqlite_store import SQLiteDocumentStore

logger = logging.getLogger(__name__)


class ProgressStore:
    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    async def get_progress(self, user_id: str) -> Optional[UserProgress]:
        """Return the stored progress, or None if the child has none yet."""
        profile = await self.store.get_profile(user_id)
        if not profile or not isinstance(profile.get("progress"), dict):
            return None
        return UserProgress.from_dict(profile["progress"])

    async def initialize_progress(self, user_id: str) -> UserProgress:
        progress = UserProgress()
        await self.store.merge_profile(
            user_id,
            {"progress": progress.to_dict(), "last_task_date": today_key(self.clock())},
        )
        logger.info(f"Initialized progress for {user_id}")
        return progress

    async def get_or_initialize(self, user_id: str) -> UserProgress:
        progress = await self.get_progress(user_id)
        if progress is None:
            progress = await self.initialize_progress(user_id)
        return progress

    async def update_progress(
        self, user_id: str, area: str | DevelopmentArea, value: float
    ) -> float:
        """Write one area's value, clamped to [0, 100]. Returns the stored value."""
        field = resolve_area(area)
        stored = clamp(value)
        await self.store.update_profile_fields(user_id, {f"progress.{field.value}": stored})
        logger.debug(f"Progress {user_id}/{field.value} -> {stored}")
        return stored

    async def award(self, user_id: str, area: str | DevelopmentArea, delta: float) -> float:
        """Add ``delta`` to an area (read, clamp, write)."""
        field = resolve_area(area)
        progress = await self.get_or_initialize(user_id)
        return await self.update_progress(user_id, field, progress.get(field) + delta)

    async def get_personalized_difficulties(self, user_id: str) -> dict[DevelopmentArea, Difficulty]:
        progress = await self.get_or_initialize(user_id)
        return {area: calculate_difficulty(progress.get(area)) for area in DevelopmentArea}

    async def get_difficulty(self, user_id: str, area: str | DevelopmentArea) -> Difficulty:
        field = resolve_area(area)
        progress = await self.get_or_initialize(user_id)
        return calculate_difficulty(progress.get(field))

    async def reset_progress(self, user_id: str) -> UserProgress:
        progress = UserProgress()
        await self.store.merge_profile(user_id, {"progress": progress.to_dict()})
        logger.info(f"Reset progress for {user_id}")
        return progress


async def _run(args) -> dict:
    config = load_config()
    progress_store = ProgressStore(SQLiteDocumentStore(resolve_path(config.storage.store_db)))

    if args.reset:
        return (await progress_store.reset_progress(args.user)).to_dict()
    if args.area is not None and args.value is not None:
        await progress_store.update_progress(args.user, args.area, args.value)

    progress = await progress_store.get_or_initialize(args.user)
    return {
        "progress": progress.to_dict(),
        "difficulty": {
            area.value: calculate_difficulty(progress.get(area)).value for area in DevelopmentArea
        },
    }


def main():
    parser = argparse.ArgumentParser(description="Progress Store")
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--area", help="Development area to update")
    parser.add_argument("--value", type=float, help="New value (clamped to 0-100)")
    parser.add_argument("--reset", action="store_true", help="Reset all areas to the default")
    args = parser.parse_args()

    print(json.dumps(asyncio.run(_run(args)), indent=2))


if __name__ == "__main__":
    main()
