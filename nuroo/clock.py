"""
Calendar helpers shared by the scheduling gate, the cache and the stores.

Batch keys are ISO calendar dates in UTC. Older batches were keyed with a
human-readable date ("Mon Oct 19 2026"); legacy_date_key produces that form
so those batches can still be found.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timezone

Clock = Callable[[], datetime]

BONUS_PREFIX = "bonus_"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today_key(now: datetime | None = None) -> str:
    return (now or utc_now()).date().isoformat()


def legacy_date_key(day: date | datetime) -> str:
    return day.strftime("%a %b %d %Y")


def bonus_key(day_key: str) -> str:
    return f"{BONUS_PREFIX}{day_key}"


def is_bonus_key(batch_key: str) -> bool:
    return batch_key.startswith(BONUS_PREFIX)


def local_now() -> datetime:
    """Wall-clock time on this device, timezone-aware."""
    return datetime.now().astimezone()
