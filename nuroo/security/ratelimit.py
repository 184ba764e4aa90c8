"""
Tool: Rate Limiter
Purpose: Gate AI and store calls with per-user fixed-window counters

Features:
- One counter per (user, category), persisted in the local store
- Fixed window per category: the first request opens it, it resets once
  the window length has elapsed
- Clear retry-after and human-readable countdowns
- Fails open: if the counter cannot be read or written the request is allowed

Usage:
    python -m nuroo.security.ratelimit --check --user alice --category openai_ask
    python -m nuroo.security.ratelimit --status --user alice --category openai_tasks
    python -m nuroo.security.ratelimit --reset --user alice --category openai_ask
    python -m nuroo.security.ratelimit --clear --user alice

Dependencies:
    - nuroo.storage.local (sqlite3)

Configuration:
    See args/nuroo.yaml -> rate_limits
"""

import argparse
import json
import logging
import math
import sys
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any, Optional

from nuroo.config_models import RateLimitCategoryConfig, load_config, resolve_path
from nuroo.storage.local import LocalStore

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = "rate_limit_"


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: float  # epoch seconds
    retry_after: Optional[int] = None  # seconds

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def format_time_until_reset(reset_time: float, now: Optional[float] = None) -> str:
    """Render the wait until ``reset_time`` as "2d 3h", "1h 5m" or "12m"."""
    now = time.time() if now is None else now
    diff = reset_time - now

    if diff <= 0:
        return "Available now"

    minutes = int(diff // 60)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


class RateLimiter:
    """Fixed-window request counter per user and category.

    Args:
        store: Local key-value store holding ``{"requests", "windowStart"}`` blobs.
        limits: Category name -> (max_requests, window_seconds).
        clock: Returns the current epoch time in seconds.
    """

    def __init__(
        self,
        store: LocalStore,
        limits: dict[str, RateLimitCategoryConfig],
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.limits = limits
        self.clock = clock

    def _config(self, category: str) -> RateLimitCategoryConfig:
        if category not in self.limits:
            raise ValueError(f"Unknown rate limit category: {category}. Available: {sorted(self.limits)}")
        return self.limits[category]

    @staticmethod
    def _key(category: str, user_id: str) -> str:
        return f"{STORAGE_KEY_PREFIX}{category}_{user_id}"

    def check_rate_limit(self, user_id: str, category: str) -> RateLimitResult:
        """Count one request against the window and say whether it may proceed."""
        config = self._config(category)
        window = config.window_seconds
        key = self._key(category, user_id)
        now = self.clock()

        try:
            stored = self.store.get_item(key)

            if not stored:
                self._record(key, now, 1)
                return RateLimitResult(True, config.max_requests - 1, now + window)

            requests = int(stored["requests"])
            window_start = float(stored["windowStart"])

            if now - window_start >= window:
                self._record(key, now, 1)
                return RateLimitResult(True, config.max_requests - 1, now + window)

            if requests >= config.max_requests:
                reset_time = window_start + window
                retry_after = math.ceil(reset_time - now)
                logger.warning(
                    f"Rate limit hit for {user_id}/{category}: {requests}/{config.max_requests}, "
                    f"retry in {retry_after}s"
                )
                return RateLimitResult(False, 0, reset_time, retry_after)

            self._record(key, window_start, requests + 1)
            return RateLimitResult(
                True, config.max_requests - (requests + 1), window_start + window
            )

        except Exception as e:
            logger.error(f"Rate limit check failed for {user_id}/{category}, allowing: {e}")
            return RateLimitResult(True, config.max_requests - 1, self.clock() + window)

    def _record(self, key: str, window_start: float, requests: int) -> None:
        self.store.set_item(key, {"requests": requests, "windowStart": window_start})

    def get_status(self, user_id: str, category: str) -> RateLimitResult:
        """Peek at the counter without consuming a request."""
        config = self._config(category)
        window = config.window_seconds
        now = self.clock()

        try:
            stored = self.store.get_item(self._key(category, user_id))
            if not stored or now - float(stored["windowStart"]) >= window:
                return RateLimitResult(True, config.max_requests, now + window)

            remaining = max(0, config.max_requests - int(stored["requests"]))
            reset_time = float(stored["windowStart"]) + window
            return RateLimitResult(
                remaining > 0,
                remaining,
                reset_time,
                math.ceil(reset_time - now) if remaining == 0 else None,
            )
        except Exception as e:
            logger.error(f"Rate limit status check failed for {user_id}/{category}: {e}")
            return RateLimitResult(True, config.max_requests, now + window)

    def reset(self, user_id: str, category: str) -> None:
        try:
            self.store.remove_item(self._key(category, user_id))
        except Exception as e:
            logger.error(f"Rate limit reset failed for {user_id}/{category}: {e}")

    def clear_all(self, user_id: str) -> int:
        """Drop every category's counter for a user."""
        try:
            return self.store.multi_remove([self._key(category, user_id) for category in self.limits])
        except Exception as e:
            logger.error(f"Clearing rate limits failed for {user_id}: {e}")
            return 0


def main():
    parser = argparse.ArgumentParser(description="Rate Limiter")
    parser.add_argument("--check", action="store_true", help="Count a request and report")
    parser.add_argument("--status", action="store_true", help="Report without counting")
    parser.add_argument("--reset", action="store_true", help="Reset one category")
    parser.add_argument("--clear", action="store_true", help="Reset every category")
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--category", default="openai_ask", help="Limit category")

    args = parser.parse_args()

    config = load_config()
    limiter = RateLimiter(LocalStore(resolve_path(config.storage.local_db)), config.rate_limits)

    if args.check:
        result = limiter.check_rate_limit(args.user, args.category)
    elif args.status:
        result = limiter.get_status(args.user, args.category)
    elif args.reset:
        limiter.reset(args.user, args.category)
        print(f"OK Rate limit reset for {args.user}/{args.category}")
        return
    elif args.clear:
        removed = limiter.clear_all(args.user)
        print(f"OK Cleared {removed} rate limit records for {args.user}")
        return
    else:
        print("Error: Must specify an action (--check, --status, --reset, --clear)")
        sys.exit(1)

    if result.allowed:
        print(f"OK {result.remaining} requests remaining")
    else:
        print(f"BLOCKED Try again in {format_time_until_reset(result.reset_time)}")

    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
