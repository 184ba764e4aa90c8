"""
Tool: Daily Limits
Purpose: Per-day chat budget, chat opening hours and the morning task schedule

Features:
- Three "Ask Nuroo" messages per user per day; the budget resets at 9 AM
  the next day
- Chat is open from 06:00 to 22:00 device time
- Morning schedule: generation becomes eligible at the next 9 AM and the
  next eligible time moves forward each time it fires
- Every check fails open except the morning schedule, which fails closed
  (a broken schedule must not trigger generation on every call)

Usage:
    python -m nuroo.limits.daily --action status --user alice
    python -m nuroo.limits.daily --action record --user alice
    python -m nuroo.limits.daily --action reset --user alice

Dependencies:
    - nuroo.storage.local (sqlite3)

Configuration:
    See args/nuroo.yaml -> daily_limits
"""

import argparse
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from nuroo.clock import Clock, local_now, today_key
from nuroo.config_models import DailyLimitsConfig, load_config, resolve_path
from nuroo.storage.local import LocalStore

logger = logging.getLogger(__name__)

MESSAGE_LIMIT_KEY = "daily_message_limit_"
TASK_SCHEDULE_KEY = "morning_task_schedule_"


@dataclass
class MessageAllowance:
    allowed: bool
    remaining: int
    reset_time: float
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ChatAvailability:
    available: bool
    reason: Optional[str] = None
    next_available_time: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _countdown(diff_seconds: float) -> str:
    minutes = int(diff_seconds // 60)
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


class DailyLimits:
    def __init__(
        self,
        store: LocalStore,
        config: Optional[DailyLimitsConfig] = None,
        clock: Clock = local_now,
    ):
        self.store = store
        self.config = config or DailyLimitsConfig()
        self.clock = clock

    def _message_key(self, user_id: str) -> str:
        return f"{MESSAGE_LIMIT_KEY}{user_id}_{today_key(self.clock())}"

    def _schedule_key(self, user_id: str) -> str:
        return f"{TASK_SCHEDULE_KEY}{user_id}"

    def next_day_reset_time(self) -> datetime:
        tomorrow = self.clock() + timedelta(days=1)
        return tomorrow.replace(hour=self.config.morning_task_hour, minute=0, second=0, microsecond=0)

    def next_morning_time(self) -> datetime:
        now = self.clock()
        morning = now.replace(hour=self.config.morning_task_hour, minute=0, second=0, microsecond=0)
        if now >= morning:
            morning += timedelta(days=1)
        return morning

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def can_send_message(self, user_id: str) -> MessageAllowance:
        max_messages = self.config.max_daily_messages
        try:
            stored = self.store.get_item(self._message_key(user_id))
            if not stored:
                reset_time = self.next_day_reset_time().timestamp()
                self.store.set_item(
                    self._message_key(user_id),
                    {"messages_used": 0, "max_messages": max_messages, "reset_time": reset_time},
                )
                return MessageAllowance(True, max_messages, reset_time)

            if stored["messages_used"] >= stored["max_messages"]:
                return MessageAllowance(
                    False,
                    0,
                    stored["reset_time"],
                    f"You've used all {stored['max_messages']} messages for today. "
                    f"New messages will be available tomorrow at {self.config.morning_task_hour} AM.",
                )

            return MessageAllowance(
                True, stored["max_messages"] - stored["messages_used"], stored["reset_time"]
            )
        except Exception as e:
            logger.error(f"Message limit check failed for {user_id}, allowing: {e}")
            return MessageAllowance(True, max_messages, self.next_day_reset_time().timestamp())

    def record_message_usage(self, user_id: str) -> None:
        key = self._message_key(user_id)
        try:
            stored = self.store.get_item(key) or {
                "messages_used": 0,
                "max_messages": self.config.max_daily_messages,
                "reset_time": self.next_day_reset_time().timestamp(),
            }
            stored["messages_used"] += 1
            self.store.set_item(key, stored)
        except Exception as e:
            logger.error(f"Recording message usage failed for {user_id}: {e}")

    def get_time_until_message_reset(self, user_id: str) -> str:
        try:
            stored = self.store.get_item(self._message_key(user_id))
        except Exception as e:
            logger.error(f"Reading message limit failed for {user_id}: {e}")
            return "Available now"

        if not stored:
            return "Available now"
        diff = stored["reset_time"] - self.clock().timestamp()
        return "Available now" if diff <= 0 else _countdown(diff)

    def is_chat_available(self, user_id: str) -> ChatAvailability:
        now = self.clock()
        opens, closes = self.config.chat_opens_hour, self.config.chat_closes_hour

        if now.hour < opens or now.hour >= closes:
            next_open = now.replace(hour=opens, minute=0, second=0, microsecond=0)
            if now.hour >= closes:
                next_open += timedelta(days=1)
            return ChatAvailability(
                False,
                f"Ask Nuroo is available from {opens}:00 to {closes}:00",
                next_open.strftime("%H:%M"),
            )

        allowance = self.can_send_message(user_id)
        if not allowance.allowed:
            return ChatAvailability(
                False,
                allowance.message or "Daily message limit reached",
                self.get_time_until_message_reset(user_id),
            )
        return ChatAvailability(True)

    # -------------------------------------------------------------------------
    # Morning schedule
    # -------------------------------------------------------------------------

    def should_generate_morning_tasks(self, user_id: str) -> bool:
        key = self._schedule_key(user_id)
        try:
            stored = self.store.get_item(key)
            if not stored:
                self.store.set_item(
                    key,
                    {
                        "last_generation_date": "",
                        "next_generation_time": self.next_morning_time().timestamp(),
                        "is_enabled": True,
                    },
                )
                return True

            if not stored.get("is_enabled", True):
                return False

            if self.clock().timestamp() >= stored["next_generation_time"]:
                stored["last_generation_date"] = today_key(self.clock())
                stored["next_generation_time"] = self.next_morning_time().timestamp()
                self.store.set_item(key, stored)
                return True

            return False
        except Exception as e:
            logger.error(f"Morning schedule check failed for {user_id}: {e}")
            return False

    async def generate_morning_tasks_if_needed(self, user_id: str, service, language: Optional[str] = None):
        """Run the daily task service if the morning schedule says it is time.

        Returns the GenerationOutcome, or None when it is not time yet.
        """
        if not self.should_generate_morning_tasks(user_id):
            return None
        outcome = await service.check_and_generate_daily_tasks(user_id, language=language)
        if outcome.generated:
            logger.info(f"Morning tasks generated for {user_id}")
        return outcome

    def get_time_until_next_morning_tasks(self, user_id: str) -> str:
        hour = self.config.morning_task_hour
        try:
            stored = self.store.get_item(self._schedule_key(user_id))
        except Exception as e:
            logger.error(f"Reading morning schedule failed for {user_id}: {e}")
            stored = None

        if not stored:
            return f"Next morning at {hour} AM"
        diff = stored["next_generation_time"] - self.clock().timestamp()
        if diff <= 0:
            return "Available now"
        return f"{_countdown(diff)} until {hour} AM"

    def reset_daily_limits(self, user_id: str) -> int:
        try:
            # message keys end in _<date>; dates contain no underscore
            keys = [
                k for k in self.store.all_keys()
                if k == self._schedule_key(user_id)
                or (
                    k.startswith(MESSAGE_LIMIT_KEY)
                    and k.removeprefix(MESSAGE_LIMIT_KEY).rpartition("_")[0] == user_id
                )
            ]
            return self.store.multi_remove(keys)
        except Exception as e:
            logger.error(f"Resetting daily limits failed for {user_id}: {e}")
            return 0


def main():
    parser = argparse.ArgumentParser(description="Daily Limits")
    parser.add_argument("--action", required=True, choices=["status", "record", "reset"])
    parser.add_argument("--user", required=True, help="User ID")
    args = parser.parse_args()

    config = load_config()
    limits = DailyLimits(LocalStore(resolve_path(config.storage.local_db)), config.daily_limits)

    if args.action == "record":
        limits.record_message_usage(args.user)
    elif args.action == "reset":
        print(f"OK Removed {limits.reset_daily_limits(args.user)} records for {args.user}")
        return

    print(
        json.dumps(
            {
                "messages": limits.can_send_message(args.user).to_dict(),
                "chat": limits.is_chat_available(args.user).to_dict(),
                "reset_in": limits.get_time_until_message_reset(args.user),
                "morning_tasks_in": limits.get_time_until_next_morning_tasks(args.user),
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
