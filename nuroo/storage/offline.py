"""
Offline copies of the last synced tasks, progress and child profile.

Stored per user in the local key-value store alongside a last-sync stamp and
a queue of actions recorded while the store was unreachable. Reads never
raise: a missing or unreadable copy comes back empty.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from nuroo.clock import Clock, utc_now
from nuroo.storage.local import LocalStore

logger = logging.getLogger(__name__)

TASKS_KEY = "offline_tasks"
PROGRESS_KEY = "offline_progress"
CHILD_DATA_KEY = "offline_child_data"
LAST_SYNC_KEY = "last_sync_timestamp"
PENDING_ACTIONS_KEY = "pending_actions"

ALL_KEYS = (TASKS_KEY, PROGRESS_KEY, CHILD_DATA_KEY, LAST_SYNC_KEY, PENDING_ACTIONS_KEY)


class OfflineCache:
    def __init__(self, store: LocalStore, clock: Clock = utc_now, stale_hours: int = 24):
        self.store = store
        self.clock = clock
        self.stale_hours = stale_hours

    @staticmethod
    def _key(name: str, user_id: str) -> str:
        return f"{name}_{user_id}"

    def _get(self, name: str, user_id: str, default: Any) -> Any:
        try:
            value = self.store.get_item(self._key(name, user_id))
        except Exception as e:
            logger.warning(f"Offline read of {name} for {user_id} failed: {e}")
            return default
        return default if value is None else value

    def _set(self, name: str, user_id: str, value: Any) -> None:
        try:
            self.store.set_item(self._key(name, user_id), value)
        except Exception as e:
            logger.warning(f"Offline write of {name} for {user_id} failed: {e}")

    def save_tasks(self, user_id: str, tasks: list[dict[str, Any]]) -> None:
        self._set(TASKS_KEY, user_id, tasks)

    def get_tasks(self, user_id: str) -> list[dict[str, Any]]:
        return self._get(TASKS_KEY, user_id, [])

    def save_progress(self, user_id: str, progress: dict[str, float]) -> None:
        self._set(PROGRESS_KEY, user_id, progress)

    def get_progress(self, user_id: str) -> Optional[dict[str, float]]:
        return self._get(PROGRESS_KEY, user_id, None)

    def save_child_data(self, user_id: str, child: dict[str, Any]) -> None:
        self._set(CHILD_DATA_KEY, user_id, child)

    def get_child_data(self, user_id: str) -> Optional[dict[str, Any]]:
        return self._get(CHILD_DATA_KEY, user_id, None)

    def set_last_sync(self, user_id: str) -> None:
        self._set(LAST_SYNC_KEY, user_id, self.clock().isoformat())

    def get_last_sync(self, user_id: str) -> Optional[str]:
        return self._get(LAST_SYNC_KEY, user_id, None)

    def add_pending_action(self, user_id: str, action_type: str, data: dict[str, Any]) -> None:
        actions = self.get_pending_actions(user_id)
        actions.append({"type": action_type, "data": data, "timestamp": self.clock().isoformat()})
        self._set(PENDING_ACTIONS_KEY, user_id, actions)

    def get_pending_actions(self, user_id: str) -> list[dict[str, Any]]:
        return list(self._get(PENDING_ACTIONS_KEY, user_id, []))

    def clear_pending_actions(self, user_id: str) -> None:
        try:
            self.store.remove_item(self._key(PENDING_ACTIONS_KEY, user_id))
        except Exception as e:
            logger.warning(f"Clearing pending actions for {user_id} failed: {e}")

    def clear_all(self, user_id: str) -> int:
        try:
            return self.store.multi_remove([self._key(name, user_id) for name in ALL_KEYS])
        except Exception as e:
            logger.warning(f"Clearing offline data for {user_id} failed: {e}")
            return 0

    def is_stale(self, user_id: str, max_age_hours: Optional[int] = None) -> bool:
        if max_age_hours is None:
            max_age_hours = self.stale_hours
        last_sync = self.get_last_sync(user_id)
        if not last_sync:
            return True
        try:
            synced_at = datetime.fromisoformat(last_sync)
        except ValueError:
            return True
        return self.clock() - synced_at > timedelta(hours=max_age_hours)
