"""
Tool: Local Notifications
Purpose: Record and schedule the notifications shown on this device

Features:
- Immediate notifications: tasks generated, task completed, celebration, bonus round
- One daily "tasks are ready" notification per user at a fixed hour
  (re-scheduling replaces the previous one)
- Tapping any notification emits REFRESH_TASKS on the event bus
- Disabled entirely with notifications.enabled: false

Usage:
    python -m nuroo.automation.notify --action list --user alice
    python -m nuroo.automation.notify --action schedule --user alice
    python -m nuroo.automation.notify --action due

Dependencies:
    - sqlite3 (stdlib)
    - nuroo.events (refresh signal)

Configuration:
    See args/nuroo.yaml -> notifications
"""

import argparse
import json
import sqlite3
import uuid
from datetime import datetime, timedelta
from enum import StrEnum
from pathlib import Path
from typing import Any, Optional

from nuroo.clock import Clock, utc_now
from nuroo.config_models import NotificationsConfig, load_config, resolve_path
from nuroo.events import EventBus, TaskEvent
from nuroo.logging_config import get_logger

logger = get_logger(__name__)


class NotificationKind(StrEnum):
    DAILY_TASKS = "daily_tasks"
    TASKS_GENERATED = "tasks_generated"
    TASK_COMPLETED = "task_completed"
    CELEBRATION = "celebration"
    BONUS_TASKS = "bonus_tasks"


class Notifier:
    def __init__(
        self,
        db_path: Path,
        events: Optional[EventBus] = None,
        config: Optional[NotificationsConfig] = None,
        clock: Clock = utc_now,
    ):
        self.db_path = Path(db_path)
        self.events = events
        self.config = config or NotificationsConfig()
        self.clock = clock

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        conn.execute("""
            CREATE TABLE IF NOT EXISTS notifications (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                kind TEXT NOT NULL,
                title TEXT NOT NULL,
                body TEXT NOT NULL,
                data TEXT,
                status TEXT CHECK(status IN ('delivered', 'scheduled', 'opened')) DEFAULT 'delivered',
                fire_at TEXT,
                created_at TEXT NOT NULL,
                opened_at TEXT
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_notifications_status ON notifications(status)")
        conn.commit()
        return conn

    def _record(
        self,
        user_id: str,
        kind: NotificationKind,
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
        fire_at: Optional[datetime] = None,
    ) -> Optional[str]:
        if not self.config.enabled:
            return None

        notification_id = str(uuid.uuid4())
        conn = self.get_connection()
        try:
            conn.execute(
                """
                INSERT INTO notifications (id, user_id, kind, title, body, data, status, fire_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    notification_id,
                    user_id,
                    kind.value,
                    title,
                    body,
                    json.dumps(data or {}, ensure_ascii=False),
                    "scheduled" if fire_at else "delivered",
                    fire_at.isoformat() if fire_at else None,
                    self.clock().isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

        logger.info("notification_recorded", user_id=user_id, kind=kind.value, scheduled=bool(fire_at))
        return notification_id

    # -------------------------------------------------------------------------
    # Immediate notifications
    # -------------------------------------------------------------------------

    def send_task_generation_notification(self, user_id: str, task_count: int) -> Optional[str]:
        return self._record(
            user_id,
            NotificationKind.TASKS_GENERATED,
            "🎯 New Tasks Generated!",
            f"You have {task_count} new personalized activities for today!",
            {"task_count": task_count},
        )

    def send_task_completion_notification(self, user_id: str, task_title: str) -> Optional[str]:
        return self._record(
            user_id,
            NotificationKind.TASK_COMPLETED,
            "✅ Task Completed!",
            f"Great job finishing \"{task_title}\"",
            {"task_title": task_title},
        )

    def send_celebration(self, user_id: str, completed_count: int) -> Optional[str]:
        return self._record(
            user_id,
            NotificationKind.CELEBRATION,
            "🎉 All tasks done!",
            f"Amazing work! You completed all {completed_count} activities today.",
            {"completed_count": completed_count},
        )

    def send_bonus_notification(self, user_id: str, task_count: int) -> Optional[str]:
        return self._record(
            user_id,
            NotificationKind.BONUS_TASKS,
            "⭐ Bonus Round!",
            f"{task_count} bonus activities are ready whenever you are.",
            {"task_count": task_count},
        )

    # -------------------------------------------------------------------------
    # Daily schedule
    # -------------------------------------------------------------------------

    def next_daily_fire_time(self) -> datetime:
        now = self.clock()
        target = now.replace(
            hour=self.config.daily_hour, minute=self.config.daily_minute, second=0, microsecond=0
        )
        if target <= now:
            target += timedelta(days=1)
        return target

    def schedule_daily_notification(self, user_id: str) -> Optional[str]:
        """Replace any pending daily notification with one at the next daily hour."""
        if not self.config.enabled:
            return None

        conn = self.get_connection()
        try:
            conn.execute(
                "DELETE FROM notifications WHERE user_id = ? AND kind = ? AND status = 'scheduled'",
                (user_id, NotificationKind.DAILY_TASKS.value),
            )
            conn.commit()
        finally:
            conn.close()

        return self._record(
            user_id,
            NotificationKind.DAILY_TASKS,
            "🌅 Good Morning!",
            "Your personalized daily tasks are ready!",
            fire_at=self.next_daily_fire_time(),
        )

    def due_notifications(self) -> list[dict[str, Any]]:
        """Scheduled notifications whose fire time has passed."""
        conn = self.get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM notifications WHERE status = 'scheduled' AND fire_at <= ?",
                (self.clock().isoformat(),),
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_dict(r) for r in rows]

    def cancel_all(self, user_id: str) -> int:
        conn = self.get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM notifications WHERE user_id = ? AND status = 'scheduled'", (user_id,)
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Responses and listing
    # -------------------------------------------------------------------------

    def handle_notification_response(self, notification_id: str) -> bool:
        """Mark a notification opened and ask the task list to refresh.

        Every kind triggers a refresh, including kinds this version does not know.
        """
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT user_id, kind FROM notifications WHERE id = ?", (notification_id,)
            ).fetchone()
            if row is None:
                logger.warning("notification_not_found", notification_id=notification_id)
                return False
            conn.execute(
                "UPDATE notifications SET status = 'opened', opened_at = ? WHERE id = ?",
                (self.clock().isoformat(), notification_id),
            )
            conn.commit()
        finally:
            conn.close()

        logger.info("notification_opened", user_id=row["user_id"], kind=row["kind"])
        if self.events is not None:
            self.events.emit(TaskEvent.REFRESH_TASKS, {"user_id": row["user_id"], "source": row["kind"]})
        return True

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
        return {
            "id": row["id"],
            "user_id": row["user_id"],
            "kind": row["kind"],
            "title": row["title"],
            "body": row["body"],
            "data": json.loads(row["data"]) if row["data"] else {},
            "status": row["status"],
            "fire_at": row["fire_at"],
            "created_at": row["created_at"],
            "opened_at": row["opened_at"],
        }

    def list_notifications(
        self,
        user_id: Optional[str] = None,
        kind: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        query = "SELECT * FROM notifications WHERE 1=1"
        params: list[Any] = []

        if user_id:
            query += " AND user_id = ?"
            params.append(user_id)
        if kind:
            query += " AND kind = ?"
            params.append(kind)
        if status:
            query += " AND status = ?"
            params.append(status)

        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        conn = self.get_connection()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        return [self._row_to_dict(r) for r in rows]


def main():
    parser = argparse.ArgumentParser(description="Local Notifications")
    parser.add_argument("--action", required=True, choices=["list", "schedule", "due", "open", "cancel"])
    parser.add_argument("--user", help="User ID")
    parser.add_argument("--id", help="Notification ID (for open)")
    parser.add_argument("--limit", type=int, default=20)
    args = parser.parse_args()

    config = load_config()
    notifier = Notifier(resolve_path(config.storage.notifications_db), EventBus(), config.notifications)

    if args.action == "list":
        result: Any = notifier.list_notifications(user_id=args.user, limit=args.limit)
    elif args.action == "schedule":
        if not args.user:
            parser.error("--user is required for schedule")
        result = {"id": notifier.schedule_daily_notification(args.user)}
    elif args.action == "due":
        result = notifier.due_notifications()
    elif args.action == "open":
        if not args.id:
            parser.error("--id is required for open")
        result = {"opened": notifier.handle_notification_response(args.id)}
    else:
        if not args.user:
            parser.error("--user is required for cancel")
        result = {"cancelled": notifier.cancel_all(args.user)}

    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
