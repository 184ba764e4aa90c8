"""
Tool: SQLite Document Store
Purpose: Profiles, tasks and daily task sets in one SQLite file

Documents are stored as JSON with the columns needed for queries
(user_id, daily_id, completed, created_at) lifted out beside them.
Batch creation is a conditional insert on UNIQUE(user_id, batch_key) in the
same transaction as the batch's tasks, so a second generation for the same
day is refused instead of duplicated.

Usage:
    python -m nuroo.store.sqlite_store --action profile --user alice
    python -m nuroo.store.sqlite_store --action tasks --user alice --daily-id 2026-10-19
    python -m nuroo.store.sqlite_store --action batches --user alice

Dependencies:
    - sqlite3 (stdlib)
"""

import argparse
import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from nuroo.config_models import load_config, resolve_path
from nuroo.errors import StoreError
from nuroo.store.base import DocumentStore

logger = logging.getLogger(__name__)


def _set_path(doc: dict[str, Any], dotted: str, value: Any) -> None:
    parts = dotted.split(".")
    node = doc
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


class SQLiteDocumentStore(DocumentStore):
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                user_id TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                daily_id TEXT NOT NULL,
                completed INTEGER DEFAULT 0,
                created_at TEXT NOT NULL,
                data TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS daily_task_sets (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                batch_key TEXT NOT NULL,
                date TEXT NOT NULL,
                generated_at TEXT NOT NULL,
                data TEXT NOT NULL,
                UNIQUE(user_id, batch_key)
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_tasks_daily ON tasks(user_id, daily_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks(created_at)")

        conn.commit()
        return conn

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def list_user_ids(self) -> list[str]:
        try:
            conn = self.get_connection()
            try:
                rows = conn.execute("SELECT user_id FROM profiles ORDER BY user_id").fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not list profiles: {e}") from e
        return [r["user_id"] for r in rows]

    async def get_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        try:
            conn = self.get_connection()
            try:
                row = conn.execute(
                    "SELECT data FROM profiles WHERE user_id = ?", (user_id,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read profile for {user_id}: {e}") from e
        return json.loads(row["data"]) if row else None

    async def merge_profile(self, user_id: str, data: dict[str, Any]) -> None:
        def merge(doc: dict[str, Any]) -> None:
            doc.update(data)

        await self._modify_profile(user_id, merge)

    async def update_profile_fields(self, user_id: str, fields: dict[str, Any]) -> None:
        def patch(doc: dict[str, Any]) -> None:
            for path, value in fields.items():
                _set_path(doc, path, value)

        await self._modify_profile(user_id, patch)

    async def _modify_profile(self, user_id: str, change) -> None:
        try:
            conn = self.get_connection()
            try:
                conn.execute("BEGIN IMMEDIATE")
                row = conn.execute(
                    "SELECT data FROM profiles WHERE user_id = ?", (user_id,)
                ).fetchone()
                doc = json.loads(row["data"]) if row else {}
                change(doc)
                conn.execute(
                    """
                    INSERT INTO profiles (user_id, data, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
                    """,
                    (user_id, json.dumps(doc, default=str), datetime.now().isoformat()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not write profile for {user_id}: {e}") from e

    # -------------------------------------------------------------------------
    # Tasks and batches
    # -------------------------------------------------------------------------

    async def create_daily_batch(
        self, task_set: dict[str, Any], tasks: list[dict[str, Any]]
    ) -> bool:
        try:
            conn = self.get_connection()
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    conn.execute(
                        """
                        INSERT INTO daily_task_sets (id, user_id, batch_key, date, generated_at, data)
                        VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (
                            task_set["id"],
                            task_set["user_id"],
                            task_set["batch_key"],
                            task_set["date"],
                            task_set["generated_at"],
                            json.dumps(task_set, default=str),
                        ),
                    )
                except sqlite3.IntegrityError:
                    conn.rollback()
                    logger.info(
                        f"Batch {task_set['batch_key']} already exists for {task_set['user_id']}, skipping"
                    )
                    return False

                conn.executemany(
                    """
                    INSERT INTO tasks (id, user_id, daily_id, completed, created_at, data)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            t["id"],
                            t["user_id"],
                            t["daily_id"],
                            1 if t.get("completed") else 0,
                            t["created_at"],
                            json.dumps(t, default=str),
                        )
                        for t in tasks
                    ],
                )
                conn.commit()
                return True
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not store batch {task_set.get('batch_key')}: {e}") from e

    async def get_daily_batch(self, user_id: str, batch_key: str) -> Optional[dict[str, Any]]:
        try:
            conn = self.get_connection()
            try:
                row = conn.execute(
                    "SELECT data FROM daily_task_sets WHERE user_id = ? AND batch_key = ?",
                    (user_id, batch_key),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read batch {batch_key}: {e}") from e
        return json.loads(row["data"]) if row else None

    async def list_daily_batches(self, user_id: str) -> list[dict[str, Any]]:
        try:
            conn = self.get_connection()
            try:
                rows = conn.execute(
                    "SELECT data FROM daily_task_sets WHERE user_id = ? ORDER BY generated_at DESC",
                    (user_id,),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not list batches for {user_id}: {e}") from e
        return [json.loads(r["data"]) for r in rows]

    async def get_task(self, task_id: str) -> Optional[dict[str, Any]]:
        try:
            conn = self.get_connection()
            try:
                row = conn.execute("SELECT data FROM tasks WHERE id = ?", (task_id,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read task {task_id}: {e}") from e
        return json.loads(row["data"]) if row else None

    async def set_task_fields(self, task_id: str, fields: dict[str, Any]) -> None:
        try:
            conn = self.get_connection()
            try:
                conn.execute("BEGIN IMMEDIATE")
                row = conn.execute("SELECT data FROM tasks WHERE id = ?", (task_id,)).fetchone()
                if row is None:
                    conn.rollback()
                    raise StoreError(f"Task {task_id} not found")

                doc = json.loads(row["data"])
                doc.update(fields)
                conn.execute(
                    "UPDATE tasks SET data = ?, completed = ? WHERE id = ?",
                    (json.dumps(doc, default=str), 1 if doc.get("completed") else 0, task_id),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not update task {task_id}: {e}") from e

    async def query_tasks(
        self,
        user_id: str,
        daily_id: Optional[str] = None,
        completed: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        query = "SELECT data FROM tasks WHERE user_id = ?"
        params: list[Any] = [user_id]

        if daily_id is not None:
            query += " AND daily_id = ?"
            params.append(daily_id)
        if completed is not None:
            query += " AND completed = ?"
            params.append(1 if completed else 0)

        query += " ORDER BY created_at DESC, rowid DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        try:
            conn = self.get_connection()
            try:
                rows = conn.execute(query, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not query tasks for {user_id}: {e}") from e
        return [json.loads(r["data"]) for r in rows]


def main():
    parser = argparse.ArgumentParser(description="SQLite Document Store")
    parser.add_argument("--action", required=True, choices=["profile", "tasks", "batches"])
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--daily-id", help="Filter tasks by batch key")
    args = parser.parse_args()

    config = load_config()
    store = SQLiteDocumentStore(resolve_path(config.storage.store_db))

    if args.action == "profile":
        result: Any = asyncio.run(store.get_profile(args.user))
    elif args.action == "tasks":
        result = asyncio.run(store.query_tasks(args.user, daily_id=args.daily_id))
    else:
        result = asyncio.run(store.list_daily_batches(args.user))

    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
