"""
Tool: Local Store
Purpose: String-keyed JSON blobs persisted on this device

Holds rate-limit counters, daily message limits, the morning schedule,
celebration markers and offline copies. Values are JSON-encoded; reads of a
corrupt blob raise so callers can decide whether to fail open.

Usage:
    from nuroo.storage.local import LocalStore

    store = LocalStore(Path("data/local.db"))
    store.set_item("rate_limit_openai_ask_alice", {"requests": 1, "windowStart": 0})
    store.get_item("rate_limit_openai_ask_alice")

Dependencies:
    - sqlite3 (stdlib)
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


class LocalStore:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_items (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
        return conn

    def get_item(self, key: str) -> Optional[Any]:
        conn = self.get_connection()
        try:
            row = conn.execute("SELECT value FROM kv_items WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return json.loads(row["value"])

    def set_item(self, key: str, value: Any) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                """
                INSERT INTO kv_items (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, json.dumps(value, default=str), datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = self.get_connection()
        try:
            conn.execute("DELETE FROM kv_items WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def all_keys(self) -> list[str]:
        conn = self.get_connection()
        try:
            rows = conn.execute("SELECT key FROM kv_items ORDER BY key").fetchall()
        finally:
            conn.close()
        return [row["key"] for row in rows]

    def multi_remove(self, keys: list[str]) -> int:
        if not keys:
            return 0
        conn = self.get_connection()
        try:
            placeholders = ", ".join("?" for _ in keys)
            cursor = conn.execute(f"DELETE FROM kv_items WHERE key IN ({placeholders})", keys)
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
