"""
Two-tier task state: authoritative server copies and local optimistic edits.

Conflict rule for merge_with_local: the local copy wins for ``completed`` and the
server wins for every other field.
Server tasks with no local counterpart pass through unchanged.

TaskCache remembers which (user, date) pairs have already been fetched so
repeated fetches on the same day can be served locally. Any completion
toggle drops the entry; a new calendar day drops everything.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from nuroo.tasks.models import Task


def merge_with_local(server: list[Task], local: list[Task]) -> list[Task]:
    by_id = {t.id: t for t in local}
    merged = []
    for task in server:
        mine = by_id.get(task.id)
        if mine is None:
            merged.append(task)
        else:
            merged.append(replace(task, completed=mine.completed))
    return merged


class TaskCache:
    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], list[Task]] = {}
        self.last_fetch_date: Optional[str] = None

    def get(self, user_id: str, day: str) -> Optional[list[Task]]:
        return self._entries.get((user_id, day))

    def put(self, user_id: str, day: str, tasks: list[Task]) -> None:
        self._entries[(user_id, day)] = list(tasks)
        self.last_fetch_date = day

    def is_new_day(self, day: str) -> bool:
        return self.last_fetch_date is not None and self.last_fetch_date != day

    def should_skip_fetch(self, user_id: str, day: str) -> bool:
        return (user_id, day) in self._entries and not self.is_new_day(day)

    def invalidate(self, user_id: str, day: str) -> None:
        self._entries.pop((user_id, day), None)

    def clear(self) -> None:
        self._entries.clear()
        self.last_fetch_date = None

    def __len__(self) -> int:
        return len(self._entries)
