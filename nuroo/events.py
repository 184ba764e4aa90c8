"""
Typed publish/subscribe for pipeline signals.

An EventBus instance is created once and passed to the services that
publish or listen; there is no module-level bus.

Usage:
    bus = EventBus()
    unsubscribe = bus.subscribe(TaskEvent.REFRESH_TASKS, on_refresh)
    bus.emit(TaskEvent.TASKS_GENERATED, {"user_id": "u1", "count": 4})
    unsubscribe()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class TaskEvent(StrEnum):
    REFRESH_TASKS = "refresh_tasks"
    TASKS_GENERATED = "tasks_generated"
    TASK_COMPLETED = "task_completed"
    BATCH_COMPLETED = "batch_completed"
    BONUS_GENERATED = "bonus_generated"


EventCallback = Callable[[dict[str, Any]], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: dict[TaskEvent, list[EventCallback]] = {}

    def subscribe(self, event: TaskEvent, callback: EventCallback) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.setdefault(event, []).append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(event, callback)

        return unsubscribe

    def unsubscribe(self, event: TaskEvent, callback: EventCallback) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: TaskEvent, payload: dict[str, Any] | None = None) -> int:
        """Call every listener for ``event``; returns how many succeeded.

        A failing listener is logged and does not stop the others.
        """
        delivered = 0
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(payload or {})
                delivered += 1
            except Exception as e:
                logger.error(f"Event listener for '{event}' failed: {e}")
        return delivered

    def clear(self, event: TaskEvent | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: TaskEvent) -> int:
        return len(self._listeners.get(event, []))


__all__ = ["EventBus", "EventCallback", "TaskEvent"]
