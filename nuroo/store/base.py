"""
Async interface to the remote document store.

Profiles are merged (upsert); tasks are created with their batch and then
only patched field by field. Every method may raise StoreError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class DocumentStore(ABC):
    # Profiles

    @abstractmethod
    async def list_user_ids(self) -> list[str]:
        ...

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        """Return the profile document, or None if the user has none."""

    @abstractmethod
    async def merge_profile(self, user_id: str, data: dict[str, Any]) -> None:
        """Upsert top-level profile fields; fields not given are kept."""

    @abstractmethod
    async def update_profile_fields(self, user_id: str, fields: dict[str, Any]) -> None:
        """Patch fields addressed by dotted path, e.g. ``progress.social``.

        Only the named leaves are written, so concurrent updates to
        different areas do not overwrite each other.
        """

    # Tasks

    @abstractmethod
    async def create_daily_batch(
        self, task_set: dict[str, Any], tasks: list[dict[str, Any]]
    ) -> bool:
        """Write a daily task set and its tasks in one transaction.

        Keyed by ``(user_id, batch key)``. Returns False without writing
        anything if that batch already exists.
        """

    @abstractmethod
    async def get_task(self, task_id: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    async def set_task_fields(self, task_id: str, fields: dict[str, Any]) -> None:
        """Patch a task. Raises StoreError if the task does not exist."""

    @abstractmethod
    async def query_tasks(
        self,
        user_id: str,
        daily_id: Optional[str] = None,
        completed: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Tasks for a user, newest first."""

    @abstractmethod
    async def get_daily_batch(self, user_id: str, batch_key: str) -> Optional[dict[str, Any]]:
        ...
