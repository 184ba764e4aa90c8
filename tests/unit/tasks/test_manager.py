"""Tests for nuroo/tasks/manager.py

The task manager serves today's task list and completion toggles:
- Fetches are cached per (user, day) and merged with local edits
- A slow store yields an empty list rather than blocking
- Toggles are optimistic and revert when the store write fails
- Completing a task bumps its area; completing a batch starts the bonus round
"""

import asyncio
import sqlite3
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from nuroo.errors import StoreError, TaskNotFoundError, TaskUpdateError
from nuroo.events import TaskEvent
from nuroo.tasks.manager import TaskManager


@pytest.fixture
def manager(services):
    return services.task_manager


@pytest_asyncio.fixture
async def todays_tasks(seed_batch, mock_user_id):
    return await seed_batch(mock_user_id, "2026-10-19", count=2)


# ─────────────────────────────────────────────────────────────────────────────
# Fetch Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestFetchTasks:
    """Tests for fetching today's list."""

    @pytest.mark.asyncio
    async def test_returns_todays_tasks(self, manager, seed_batch, mock_user_id):
        seeded = await seed_batch(mock_user_id, "2026-10-19", count=3)

        tasks = await manager.fetch_tasks(mock_user_id)

        assert [t.id for t in tasks] == [t.id for t in seeded]

    @pytest.mark.asyncio
    async def test_second_fetch_served_from_cache(self, manager, seed_batch, mock_user_id):
        await seed_batch(mock_user_id, "2026-10-19")
        original = manager.repository.fetch_today_tasks
        manager.repository.fetch_today_tasks = AsyncMock(wraps=original)

        await manager.fetch_tasks(mock_user_id)
        await manager.fetch_tasks(mock_user_id)

        assert manager.repository.fetch_today_tasks.await_count == 1

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache(self, manager, seed_batch, mock_user_id):
        await seed_batch(mock_user_id, "2026-10-19")
        original = manager.repository.fetch_today_tasks
        manager.repository.fetch_today_tasks = AsyncMock(wraps=original)

        await manager.fetch_tasks(mock_user_id)
        await manager.fetch_tasks(mock_user_id, force_refresh=True)

        assert manager.repository.fetch_today_tasks.await_count == 2

    @pytest.mark.asyncio
    async def test_new_day_refetches(self, manager, seed_batch, mock_user_id, clock):
        await seed_batch(mock_user_id, "2026-10-19")
        await manager.fetch_tasks(mock_user_id)

        clock.advance(days=1)

        assert manager.cache.is_new_day("2026-10-20")
        await manager.fetch_tasks(mock_user_id)
        assert manager.cache.last_fetch_date == "2026-10-20"

    @pytest.mark.asyncio
    async def test_refresh_event_drops_cache_entry(self, manager, services, seed_batch, mock_user_id):
        await seed_batch(mock_user_id, "2026-10-19")
        await manager.fetch_tasks(mock_user_id)
        assert manager.cache.should_skip_fetch(mock_user_id, "2026-10-19")

        services.events.emit(TaskEvent.REFRESH_TASKS, {"user_id": mock_user_id})

        assert not manager.cache.should_skip_fetch(mock_user_id, "2026-10-19")

    @pytest.mark.asyncio
    async def test_saves_offline_copy(self, manager, services, seed_batch, mock_user_id):
        await seed_batch(mock_user_id, "2026-10-19", count=2)

        await manager.fetch_tasks(mock_user_id)

        assert len(services.offline.get_tasks(mock_user_id)) == 2
        assert services.offline.get_last_sync(mock_user_id) is not None

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self, services, mock_user_id):
        async def slow(user_id, now):
            await asyncio.sleep(1)
            return []

        manager = TaskManager(
            services.store,
            services.repository,
            services.progress_store,
            fetch_timeout=0.01,
            clock=services.task_manager.clock,
        )
        manager.repository = AsyncMock()
        manager.repository.fetch_today_tasks = slow

        assert await manager.fetch_tasks(mock_user_id) == []

    @pytest.mark.asyncio
    async def test_store_error_returns_empty_and_keeps_local(self, manager, todays_tasks, mock_user_id):
        await manager.fetch_tasks(mock_user_id)
        manager.repository.fetch_today_tasks = AsyncMock(side_effect=StoreError("down"))

        assert await manager.fetch_tasks(mock_user_id, force_refresh=True) == []
        assert len(manager.local_tasks[mock_user_id]) == 2


# ─────────────────────────────────────────────────────────────────────────────
# Toggle Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestToggleTaskCompletion:
    """Tests for optimistic completion toggles."""

    @pytest.mark.asyncio
    async def test_completes_task(self, manager, services, todays_tasks, mock_user_id):
        await manager.fetch_tasks(mock_user_id)

        result = await manager.toggle_task_completion(todays_tasks[0].id)

        assert result.task.completed is True
        assert result.task.completed_at is not None
        assert result.bonus_tasks == []
        stored = await services.repository.fetch_task_by_id(todays_tasks[0].id)
        assert stored.completed is True

    @pytest.mark.asyncio
    async def test_completion_bumps_area_progress(self, manager, services, todays_tasks, mock_user_id):
        await manager.fetch_tasks(mock_user_id)

        await manager.toggle_task_completion(todays_tasks[0].id)

        assert (await services.progress_store.get_progress(mock_user_id)).social == 27

    @pytest.mark.asyncio
    async def test_uncomplete_does_not_deduct(self, manager, services, todays_tasks, mock_user_id):
        await manager.fetch_tasks(mock_user_id)

        await manager.toggle_task_completion(todays_tasks[0].id)
        result = await manager.toggle_task_completion(todays_tasks[0].id)

        assert result.task.completed is False
        assert result.task.completed_at is None
        assert (await services.progress_store.get_progress(mock_user_id)).social == 27

    @pytest.mark.asyncio
    async def test_emits_task_completed(self, manager, services, todays_tasks, mock_user_id):
        received = []
        services.events.subscribe(TaskEvent.TASK_COMPLETED, received.append)
        await manager.fetch_tasks(mock_user_id)

        await manager.toggle_task_completion(todays_tasks[0].id)

        assert received == [{"user_id": mock_user_id, "task_id": todays_tasks[0].id, "area": "social"}]

    @pytest.mark.asyncio
    async def test_sends_completion_notification(self, manager, services, todays_tasks, mock_user_id):
        await manager.fetch_tasks(mock_user_id)

        await manager.toggle_task_completion(todays_tasks[0].id)
        await manager.toggle_task_completion(todays_tasks[0].id)

        (sent,) = services.notifier.list_notifications(user_id=mock_user_id, kind="task_completed")
        assert sent["data"] == {"task_title": todays_tasks[0].title}
        assert todays_tasks[0].title in sent["body"]

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_completion(
        self, manager, services, todays_tasks, mock_user_id
    ):
        await manager.fetch_tasks(mock_user_id)
        manager.notifier.send_task_completion_notification = MagicMock(
            side_effect=sqlite3.OperationalError("database is locked")
        )

        result = await manager.toggle_task_completion(todays_tasks[0].id)

        assert result.task.completed is True
        assert (await services.progress_store.get_progress(mock_user_id)).social == 27

    @pytest.mark.asyncio
    async def test_failed_write_reverts_local_state(self, manager, todays_tasks, mock_user_id):
        await manager.fetch_tasks(mock_user_id)
        manager.repository.set_completed = AsyncMock(side_effect=StoreError("write failed"))

        with pytest.raises(TaskUpdateError):
            await manager.toggle_task_completion(todays_tasks[0].id)

        local = {t.id: t for t in manager.local_tasks[mock_user_id]}
        assert local[todays_tasks[0].id].completed is False

    @pytest.mark.asyncio
    async def test_toggle_without_prior_fetch(self, manager, services, todays_tasks):
        result = await manager.toggle_task_completion(todays_tasks[1].id)

        assert result.task.completed is True

    @pytest.mark.asyncio
    async def test_unknown_task_raises(self, manager):
        with pytest.raises(TaskNotFoundError):
            await manager.toggle_task_completion("task-missing-1")

    @pytest.mark.asyncio
    async def test_last_completion_starts_bonus_round(
        self, manager, services, todays_tasks, sample_profile, mock_user_id
    ):
        await services.store.merge_profile(mock_user_id, sample_profile)
        await manager.fetch_tasks(mock_user_id)

        first = await manager.toggle_task_completion(todays_tasks[0].id)
        last = await manager.toggle_task_completion(todays_tasks[1].id)

        assert first.bonus_tasks == []
        assert len(last.bonus_tasks) == 4
        assert all(t.daily_id == "bonus_2026-10-19" for t in last.bonus_tasks)

    @pytest.mark.asyncio
    async def test_fetch_after_bonus_shows_bonus_batch(
        self, manager, services, todays_tasks, sample_profile, mock_user_id
    ):
        await services.store.merge_profile(mock_user_id, sample_profile)
        await manager.fetch_tasks(mock_user_id)
        for task in todays_tasks:
            await manager.toggle_task_completion(task.id)

        tasks = await manager.fetch_tasks(mock_user_id, force_refresh=True)

        assert len(tasks) == 4
        assert all(t.is_bonus for t in tasks)

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, services):
        before = services.events.listener_count(TaskEvent.REFRESH_TASKS)

        services.task_manager.close()

        assert services.events.listener_count(TaskEvent.REFRESH_TASKS) == before - 1
