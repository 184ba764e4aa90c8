"""Tests for nuroo/tasks/scheduling.py

The scheduling gate decides whether a new daily batch may be generated:
- No profile yet: generate
- Any unfinished task from an earlier day: wait (carry-over)
- Today's batch already present: do not generate again
- Errors: generate anyway so parents are never left without tasks
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from nuroo.tasks.scheduling import DailySchedulingGate


@pytest.fixture
def gate(doc_store, clock):
    return DailySchedulingGate(doc_store, clock=clock)


class TestShouldGenerateTasks:
    """Tests for the daily generation decision."""

    @pytest.mark.asyncio
    async def test_no_profile_generates(self, gate, mock_user_id):
        assert await gate.should_generate_tasks(mock_user_id) is True

    @pytest.mark.asyncio
    async def test_new_day_with_everything_done_generates(self, gate, doc_store, seed_batch, mock_user_id):
        await doc_store.merge_profile(mock_user_id, {"last_task_date": "2026-10-18"})
        await seed_batch(mock_user_id, "2026-10-18", completed=True)

        assert await gate.should_generate_tasks(mock_user_id) is True

    @pytest.mark.asyncio
    async def test_carry_over_blocks_generation(self, gate, doc_store, seed_batch, mock_user_id):
        """An unfinished task from yesterday keeps today's batch from being made."""
        await doc_store.merge_profile(mock_user_id, {"last_task_date": "2026-10-18"})
        await seed_batch(mock_user_id, "2026-10-18", completed=False)

        assert await gate.should_generate_tasks(mock_user_id) is False

    @pytest.mark.asyncio
    async def test_todays_batch_exists(self, gate, doc_store, seed_batch, mock_user_id):
        await doc_store.merge_profile(mock_user_id, {"last_task_date": "2026-10-19"})
        await seed_batch(mock_user_id, "2026-10-19")

        assert await gate.should_generate_tasks(mock_user_id) is False

    @pytest.mark.asyncio
    async def test_stamped_today_but_no_batch_generates(self, gate, doc_store, mock_user_id):
        await doc_store.merge_profile(mock_user_id, {"last_task_date": "2026-10-19"})

        assert await gate.should_generate_tasks(mock_user_id) is True

    @pytest.mark.asyncio
    async def test_idempotent_once_generated(self, gate, doc_store, seed_batch, mock_user_id):
        """After a batch is stored and stamped, repeated checks all say no."""
        await seed_batch(mock_user_id, "2026-10-19")
        await gate.update_last_task_date(mock_user_id)

        results = [await gate.should_generate_tasks(mock_user_id) for _ in range(3)]

        assert results == [False, False, False]

    @pytest.mark.asyncio
    async def test_store_error_generates_anyway(self, clock, mock_user_id):
        store = MagicMock()
        store.get_profile = AsyncMock(side_effect=RuntimeError("offline"))

        gate = DailySchedulingGate(store, clock=clock)

        assert await gate.should_generate_tasks(mock_user_id) is True


class TestHelpers:
    @pytest.mark.asyncio
    async def test_update_last_task_date(self, gate, doc_store, mock_user_id):
        await gate.update_last_task_date(mock_user_id)
        assert (await doc_store.get_profile(mock_user_id))["last_task_date"] == "2026-10-19"

    @pytest.mark.asyncio
    async def test_has_incomplete_tasks(self, gate, seed_batch, mock_user_id):
        assert await gate.has_incomplete_tasks(mock_user_id) is False
        await seed_batch(mock_user_id, "2026-10-19")
        assert await gate.has_incomplete_tasks(mock_user_id) is True
