"""Tests for nuroo/storage/local.py and nuroo/storage/offline.py

The local store persists JSON blobs by key; the offline cache layers
per-user copies of tasks, progress and profile data on top of it.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from nuroo.storage.offline import OfflineCache


# ─────────────────────────────────────────────────────────────────────────────
# LocalStore Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestLocalStore:
    """Tests for key-value persistence."""

    def test_missing_key_returns_none(self, local_store):
        assert local_store.get_item("nothing") is None

    def test_set_then_get(self, local_store):
        local_store.set_item("k", {"a": [1, 2], "b": "x"})
        assert local_store.get_item("k") == {"a": [1, 2], "b": "x"}

    def test_overwrite(self, local_store):
        local_store.set_item("k", 1)
        local_store.set_item("k", 2)
        assert local_store.get_item("k") == 2

    def test_remove(self, local_store):
        local_store.set_item("k", 1)
        local_store.remove_item("k")
        assert local_store.get_item("k") is None

    def test_all_keys_sorted(self, local_store):
        for key in ("b", "a", "c"):
            local_store.set_item(key, True)
        assert local_store.all_keys() == ["a", "b", "c"]

    def test_multi_remove_counts(self, local_store):
        local_store.set_item("a", 1)
        local_store.set_item("b", 1)

        assert local_store.multi_remove(["a", "b", "missing"]) == 2
        assert local_store.multi_remove([]) == 0

    def test_persists_across_instances(self, local_store):
        from nuroo.storage.local import LocalStore

        local_store.set_item("k", "v")
        assert LocalStore(local_store.db_path).get_item("k") == "v"


# ─────────────────────────────────────────────────────────────────────────────
# OfflineCache Tests
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def offline(local_store, clock):
    return OfflineCache(local_store, clock=clock)


class TestOfflineCache:
    """Tests for offline copies."""

    def test_defaults_when_empty(self, offline, mock_user_id):
        assert offline.get_tasks(mock_user_id) == []
        assert offline.get_progress(mock_user_id) is None
        assert offline.get_child_data(mock_user_id) is None
        assert offline.get_pending_actions(mock_user_id) == []

    def test_round_trips_per_user(self, offline):
        offline.save_tasks("alice", [{"id": "t1"}])
        offline.save_progress("alice", {"social": 40.0})
        offline.save_child_data("alice", {"name": "Alice"})

        assert offline.get_tasks("alice") == [{"id": "t1"}]
        assert offline.get_progress("alice") == {"social": 40.0}
        assert offline.get_child_data("alice") == {"name": "Alice"}
        assert offline.get_tasks("bob") == []

    def test_pending_actions_queue(self, offline, mock_user_id):
        offline.add_pending_action(mock_user_id, "toggle", {"task_id": "t1"})
        offline.add_pending_action(mock_user_id, "toggle", {"task_id": "t2"})

        actions = offline.get_pending_actions(mock_user_id)
        assert [a["data"]["task_id"] for a in actions] == ["t1", "t2"]

        offline.clear_pending_actions(mock_user_id)
        assert offline.get_pending_actions(mock_user_id) == []

    def test_staleness(self, offline, clock, mock_user_id):
        assert offline.is_stale(mock_user_id) is True

        offline.set_last_sync(mock_user_id)
        assert offline.is_stale(mock_user_id) is False

        clock.advance(hours=25)
        assert offline.is_stale(mock_user_id) is True
        assert offline.is_stale(mock_user_id, max_age_hours=48) is False

    def test_clear_all(self, offline, local_store, mock_user_id):
        offline.save_tasks(mock_user_id, [{"id": "t1"}])
        offline.set_last_sync(mock_user_id)

        assert offline.clear_all(mock_user_id) == 2
        assert local_store.all_keys() == []

    def test_read_failure_returns_default(self, clock, mock_user_id):
        store = MagicMock()
        store.get_item.side_effect = RuntimeError("corrupt")

        assert OfflineCache(store, clock=clock).get_tasks(mock_user_id) == []
