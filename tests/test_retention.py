"""test_retention.py - Unit tests for RetentionManager.

Covers:
    - delete_logs_before: inclusive cutoff, single batch delete, aware cutoff only
    - delete_all_logs uses the clock at call time
    - delete_logs_to_limit: 150 -> 100 keeps the newest 100, deterministic ties
    - delete_logs_to_limit within the limit performs zero deletes
    - Misuse and store errors
"""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from storelog.entry import Severity, build_entry
from storelog.errors import IllegalUsageError
from storelog.retention import RetentionManager
from storelog.store import SqliteLogStore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fill(store, count: int, per_second: int = 1):
    """Insert ``count`` entries, ``per_second`` of them sharing each timestamp."""
    entries = []
    for i in range(count):
        moment = T0 + timedelta(seconds=i // per_second)
        entries.append(
            build_entry(Severity.INFO, "app.Job", "run", f"#{i}", clock=lambda m=moment: m)
        )
    for entry in entries:
        store.insert_one(entry)
    return entries


# ---------------------------------------------------------------------------
# delete_logs_before / delete_all_logs
# ---------------------------------------------------------------------------


class TestDeleteBefore:
    def test_delete_logs_before_removes_up_to_cutoff(self, store):
        """Entries at or before the cutoff go; later ones stay."""
        _fill(store, 10)
        deleted = RetentionManager(store).delete_logs_before(T0 + timedelta(seconds=4))

        assert deleted == 5
        assert store.count_all() == 5
        assert store.names().count("delete_before") == 1

    def test_delete_logs_before_rejects_naive_cutoff(self, store):
        """A naive datetime is a usage error and nothing is deleted."""
        _fill(store, 3)
        with pytest.raises(IllegalUsageError):
            RetentionManager(store).delete_logs_before(datetime(2030, 1, 1))
        assert store.count_all() == 3

    def test_delete_logs_before_rejects_non_datetime(self, store):
        """Only datetimes are accepted as cutoffs."""
        with pytest.raises(IllegalUsageError):
            RetentionManager(store).delete_logs_before("2024-01-01")

    def test_delete_all_logs_uses_clock_at_call_time(self, store):
        """delete_all_logs deletes everything created up to 'now'."""
        _fill(store, 10)
        now = T0 + timedelta(seconds=6)
        deleted = RetentionManager(store, clock=lambda: now).delete_all_logs()

        assert deleted == 7
        assert [e.message for e in store.fetch_all()] == ["#7", "#8", "#9"]

    def test_delete_all_logs_with_real_clock_empties_store(self, store):
        """With the default clock, everything logged so far is deleted."""
        _fill(store, 5)
        assert RetentionManager(store).delete_all_logs() == 5
        assert store.count_all() == 0


# ---------------------------------------------------------------------------
# delete_logs_to_limit
# ---------------------------------------------------------------------------


class TestDeleteToLimit:
    def test_trim_150_to_100_removes_50_oldest(self, store):
        """Exactly the 50 oldest entries are removed and 100 remain."""
        entries = _fill(store, 150)

        deleted = RetentionManager(store).delete_logs_to_limit(100)

        assert deleted == 50
        assert store.count_all() == 100
        assert store.fetch_all() == entries[50:]
        assert store.calls.count(("delete_oldest", 50)) == 1

    def test_trim_with_equal_timestamps_is_deterministic(self, store):
        """Ties on created_at are broken by insertion order."""
        entries = _fill(store, 150, per_second=4)

        RetentionManager(store).delete_logs_to_limit(100)

        assert store.fetch_all() == entries[50:]

    def test_trim_on_sqlite_matches_memory(self, tmp_path):
        """The SQLite store removes the same 50 entries."""
        sqlite_store = SqliteLogStore(str(tmp_path / "logs.db"))
        entries = _fill(sqlite_store, 150, per_second=3)

        assert RetentionManager(sqlite_store).delete_logs_to_limit(100) == 50
        assert [e.message for e in sqlite_store.fetch_all()] == [e.message for e in entries[50:]]
        sqlite_store.close()

    @pytest.mark.parametrize("count", [0, 99, 100])
    def test_trim_within_limit_performs_no_delete(self, store, count):
        """With count <= limit nothing is deleted and no delete is issued."""
        _fill(store, count)

        assert RetentionManager(store).delete_logs_to_limit(100) == 0
        assert "delete_oldest" not in store.names()
        assert store.count_all() == count

    def test_trim_to_zero_deletes_everything(self, store):
        """A limit of 0 empties the store."""
        _fill(store, 5)
        assert RetentionManager(store).delete_logs_to_limit(0) == 5
        assert store.count_all() == 0

    @pytest.mark.parametrize("bad", [-1, 1.5, "10", True])
    def test_trim_rejects_invalid_limit(self, store, bad):
        """Negative or non-integer limits are usage errors."""
        with pytest.raises(IllegalUsageError):
            RetentionManager(store).delete_logs_to_limit(bad)


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------


class TestStoreErrors:
    def test_delete_error_propagates_unchanged(self, store):
        """Store errors reach the caller as is, without retries."""
        _fill(store, 5)
        failure = sqlite3.OperationalError("database is locked")
        store.fail_with["delete_oldest"] = failure

        with pytest.raises(sqlite3.OperationalError) as info:
            RetentionManager(store).delete_logs_to_limit(1)

        assert info.value is failure
        assert store.names().count("delete_oldest") == 1
        assert store.count_all() == 5

    def test_delete_before_error_propagates(self, store):
        """delete_logs_before surfaces store failures too."""
        store.fail_with["delete_before"] = sqlite3.DatabaseError("corrupt")
        with pytest.raises(sqlite3.DatabaseError):
            RetentionManager(store).delete_logs_before(T0)
