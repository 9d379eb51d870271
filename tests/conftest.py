"""conftest.py - Shared fixtures for the storelog test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from storelog.logger import reset_logger
from storelog.store import MemoryLogStore


class RecordingStore(MemoryLogStore):
    """MemoryLogStore that records every write/delete call.

    Set ``fail_with[method_name] = exc`` to make that method raise ``exc``
    instead of touching the data.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls = []
        self.fail_with = {}

    def _record(self, name, payload=None):
        self.calls.append((name, payload))
        if name in self.fail_with:
            raise self.fail_with[name]

    def insert_one(self, entry):
        self._record("insert_one", entry)
        return super().insert_one(entry)

    def insert_batch(self, entries):
        self._record("insert_batch", list(entries))
        return super().insert_batch(entries)

    def delete_before(self, cutoff):
        self._record("delete_before", cutoff)
        return super().delete_before(cutoff)

    def delete_oldest(self, n):
        self._record("delete_oldest", n)
        return super().delete_oldest(n)

    def names(self):
        return [name for name, _ in self.calls]


class StepClock:
    """Deterministic clock: each call advances by ``step`` seconds."""

    def __init__(self, start=None, step=1.0):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step)

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture(autouse=True)
def _fresh_shared_logger():
    # Keep the process-wide default from leaking between tests.
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def clock_factory():
    return StepClock
