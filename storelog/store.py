"""store.py - Pluggable persistence for log entries.

This module defines the LogStore interface that LogSink and RetentionManager
talk to, plus two concrete implementations:

    MemoryLogStore  Keeps entries in a list. Handy for tests and short-lived
                    processes.
    SqliteLogStore  Persists entries to a SQLite database file.

By passing a LogStore to ``Logger(store=...)``, callers can swap the storage
backend without touching any other storelog code.

Typical usage::

    from storelog import Logger
    from storelog.store import SqliteLogStore

    log = Logger(store=SqliteLogStore("/var/lib/myapp/logs.db"))
"""

import contextlib
import itertools
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterator, List, Sequence, Tuple

from .entry import LogEntry, Severity


class LogStore(ABC):
    """Abstract base class for log entry storage.

    Ordering contract: "oldest" always means ascending ``created_at``, with the
    insertion id breaking ties, so the set of entries removed by
    ``delete_oldest`` is reproducible.

    Errors raised by a store are never caught by storelog; they reach whoever
    called ``save``, ``flush`` or a retention method.
    """

    @abstractmethod
    def insert_one(self, entry: LogEntry) -> int:
        """Persist a single entry and return its id."""

    @abstractmethod
    def insert_batch(self, entries: Sequence[LogEntry]) -> None:
        """Persist all ``entries`` in order, as a single all-or-nothing write."""

    @abstractmethod
    def count_all(self) -> int:
        """Return the number of stored entries."""

    @abstractmethod
    def delete_before(self, cutoff: datetime) -> int:
        """Delete every entry with ``created_at <= cutoff``; return how many."""

    @abstractmethod
    def delete_oldest(self, n: int) -> int:
        """Delete the ``n`` oldest entries; return how many were deleted."""

    @abstractmethod
    def fetch_all(self) -> List[LogEntry]:
        """Return every stored entry, oldest first."""

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several calls into one unit of work.

        The base implementation does nothing. Stores that can make a
        count-then-delete sequence atomic override it.
        """
        yield

    def close(self) -> None:
        """Release any resources held by the store."""


class MemoryLogStore(LogStore):
    """Keep log entries in process memory.

    Mutations are serialised by a reentrant lock, which is also held for the
    duration of ``transaction()``.
    """

    def __init__(self) -> None:
        self._rows: List[Tuple[int, LogEntry]] = []
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def insert_one(self, entry: LogEntry) -> int:
        with self._lock:
            row_id = next(self._ids)
            self._rows.append((row_id, entry))
            return row_id

    def insert_batch(self, entries: Sequence[LogEntry]) -> None:
        with self._lock:
            rows = [(next(self._ids), entry) for entry in entries]
            self._rows.extend(rows)

    def count_all(self) -> int:
        with self._lock:
            return len(self._rows)

    def delete_before(self, cutoff: datetime) -> int:
        with self._lock:
            kept = [row for row in self._rows if row[1].created_at > cutoff]
            deleted = len(self._rows) - len(kept)
            self._rows = kept
            return deleted

    def delete_oldest(self, n: int) -> int:
        if n <= 0:
            return 0
        with self._lock:
            ordered = sorted(self._rows, key=_row_order)
            doomed = {row_id for row_id, _ in ordered[:n]}
            self._rows = [row for row in self._rows if row[0] not in doomed]
            return len(doomed)

    def fetch_all(self) -> List[LogEntry]:
        with self._lock:
            return [entry for _, entry in sorted(self._rows, key=_row_order)]

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield


def _row_order(row: Tuple[int, LogEntry]) -> Tuple[datetime, int]:
    row_id, entry = row
    return entry.created_at, row_id


_SCHEMA = """
CREATE TABLE IF NOT EXISTS log_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    severity TEXT NOT NULL,
    class_name TEXT NOT NULL,
    method_name TEXT NOT NULL,
    message TEXT NOT NULL,
    exception_text TEXT NOT NULL,
    has_exception INTEGER NOT NULL,
    created_at REAL NOT NULL,
    created_at_text TEXT NOT NULL
)
"""

_INSERT = """
INSERT INTO log_entries (
    severity, class_name, method_name, message,
    exception_text, has_exception, created_at, created_at_text
) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""


class SqliteLogStore(LogStore):
    """Persist log entries to a SQLite database.

    The connection runs in autocommit mode and storelog manages transactions
    explicitly: ``insert_batch`` and ``transaction()`` issue
    ``BEGIN IMMEDIATE`` / ``COMMIT``, rolling back if anything inside raises.
    A ``transaction()`` opened while another is active joins the outer one.

    ``created_at`` is stored as a POSIX timestamp so range deletes compare
    numbers; ``created_at_text`` is stored alongside it for humans.

    Like ``sqlite3`` connections themselves, an instance must only be used
    from the thread that created it.

    Attributes:
        path (str): Database file path, or ``":memory:"``.
    """

    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        self._conn = sqlite3.connect(path, isolation_level=None)
        self._depth = 0
        self._conn.execute(_SCHEMA)
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_log_entries_created_at "
            "ON log_entries (created_at, id)"
        )

    def insert_one(self, entry: LogEntry) -> int:
        cursor = self._conn.execute(_INSERT, _to_row(entry))
        return cursor.lastrowid

    def insert_batch(self, entries: Sequence[LogEntry]) -> None:
        with self.transaction():
            self._conn.executemany(_INSERT, [_to_row(entry) for entry in entries])

    def count_all(self) -> int:
        (count,) = self._conn.execute("SELECT COUNT(*) FROM log_entries").fetchone()
        return count

    def delete_before(self, cutoff: datetime) -> int:
        cursor = self._conn.execute(
            "DELETE FROM log_entries WHERE created_at <= ?", (cutoff.timestamp(),)
        )
        return cursor.rowcount

    def delete_oldest(self, n: int) -> int:
        if n <= 0:
            return 0
        cursor = self._conn.execute(
            "DELETE FROM log_entries WHERE id IN ("
            "SELECT id FROM log_entries ORDER BY created_at ASC, id ASC LIMIT ?)",
            (n,),
        )
        return cursor.rowcount

    def fetch_all(self) -> List[LogEntry]:
        rows = self._conn.execute(
            "SELECT severity, class_name, method_name, message, exception_text, "
            "has_exception, created_at, created_at_text "
            "FROM log_entries ORDER BY created_at ASC, id ASC"
        ).fetchall()
        return [_from_row(row) for row in rows]

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._conn.execute("BEGIN IMMEDIATE")
        self._depth = 1
        try:
            yield
        except BaseException:
            # SQLite may already have rolled back on its own (e.g. SQLITE_FULL).
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")
        finally:
            self._depth = 0

    def close(self) -> None:
        self._conn.close()


def _to_row(entry: LogEntry) -> tuple:
    return (
        entry.severity.name,
        entry.class_name,
        entry.method_name,
        entry.message,
        entry.exception_text,
        int(entry.has_exception),
        entry.created_at.timestamp(),
        entry.created_at_text,
    )


def _from_row(row: tuple) -> LogEntry:
    severity, class_name, method_name, message, exc_text, has_exc, ts, ts_text = row
    return LogEntry(
        severity=Severity.parse(severity),
        class_name=class_name,
        method_name=method_name,
        message=message,
        exception_text=exc_text,
        has_exception=bool(has_exc),
        created_at=datetime.fromtimestamp(ts, timezone.utc),
        created_at_text=ts_text,
    )
