"""sink.py - Immediate or buffered hand-off of log entries to a store.

LogSink sits between the Logger facade and a LogStore. In immediate mode every
entry is written as soon as it is saved. In buffered mode entries accumulate
in memory and are written together, as one batch, when ``flush()`` is called.

Design decisions:
    - The pending buffer is a plain list: append-only between flushes, and
      unbounded. Unlike a ring buffer nothing is ever evicted, because every
      queued entry is meant to reach the store.
    - ``flush()`` writes first and clears afterwards. If the store raises, the
      buffer is left exactly as it was so the caller can retry.
    - Switching modes never flushes implicitly. Call ``flush()`` before
      ``set_buffered(False)`` if queued entries should be drained.

Thread-safety note:
    A LogSink is not locked. Share one between threads only behind external
    synchronisation, or give each thread its own Logger.
"""

import logging
from typing import List, Tuple

from .entry import LogEntry
from .store import LogStore

logger = logging.getLogger(__name__)


class LogSink:
    """Persistence mode and pending buffer for one Logger.

    Example:
        >>> from storelog.store import MemoryLogStore
        >>> sink = LogSink(MemoryLogStore(), buffered=True)
        >>> sink.save(entry)        # queued, nothing written yet
        >>> len(sink)
        1
        >>> sink.flush()            # one batch write
        1
        >>> len(sink)
        0
    """

    def __init__(self, store: LogStore, buffered: bool = False) -> None:
        """Initialise the sink.

        Args:
            store: Where entries end up.
            buffered: Start in buffered mode. Defaults to False (immediate).
        """
        self.store = store
        self._buffered = bool(buffered)
        self._pending: List[LogEntry] = []

    @property
    def buffered(self) -> bool:
        return self._buffered

    def set_buffered(self, buffered: bool) -> None:
        """Switch between buffered and immediate mode.

        Entries already queued stay queued; they are written by the next
        ``flush()`` made while buffering is enabled.
        """
        self._buffered = bool(buffered)

    def save(self, entry: LogEntry) -> None:
        """Write ``entry`` now, or queue it when buffering is enabled.

        Raises:
            Whatever the store raises, in immediate mode.
        """
        if self._buffered:
            self._pending.append(entry)
        else:
            self.store.insert_one(entry)

    def flush(self) -> int:
        """Write all queued entries as a single batch.

        A no-op (returning 0) when buffering is disabled or nothing is queued.

        Returns:
            The number of entries written.

        Raises:
            Whatever the store raises. The queued entries are kept in that case.
        """
        if not self._buffered or not self._pending:
            return 0

        batch = list(self._pending)
        self.store.insert_batch(batch)
        del self._pending[: len(batch)]
        logger.debug("flushed %d log entries", len(batch))
        return len(batch)

    def clear(self) -> int:
        """Drop queued entries without writing them; return how many were dropped."""
        dropped = len(self._pending)
        self._pending.clear()
        return dropped

    @property
    def pending(self) -> Tuple[LogEntry, ...]:
        """Snapshot of the queued entries, oldest first."""
        return tuple(self._pending)

    def __len__(self) -> int:
        """Return the number of queued entries."""
        return len(self._pending)
