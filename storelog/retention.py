"""retention.py - Bound the volume of stored log entries.

RetentionManager deletes persisted entries either by age (everything at or
before a cutoff) or by count (keep only the newest N). It runs independently
of logging calls: schedule it from a cron job, a request hook, or wherever
the application does housekeeping.

Store errors propagate unchanged and nothing is retried.
"""

import logging
from datetime import datetime
from typing import Optional

from .entry import Clock, utc_now
from .errors import IllegalUsageError
from .store import LogStore

logger = logging.getLogger(__name__)


class RetentionManager:
    """Delete old log entries from a LogStore.

    Attributes:
        store (LogStore): The store to prune.

    Example:
        >>> retention = RetentionManager(store)
        >>> retention.delete_logs_to_limit(10_000)
        >>> retention.delete_logs_before(datetime.now(timezone.utc) - timedelta(days=30))
    """

    def __init__(self, store: LogStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self._clock = clock or utc_now

    def delete_logs_before(self, cutoff: datetime) -> int:
        """Delete every entry created at or before ``cutoff``.

        Args:
            cutoff: An aware datetime.

        Returns:
            The number of entries deleted.

        Raises:
            IllegalUsageError: If ``cutoff`` is not an aware datetime.
        """
        if not isinstance(cutoff, datetime) or cutoff.utcoffset() is None:
            raise IllegalUsageError(f"cutoff must be a timezone-aware datetime, got {cutoff!r}")
        deleted = self.store.delete_before(cutoff)
        logger.debug("deleted %d log entries created at or before %s", deleted, cutoff)
        return deleted

    def delete_all_logs(self) -> int:
        """Delete every entry created up to now."""
        return self.delete_logs_before(self._clock())

    def delete_logs_to_limit(self, limit: int) -> int:
        """Keep at most ``limit`` entries, deleting the oldest surplus.

        Count and delete run inside one ``store.transaction()``, so a store
        with real transactions cannot interleave another writer between them.

        Returns:
            The number of entries deleted (0 when already within the limit).

        Raises:
            IllegalUsageError: If ``limit`` is negative or not an int.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise IllegalUsageError(f"limit must be a non-negative int, got {limit!r}")

        with self.store.transaction():
            surplus = self.store.count_all() - limit
            if surplus <= 0:
                return 0
            deleted = self.store.delete_oldest(surplus)

        logger.debug("trimmed %d log entries to a limit of %d", deleted, limit)
        return deleted
