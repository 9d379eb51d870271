"""examples/sqlite_retention_usage.py - Persist to SQLite and prune old entries.

Writes a few hundred entries to a SQLite file, then shows both retention
strategies: trimming to a maximum count and deleting by age.

Run:
    python examples/sqlite_retention_usage.py [path/to/logs.db]
"""

import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from storelog import Logger, RetentionManager
from storelog.store import SqliteLogStore


class Importer:
    def __init__(self, log: Logger) -> None:
        self.log = log

    def import_rows(self, count: int) -> None:
        for i in range(count):
            self.log.debug("imported row %d", i)
        self.log.flush()


if __name__ == "__main__":
    if len(sys.argv) > 1:
        path = sys.argv[1]
    else:
        path = str(Path(tempfile.mkdtemp()) / "storelog-demo.db")

    store = SqliteLogStore(path)
    Importer(Logger(store, buffered=True)).import_rows(250)
    print(f"{path}: {store.count_all()} entries stored")

    retention = RetentionManager(store)
    removed = retention.delete_logs_to_limit(100)
    print(f"trimmed to 100: removed {removed}, {store.count_all()} left")

    week_ago = datetime.now(timezone.utc) - timedelta(days=7)
    removed = retention.delete_logs_before(week_ago)
    print(f"older than a week: removed {removed}, {store.count_all()} left")

    removed = retention.delete_all_logs()
    print(f"delete all: removed {removed}, {store.count_all()} left")
    store.close()
