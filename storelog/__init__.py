"""storelog/__init__.py - Public API for the storelog package.

storelog records severity-tagged messages, with optional exception cause
chains, against the class and method that issued them, and persists them to a
pluggable store either immediately or in batches. RetentionManager keeps the
stored volume bounded.

Quick start:
    from storelog import Logger, RetentionManager
    from storelog.store import SqliteLogStore

    # 1. Build a logger over a store (immediate mode by default)
    store = SqliteLogStore("/var/lib/myapp/logs.db")
    log = Logger(store)

    # 2. Log; the calling class and method are recorded automatically
    log.info("job started")
    try:
        run_job()
    except Exception as exc:
        log.error("job failed", exception=exc)

    # 3. Batch writes: queue entries and write them with one flush
    log.set_buffered(True)
    log.debug("step %d", 1)
    log.debug("step %d", 2)
    log.flush()

    # 4. Keep the store small
    RetentionManager(store).delete_logs_to_limit(10_000)

    # 5. Optionally persist standard-library logging records as well
    import logging
    from storelog import StoreLogHandler
    logging.getLogger().addHandler(StoreLogHandler(log))

Exported names:
    Logger:            Facade that resolves the caller, builds and saves entries.
    get_logger:        Process-wide shared Logger (lazily created, unbuffered).
    set_logger:        Install a configured Logger as the shared instance.
    Severity:          DEBUG < INFO < WARN < ERROR.
    LogEntry:          Immutable log record.
    LogSink:           Immediate/buffered hand-off to a store.
    RetentionManager:  Age- and count-based deletion of stored entries.
    StoreLogHandler:   ``logging.Handler`` that saves records through a Logger.
    LogStore:          Storage interface; MemoryLogStore and SqliteLogStore
                       implement it.
    IllegalUsageError: Raised when an API contract is violated.
"""

import logging

from .caller import CallerFrame, CallerResolver, StackCallerResolver, TextCallerResolver
from .entry import LogEntry, Severity, build_entry, format_exception_chain
from .errors import IllegalUsageError, StoreLogError
from .handler import StoreLogHandler
from .logger import Logger, get_logger, reset_logger, set_logger
from .retention import RetentionManager
from .sink import LogSink
from .store import LogStore, MemoryLogStore, SqliteLogStore

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Logger",
    "get_logger",
    "set_logger",
    "reset_logger",
    "Severity",
    "LogEntry",
    "build_entry",
    "format_exception_chain",
    "CallerFrame",
    "CallerResolver",
    "StackCallerResolver",
    "TextCallerResolver",
    "LogSink",
    "RetentionManager",
    "StoreLogHandler",
    "LogStore",
    "MemoryLogStore",
    "SqliteLogStore",
    "StoreLogError",
    "IllegalUsageError",
]
__version__ = "0.1.0"
