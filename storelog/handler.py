"""handler.py - Route standard ``logging`` records into a storelog Logger.

StoreLogHandler is a ``logging.Handler`` subclass, so applications that already
log through the standard library can persist those records without changing a
single call site: attach the handler and every record that passes its level
filter becomes a LogEntry.

Mapping from a LogRecord:
    severity     ``Severity.from_level(record.levelno)`` (CRITICAL → ERROR)
    class name   ``record.name`` (the logger name)
    method name  ``record.funcName``
    message      ``record.getMessage()``
    exception    ``record.exc_info[1]``, if any

The caller is passed explicitly, so no stack walking happens on this path.

Typical usage::

    import logging
    from storelog import Logger, StoreLogHandler
    from storelog.store import SqliteLogStore

    handler = StoreLogHandler(Logger(SqliteLogStore("app.db")))
    logging.getLogger().addHandler(handler)
    logging.getLogger("myapp").warning("disk at %d%%", 91)
"""

import logging
from typing import Optional

from .entry import Severity
from .logger import Logger, get_logger

# Records from storelog's own loggers are never stored; flushing or pruning a
# store would otherwise feed its debug output back into the same store.
_OWN_LOGGER_PREFIX = __name__.split(".")[0]


class StoreLogHandler(logging.Handler):
    """A logging.Handler that saves each record through a storelog Logger.

    Thread-safety:
        ``logging.Handler.handle`` wraps ``emit`` in the handler's lock, so
        records from several threads are serialised before they reach the
        target Logger. The Logger must not also be used directly from other
        threads.

    Attributes:
        target (Logger): The Logger records are saved through.
    """

    def __init__(self, logger: Optional[Logger] = None, level: int = logging.NOTSET) -> None:
        """Initialise the handler.

        Args:
            logger: Target Logger. Defaults to the shared ``get_logger()``
                instance, looked up once, here.
            level: Minimum level handled, as for any ``logging.Handler``.
        """
        super().__init__(level)
        self.target = logger or get_logger()

    def emit(self, record: logging.LogRecord) -> None:
        """Save one record through the target Logger.

        Failures are reported through ``handleError`` so that a storage
        problem never raises out of the application's logging call.
        """
        if _is_own_record(record):
            return
        try:
            exception = record.exc_info[1] if record.exc_info else None
            self.target.log(
                Severity.from_level(record.levelno),
                record.name,
                record.funcName or "",
                record.getMessage(),
                exception=exception,
            )
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        """Flush the target Logger's pending buffer, if it is buffering."""
        self.acquire()
        try:
            self.target.flush()
        finally:
            self.release()


def _is_own_record(record: logging.LogRecord) -> bool:
    return record.name == _OWN_LOGGER_PREFIX or record.name.startswith(_OWN_LOGGER_PREFIX + ".")
