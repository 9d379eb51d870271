"""logger.py - The Logger facade.

Logger ties the pieces together for each call: it works out who is calling
(unless told), builds an immutable LogEntry, and hands it to its LogSink,
which either writes it immediately or queues it until ``flush()``.

Each Logger owns its own sink, so buffers and modes of different instances
are independent. A process-wide shared instance is available through
``get_logger()``; install a configured one at start-up with ``set_logger()``.

Thread-safety:
    A Logger instance is not safe for concurrent use. Its pending buffer is
    not locked. Use one instance per thread (or request), or synchronise
    externally. Only the creation of the shared default is lock-guarded.
"""

import sys
import threading
from typing import Optional, Tuple, Union

from .caller import CallerFrame, CallerResolver, StackCallerResolver
from .entry import Clock, LogEntry, Severity, build_entry
from .errors import IllegalUsageError
from .sink import LogSink
from .store import LogStore, MemoryLogStore


class Logger:
    """Records severity-tagged messages against the calling class and method.

    Example:
        >>> from storelog.store import MemoryLogStore
        >>> log = Logger(MemoryLogStore(), buffered=True)
        >>> log.info("imported %d rows", 42)
        >>> log.error(exception=exc)      # message becomes "Exception thrown: ..."
        >>> log.flush()                   # one batch write
        2
    """

    def __init__(
        self,
        store: LogStore,
        buffered: bool = False,
        resolver: Optional[CallerResolver] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialise the logger.

        Args:
            store: Where entries are persisted.
            buffered: Queue entries until ``flush()`` instead of writing each
                one immediately. Defaults to False.
            resolver: Caller resolver for the implicit-caller path. Defaults
                to a StackCallerResolver. The Logger keeps a copy of it whose
                ignore set also covers this Logger's class hierarchy; the
                resolver passed in is left unchanged.
            clock: Callable returning the current aware datetime. Defaults to
                UTC now.

        Raises:
            IllegalUsageError: If ``store`` is not a LogStore.
        """
        if not isinstance(store, LogStore):
            raise IllegalUsageError(f"store must be a LogStore, got {type(store).__name__}")
        self._sink = LogSink(store, buffered=buffered)
        self._resolver = (resolver or StackCallerResolver()).with_ignored(
            f"{cls.__module__}.{cls.__qualname__}"
            for cls in type(self).__mro__
            if issubclass(cls, Logger)
        )
        self._clock = clock

    # ---------------------------------------------------------------------- #
    # Configuration
    # ---------------------------------------------------------------------- #

    @property
    def store(self) -> LogStore:
        return self._sink.store

    @property
    def buffered(self) -> bool:
        return self._sink.buffered

    def set_buffered(self, buffered: bool) -> None:
        """Switch buffering on or off. Queued entries are not flushed."""
        self._sink.set_buffered(buffered)

    # ---------------------------------------------------------------------- #
    # Logging
    # ---------------------------------------------------------------------- #

    def log(
        self,
        severity: Union[Severity, str],
        class_name: str,
        method_name: str,
        message: Optional[str] = "",
        *args,
        exception: Optional[BaseException] = None,
    ) -> LogEntry:
        """Record one entry against an explicitly named caller.

        All the convenience methods end up here.

        Args:
            severity: A Severity, or its name (``"warn"``, ``"ERROR"``...).
            class_name: Class or module of the caller.
            method_name: Function or method of the caller.
            message: Message text, ``%``-formatted with ``args`` if any are given.
            exception: Exception to attach, with its cause chain.

        Returns:
            The entry that was saved or queued.

        Raises:
            IllegalUsageError: For an unknown severity or a non-exception
                ``exception`` argument.
            TypeError, ValueError: If ``message`` and ``args`` do not match.
            Whatever the store raises, in immediate mode.
        """
        severity = Severity.parse(severity)
        if args:
            message = message % args
        entry = build_entry(
            severity, class_name, method_name, message, exception, clock=self._clock
        )
        self._sink.save(entry)
        return entry

    def _log_from_caller(
        self,
        severity: Severity,
        message: Optional[str],
        args: tuple,
        exception: Optional[BaseException],
        caller: Optional[CallerFrame],
    ) -> LogEntry:
        if caller is None:
            caller = self._resolver.caller() or CallerFrame("", "")
        return self.log(
            severity, caller.class_name, caller.method_name, message, *args, exception=exception
        )

    def debug(
        self,
        message: Optional[str] = "",
        *args,
        exception: Optional[BaseException] = None,
        caller: Optional[CallerFrame] = None,
    ) -> LogEntry:
        """Log at DEBUG. The caller is resolved from the stack unless given."""
        return self._log_from_caller(Severity.DEBUG, message, args, exception, caller)

    def info(
        self,
        message: Optional[str] = "",
        *args,
        exception: Optional[BaseException] = None,
        caller: Optional[CallerFrame] = None,
    ) -> LogEntry:
        """Log at INFO. The caller is resolved from the stack unless given."""
        return self._log_from_caller(Severity.INFO, message, args, exception, caller)

    def warn(
        self,
        message: Optional[str] = "",
        *args,
        exception: Optional[BaseException] = None,
        caller: Optional[CallerFrame] = None,
    ) -> LogEntry:
        """Log at WARN. The caller is resolved from the stack unless given."""
        return self._log_from_caller(Severity.WARN, message, args, exception, caller)

    warning = warn

    def error(
        self,
        message: Optional[str] = "",
        *args,
        exception: Optional[BaseException] = None,
        caller: Optional[CallerFrame] = None,
    ) -> LogEntry:
        """Log at ERROR. The caller is resolved from the stack unless given."""
        return self._log_from_caller(Severity.ERROR, message, args, exception, caller)

    def exception(
        self, message: Optional[str] = "", *args, caller: Optional[CallerFrame] = None
    ) -> LogEntry:
        """Log at ERROR, attaching the exception currently being handled.

        Meant to be called from an ``except`` block, like
        ``logging.Logger.exception``. Outside one, no exception is attached.
        """
        return self._log_from_caller(Severity.ERROR, message, args, sys.exc_info()[1], caller)

    # ---------------------------------------------------------------------- #
    # Buffer
    # ---------------------------------------------------------------------- #

    def flush(self) -> int:
        """Write queued entries as one batch; see ``LogSink.flush``."""
        return self._sink.flush()

    def clear(self) -> int:
        """Drop queued entries without writing them."""
        return self._sink.clear()

    @property
    def pending(self) -> Tuple[LogEntry, ...]:
        """Snapshot of the queued entries, oldest first."""
        return self._sink.pending


# ---------------------------------------------------------------------------
# Shared default instance
# ---------------------------------------------------------------------------

_default: Optional[Logger] = None
_default_lock = threading.Lock()


def get_logger() -> Logger:
    """Return the process-wide shared Logger, creating it on first use.

    Unless ``set_logger()`` installed one earlier, the shared logger is
    unbuffered and writes to a MemoryLogStore.
    """
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = Logger(MemoryLogStore())
    return _default


def set_logger(logger: Logger) -> None:
    """Install ``logger`` as the process-wide shared instance.

    Raises:
        IllegalUsageError: If ``logger`` is not a Logger.
    """
    global _default
    if not isinstance(logger, Logger):
        raise IllegalUsageError(f"expected a Logger, got {type(logger).__name__}")
    with _default_lock:
        _default = logger


def reset_logger() -> None:
    """Forget the shared instance; the next ``get_logger()`` creates a new one."""
    global _default
    with _default_lock:
        _default = None
