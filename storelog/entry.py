"""entry.py - Log records and the helpers that build them.

A LogEntry is the unit that flows from the Logger facade, through the LogSink,
into a LogStore. Entries are immutable once built: the sink may hold them in
its pending buffer for a while, and a store may keep references to them, so
nothing downstream is allowed to edit a record after the fact.

Two pure helpers live here:

    format_exception_chain  Renders an exception and its causes as text.
    build_entry             Stamps a new LogEntry with the creation time.
"""

import enum
import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from .errors import IllegalUsageError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Severity(enum.IntEnum):
    """Importance of a log entry, ordered DEBUG < INFO < WARN < ERROR.

    Values line up with the standard ``logging`` level numbers so that
    records coming through ``StoreLogHandler`` map onto them directly.
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def parse(cls, value: Union["Severity", str]) -> "Severity":
        """Return the Severity named by ``value`` (case-insensitive).

        ``"WARNING"`` is accepted as an alias of ``WARN``.

        Raises:
            IllegalUsageError: If ``value`` is neither a Severity nor a known name.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "WARNING":
                name = "WARN"
            try:
                return cls[name]
            except KeyError:
                pass
        raise IllegalUsageError(f"unknown severity: {value!r}")

    @classmethod
    def from_level(cls, levelno: int) -> "Severity":
        """Map a ``logging`` level number onto the closest Severity at or below it."""
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        return cls.DEBUG


@dataclass(frozen=True)
class LogEntry:
    """An immutable log record, ready to be persisted.

    Attributes:
        severity: Importance of the record.
        class_name: Class (or module) of the code that logged it. May be ``""``
            when the caller could not be resolved.
        method_name: Function or method that logged it. May be ``""``.
        message: Final message text, after argument substitution.
        exception_text: Rendered cause chain, ``""`` when there was no exception.
        has_exception: True iff an exception was supplied with the call.
        created_at: Aware UTC datetime of creation.
        created_at_text: ``created_at`` rendered as ``YYYY-MM-DD HH:MM:SS``.
    """

    __slots__ = (
        "severity",
        "class_name",
        "method_name",
        "message",
        "exception_text",
        "has_exception",
        "created_at",
        "created_at_text",
    )

    severity: Severity
    class_name: str
    method_name: str
    message: str
    exception_text: str
    has_exception: bool
    created_at: datetime
    created_at_text: str


def _next_in_chain(exc: BaseException) -> Optional[BaseException]:
    # Same rule the interpreter uses when printing a traceback.
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def format_exception_chain(exc: Optional[BaseException]) -> str:
    """Render ``exc`` and its chain of causes as a multi-line string.

    Each exception contributes one block, outermost first::

        <TypeName>: <message>
        <traceback lines>
        <blank line>

    An exception that was already rendered ends the chain, so a cyclic
    ``__cause__``/``__context__`` graph still terminates.

    Args:
        exc: The exception to render, or None.

    Returns:
        The rendered chain, or ``""`` when ``exc`` is None.
    """
    if exc is None:
        return ""

    parts = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        stack_text = "".join(traceback.format_tb(current.__traceback__)).rstrip("\n")
        parts.append(f"{type(current).__name__}: {current}\n{stack_text}\n\n")
        current = _next_in_chain(current)
    return "".join(parts)


def build_entry(
    severity: Severity,
    class_name: str,
    method_name: str,
    message: Optional[str],
    exception: Optional[BaseException] = None,
    clock: Optional[Clock] = None,
) -> LogEntry:
    """Assemble a LogEntry stamped with the current time.

    If ``message`` is empty or whitespace and an exception is given, the
    message becomes ``"Exception thrown: <TypeName>"``.

    Raises:
        IllegalUsageError: If ``exception`` is not None and not an exception,
            or if the clock returns a naive datetime.
    """
    if exception is not None and not isinstance(exception, BaseException):
        raise IllegalUsageError(
            f"exception must be a BaseException or None, got {type(exception).__name__}"
        )

    text = message or ""
    if exception is not None and not text.strip():
        text = f"Exception thrown: {type(exception).__name__}"

    created_at = (clock or utc_now)()
    if not isinstance(created_at, datetime) or created_at.utcoffset() is None:
        raise IllegalUsageError(f"clock must return an aware datetime, got {created_at!r}")
    return LogEntry(
        severity=severity,
        class_name=class_name or "",
        method_name=method_name or "",
        message=text,
        exception_text=format_exception_chain(exception),
        has_exception=exception is not None,
        created_at=created_at,
        created_at_text=created_at.strftime(TIMESTAMP_FORMAT),
    )
