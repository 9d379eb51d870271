"""errors.py - Exception types raised by storelog itself.

Errors coming from a store (``sqlite3.Error`` and friends) are never wrapped;
they propagate to the caller of ``save``/``flush``/retention methods unchanged.
The classes below only cover problems detected by storelog's own checks.
"""


class StoreLogError(Exception):
    """Base class for errors raised by storelog."""


class IllegalUsageError(StoreLogError, ValueError):
    """An API contract was violated by the caller.

    Raised for things like an unknown severity, a non-exception object passed
    as ``exception=``, a naive retention cutoff, or a negative retention limit.
    Subclasses ``ValueError`` so existing ``except ValueError`` blocks keep
    working.
    """
