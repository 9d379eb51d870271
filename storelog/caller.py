"""caller.py - Find out who called the logger.

A log entry records the class and method of the code that issued it. That
information is not passed in by the caller, so it has to be recovered from the
execution stack, skipping every frame that belongs to the logging facility
itself.

Two resolvers share one interface:

    StackCallerResolver  Walks live frame objects. The default.
    TextCallerResolver   Parses a textual stack trace. Useful when the only
                         thing available is a rendered trace (or in tests).

Text format understood by ``parse_stack_text``, one frame per line, most
recent call first::

    <qualified.name.method>:<line info>

The last dot-separated segment of the qualified name is the method, everything
before it is the class path. ``render_stack`` produces exactly this format
from live frames, qualified as ``<module>.<qualname>``.
"""

import copy
import re
import sys
from abc import ABC, abstractmethod
from types import FrameType
from typing import Callable, Iterable, List, NamedTuple, Optional

_LINE_RE = re.compile(r"^\s*(?P<name>[^\s:]+):(?P<info>.*)$")


class CallerFrame(NamedTuple):
    """One (class, method) pair taken from the stack."""

    class_name: str
    method_name: str


def qualified_name(frame: FrameType) -> str:
    """Return ``<module>.<qualname>`` for a live frame.

    Python 3.11+ exposes ``co_qualname`` on code objects. On older
    interpreters the class is looked up from a bound ``self`` or ``cls``
    local, as the class in its MRO that defines the running code.
    """
    code = frame.f_code
    qualname = getattr(code, "co_qualname", None)
    if qualname is None:
        owner = _defining_class(frame)
        if owner is not None:
            return f"{owner.__module__}.{owner.__qualname__}.{code.co_name}"
        qualname = code.co_name
    module = frame.f_globals.get("__name__", "")
    return f"{module}.{qualname}" if module else qualname


def _defining_class(frame: FrameType) -> Optional[type]:
    bound = frame.f_locals.get("self", frame.f_locals.get("cls"))
    if bound is None:
        return None
    owner = bound if isinstance(bound, type) else type(bound)
    for klass in owner.__mro__:
        for attr in vars(klass).values():
            func = getattr(attr, "__func__", attr)
            if getattr(func, "__code__", None) is frame.f_code:
                return klass
    return None


def split_qualified_name(name: str) -> Optional[CallerFrame]:
    """Split ``a.b.C.method`` into ``CallerFrame("a.b.C", "method")``.

    Returns None when the name has no class part or an empty segment.
    """
    class_path, _, method = name.rpartition(".")
    if not class_path or not method or "" in class_path.split("."):
        return None
    return CallerFrame(class_path, method)


def render_stack(frame: Optional[FrameType]) -> str:
    """Render ``frame`` and its callers as stack text, most recent first."""
    lines = []
    while frame is not None:
        lines.append(f"{qualified_name(frame)}:{frame.f_lineno}")
        frame = frame.f_back
    return "\n".join(lines)


def parse_stack_text(text: str, ignore: Iterable[str] = ()) -> List[CallerFrame]:
    """Parse stack text into frames, dropping those of ignored classes.

    Lines that do not look like ``<qualified.name>:<line info>`` are skipped;
    this function never raises on malformed input.

    Example:
        >>> parse_stack_text(
        ...     "Logger.log:10\\nLogger.info:20\\nCallerClass.doWork:30",
        ...     ignore={"Logger"},
        ... )
        [CallerFrame(class_name='CallerClass', method_name='doWork')]
    """
    ignored = frozenset(ignore)
    frames = []
    for line in text.splitlines():
        match = _LINE_RE.match(line)
        if match is None:
            continue
        frame = split_qualified_name(match.group("name"))
        if frame is None or frame.class_name in ignored:
            continue
        frames.append(frame)
    return frames


class CallerResolver(ABC):
    """Base class for caller resolvers.

    Frames of the resolver's own class hierarchy are always ignored, in
    addition to the class names passed in ``ignore``.

    Attributes:
        ignore (frozenset[str]): Fully qualified class names
            (``module.QualName``) whose frames are skipped.
    """

    def __init__(self, ignore: Iterable[str] = ()) -> None:
        own = {
            f"{cls.__module__}.{cls.__qualname__}"
            for cls in type(self).__mro__
            if issubclass(cls, CallerResolver)
        }
        self.ignore = frozenset(ignore) | own

    def with_ignored(self, names: Iterable[str]) -> "CallerResolver":
        """Return a copy of this resolver that also ignores ``names``."""
        resolver = copy.copy(self)
        resolver.ignore = self.ignore | frozenset(names)
        return resolver

    @abstractmethod
    def frames(self) -> List[CallerFrame]:
        """Return the non-ignored frames of the current stack, most recent first."""

    def caller(self) -> Optional[CallerFrame]:
        """Return the nearest non-ignored frame, or None if there is none."""
        frames = self.frames()
        return frames[0] if frames else None


class StackCallerResolver(CallerResolver):
    """Resolve callers by walking live interpreter frames."""

    def frames(self) -> List[CallerFrame]:
        result = []
        frame: Optional[FrameType] = sys._getframe(1)
        while frame is not None:
            parsed = split_qualified_name(qualified_name(frame))
            if parsed is not None and parsed.class_name not in self.ignore:
                result.append(parsed)
            frame = frame.f_back
        return result


class TextCallerResolver(CallerResolver):
    """Resolve callers by parsing stack-trace text.

    Args:
        ignore: Class names to skip.
        source: Callable returning the stack text to parse. Defaults to
            rendering the live stack at the point ``frames()`` is called.
    """

    def __init__(
        self,
        ignore: Iterable[str] = (),
        source: Optional[Callable[[], str]] = None,
    ) -> None:
        super().__init__(ignore)
        self._source = source

    def frames(self) -> List[CallerFrame]:
        if self._source is not None:
            text = self._source()
        else:
            text = render_stack(sys._getframe(1))
        return parse_stack_text(text, self.ignore)
