"""
Event building: turns an exception or a log message into a ``LogEvent``.

Building is pure construction. Request and runtime details are passed in
as snapshots by the caller; all file-system writes happen in the sink.
"""

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, Tuple

from .constants import DEFAULT_SNIPPET_LINES, STRING_MESSAGE_TYPE
from .models import EventContext, LogEvent, PreviousEvent, RequestInfo, RuntimeInfo
from .redaction import class_name, sanitize_variables
from .snippet import extract_snippet
from .stacktrace import format_stack_trace, frames_from_traceback, innermost_frame, innermost_location

# Trailing " in /path/to/file.py:123" appended by framework error messages
_LOCATION_RE = re.compile(r" in (\S+):(\d+)$")


class ContextualError(Exception):
    """Exception carrying named variables to export alongside it.

    Usage::

        raise ContextualError("charge failed", context={"order_id": oid})
    """

    def __init__(self, message: str = "", *, context: Optional[Mapping] = None, code: int = 0):
        super().__init__(message)
        self.context = dict(context or {})
        self.code = code


def build_exception_event(
    exception: BaseException,
    priority: str,
    *,
    snippet_lines: int = DEFAULT_SNIPPET_LINES,
    request: Optional[RequestInfo] = None,
    runtime: Optional[RuntimeInfo] = None,
    capture_locals: bool = False,
) -> LogEvent:
    """Build the event for an exception.

    Args:
        exception: The exception being logged.
        priority: Host logger priority (``"error"``, ``"warning"``, ...).
        snippet_lines: Snippet radius around the originating line.
        request: Snapshot of the active request, if any.
        runtime: Interpreter snapshot; defaults to the running interpreter.
        capture_locals: Export the innermost frame's locals when the
            exception carries no ``context`` mapping of its own.

    Returns:
        The immutable ``LogEvent``.
    """
    tb = exception.__traceback__
    file, line = innermost_location(tb)
    message = str(exception)

    variables = _exception_variables(exception, capture_locals)
    context = EventContext(
        runtime=runtime or RuntimeInfo.current(),
        variables=sanitize_variables(variables) if variables is not None else None,
        request=request,
    )

    return LogEvent(
        type=class_name(exception),
        message=message,
        code=_exception_code(exception),
        file=file,
        line=line,
        priority=priority,
        timestamp=_now_iso(),
        stack_trace=format_stack_trace(frames_from_traceback(tb)),
        code_snippet=extract_snippet(file, line, snippet_lines),
        context=context,
        previous=_previous_summary(exception),
        fingerprint=f"{message}{file or ''}{line if line is not None else ''}",
    )


def build_message_event(
    message: str,
    priority: str,
    *,
    snippet_lines: int = DEFAULT_SNIPPET_LINES,
    request: Optional[RequestInfo] = None,
    runtime: Optional[RuntimeInfo] = None,
) -> LogEvent:
    """Build the event for a plain log message.

    The message is stored verbatim. When it ends in ``" in <path>:<line>"``
    that location is used for the code snippet.
    """
    file, line = parse_message_location(message)

    return LogEvent(
        type=STRING_MESSAGE_TYPE,
        message=message,
        priority=priority,
        timestamp=_now_iso(),
        file=file,
        line=line,
        code_snippet=extract_snippet(file, line, snippet_lines) if file and line else None,
        context=EventContext(runtime=runtime or RuntimeInfo.current(), request=request),
        fingerprint=message,
    )


def parse_message_location(message: str) -> Tuple[Optional[str], Optional[int]]:
    """Return ``(file, line)`` from a trailing ``" in <path>:<line>"``, else ``(None, None)``."""
    match = _LOCATION_RE.search(message)
    if not match:
        return None, None
    return match.group(1), int(match.group(2))


# ── Private helpers ──────────────────────────────────────────────


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


def _exception_code(exception: BaseException) -> int:
    for attr in ("code", "errno"):
        value = getattr(exception, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


def _exception_variables(exception: BaseException, capture_locals: bool) -> Optional[Any]:
    context = getattr(exception, "context", None)
    if isinstance(context, Mapping):
        return context
    if capture_locals:
        frame = innermost_frame(exception.__traceback__)
        if frame is not None:
            return dict(frame.f_locals)
    return None


def _previous_summary(exception: BaseException) -> Optional[PreviousEvent]:
    previous = exception.__cause__
    if previous is None and not exception.__suppress_context__:
        previous = exception.__context__
    if previous is None:
        return None

    file, line = innermost_location(previous.__traceback__)
    return PreviousEvent(
        type=class_name(previous),
        message=str(previous),
        file=file,
        line=line,
    )
