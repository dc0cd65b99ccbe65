"""
Logger façade that exports exceptions and messages to JSON files.

``AiDebugLogger`` stands in for the host application's logger: every call
is forwarded to the previous logger first, then exported when enabled.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Union

from .constants import DEFAULT_SNIPPET_LINES
from .events import build_exception_event, build_message_event
from .models import RequestInfo, RuntimeInfo
from .observability.logging import PACKAGE_LOGGER
from .request_context import request_info_from_flask
from .sink import JsonSink

# Priorities, as used by the host logger
DEBUG = "debug"
INFO = "info"
WARNING = "warning"
ERROR = "error"
EXCEPTION = "exception"
CRITICAL = "critical"

_LEVELS = {
    DEBUG: logging.DEBUG,
    INFO: logging.INFO,
    WARNING: logging.WARNING,
    ERROR: logging.ERROR,
    EXCEPTION: logging.ERROR,
    CRITICAL: logging.CRITICAL,
}

_PRIORITY_THRESHOLDS = (
    (logging.CRITICAL, CRITICAL),
    (logging.ERROR, ERROR),
    (logging.WARNING, WARNING),
    (logging.INFO, INFO),
)


def priority_for_level(levelno: int) -> str:
    """Map a stdlib level number onto the nearest priority at or below it."""
    for threshold, priority in _PRIORITY_THRESHOLDS:
        if levelno >= threshold:
            return priority
    return DEBUG


class Logger(Protocol):
    def log(self, value: Any, priority: str = INFO) -> Optional[str]:
        ...


class LoggingDelegate:
    """Adapts a stdlib ``logging.Logger`` to the ``log(value, priority)`` interface."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log(self, value: Any, priority: str = INFO) -> Optional[str]:
        level = _LEVELS.get(priority, logging.ERROR)
        if isinstance(value, BaseException):
            self.logger.log(level, "%s: %s", type(value).__name__, value, exc_info=value)
        elif isinstance(value, str):
            self.logger.log(level, "%s", value)
        else:
            self.logger.log(level, "%r", value)
        return None


class AiDebugLogger:
    """Exports logged exceptions and messages for offline debugging.

    Usage::

        ai_logger = AiDebugLogger("log/ai-debug", delegate=LoggingDelegate(app.logger))
        ai_logger.log(exc, AiDebugLogger.ERROR)

    Args:
        log_dir: Directory that receives the event files.
        snippet_lines: Lines of source shown on each side of the error line.
        enabled: When ``False`` calls are only forwarded to the delegate.
        delegate: The previously active logger; always called first.
        capture_locals: Export the innermost frame's locals for exceptions.
        request_provider: Returns the active request snapshot, if any.
        runtime: Interpreter snapshot stored with every event.
        sink: Custom sink; defaults to a ``JsonSink`` on *log_dir*.
    """

    DEBUG = DEBUG
    INFO = INFO
    WARNING = WARNING
    ERROR = ERROR
    EXCEPTION = EXCEPTION
    CRITICAL = CRITICAL

    def __init__(
        self,
        log_dir: Union[str, Path],
        snippet_lines: int = DEFAULT_SNIPPET_LINES,
        enabled: bool = True,
        *,
        delegate: Optional[Logger] = None,
        capture_locals: bool = False,
        request_provider: Callable[[], Optional[RequestInfo]] = request_info_from_flask,
        runtime: Optional[RuntimeInfo] = None,
        sink: Optional[JsonSink] = None,
    ):
        self.snippet_lines = snippet_lines
        self.enabled = enabled
        self.capture_locals = capture_locals
        self._delegate = delegate
        self._request_provider = request_provider
        self._runtime = runtime or RuntimeInfo.current()
        self.sink = sink or JsonSink(log_dir)
        self._local = threading.local()

    @property
    def delegate(self) -> Optional[Logger]:
        return self._delegate

    def set_delegate(self, logger: Optional[Logger]) -> None:
        """Set the logger every call is forwarded to."""
        self._delegate = logger

    def log(self, value: Any, priority: str = INFO) -> Optional[str]:
        """Forward *value* to the delegate, then export it.

        Exceptions and strings are exported; anything else is only
        forwarded.

        Returns:
            Whatever the delegate returned, ``None`` without a delegate.

        Raises:
            SinkError: If the event could not be written.
        """
        result = None
        if self._delegate is not None:
            self._local.forwarding = True
            try:
                result = self._delegate.log(value, priority)
            finally:
                self._local.forwarding = False

        if not self.enabled:
            return result

        if isinstance(value, BaseException):
            self._export_exception(value, priority)
        elif isinstance(value, str):
            self._export_message(value, priority)

        return result

    def log_fatal_error(self, exception: BaseException) -> None:
        """Export an exception from a fatal-error hook, without forwarding it."""
        if not self.enabled:
            return
        self._local.last_fatal = exception
        self._export_exception(exception, ERROR)

    def export_record(self, record: logging.LogRecord) -> None:
        """Export a stdlib log record without forwarding it.

        Records carrying ``exc_info`` become exception events, all others
        message events; the record level sets the priority. Records
        emitted while this logger forwards to its delegate, and the log
        line for an exception a fatal-error hook already exported, are
        skipped.
        """
        if not self.enabled or getattr(self._local, "forwarding", False):
            return
        if record.name.split(".", 1)[0] == PACKAGE_LOGGER:
            return

        priority = priority_for_level(record.levelno)
        exception = record.exc_info[1] if record.exc_info else None
        if exception is None:
            self._export_message(record.getMessage(), priority)
            return
        if exception is getattr(self._local, "last_fatal", None):
            self._local.last_fatal = None
            return
        self._export_exception(exception, priority)

    # ── Export ───────────────────────────────────────────────────

    def _export_exception(self, exception: BaseException, priority: str) -> None:
        event = build_exception_event(
            exception,
            priority,
            snippet_lines=self.snippet_lines,
            request=self._request_provider() if self._request_provider else None,
            runtime=self._runtime,
            capture_locals=self.capture_locals,
        )
        self.sink.persist(event)

    def _export_message(self, message: str, priority: str) -> None:
        event = build_message_event(
            message,
            priority,
            snippet_lines=self.snippet_lines,
            request=self._request_provider() if self._request_provider else None,
            runtime=self._runtime,
        )
        self.sink.persist(event)


class AiDebugHandler(logging.Handler):
    """``logging.Handler`` that exports every record it receives.

    Attach it to the host application's logger so plain ``logger.warning``
    and ``logger.exception`` calls are exported too::

        app.logger.addHandler(AiDebugHandler(ai_logger))
    """

    def __init__(self, ai_logger: AiDebugLogger, level: int = logging.NOTSET):
        super().__init__(level)
        self.ai_logger = ai_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.ai_logger.export_record(record)
        except Exception:
            self.handleError(record)
