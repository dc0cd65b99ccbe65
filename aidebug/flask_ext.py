"""
Flask integration.

``AiDebug`` puts an ``AiDebugLogger`` in front of the app's logger and
exports unhandled request exceptions. ``install_excepthook`` does the same
for exceptions that would terminate the process.
"""

import logging
import sys
from typing import Callable, Optional

from flask import Flask, got_request_exception
from werkzeug.exceptions import HTTPException

from .config import settings_from_mapping
from .constants import ENV_PREFIX
from .logger import AiDebugHandler, AiDebugLogger, LoggingDelegate
from .observability.logging import PACKAGE_LOGGER, setup_structured_logger

EXTENSION_KEY = "ai_debug"


class AiDebug:
    """Flask extension wiring the exporter into an app.

    Usage::

        ai_debug = AiDebug(app)
        # or, with an app factory:
        ai_debug = AiDebug()
        ai_debug.init_app(app)

    Settings are read from ``app.config`` keys ``AI_DEBUG_LOG_DIR``,
    ``AI_DEBUG_ENABLED``, ``AI_DEBUG_SNIPPET_LINES``,
    ``AI_DEBUG_CAPTURE_LOCALS``, ``AI_DEBUG_LOG_DEBUG`` and
    ``AI_DEBUG_LOG_FILE``. Records logged through ``app.logger`` are
    exported as well.
    """

    def __init__(self, app: Optional[Flask] = None):
        self.logger: Optional[AiDebugLogger] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> AiDebugLogger:
        settings = settings_from_mapping(app.config, prefix=ENV_PREFIX)

        ai_logger = AiDebugLogger(
            settings.log_dir,
            settings.snippet_lines,
            settings.enabled,
            capture_locals=settings.capture_locals,
        )
        ai_logger.set_delegate(LoggingDelegate(app.logger))

        for handler in list(app.logger.handlers):
            if isinstance(handler, AiDebugHandler):
                app.logger.removeHandler(handler)
        app.logger.addHandler(AiDebugHandler(ai_logger))
        setup_structured_logger(PACKAGE_LOGGER, settings.log_file, debug=settings.log_debug)

        app.extensions[EXTENSION_KEY] = ai_logger
        got_request_exception.connect(_on_request_exception, app, weak=False)

        self.logger = ai_logger
        return ai_logger


def get_ai_logger(app: Flask) -> Optional[AiDebugLogger]:
    """Return the ``AiDebugLogger`` installed on *app*, if any."""
    return app.extensions.get(EXTENSION_KEY)


def _on_request_exception(sender: Flask, exception: BaseException, **extra) -> None:
    # Flask logs the exception itself, so export without forwarding
    if isinstance(exception, HTTPException):
        return
    ai_logger = get_ai_logger(sender)
    if ai_logger is not None:
        ai_logger.log_fatal_error(exception)


def install_excepthook(ai_logger: AiDebugLogger) -> Callable[[], None]:
    """Export uncaught exceptions before the current ``sys.excepthook`` runs.

    Returns:
        A callable restoring the previous hook.
    """
    previous_hook = sys.excepthook
    diagnostics = logging.getLogger(__name__)

    def _hook(exc_type, exc_value, exc_tb):
        try:
            if isinstance(exc_value, Exception):
                ai_logger.log_fatal_error(exc_value)
        except Exception:
            diagnostics.exception("Failed to export uncaught %s", exc_type.__name__)
        finally:
            previous_hook(exc_type, exc_value, exc_tb)

    sys.excepthook = _hook

    def _uninstall() -> None:
        if sys.excepthook is _hook:
            sys.excepthook = previous_hook

    return _uninstall
