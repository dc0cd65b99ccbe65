"""
Structured logging for the exporter's own diagnostics.

Package modules log through ``logging.getLogger(__name__)``; handlers live
on the ``aidebug`` logger and are attached once by
``setup_structured_logger`` (the Flask extension does this from the
``log_debug`` / ``log_file`` settings). Every handler carries the
``PiiScrubber`` filter. Console output is human-readable by default and
JSON when ``LOG_FORMAT=json``; the optional log file is always JSON.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import APP_VERSION, LOG_BACKUP_COUNT, LOG_MAX_BYTES
from .pii import PiiScrubber

PACKAGE_LOGGER = "aidebug"

SERVICE_NAME: str = os.environ.get("LOG_SERVICE_NAME", "aidebug")

# ``extra`` keys the sink and hooks attach to their records
_EVENT_KEYS = ("event_type", "priority", "event_file", "log_dir")


def _event_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in _EVENT_KEYS
        if getattr(record, key, None) is not None
    }


# ── JSON Formatter ───────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """One JSON object per line, event fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "version": APP_VERSION,
        }
        entry.update(_event_fields(record))

        if record.levelno <= logging.DEBUG or record.levelno >= logging.ERROR:
            entry["file"] = record.pathname
            entry["line"] = record.lineno

        if record.exc_info and record.exc_info[0] is not None:
            entry["error_type"] = record.exc_info[0].__name__
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


# ── Plain Formatter (dev / console) ─────────────────────────────


class _DevFormatter(logging.Formatter):
    """Coloured one-liner with event fields appended as ``key=value``."""

    _COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    _RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        line = f"{color}{ts} {record.levelname:<8}{self._RESET} {record.name} {record.getMessage()}"
        fields = _event_fields(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ── Logger Factory ───────────────────────────────────────────────


def setup_structured_logger(
    name: str = PACKAGE_LOGGER,
    log_file: Optional[str] = None,
    *,
    level: Optional[int] = None,
    debug: bool = False,
) -> logging.Logger:
    """Attach diagnostics handlers to *name* (the package logger by default).

    Calling it again only updates the level of the existing handlers.

    Args:
        name: Logger name.
        log_file: Optional file path for rotated JSON output.
        level: Explicit level (overrides *debug*).
        debug: If ``True``, sets level to ``DEBUG``.

    Returns:
        The configured ``logging.Logger``.
    """
    if level is None:
        level = logging.DEBUG if debug else logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    scrubber = PiiScrubber()

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(_JsonFormatter())
        file_handler.addFilter(scrubber)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if os.environ.get("LOG_FORMAT", "").lower() == "json":
        console_handler.setFormatter(_JsonFormatter())
    else:
        console_handler.setFormatter(_DevFormatter())
    console_handler.addFilter(scrubber)
    logger.addHandler(console_handler)

    return logger
