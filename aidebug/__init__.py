"""
AI Debug Export - JSON exports of logged exceptions for offline debugging
"""

__version__ = "1.0.0"

from .config import AiDebugSettings, ConfigError, load_settings, settings_from_mapping
from .events import ContextualError, build_exception_event, build_message_event
from .flask_ext import AiDebug, get_ai_logger, install_excepthook
from .logger import AiDebugHandler, AiDebugLogger, LoggingDelegate
from .models import LogEvent, RequestInfo, RuntimeInfo
from .redaction import sanitize_value, sanitize_variables
from .sink import JsonSink, SinkError
from .snippet import extract_snippet
from .stacktrace import format_stack_trace

__all__ = [
    "AiDebug",
    "AiDebugHandler",
    "AiDebugLogger",
    "AiDebugSettings",
    "ConfigError",
    "ContextualError",
    "JsonSink",
    "LogEvent",
    "LoggingDelegate",
    "RequestInfo",
    "RuntimeInfo",
    "SinkError",
    "build_exception_event",
    "build_message_event",
    "extract_snippet",
    "format_stack_trace",
    "get_ai_logger",
    "install_excepthook",
    "load_settings",
    "sanitize_value",
    "sanitize_variables",
    "settings_from_mapping",
]
