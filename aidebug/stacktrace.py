"""
Stack trace formatting with bounded argument summaries.
"""

import inspect
from types import FrameType, TracebackType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .constants import MAX_ARG_STRING_LENGTH
from .models import ArgSummary, StackFrame
from .redaction import OTHER_TYPES, RESOURCE_TYPES, SEQUENCE_TYPES, class_name, truncate_text

INSTANCE_CALL = "->"
CLASS_CALL = "::"


def summarize_arg(value: Any) -> ArgSummary:
    """Return a lossy, size-bounded representation of a call argument."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return truncate_text(value, MAX_ARG_STRING_LENGTH)
    if isinstance(value, (Mapping,) + SEQUENCE_TYPES):
        return f"array({len(value)})"
    if isinstance(value, RESOURCE_TYPES):
        return "resource"
    if isinstance(value, OTHER_TYPES):
        return type(value).__name__
    return class_name(value)


def format_stack_trace(raw_frames: Iterable[Mapping[str, Any]]) -> List[StackFrame]:
    """Turn raw frame mappings into ``StackFrame`` records, keeping their order.

    Each raw frame may carry ``file``, ``line``, ``function``, ``class``,
    ``type`` and ``args``; missing fields become ``None`` (``args`` an empty
    list).
    """
    return [
        StackFrame(
            file=frame.get("file"),
            line=frame.get("line"),
            function=frame.get("function"),
            class_name=frame.get("class"),
            call_type=frame.get("type"),
            args=[summarize_arg(arg) for arg in frame.get("args") or ()],
        )
        for frame in raw_frames
    ]


def frames_from_traceback(tb: Optional[TracebackType]) -> List[Dict[str, Any]]:
    """Collect raw frames from a traceback, innermost call first."""
    frames: List[Dict[str, Any]] = []
    while tb is not None:
        frames.append(_raw_frame(tb.tb_frame, tb.tb_lineno))
        tb = tb.tb_next
    frames.reverse()
    return frames


def innermost_location(tb: Optional[TracebackType]) -> Tuple[Optional[str], Optional[int]]:
    """Return ``(file, line)`` of the innermost traceback frame, or ``(None, None)``."""
    tb = _innermost(tb)
    if tb is None:
        return None, None
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


def innermost_frame(tb: Optional[TracebackType]) -> Optional[FrameType]:
    tb = _innermost(tb)
    return tb.tb_frame if tb is not None else None


# ── Private helpers ──────────────────────────────────────────────


def _innermost(tb: Optional[TracebackType]) -> Optional[TracebackType]:
    if tb is None:
        return None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb


def _raw_frame(frame: FrameType, lineno: int) -> Dict[str, Any]:
    code = frame.f_code
    names = _parameter_names(code)
    f_locals = frame.f_locals

    owner = None
    call_type = None
    if names and names[0] in ("self", "cls") and names[0] in f_locals:
        bound = f_locals[names[0]]
        if names[0] == "cls" and isinstance(bound, type):
            owner, call_type = class_name(bound), CLASS_CALL
        elif names[0] == "self":
            owner, call_type = class_name(bound), INSTANCE_CALL
        if owner is not None:
            names = names[1:]

    return {
        "file": code.co_filename,
        "line": lineno,
        "function": code.co_name,
        "class": owner,
        "type": call_type,
        "args": [f_locals[name] for name in names if name in f_locals],
    }


def _parameter_names(code) -> List[str]:
    count = code.co_argcount + code.co_kwonlyargcount
    if code.co_flags & inspect.CO_VARARGS:
        count += 1
    if code.co_flags & inspect.CO_VARKEYWORDS:
        count += 1
    return list(code.co_varnames[:count])
