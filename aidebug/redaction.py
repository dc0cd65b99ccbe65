"""
Sanitization of captured variables before they are written to disk.

Values stored under a sensitive-looking key are replaced by a fixed marker,
long strings and large collections are truncated, and everything that is
not plain JSON data collapses to a small descriptive marker.
"""

import io
import socket
from typing import Any, Dict, Mapping, Optional

from .constants import (
    ELLIPSIS,
    MAX_COLLECTION_ITEMS,
    MAX_SANITIZE_DEPTH,
    MAX_STRING_LENGTH,
    REDACTED_VALUE,
    SENSITIVE_KEYS,
)

# Handle-like values that only make sense inside the running process
RESOURCE_TYPES = (io.IOBase, socket.socket)

# Scalars JSON cannot represent
OTHER_TYPES = (bytes, bytearray, memoryview, complex)

SEQUENCE_TYPES = (list, tuple, set, frozenset)


def is_sensitive_key(key: Optional[str]) -> bool:
    """Return ``True`` if *key* contains any of the sensitive substrings."""
    if not key:
        return False
    normalized = key.lower()
    return any(sensitive in normalized for sensitive in SENSITIVE_KEYS)


def sanitize_value(value: Any, key: Optional[str] = None, *, _depth: int = 0) -> Any:
    """Return a JSON-safe, redacted copy of *value*.

    Args:
        value: Arbitrary Python value.
        key: The key *value* was stored under, if any.

    Returns:
        The sanitized value. Never the original object for containers.
    """
    if is_sensitive_key(key):
        return REDACTED_VALUE

    if _depth > MAX_SANITIZE_DEPTH:
        return {"__depth__": MAX_SANITIZE_DEPTH}

    # bool is an int subclass, keep it ahead of the number check
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return truncate_text(value, MAX_STRING_LENGTH)
    if isinstance(value, Mapping):
        if len(value) > MAX_COLLECTION_ITEMS:
            return {"__truncated__": True, "count": len(value)}
        return {
            str(k): sanitize_value(v, str(k), _depth=_depth + 1) for k, v in value.items()
        }
    if isinstance(value, SEQUENCE_TYPES):
        if len(value) > MAX_COLLECTION_ITEMS:
            return {"__truncated__": True, "count": len(value)}
        return [sanitize_value(item, _depth=_depth + 1) for item in value]
    if isinstance(value, RESOURCE_TYPES):
        return {"__resource__": type(value).__name__}
    if isinstance(value, OTHER_TYPES):
        return {"__type__": type(value).__name__}
    return {"__class__": class_name(value)}


def sanitize_variables(variables: Any) -> Any:
    """Sanitize a mapping of named variables, each under its own name."""
    if not isinstance(variables, Mapping):
        return sanitize_value(variables)

    sanitized: Dict[str, Any] = {}
    for name, value in variables.items():
        sanitized[str(name)] = sanitize_value(value, str(name))
    return sanitized


def truncate_text(text: str, limit: int) -> str:
    """Cut *text* to *limit* code points, appending an ellipsis when cut."""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def class_name(obj: Any) -> str:
    """Return the qualified class name of *obj* (builtins stay unqualified)."""
    cls = obj if isinstance(obj, type) else type(obj)
    module = cls.__module__
    if module in (None, "builtins"):
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"
