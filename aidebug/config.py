"""
Configuration loading and validation for the AI debug exporter.

Settings come from, in increasing precedence: built-in defaults, an
optional JSON file, and ``AI_DEBUG_*`` environment variables (a ``.env``
file is honoured). Flask apps read the same keys from ``app.config``.
"""

import json
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .constants import DEFAULT_CONFIG_SECTION, DEFAULT_LOG_DIR, DEFAULT_SNIPPET_LINES, ENV_PREFIX

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


@dataclass(frozen=True)
class AiDebugSettings:
    """Validated exporter settings."""

    log_dir: str = DEFAULT_LOG_DIR
    enabled: bool = True
    snippet_lines: int = DEFAULT_SNIPPET_LINES
    capture_locals: bool = False
    log_debug: bool = False
    log_file: Optional[str] = None


_FIELD_TYPES: Dict[str, type] = {f.name: f.type for f in fields(AiDebugSettings)}
_OPTIONAL_PATHS = frozenset({"log_file"})


def settings_from_mapping(mapping: Mapping[str, Any], prefix: str = "") -> AiDebugSettings:
    """
    Build settings from the keys of *mapping* that start with *prefix*.

    With an empty prefix every key must be a known setting; with a prefix,
    unrelated keys (e.g. the rest of a Flask config) are ignored.

    Raises:
        ConfigError: On unknown keys or values of the wrong type.
    """
    values: Dict[str, Any] = {}
    errors: List[str] = []

    for raw_key, raw_value in mapping.items():
        if prefix:
            if not raw_key.startswith(prefix):
                continue
            name = raw_key[len(prefix):].lower()
        else:
            name = raw_key

        if name not in _FIELD_TYPES:
            errors.append(f"Unknown config key: '{raw_key}'")
            continue
        try:
            values[name] = _coerce(name, raw_value)
        except ValueError as exc:
            errors.append(str(exc))

    if errors:
        raise ConfigError("; ".join(errors))
    return AiDebugSettings(**values)


def load_settings(config_path: Optional[Union[str, Path]] = None) -> AiDebugSettings:
    """
    Load settings from an optional JSON file and the environment.

    The file may hold the settings at the top level or under an
    ``"ai_debug"`` section; ``${ENV_VAR:-default}`` placeholders in string
    values are resolved.

    Args:
        config_path: Path to the JSON config file, or ``None``.

    Returns:
        Validated ``AiDebugSettings``.

    Raises:
        ConfigError: If the file cannot be read or parsed, or a value is invalid.
    """
    load_dotenv(find_dotenv(usecwd=True))
    merged: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {path} must be a JSON object")
        section = data.get(DEFAULT_CONFIG_SECTION, data)
        if not isinstance(section, dict):
            raise ConfigError(f"Section '{DEFAULT_CONFIG_SECTION}' in {path} must be an object")
        merged.update(_resolve(section))

    for name in _FIELD_TYPES:
        env_value = os.environ.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            merged[name] = env_value

    return settings_from_mapping(merged)


# ── Private helpers ──────────────────────────────────────────────

_PLACEHOLDER_RE = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _coerce(name: str, value: Any) -> Any:
    expected = _FIELD_TYPES[name]

    if expected is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
            return value.strip().lower() in _TRUE_STRINGS
        raise ValueError(f"'{name}' must be a boolean, got {value!r}")

    if expected is int:
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value.strip())
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"'{name}' must be an integer, got {value!r}")
        if value < 0:
            raise ValueError(f"'{name}' must not be negative, got {value}")
        return value

    if name in _OPTIONAL_PATHS and (value is None or value == ""):
        return None
    if not isinstance(value, (str, os.PathLike)) or not str(value):
        raise ValueError(f"'{name}' must be a non-empty path, got {value!r}")
    return str(value)


def _resolve(obj: Any) -> Any:
    """Recursively resolve ``${ENV_VAR:-default}`` in string values."""
    if isinstance(obj, str):
        return _PLACEHOLDER_RE.sub(_replace_match, obj)
    elif isinstance(obj, dict):
        return {k: _resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve(v) for v in obj]
    return obj


def _replace_match(m: re.Match) -> str:
    var = m.group(1)
    default = m.group(2) if m.group(2) is not None else ""
    return os.environ.get(var, default)
