"""
PII scrubbing filter for the exporter's diagnostic log records.

Redacts bearer tokens, ``key=value`` secrets and email addresses in the
formatted message, and any ``extra`` attribute whose name looks sensitive.
Exported event files are not touched by this filter.
"""

import logging
import re
from typing import FrozenSet, Pattern

from ..constants import REDACTED_VALUE, SENSITIVE_KEYS
from ..redaction import is_sensitive_key

_KEY_ALTERNATION = "|".join(re.escape(key) for key in SENSITIVE_KEYS)

# Patterns that match sensitive values in log messages.
_SENSITIVE_PATTERNS: list[tuple[Pattern, str]] = [
    # Bearer tokens / Authorization headers
    (re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), rf"\1{REDACTED_VALUE}"),
    # Secrets in key=value or key:value
    (
        re.compile(
            rf"(?i)(\w*(?:{_KEY_ALTERNATION})\w*)"
            r"(\s*[:=]\s*)"
            r"(['\"]?)([^\s'\"]{4,})\3"
        ),
        rf"\1\2\3{REDACTED_VALUE}\3",
    ),
    # Email addresses
    (re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+"), "[EMAIL_REDACTED]"),
]

# Standard LogRecord attributes, never treated as extras.
_RECORD_ATTRS: FrozenSet[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class PiiScrubber(logging.Filter):
    """Logging filter that scrubs secrets from log records.

    Attach to a handler or logger::

        logger.addFilter(PiiScrubber())
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 — stdlib name
        msg = record.getMessage()
        record.msg = _scrub_text(msg)
        record.args = None  # prevent double-formatting

        for attr in list(vars(record)):
            if attr not in _RECORD_ATTRS and is_sensitive_key(attr):
                setattr(record, attr, REDACTED_VALUE)

        return True


def _scrub_text(text: str) -> str:
    """Apply all sensitive-data patterns to *text* and return the result."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
