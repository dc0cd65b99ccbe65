"""
Diagnostics for the exporter itself.

Provides:
- ``setup_structured_logger``: JSON / coloured logging for the package's own messages
- ``PiiScrubber``: Filters secrets from those log records
"""

from .logging import setup_structured_logger
from .pii import PiiScrubber

__all__ = [
    "setup_structured_logger",
    "PiiScrubber",
]
