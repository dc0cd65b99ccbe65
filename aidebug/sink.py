"""
File-system sink: one pretty-printed JSON file per event plus a
``latest.json`` pointer to the most recent one.

The pointer is a relative symlink where the platform allows it and a byte
copy otherwise. Concurrent writers may interleave on the pointer; the
timestamped files are the source of truth.
"""

import hashlib
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .constants import (
    FILENAME_HASH_LENGTH,
    FILENAME_TIMESTAMP_FORMAT,
    JSON_INDENT,
    LATEST_FILENAME,
)
from .models import LogEvent


class SinkError(OSError):
    """Raised when an event file or the ``latest.json`` fallback copy cannot be written."""


def generate_filename(event: LogEvent, now: Optional[datetime] = None) -> str:
    """Return ``{timestamp}_{hash}.json`` for *event*.

    The timestamp has microsecond precision in local time; the hash is the
    first 8 hex digits of the MD5 of the event fingerprint.
    """
    now = now or datetime.now()
    digest = hashlib.md5(event.fingerprint.encode("utf-8")).hexdigest()
    return f"{now.strftime(FILENAME_TIMESTAMP_FORMAT)}_{digest[:FILENAME_HASH_LENGTH]}.json"


class JsonSink:
    """Writes events under *log_dir*."""

    def __init__(self, log_dir: Union[str, Path]):
        self.log_dir = Path(log_dir)
        self.logger = logging.getLogger(__name__)

    def persist(self, event: LogEvent) -> Path:
        """Write *event* to a new file and point ``latest.json`` at it.

        Returns:
            Path of the written event file.

        Raises:
            SinkError: If the event file or the pointer fallback copy
                cannot be written.
        """
        filename = generate_filename(event)
        path = self.log_dir / filename

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(event.to_dict(), f, indent=JSON_INDENT, ensure_ascii=False, default=str)
        except OSError as exc:
            raise SinkError(f"Failed to write event file {path}: {exc}") from exc

        self.update_latest(filename)
        self.logger.debug(
            "Exported %s to %s", event.type, path,
            extra={"event_type": event.type, "event_file": str(path), "priority": event.priority},
        )
        return path

    def update_latest(self, filename: str) -> None:
        """Replace ``latest.json`` with a pointer to *filename*."""
        latest_path = self.log_dir / LATEST_FILENAME
        source_path = self.log_dir / filename

        if latest_path.is_symlink() or latest_path.is_file():
            try:
                latest_path.unlink()
            except OSError as exc:
                # May already be gone if another writer got there first
                self.logger.debug("Could not remove %s: %s", latest_path, exc)

        if self._try_create_symlink(filename, latest_path):
            return

        self._replace_with_copy(source_path, latest_path)

    def _replace_with_copy(self, source_path: Path, latest_path: Path) -> None:
        # Copy beside the pointer, then rename over it; a rename replaces a
        # link left by another writer instead of writing through it.
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=".latest-", suffix=".tmp", dir=self.log_dir)
            os.close(fd)
            shutil.copyfile(source_path, tmp_name)
            os.replace(tmp_name, latest_path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SinkError(f"Failed to copy {source_path} to {latest_path}: {exc}") from exc

    def _try_create_symlink(self, filename: str, latest_path: Path) -> bool:
        try:
            os.symlink(filename, latest_path)
        except (OSError, NotImplementedError) as exc:
            self.logger.debug("Symlink unavailable for %s, copying instead: %s", latest_path, exc)
            return False
        return True
