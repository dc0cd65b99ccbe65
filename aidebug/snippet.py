"""
Source snippet extraction around an error line.
"""

from pathlib import Path
from typing import Optional, Union

from .models import Snippet


def extract_snippet(
    file_path: Union[str, Path, None], line: Optional[int], radius: int
) -> Optional[Snippet]:
    """Return the source lines within *radius* of *line*, or ``None``.

    A missing, unreadable or non-regular file is a normal case and yields
    ``None`` rather than an exception.

    Args:
        file_path: Path of the source file.
        line: 1-based error line.
        radius: Number of lines to include on each side of *line*.
    """
    if not file_path or line is None:
        return None

    path = Path(file_path)
    try:
        if not path.is_file():
            return None
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            lines = f.readlines()
    except OSError:
        return None

    start_line = max(1, line - radius)
    end_line = min(len(lines), line + radius)

    code = {i: lines[i - 1].rstrip() for i in range(start_line, end_line + 1)}

    return Snippet(
        start_line=start_line,
        end_line=end_line,
        error_line=line,
        code=code,
    )
