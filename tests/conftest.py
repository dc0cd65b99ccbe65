"""
Test fixtures and configuration for pytest
"""

import os

import pytest

from aidebug.logger import AiDebugLogger
from aidebug.models import RuntimeInfo

# ── Isolation ────────────────────────────────────────────────────
# Keep the default relative log dir and any AI_DEBUG_* variables from the
# developer's shell out of the tests.


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Auto-use guard: run each test from a temp cwd with a clean AI_DEBUG_* env."""
    for name in list(os.environ):
        if name.startswith("AI_DEBUG_"):
            monkeypatch.delenv(name, raising=False)
    work_dir = tmp_path / "cwd"
    work_dir.mkdir()
    monkeypatch.chdir(work_dir)
    yield


@pytest.fixture
def log_dir(tmp_path):
    """Directory receiving exported events (created lazily by the sink)."""
    return tmp_path / "ai-debug"


@pytest.fixture
def runtime():
    return RuntimeInfo(version="3.12.1", name="CPython")


@pytest.fixture
def source_file(tmp_path):
    """A 60-line source file; line N reads ``value_N = N``."""
    path = tmp_path / "calc.py"
    path.write_text("".join(f"value_{i} = {i}   \n" for i in range(1, 61)))
    return path


class RecordingDelegate:
    """Delegate logger that records calls and returns a fixed id."""

    def __init__(self, result="delegate-id"):
        self.calls = []
        self.result = result

    def log(self, value, priority="info"):
        self.calls.append((value, priority))
        return self.result


@pytest.fixture
def delegate():
    return RecordingDelegate()


@pytest.fixture
def ai_logger(log_dir, runtime):
    """Enabled exporter with no delegate and no request provider."""
    return AiDebugLogger(log_dir, request_provider=None, runtime=runtime)


@pytest.fixture
def event_files():
    """Return a helper listing the timestamped event files in a directory, oldest first."""

    def _list(directory):
        return sorted(p for p in directory.glob("*.json") if p.name != "latest.json")

    return _list
