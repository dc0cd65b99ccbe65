"""Tests for the logger façade — delegate forwarding, enabled flag, fatal hook."""

import json
import logging

import pytest

from aidebug.logger import AiDebugHandler, AiDebugLogger, LoggingDelegate, priority_for_level
from aidebug.models import RequestInfo
from aidebug.sink import SinkError


def _raised(exc):
    try:
        raise exc
    except Exception as caught:  # noqa: BLE001
        return caught


def _latest(log_dir):
    return json.loads((log_dir / "latest.json").read_text(encoding="utf-8"))


# ── Forwarding ───────────────────────────────────────────────────


class TestDelegateForwarding:
    def test_forwards_and_returns_delegate_result(self, log_dir, runtime, delegate):
        ai_logger = AiDebugLogger(log_dir, delegate=delegate, request_provider=None, runtime=runtime)
        exc = _raised(ValueError("x"))

        assert ai_logger.log(exc, AiDebugLogger.ERROR) == "delegate-id"
        assert delegate.calls == [(exc, "error")]

    def test_delegate_called_before_export(self, log_dir, runtime):
        seen = []

        class Probe:
            def log(self, value, priority="info"):
                seen.append((log_dir / "latest.json").exists())

        ai_logger = AiDebugLogger(log_dir, delegate=Probe(), request_provider=None, runtime=runtime)
        ai_logger.log("first message")
        assert seen == [False]

    def test_set_delegate(self, ai_logger, delegate):
        assert ai_logger.delegate is None
        ai_logger.set_delegate(delegate)
        assert ai_logger.log("hi") == "delegate-id"
        ai_logger.set_delegate(None)
        assert ai_logger.log("hi") is None

    def test_no_delegate_returns_none(self, ai_logger):
        assert ai_logger.log("hello") is None

    def test_other_payloads_are_forwarded_only(self, log_dir, runtime, delegate, event_files):
        ai_logger = AiDebugLogger(log_dir, delegate=delegate, request_provider=None, runtime=runtime)
        ai_logger.log({"not": "exported"}, AiDebugLogger.INFO)

        assert delegate.calls == [({"not": "exported"}, "info")]
        assert not log_dir.exists() or event_files(log_dir) == []


# ── Export ───────────────────────────────────────────────────────


class TestExport:
    def test_exception_is_exported(self, ai_logger, log_dir):
        ai_logger.log(_raised(KeyError("missing")), AiDebugLogger.EXCEPTION)
        data = _latest(log_dir)
        assert data["type"] == "KeyError"
        assert data["priority"] == "exception"
        assert data["stackTrace"][0]["function"] == "_raised"

    def test_division_by_zero_message_scenario(self, ai_logger, log_dir, source_file, event_files):
        ai_logger.log(f"Division by zero in {source_file}:42", AiDebugLogger.ERROR)

        files = event_files(log_dir)
        assert len(files) == 1
        data = json.loads(files[0].read_text(encoding="utf-8"))
        assert data["file"] == str(source_file)
        assert data["line"] == 42
        assert data["codeSnippet"]["errorLine"] == 42
        assert data["codeSnippet"]["code"]["42"] == "value_42 = 42"

    def test_successive_events_keep_history(self, ai_logger, log_dir, event_files):
        ai_logger.log("event A")
        ai_logger.log("event B")

        assert [json.loads(p.read_text())["message"] for p in event_files(log_dir)] == [
            "event A",
            "event B",
        ]
        assert _latest(log_dir)["message"] == "event B"

    def test_snippet_radius_is_configurable(self, log_dir, runtime, source_file):
        ai_logger = AiDebugLogger(log_dir, snippet_lines=2, request_provider=None, runtime=runtime)
        ai_logger.log(f"oops in {source_file}:10")
        snippet = _latest(log_dir)["codeSnippet"]
        assert (snippet["startLine"], snippet["endLine"]) == (8, 12)

    def test_request_provider_is_consulted(self, log_dir, runtime):
        request = RequestInfo(uri="/checkout", method="POST", ip="127.0.0.1")
        ai_logger = AiDebugLogger(log_dir, request_provider=lambda: request, runtime=runtime)
        ai_logger.log("payment failed")
        assert _latest(log_dir)["context"]["request"] == {
            "uri": "/checkout",
            "method": "POST",
            "ip": "127.0.0.1",
        }

    def test_default_request_provider_outside_request(self, log_dir, runtime):
        ai_logger = AiDebugLogger(log_dir, runtime=runtime)
        ai_logger.log("no request here")
        assert "request" not in _latest(log_dir)["context"]

    def test_capture_locals_flag(self, log_dir, runtime):
        ai_logger = AiDebugLogger(log_dir, capture_locals=True, request_provider=None, runtime=runtime)

        def transfer(amount, secret_pin):
            raise ValueError("insufficient funds")

        try:
            transfer(50, "1234")
        except ValueError as exc:
            ai_logger.log(exc, AiDebugLogger.ERROR)

        assert _latest(log_dir)["context"]["variables"] == {
            "amount": 50,
            "secret_pin": "[REDACTED]",
        }

    def test_sink_failure_propagates(self, log_dir, runtime, delegate):
        class BrokenSink:
            def persist(self, event):
                raise SinkError("disk full")

        ai_logger = AiDebugLogger(
            log_dir, delegate=delegate, request_provider=None, runtime=runtime, sink=BrokenSink()
        )
        with pytest.raises(SinkError):
            ai_logger.log("x")
        assert delegate.calls == [("x", "info")]


# ── Disabled ─────────────────────────────────────────────────────


class TestDisabled:
    def test_forwards_but_writes_nothing(self, log_dir, runtime, delegate):
        ai_logger = AiDebugLogger(
            log_dir, enabled=False, delegate=delegate, request_provider=None, runtime=runtime
        )
        exc = _raised(RuntimeError("x"))

        assert ai_logger.log(exc, AiDebugLogger.ERROR) == "delegate-id"
        assert delegate.calls == [(exc, "error")]
        assert not log_dir.exists()

    def test_fatal_error_ignored(self, log_dir, runtime):
        ai_logger = AiDebugLogger(log_dir, enabled=False, request_provider=None, runtime=runtime)
        ai_logger.log_fatal_error(_raised(RuntimeError("fatal")))
        assert not log_dir.exists()


# ── Fatal hook ───────────────────────────────────────────────────


class TestLogFatalError:
    def test_exports_at_error_priority_without_forwarding(self, log_dir, runtime, delegate):
        ai_logger = AiDebugLogger(log_dir, delegate=delegate, request_provider=None, runtime=runtime)
        ai_logger.log_fatal_error(_raised(MemoryError("out of memory")))

        data = _latest(log_dir)
        assert data["type"] == "MemoryError"
        assert data["priority"] == "error"
        assert delegate.calls == []


# ── Stdlib delegate ──────────────────────────────────────────────


class TestLoggingDelegate:
    def test_exception_logged_with_traceback(self, caplog):
        delegate = LoggingDelegate(logging.getLogger("test.delegate"))
        exc = _raised(ValueError("bad"))

        with caplog.at_level(logging.DEBUG, logger="test.delegate"):
            assert delegate.log(exc, "exception") is None

        record = caplog.records[0]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "ValueError: bad"
        assert record.exc_info[1] is exc

    @pytest.mark.parametrize(
        "priority,level",
        [
            ("debug", logging.DEBUG),
            ("info", logging.INFO),
            ("warning", logging.WARNING),
            ("error", logging.ERROR),
            ("critical", logging.CRITICAL),
            ("unknown", logging.ERROR),
        ],
    )
    def test_priority_levels(self, caplog, priority, level):
        delegate = LoggingDelegate(logging.getLogger("test.delegate"))
        with caplog.at_level(logging.DEBUG, logger="test.delegate"):
            delegate.log("100% done", priority)
        assert caplog.records[0].levelno == level
        assert caplog.records[0].getMessage() == "100% done"


# ── Stdlib handler ───────────────────────────────────────────────


@pytest.fixture
def app_logger(ai_logger):
    """A host logger with an ``AiDebugHandler`` attached."""
    logger = logging.getLogger("test.host_app")
    logger.setLevel(logging.DEBUG)
    handler = AiDebugHandler(ai_logger)
    logger.addHandler(handler)
    yield logger
    logger.removeHandler(handler)


class TestAiDebugHandler:
    def test_message_with_location_is_exported(self, app_logger, log_dir, source_file):
        app_logger.warning("Deprecated call in %s:12", source_file)

        data = _latest(log_dir)
        assert data["type"] == "StringMessage"
        assert data["message"] == f"Deprecated call in {source_file}:12"
        assert data["priority"] == "warning"
        assert data["codeSnippet"]["errorLine"] == 12

    def test_exc_info_record_becomes_exception_event(self, app_logger, log_dir):
        try:
            raise KeyError("sku-1")
        except KeyError:
            app_logger.exception("lookup failed")

        data = _latest(log_dir)
        assert data["type"] == "KeyError"
        assert data["priority"] == "error"

    def test_delegate_forwarding_is_not_exported_twice(self, log_dir, runtime, event_files):
        host = logging.getLogger("test.host_forwarding")
        ai_logger = AiDebugLogger(
            log_dir, delegate=LoggingDelegate(host), request_provider=None, runtime=runtime
        )
        handler = AiDebugHandler(ai_logger)
        host.addHandler(handler)
        try:
            ai_logger.log("low stock", AiDebugLogger.WARNING)
        finally:
            host.removeHandler(handler)

        assert len(event_files(log_dir)) == 1

    def test_fatal_exception_log_line_is_skipped(self, ai_logger, app_logger, log_dir, event_files):
        exc = _raised(RuntimeError("crash"))
        ai_logger.log_fatal_error(exc)
        app_logger.error("Exception on /", exc_info=(type(exc), exc, exc.__traceback__))

        assert len(event_files(log_dir)) == 1

    def test_package_diagnostics_are_ignored(self, ai_logger, log_dir):
        record = logging.LogRecord("aidebug.sink", logging.WARNING, __file__, 1, "x", None, None)
        ai_logger.export_record(record)
        assert not log_dir.exists()

    def test_disabled_logger_exports_nothing(self, log_dir, runtime):
        ai_logger = AiDebugLogger(log_dir, enabled=False, request_provider=None, runtime=runtime)
        record = logging.LogRecord("app", logging.ERROR, __file__, 1, "boom", None, None)
        AiDebugHandler(ai_logger).emit(record)
        assert not log_dir.exists()

    @pytest.mark.parametrize(
        "level,priority",
        [
            (logging.DEBUG, "debug"),
            (logging.INFO, "info"),
            (logging.WARNING, "warning"),
            (logging.ERROR, "error"),
            (logging.CRITICAL, "critical"),
            (35, "warning"),
            (5, "debug"),
        ],
    )
    def test_priority_for_level(self, level, priority):
        assert priority_for_level(level) == priority
