"""
Tests for the bounded diagnostic log.
"""
import logging

import pytest

from diagnostic_log import DiagnosticLog
from models import Severity


def test_append_assigns_unique_ids_and_timestamps():
    log = DiagnosticLog()

    first = log.append("one", "info")
    second = log.append("two", Severity.SUCCESS)

    assert first.id != second.id
    assert first.emitted_at <= second.emitted_at
    assert second.severity is Severity.SUCCESS


def test_buffer_keeps_last_hundred_in_order():
    log = DiagnosticLog()

    for i in range(150):
        log.append(f"event {i}", "info")
        assert len(log) <= 100

    messages = [entry.message for entry in log.list()]
    assert messages == [f"event {i}" for i in range(50, 150)]


def test_filter_preserves_relative_order():
    log = DiagnosticLog()
    log.append("a", "error")
    log.append("b", "info")
    log.append("c", "error")
    log.append("d", "warning")

    assert [e.message for e in log.list("error")] == ["a", "c"]
    assert [e.message for e in log.list(Severity.WARNING)] == ["d"]
    assert [e.message for e in log.list()] == ["a", "b", "c", "d"]


def test_unknown_severity_is_rejected():
    log = DiagnosticLog()

    with pytest.raises(ValueError):
        log.append("bad", "critical")
    with pytest.raises(ValueError):
        log.list("verbose")


def test_clear_and_counts():
    log = DiagnosticLog(capacity=3)
    for severity in ("info", "error", "error", "success"):
        log.append(severity, severity)

    assert log.counts() == {"info": 0, "success": 1, "warning": 0, "error": 2}

    log.clear()

    assert log.list() == []
    assert len(log) == 0


def test_entries_are_mirrored_to_python_logging(caplog):
    log = DiagnosticLog()

    with caplog.at_level(logging.INFO, logger="diagnostic_log"):
        log.append("node unreachable", "error")

    assert any(r.levelno == logging.ERROR and r.getMessage() == "node unreachable" for r in caplog.records)


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        DiagnosticLog(capacity=0)
