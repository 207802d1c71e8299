from __future__ import annotations

import logging

import pytest

from apslab.core.progress import ProgressReporter


def test_reports_each_step_and_finishes_at_100():
    emitted: list[float] = []
    with ProgressReporter(emitted.append, 4) as reporter:
        for _ in range(4):
            reporter.advance()
    assert emitted == [25.0, 50.0, 75.0, 100.0]


def test_min_step_throttles_updates():
    emitted: list[float] = []
    with ProgressReporter(emitted.append, 10, min_step=50.0) as reporter:
        for _ in range(10):
            reporter.advance()
    assert emitted == [50.0, 100.0]


def test_close_emits_final_100_once():
    emitted: list[float] = []
    with ProgressReporter(emitted.append, 3, min_step=90.0) as reporter:
        reporter.advance()
    assert emitted == [100.0]


def test_failed_run_does_not_report_completion():
    emitted: list[float] = []
    with pytest.raises(RuntimeError):
        with ProgressReporter(emitted.append, 2) as reporter:
            reporter.advance()
            raise RuntimeError("stop")
    assert emitted == [50.0]


def test_failing_sink_warns_and_continues(caplog):
    caplog.set_level(logging.WARNING)
    seen: list[float] = []

    def _sink(pct: float) -> None:
        seen.append(pct)
        if pct < 100.0:
            raise ValueError("sink down")

    with ProgressReporter(_sink, 2) as reporter:
        reporter.advance()
        reporter.advance()
    assert seen == [50.0, 100.0]
    assert "Progress sink failed" in caplog.text


def test_no_sink_is_allowed():
    with ProgressReporter(None, 2) as reporter:
        reporter.advance(2)
    assert reporter.completed == 2


def test_total_must_be_positive():
    with pytest.raises(ValueError, match="total"):
        ProgressReporter(None, 0)
