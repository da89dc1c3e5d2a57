"""
Tests for event sinks, progress monitors and cancellation tokens.
"""

import logging
import threading
import time

import pytest

from relaybox.core.events import (
    CallbackEventSink,
    CollectingEventSink,
    EventSink,
    FanOutEventSink,
    LoggingEventSink,
)
from relaybox.core.monitor import CancellationToken, ProgressMonitor, RecordingProgressMonitor
from relaybox.models.results import RunStatus, ScriptStepResult


class TestCollectingEventSink:
    """Tests for CollectingEventSink."""

    def test_not_started(self):
        sink = CollectingEventSink()

        assert sink.run_status == RunStatus.NOT_STARTED
        assert sink.terminal is None

    def test_validating_then_running(self):
        sink = CollectingEventSink()

        sink.publish(ScriptStepResult.script_start(False))
        assert sink.run_status == RunStatus.VALIDATING

        sink.publish(ScriptStepResult.pause_start(1))
        assert sink.run_status == RunStatus.RUNNING

    def test_terminal_status(self):
        sink = CollectingEventSink()
        sink.publish(ScriptStepResult.script_start(False))
        sink.publish(ScriptStepResult.script_max_reached(3, False))

        assert sink.run_status == RunStatus.MAX_REACHED
        assert sink.terminal.posted_count == 3

    def test_clear(self):
        sink = CollectingEventSink()
        sink.publish(ScriptStepResult.script_start(False))

        sink.clear()

        assert sink.results == []


class TestOtherSinks:
    """Tests for the forwarding sinks."""

    def test_base_sink_is_abstract(self):
        with pytest.raises(TypeError):
            EventSink()

    def test_subclass_only_needs_publish(self):
        class ListSink(EventSink):
            def __init__(self):
                self.received = []

            def publish(self, result):
                self.received.append(result)

        sink = ListSink()
        sink.publish(ScriptStepResult.step_success())
        sink.clear()

        assert len(sink.received) == 1

    def test_callback(self):
        received, cleared = [], []
        sink = CallbackEventSink(received.append, lambda: cleared.append(True))

        sink.publish(ScriptStepResult.step_success())
        sink.clear()

        assert [r.name for r in received] == ["StepSuccess"]
        assert cleared == [True]

    def test_callback_without_clear(self):
        CallbackEventSink(lambda result: None).clear()

    def test_fan_out_keeps_order(self):
        first, second = CollectingEventSink(), CollectingEventSink()
        sink = FanOutEventSink(first, second)

        sink.publish(ScriptStepResult.script_start(True))
        sink.publish(ScriptStepResult.script_success(0, True))

        assert first.names == second.names == ["ScriptStart", "ScriptSuccess"]

        sink.clear()
        assert first.results == second.results == []

    def test_logging_levels(self, caplog):
        sink = LoggingEventSink(logging.getLogger("relaybox.tests"))

        with caplog.at_level(logging.DEBUG, logger="relaybox.tests"):
            sink.publish(ScriptStepResult.step_success())
            sink.publish(ScriptStepResult.step_fail("Q1", OSError("down")))
            sink.publish(ScriptStepResult.script_success(1, False))

        assert [r.levelno for r in caplog.records] == [logging.DEBUG, logging.ERROR, logging.INFO]
        assert "OSError: down" in caplog.records[1].getMessage()


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_wait_elapses(self):
        token = CancellationToken()

        assert token.wait(0.01) is False
        assert not token.is_cancelled

    def test_zero_wait(self):
        token = CancellationToken()
        assert token.wait(0) is False

        token.cancel()
        assert token.wait(0) is True

    def test_cancel_cuts_wait_short(self):
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()

        started = time.monotonic()
        try:
            assert token.wait(10) is True
        finally:
            timer.cancel()

        assert time.monotonic() - started < 5


class TestProgressMonitor:
    """Tests for progress monitors."""

    def test_base_monitor_only_cancels(self):
        monitor = ProgressMonitor()
        monitor.begin_task("x", 3)
        monitor.worked(1)

        assert not monitor.is_cancelled()
        monitor.cancel()
        assert monitor.is_cancelled()

    def test_shared_token(self):
        token = CancellationToken()
        monitor = RecordingProgressMonitor(token)

        token.cancel()

        assert monitor.is_cancelled()

    def test_recording(self):
        monitor = RecordingProgressMonitor()

        monitor.begin_task("Run", 5)
        monitor.sub_task("Posting")
        monitor.worked(2)
        monitor.worked(1)
        monitor.done()

        assert monitor.task_name == "Run"
        assert monitor.total_work == 5
        assert monitor.work_done == 3
        assert monitor.sub_tasks == ["Posting"]
        assert monitor.finished
