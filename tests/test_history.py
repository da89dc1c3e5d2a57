"""
Tests for the execution history.
"""

import pytest

from relaybox.core.history import ExecutionHistory, HistoryEventSink
from relaybox.models.results import ActionCode, FailureKind, RunStatus, ScriptStepResult
from relaybox.models.script import Script, Step


@pytest.fixture
def history(tmp_path):
    """Execution history in a temporary directory."""
    return ExecutionHistory(tmp_path / "history")


class TestExecutionHistory:
    """Tests for ExecutionHistory."""

    def test_start_and_finish(self, history):
        run_id = history.start_run("orders", simulation=True)

        run = history.get_run(run_id)
        assert run["script"] == "orders"
        assert run["simulation"] == 1
        assert run["status"] == "running"
        assert run["completed_at"] is None

        history.finish_run(run_id, RunStatus.SUCCEEDED, posted_count=4)

        run = history.get_run(run_id)
        assert run["status"] == "succeeded"
        assert run["posted_count"] == 4
        assert run["completed_at"] is not None

    def test_events_in_order(self, history):
        run_id = history.start_run("orders", simulation=False)
        history.add_event(run_id, 1, ScriptStepResult.script_start(False))
        history.add_event(run_id, 2, ScriptStepResult.step_start("/T1.yaml", "Q1", "Hello"))

        events = history.get_events(run_id)

        assert [e["name"] for e in events] == ["ScriptStart", "StepStart"]
        assert events[0]["data"] == {}
        assert events[1]["data"]["payload"] == "Hello"

    def test_list_runs(self, history):
        first = history.start_run("a", simulation=False, run_id="20240101_000000_aaaaaa")
        second = history.start_run("b", simulation=False, run_id="20240101_000001_bbbbbb")
        history.finish_run(first, RunStatus.CANCELLED)

        assert {r["run_id"] for r in history.list_runs()} == {first, second}
        assert [r["run_id"] for r in history.list_runs(status="cancelled")] == [first]
        assert len(history.list_runs(limit=1)) == 1

    def test_delete_run(self, history):
        run_id = history.start_run("a", simulation=False)
        history.add_event(run_id, 1, ScriptStepResult.script_start(False))

        assert history.delete_run(run_id) is True
        assert history.get_run(run_id) is None
        assert history.get_events(run_id) == []
        assert history.delete_run(run_id) is False

    def test_clear(self, history):
        history.start_run("a", simulation=False)
        history.start_run("b", simulation=False)

        assert history.clear() == 2
        assert history.list_runs() == []

    def test_cleanup_keeps_recent_runs(self, history):
        run_id = history.start_run("a", simulation=False)
        history.finish_run(run_id, RunStatus.SUCCEEDED)

        assert history.cleanup_old_runs(days=1) == 0
        assert history.get_run(run_id) is not None


class TestHistoryEventSink:
    """Tests for HistoryEventSink."""

    def test_records_engine_run(self, history, make_engine):
        recorder = HistoryEventSink(history, "two")
        engine = make_engine(event_sink=recorder)

        engine.execute(Script(name="two", steps=[Step.regular("S1", "Q1", "/T1.yaml", iterations=2)]))

        run = history.get_run(recorder.run_id)
        assert run["status"] == "succeeded"
        assert run["posted_count"] == 2
        assert [e["name"] for e in history.get_events(recorder.run_id)] == [
            "ScriptStart",
            "StepStart",
            "StepSuccess",
            "StepStart",
            "StepSuccess",
            "ScriptSuccess",
        ]

    def test_records_failure(self, history):
        recorder = HistoryEventSink(history, "bad")

        recorder.publish(ScriptStepResult.script_start(False))
        recorder.publish(ScriptStepResult.validation_fail(
            ActionCode.SESSION,
            FailureKind.SESSION_NOT_FOUND,
            "Session 'S9' does not exist",
            identifier="S9",
        ))

        run = history.get_run(recorder.run_id)
        assert run["status"] == "validation_failed"
        assert run["error"] == "Session 'S9' does not exist"
        assert run["posted_count"] == 0

    def test_ignores_events_before_start(self, history):
        recorder = HistoryEventSink(history, "x")

        recorder.publish(ScriptStepResult.step_success())

        assert recorder.run_id is None
        assert history.list_runs() == []

    def test_new_run_per_start(self, history):
        recorder = HistoryEventSink(history, "again")

        for _ in range(2):
            recorder.publish(ScriptStepResult.script_start(True))
            recorder.publish(ScriptStepResult.script_success(0, True))

        runs = history.list_runs()
        assert len(runs) == 2
        assert all(r["simulation"] == 1 for r in runs)
