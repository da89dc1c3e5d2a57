"""
Tests for data models.
"""

import pytest
from pydantic import ValidationError

from relaybox.messaging.base import Destination
from relaybox.models.results import (
    ActionCode,
    FailureKind,
    ResultStatus,
    RunStatus,
    ScriptStepResult,
)
from relaybox.models.script import DataFile, Script, Step, StepKind
from relaybox.models.template import Message, MessageTemplate, MessageType


class TestStep:
    """Tests for Step model."""

    def test_regular_defaults(self):
        step = Step.regular("S1", "Q1", "/T1.yaml")

        assert step.kind == StepKind.REGULAR
        assert step.iterations == 1
        assert step.folder is False
        assert step.pause_secs_after is None

    def test_kind_case_insensitive(self):
        step = Step(kind="pause", pause_secs=3)
        assert step.kind == StepKind.PAUSE

    def test_regular_requires_references(self):
        with pytest.raises(ValidationError) as exc_info:
            Step(kind="REGULAR", session_name="S1")
        assert "destination_name" in str(exc_info.value)

    def test_pause_requires_delay(self):
        with pytest.raises(ValidationError):
            Step(kind="PAUSE")

    def test_iterations_at_least_one(self):
        with pytest.raises(ValidationError):
            Step.regular("S1", "Q1", "/T1.yaml", iterations=0)

    def test_immutable(self):
        step = Step.pause(1)
        with pytest.raises(ValidationError):
            step.pause_secs = 2

    def test_describe(self):
        assert Step.pause(5).describe() == "Pause 5s"
        step = Step.regular("S1", "Q1", "orders", iterations=2, folder=True, variable_prefix="row")
        assert step.describe() == "2 x folder 'orders' -> S1:Q1 [data file 'row']"


class TestScript:
    """Tests for Script model."""

    def test_data_file_lookup(self):
        script = Script(
            name="s",
            data_files=[DataFile(variable_prefix="row", file_name="rows.csv", variable_names="a, b")],
        )

        assert script.find_data_file("row").file_name == "rows.csv"
        assert script.find_data_file("other") is None
        assert script.find_data_file("row").parsed_variable_names() == ["row.a", "row.b"]

    def test_duplicate_prefixes_rejected(self):
        with pytest.raises(ValidationError):
            Script(
                name="s",
                data_files=[
                    DataFile(variable_prefix="row", file_name="a.csv", variable_names="a"),
                    DataFile(variable_prefix="row", file_name="b.csv", variable_names="a"),
                ],
            )

    def test_sessions_used(self):
        script = Script(
            name="s",
            steps=[
                Step.regular("S1", "Q1", "/T1.yaml"),
                Step.pause(1),
                Step.regular("S2", "Q1", "/T1.yaml"),
                Step.regular("S1", "Q2", "/T1.yaml"),
            ],
        )
        assert script.get_sessions_used() == {"S1", "S2"}


class TestMessageTemplate:
    """Tests for MessageTemplate model."""

    def test_deep_clone_is_independent(self):
        template = MessageTemplate(payload_text="x", properties={"nested": {"k": "v"}})

        clone = template.deep_clone()
        clone.payload_text = "y"
        clone.properties["nested"]["k"] = "changed"

        assert template.payload_text == "x"
        assert template.properties["nested"]["k"] == "v"

    def test_to_text_message(self):
        template = MessageTemplate(
            payload_text="hello",
            properties={"p": 1},
            priority=7,
            correlation_id="c-1",
        )

        message = template.to_message(Destination(name="Q1"), Message())

        assert message.destination == "Q1"
        assert message.text == "hello"
        assert message.properties == {"p": 1}
        assert message.priority == 7
        assert message.correlation_id == "c-1"

    def test_to_bytes_message(self):
        template = MessageTemplate(message_type="bytes", payload_text="héllo")

        message = template.to_message(Destination(name="Q1"), Message(message_type=MessageType.BYTES))

        assert message.data == "héllo".encode("utf-8")
        assert message.text is None

    def test_to_map_message(self):
        template = MessageTemplate(message_type="MAP", payload_map={"a": 1})

        message = template.to_message(Destination(name="Q1"), Message(message_type=MessageType.MAP))

        assert message.map == {"a": 1}

    def test_priority_bounds(self):
        with pytest.raises(ValidationError):
            MessageTemplate(priority=10)


class TestScriptStepResult:
    """Tests for ScriptStepResult events."""

    @pytest.mark.parametrize(
        "result, name",
        [
            (ScriptStepResult.script_start(False), "ScriptStart"),
            (ScriptStepResult.pause_start(2), "PauseStart"),
            (ScriptStepResult.pause_success(), "PauseSuccess"),
            (ScriptStepResult.step_start("t", "Q1", "p"), "StepStart"),
            (ScriptStepResult.step_success(), "StepSuccess"),
            (ScriptStepResult.step_pause_start(1), "StepPauseStart"),
            (ScriptStepResult.step_pause_success(), "StepPauseSuccess"),
            (ScriptStepResult.script_success(3, False), "ScriptSuccess"),
            (ScriptStepResult.script_cancelled(1, False), "ScriptCancelled"),
            (ScriptStepResult.script_max_reached(5, True), "ScriptMaxReached"),
            (ScriptStepResult.step_fail("Q1", OSError("x")), "StepFail"),
            (ScriptStepResult.script_fail("oops", RuntimeError()), "ScriptFail"),
        ],
    )
    def test_names(self, result, name):
        assert result.name == name

    def test_terminal_statuses(self):
        assert ScriptStepResult.script_start(False).run_status is None
        assert ScriptStepResult.step_success().run_status is None
        assert ScriptStepResult.script_success(1, False).run_status == RunStatus.SUCCEEDED
        assert ScriptStepResult.script_cancelled(1, False).run_status == RunStatus.CANCELLED
        assert ScriptStepResult.script_max_reached(1, False).run_status == RunStatus.MAX_REACHED
        assert ScriptStepResult.step_fail("Q1", OSError()).run_status == RunStatus.EXECUTION_FAILED
        assert ScriptStepResult.script_fail("x", RuntimeError()).run_status == RunStatus.EXECUTION_FAILED

    def test_validation_failure(self):
        result = ScriptStepResult.validation_fail(
            action=ActionCode.TEMPLATE,
            failure=FailureKind.TEMPLATE_NOT_FOUND,
            message="Template '/x.yaml' does not exist",
            identifier="/x.yaml",
        )

        assert result.name == "TemplateFail"
        assert result.status == ResultStatus.FAILED
        assert result.run_status == RunStatus.VALIDATION_FAILED
        assert result.data == {"identifier": "/x.yaml"}
        assert result.cause is None

    def test_cause_describes_exception(self):
        result = ScriptStepResult.step_fail("Q1", ValueError("bad value"))

        assert result.cause == "ValueError: bad value"
        assert "exception" not in result.model_dump()

    def test_summary(self):
        result = ScriptStepResult.step_fail("Q1", ValueError("bad"))
        assert result.to_summary() == "[StepFail] Failed to post to 'Q1' (ValueError: bad)"

    def test_run_status_flags(self):
        assert RunStatus.SUCCEEDED.is_terminal
        assert not RunStatus.RUNNING.is_terminal
        assert RunStatus.VALIDATION_FAILED.is_failure
        assert not RunStatus.CANCELLED.is_failure
