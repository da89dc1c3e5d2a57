"""
Tests for script validation.
"""

import random

import pytest

from conftest import DictTemplateCatalog
from relaybox.core.errors import ScriptCancelled
from relaybox.core.monitor import RecordingProgressMonitor
from relaybox.core.validation import (
    ExecutionPlan,
    ValidationFailure,
    ValidationPipeline,
    execution_work,
)
from relaybox.core.variables import VariableResolver
from relaybox.messaging.base import ConnectionFailedError
from relaybox.messaging.registry import SessionRegistry
from relaybox.messaging.transports.memory import InMemoryConnection, InMemorySession
from relaybox.models.results import ActionCode, FailureKind, RunStatus
from relaybox.models.script import DataFile, GlobalVariable, Script, Step


class UnreachableConnection(InMemoryConnection):
    def _open(self):
        raise ConnectionFailedError("broker unreachable")


class UnreachableSession(InMemorySession):
    def _create_connection(self, client_type):
        return UnreachableConnection(self.name, client_type, self.destinations, self.broker)


class ExplodingCatalog(DictTemplateCatalog):
    def get(self, path):
        raise RuntimeError("catalog corrupted")


@pytest.fixture
def pipeline(templates, sessions, variables):
    """Validation pipeline over the shared fixtures."""
    return ValidationPipeline(templates, sessions, variables, VariableResolver(random.Random(1)))


@pytest.fixture
def monitor():
    return RecordingProgressMonitor()


class TestValidationPipeline:
    """Tests for ValidationPipeline.run."""

    def test_valid_script_gives_plan(self, pipeline, monitor, sessions, tmp_path):
        """A valid script is fully resolved."""
        data = tmp_path / "rows.csv"
        data.write_text("A,1\n", encoding="utf-8")
        script = Script(
            name="ok",
            steps=[
                Step.pause(1),
                Step.regular("S1", "Q1", "/row.yaml", variable_prefix="row"),
                Step.regular("S1", "T1", "orders", folder=True),
            ],
            global_variables=[GlobalVariable(name="batch", constant_value="B")],
            data_files=[DataFile(variable_prefix="row", file_name=str(data), variable_names="code,qty")],
        )

        plan = pipeline.run(script, monitor)

        assert isinstance(plan, ExecutionPlan)
        assert plan.global_values == {"batch": "B"}
        assert list(plan.sessions) == ["S1"]
        assert execution_work(plan.runtime_steps) == 3

        regular = plan.runtime_steps[1]
        assert regular.template_names == ["/row.yaml"]
        assert regular.variable_names == ["row.code", "row.qty"]
        assert regular.destination.name == "Q1"
        assert regular.connection.is_connected
        assert plan.runtime_steps[2].template_names == ["orders/a.yaml", "orders/sub/b.yaml"]
        assert monitor.work_done == 6

    def test_one_connection_per_session(self, pipeline, monitor):
        """Steps of the same session share one connection."""
        script = Script(
            name="shared",
            steps=[Step.regular("S1", "Q1", "/T1.yaml"), Step.regular("S1", "Q2", "/T1.yaml")],
        )

        plan = pipeline.run(script, monitor)

        first, second = plan.runtime_steps
        assert first.connection is second.connection

    def test_generated_global_value(self, pipeline, monitor):
        """A global variable without constant gets one generated value."""
        script = Script(name="g", global_variables=[GlobalVariable(name="orderId")])

        plan = pipeline.run(script, monitor)

        assert plan.global_values == {"orderId": "100"}

    @pytest.mark.parametrize(
        "step, kind, action, identifier",
        [
            (Step.regular("S1", "Q1", "/missing.yaml"),
             FailureKind.TEMPLATE_NOT_FOUND, ActionCode.TEMPLATE, "/missing.yaml"),
            (Step.regular("S1", "Q1", "nowhere", folder=True),
             FailureKind.TEMPLATE_NOT_FOUND, ActionCode.TEMPLATE, "nowhere"),
            (Step.regular("S1", "Q1", "empty", folder=True),
             FailureKind.TEMPLATE_NOT_FOUND, ActionCode.TEMPLATE, "empty"),
            (Step.regular("S9", "Q1", "/T1.yaml"),
             FailureKind.SESSION_NOT_FOUND, ActionCode.SESSION, "S9"),
            (Step.regular("S1", "Q1", "/T1.yaml", variable_prefix="nope"),
             FailureKind.DATAFILE_PREFIX_NOT_FOUND, ActionCode.DATAFILE, "nope"),
            (Step.regular("S1", "Q9", "/T1.yaml"),
             FailureKind.DESTINATION_NOT_FOUND, ActionCode.DESTINATION, "Q9"),
        ],
    )
    def test_step_failures(self, pipeline, monitor, step, kind, action, identifier):
        """Each unresolvable reference gives its own failure."""
        result = pipeline.run(Script(name="bad", steps=[step]), monitor)

        assert isinstance(result, ValidationFailure)
        assert result.kind == kind
        assert result.action == action
        assert result.identifier == identifier

    def test_unknown_global_variable(self, pipeline, monitor):
        """Global variables must exist in the catalog."""
        script = Script(name="bad", global_variables=[GlobalVariable(name="ghost")])

        result = pipeline.run(script, monitor)

        assert result.kind == FailureKind.VARIABLE_NOT_FOUND
        assert result.identifier == "ghost"

    def test_missing_data_file(self, pipeline, monitor, tmp_path):
        """A declared data file must exist on disk."""
        missing = str(tmp_path / "missing.csv")
        script = Script(
            name="bad",
            steps=[Step.regular("S1", "Q1", "/T1.yaml", variable_prefix="row")],
            data_files=[DataFile(variable_prefix="row", file_name=missing, variable_names="a")],
        )

        result = pipeline.run(script, monitor)

        assert result.kind == FailureKind.DATAFILE_NOT_FOUND
        assert result.identifier == missing

    def test_connection_failure(self, templates, variables, monitor):
        """A session that cannot connect fails validation."""
        registry = SessionRegistry()
        registry.register(UnreachableSession("S1", queues=["Q1"]))
        pipeline = ValidationPipeline(templates, registry, variables, VariableResolver())
        script = Script(name="bad", steps=[Step.regular("S1", "Q1", "/T1.yaml")])

        result = pipeline.run(script, monitor)

        assert result.kind == FailureKind.CONNECTION_FAILED
        assert result.action == ActionCode.SESSION
        assert isinstance(result.cause, ConnectionFailedError)

    def test_unexpected_exception(self, sessions, variables, monitor):
        """An error raised by a collaborator is reported as a failure."""
        pipeline = ValidationPipeline(
            ExplodingCatalog({}), sessions, variables, VariableResolver()
        )
        script = Script(name="bad", steps=[Step.regular("S1", "Q1", "/T1.yaml")])

        result = pipeline.run(script, monitor)

        assert result.kind == FailureKind.VALIDATION_EXCEPTION
        assert result.action == ActionCode.TEMPLATE
        assert isinstance(result.cause, RuntimeError)

    def test_phases_run_in_order(self, pipeline, monitor):
        """Template problems are reported before session problems."""
        script = Script(name="bad", steps=[Step.regular("S9", "Q9", "/missing.yaml")])

        result = pipeline.run(script, monitor)

        assert result.kind == FailureKind.TEMPLATE_NOT_FOUND

    def test_no_connection_before_connection_phase(self, pipeline, monitor, sessions):
        """Failures of the early phases leave sessions disconnected."""
        script = Script(
            name="bad",
            steps=[Step.regular("S1", "Q1", "/T1.yaml")],
            global_variables=[GlobalVariable(name="ghost")],
        )

        pipeline.run(script, monitor)

        assert not sessions.get("S1").get_connection().is_connected

    def test_cancelled_between_phases(self, pipeline):
        """Cancellation is noticed after the current phase."""
        monitor = RecordingProgressMonitor()
        monitor.cancel()

        with pytest.raises(ScriptCancelled):
            pipeline.run(Script(name="c"), monitor)

        assert monitor.work_done == 1


class TestValidationEvents:
    """Tests for the events of runs failing validation."""

    @pytest.mark.parametrize(
        "step, name",
        [
            (Step.regular("S1", "Q1", "/missing.yaml"), "TemplateFail"),
            (Step.regular("S9", "Q1", "/T1.yaml"), "SessionFail"),
            (Step.regular("S1", "Q1", "/T1.yaml", variable_prefix="x"), "DatafileFail"),
            (Step.regular("S1", "Q9", "/T1.yaml"), "DestinationFail"),
        ],
    )
    def test_single_failure_event(self, make_engine, sink, broker, step, name):
        """A run failing validation reports one failure and sends nothing."""
        make_engine().execute(Script(name="bad", steps=[step]))

        assert sink.names == ["ScriptStart", name]
        assert sink.run_status == RunStatus.VALIDATION_FAILED
        assert broker.count() == 0

    def test_variable_failure_event(self, make_engine, sink):
        make_engine().execute(Script(name="bad", global_variables=[GlobalVariable(name="ghost")]))

        assert sink.names == ["ScriptStart", "VariableFail"]
        assert sink.terminal.failure == FailureKind.VARIABLE_NOT_FOUND
        assert sink.terminal.data == {"identifier": "ghost"}

    def test_connection_failure_event(self, make_engine, sink):
        registry = SessionRegistry()
        registry.register(UnreachableSession("S1", queues=["Q1"]))

        make_engine(sessions=registry).execute(
            Script(name="bad", steps=[Step.regular("S1", "Q1", "/T1.yaml")])
        )

        assert sink.names == ["ScriptStart", "SessionFail"]
        assert sink.terminal.failure == FailureKind.CONNECTION_FAILED
        assert "broker unreachable" in sink.terminal.cause
