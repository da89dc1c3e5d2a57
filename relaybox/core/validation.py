"""
Validation of a script before its first message is sent.

The pipeline resolves every reference of the script (templates, sessions,
global variables, data files, destinations) and returns either a complete
ExecutionPlan or the first ValidationFailure. Nothing is sent and nothing
is mutated outside the plan, except that sessions get connected in the
connection phase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from relaybox.catalog.templates import TemplateCatalog
from relaybox.catalog.variables import VariableCatalog
from relaybox.core.errors import ScriptCancelled
from relaybox.core.monitor import ProgressMonitor
from relaybox.core.runtime import RuntimeStep
from relaybox.core.variables import VariableResolver
from relaybox.messaging.base import ClientType, MessagingSession
from relaybox.messaging.registry import SessionRegistry
from relaybox.models.results import ActionCode, FailureKind, ScriptStepResult
from relaybox.models.script import Script

logger = logging.getLogger(__name__)

# Units of progress consumed by validation
VALIDATION_WORK = 6


@dataclass(frozen=True)
class ValidationFailure:
    """Why a script cannot be run."""

    kind: FailureKind
    action: ActionCode
    message: str
    identifier: str | None = None
    cause: BaseException | None = None

    def to_result(self) -> ScriptStepResult:
        """Get the event reporting this failure."""
        return ScriptStepResult.validation_fail(
            action=self.action,
            failure=self.kind,
            message=self.message,
            identifier=self.identifier,
            exception=self.cause,
        )


@dataclass
class ExecutionPlan:
    """Everything a run needs, fully resolved."""

    script: Script
    runtime_steps: list[RuntimeStep]
    global_values: dict[str, str] = field(default_factory=dict)
    sessions: dict[str, MessagingSession] = field(default_factory=dict)


ValidationResult = ExecutionPlan | ValidationFailure


def execution_work(runtime_steps: list[RuntimeStep]) -> int:
    """Get the progress units of the execution phase (data file lines not counted)."""
    return sum(rs.step.iterations for rs in runtime_steps)


class ValidationPipeline:
    """
    Validates a script in five sequential phases.

    1. Templates
    2. Sessions
    3. Global variables
    4. Data files
    5. Connections, then destinations

    Each phase either completes or stops the pipeline with a failure.
    Cancellation is checked after every phase.

    Example:
        >>> pipeline = ValidationPipeline(templates, sessions, variables, resolver)
        >>> result = pipeline.run(script, monitor)
        >>> if isinstance(result, ValidationFailure):
        ...     print(result.message)
    """

    def __init__(
        self,
        templates: TemplateCatalog,
        sessions: SessionRegistry,
        variables: VariableCatalog,
        resolver: VariableResolver,
    ):
        """
        Initialize the pipeline.

        Args:
            templates: Template catalog
            sessions: Session registry
            variables: Variable catalog
            resolver: Generator of global variable values for this run
        """
        self.templates = templates
        self.sessions = sessions
        self.variables = variables
        self.resolver = resolver

    def run(
        self,
        script: Script,
        monitor: ProgressMonitor,
        runtime_steps: list[RuntimeStep] | None = None,
    ) -> ValidationResult:
        """
        Validate a script.

        Args:
            script: Script to validate
            monitor: Progress and cancellation
            runtime_steps: Runtime steps to fill (built from the script if not provided)

        Returns:
            The execution plan, or the first failure

        Raises:
            ScriptCancelled: If cancellation was requested between two phases
        """
        if runtime_steps is None:
            runtime_steps = [RuntimeStep(step, i) for i, step in enumerate(script.steps)]
        plan = ExecutionPlan(script=script, runtime_steps=runtime_steps)

        phases: list[tuple[str, ActionCode, str, Callable[[ExecutionPlan], ValidationFailure | None]]] = [
            ("Validating Templates...", ActionCode.TEMPLATE, "templates", self._validate_templates),
            ("Validating Sessions...", ActionCode.SESSION, "sessions", self._validate_sessions),
            ("Validating Global Variables...", ActionCode.VARIABLE, "global variables", self._validate_variables),
            ("Validating Data Files...", ActionCode.DATAFILE, "data files", self._validate_data_files),
            ("Opening Sessions...", ActionCode.SESSION, "connections", self._open_connections),
            ("Validating Destinations...", ActionCode.DESTINATION, "destinations", self._validate_destinations),
        ]

        for label, action, what, phase in phases:
            monitor.sub_task(label)
            logger.debug(label)
            try:
                failure = phase(plan)
            except Exception as e:
                logger.exception("Unexpected error while validating %s", what)
                failure = ValidationFailure(
                    kind=FailureKind.VALIDATION_EXCEPTION,
                    action=action,
                    message=f"A problem occurred while validating {what}",
                    cause=e,
                )
            if failure is not None:
                logger.warning("Validation failed: %s", failure.message)
                return failure

            monitor.worked(1)
            if monitor.is_cancelled():
                raise ScriptCancelled()

        return plan

    # ------
    # Phases
    # ------

    def _validate_templates(self, plan: ExecutionPlan) -> ValidationFailure | None:
        for runtime_step in self._regular(plan):
            step = runtime_step.step
            name = step.template_name

            if step.folder:
                entries = self.templates.get_folder(name)
                if not entries:
                    return self._not_found(
                        FailureKind.TEMPLATE_NOT_FOUND, ActionCode.TEMPLATE,
                        f"Template folder '{name}' does not exist or holds no template", name,
                    )
                for template_name, template in entries:
                    runtime_step.add_template(template, template_name)
            else:
                template = self.templates.get(name)
                if template is None:
                    return self._not_found(
                        FailureKind.TEMPLATE_NOT_FOUND, ActionCode.TEMPLATE,
                        f"Template '{name}' does not exist", name,
                    )
                runtime_step.add_template(template, name)
        return None

    def _validate_sessions(self, plan: ExecutionPlan) -> ValidationFailure | None:
        for runtime_step in self._regular(plan):
            name = runtime_step.step.session_name
            session = plan.sessions.get(name)
            if session is None:
                session = self.sessions.get(name)
                if session is None:
                    return self._not_found(
                        FailureKind.SESSION_NOT_FOUND, ActionCode.SESSION,
                        f"Session '{name}' does not exist", name,
                    )
                plan.sessions[name] = session
                logger.debug("Session '%s' added to the sessions used by the script", name)
            runtime_step.connection = session.get_connection(ClientType.SCRIPT_EXEC)
        return None

    def _validate_variables(self, plan: ExecutionPlan) -> ValidationFailure | None:
        for global_variable in plan.script.global_variables:
            variable = self.variables.get(global_variable.name)
            if variable is None:
                return self._not_found(
                    FailureKind.VARIABLE_NOT_FOUND, ActionCode.VARIABLE,
                    f"Global variable '{global_variable.name}' does not exist", global_variable.name,
                )
            if global_variable.constant_value is not None:
                plan.global_values[variable.name] = global_variable.constant_value
            else:
                plan.global_values[variable.name] = self.resolver.resolve(variable)
        return None

    def _validate_data_files(self, plan: ExecutionPlan) -> ValidationFailure | None:
        for runtime_step in self._regular(plan):
            prefix = runtime_step.step.variable_prefix
            if not prefix:
                continue

            data_file = plan.script.find_data_file(prefix)
            if data_file is None:
                return self._not_found(
                    FailureKind.DATAFILE_PREFIX_NOT_FOUND, ActionCode.DATAFILE,
                    f"No data file with variable prefix '{prefix}'", prefix,
                )
            if not Path(data_file.file_name).is_file():
                return self._not_found(
                    FailureKind.DATAFILE_NOT_FOUND, ActionCode.DATAFILE,
                    f"Data file '{data_file.file_name}' does not exist", data_file.file_name,
                )

            runtime_step.data_file = data_file
            runtime_step.variable_names = data_file.parsed_variable_names()
            logger.debug(
                "Variable names %s found in data file '%s'",
                runtime_step.variable_names, data_file.file_name,
            )
        return None

    def _open_connections(self, plan: ExecutionPlan) -> ValidationFailure | None:
        for name, session in plan.sessions.items():
            connection = session.get_connection(ClientType.SCRIPT_EXEC)
            if connection.is_connected:
                continue
            logger.debug("Connecting to '%s'", name)
            try:
                connection.connect()
            except Exception as e:
                return ValidationFailure(
                    kind=FailureKind.CONNECTION_FAILED,
                    action=ActionCode.SESSION,
                    message=f"Connection to session '{name}' failed",
                    identifier=name,
                    cause=e,
                )
        return None

    def _validate_destinations(self, plan: ExecutionPlan) -> ValidationFailure | None:
        for runtime_step in self._regular(plan):
            name = runtime_step.step.destination_name
            destination = runtime_step.connection.get_destination(name)
            if destination is None:
                return self._not_found(
                    FailureKind.DESTINATION_NOT_FOUND, ActionCode.DESTINATION,
                    f"Destination '{name}' does not exist in session '{runtime_step.step.session_name}'",
                    name,
                )
            runtime_step.destination = destination
        return None

    # -------
    # Helpers
    # -------

    @staticmethod
    def _regular(plan: ExecutionPlan) -> list[RuntimeStep]:
        return [rs for rs in plan.runtime_steps if rs.is_regular]

    @staticmethod
    def _not_found(
        kind: FailureKind,
        action: ActionCode,
        message: str,
        identifier: str,
    ) -> ValidationFailure:
        return ValidationFailure(kind=kind, action=action, message=message, identifier=identifier)
