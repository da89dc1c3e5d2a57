"""
Execution of a single runtime step.
"""

from __future__ import annotations

import logging
from typing import Callable

from relaybox.catalog.variables import VariableCatalog
from relaybox.core.errors import MaxMessagesReached, ScriptCancelled, StepExecutionError
from relaybox.core.monitor import ProgressMonitor
from relaybox.core.runtime import RuntimeStep
from relaybox.core.variables import VariableResolver, substitute
from relaybox.models.results import ScriptStepResult
from relaybox.models.script import DataFile, StepKind
from relaybox.models.template import MessageTemplate

logger = logging.getLogger(__name__)


class RunCounter:
    """Messages posted during a run, bounded by a maximum (0 = unbounded)."""

    def __init__(self, max_messages: int = 0):
        if max_messages < 0:
            raise ValueError("max_messages must be >= 0")
        self.max_messages = max_messages
        self.posted = 0

    def increment(self) -> None:
        """
        Count one posted message.

        Raises:
            MaxMessagesReached: If the maximum is now reached
        """
        self.posted += 1
        if self.max_messages and self.posted >= self.max_messages:
            raise MaxMessagesReached(self.posted)


class StepExecutor:
    """
    Executes PAUSE and REGULAR steps.

    A REGULAR step posts ``iterations`` messages per template, and per data
    file line when a data file is bound. Each message is built from a clone
    of the template with, in this order, the data file variables, the
    global variables and freshly generated catalog variables substituted.

    Control flow leaves through exceptions:
    - ScriptCancelled when cancellation is seen at a check point
    - MaxMessagesReached when the counter hits its maximum
    - StepExecutionError when a message cannot be built or sent
    """

    def __init__(
        self,
        emit: Callable[[ScriptStepResult], None],
        monitor: ProgressMonitor,
        counter: RunCounter,
        resolver: VariableResolver,
        variables: VariableCatalog,
        global_values: dict[str, str],
        simulation: bool = False,
    ):
        """
        Initialize the executor.

        Args:
            emit: Event emitter of the run
            monitor: Progress and cancellation
            counter: Run-wide posted message counter
            resolver: Generator of local variable values
            variables: Variable catalog for local variables
            global_values: Global variable values of the run
            simulation: Do not send messages nor sleep
        """
        self.emit = emit
        self.monitor = monitor
        self.counter = counter
        self.resolver = resolver
        self.variables = variables
        self.global_values = global_values
        self.simulation = simulation

    def execute(self, runtime_step: RuntimeStep) -> None:
        """Execute one step to completion."""
        if runtime_step.kind == StepKind.PAUSE:
            self.execute_pause(runtime_step)
        else:
            self.execute_regular(runtime_step)

    def execute_pause(self, runtime_step: RuntimeStep) -> None:
        """Execute a PAUSE step."""
        self.monitor.sub_task(str(runtime_step))
        delay = runtime_step.step.pause_secs or 0

        self.emit(ScriptStepResult.pause_start(delay))
        logger.debug("Running pause step. delay: %s seconds", delay)
        self._sleep(delay)
        self.emit(ScriptStepResult.pause_success())

        self.monitor.worked(1)
        self._check_cancelled()

    def execute_regular(self, runtime_step: RuntimeStep) -> None:
        """Execute a REGULAR step."""
        logger.debug("Executing %s. simulation? %s", runtime_step, self.simulation)

        for template_name, template in runtime_step.iter_templates():
            if runtime_step.data_file is None:
                self._execute_block(runtime_step, template, template_name, {})
            else:
                self._execute_data_file(runtime_step, template, template_name, runtime_step.data_file)

    def _execute_data_file(
        self,
        runtime_step: RuntimeStep,
        template: MessageTemplate,
        template_name: str,
        data_file: DataFile,
    ) -> None:
        """Run one execution block per line of the data file."""
        variable_names = runtime_step.variable_names

        try:
            with open(data_file.file_name, "r", encoding=data_file.encoding, newline="") as reader:
                for line in reader:
                    values = line.rstrip("\r\n").split(data_file.delimiter)
                    line_values = {
                        name: values[i] if i < len(values) else ""
                        for i, name in enumerate(variable_names)
                    }
                    self._execute_block(runtime_step, template, template_name, line_values)
        except (OSError, UnicodeError) as e:
            raise StepExecutionError(runtime_step.destination_name, e) from e

    def _execute_block(
        self,
        runtime_step: RuntimeStep,
        template: MessageTemplate,
        template_name: str,
        data_file_values: dict[str, str],
    ) -> None:
        """Post ``iterations`` messages from one template."""
        step = runtime_step.step

        for _ in range(step.iterations):
            self.monitor.sub_task(str(runtime_step))

            message_template = template.deep_clone()
            payload = message_template.payload_text
            if data_file_values:
                payload = substitute(payload, data_file_values)
            payload = substitute(payload, self.global_values)
            payload = self.resolver.replace_template_variables(self.variables.all(), payload)
            message_template.payload_text = payload

            self.emit(ScriptStepResult.step_start(template_name, runtime_step.destination_name, payload))

            if not self.simulation:
                self._send(runtime_step, message_template)

            self.emit(ScriptStepResult.step_success())

            self.counter.increment()

            pause = step.pause_secs_after
            if pause:
                self.emit(ScriptStepResult.step_pause_start(pause))
                self._sleep(pause)
                self.emit(ScriptStepResult.step_pause_success())

            self.monitor.worked(1)
            self._check_cancelled()

    def _send(self, runtime_step: RuntimeStep, message_template: MessageTemplate) -> None:
        """Build a message from the template and send it."""
        connection = runtime_step.connection
        destination = runtime_step.destination
        try:
            message = connection.create_message(message_template.message_type)
            message = message_template.to_message(destination, message)
            connection.send(message)
        except Exception as e:
            raise StepExecutionError(runtime_step.destination_name, e) from e

    def _sleep(self, seconds: int) -> None:
        """Sleep unless simulating; a cancel request ends the sleep early."""
        if self.simulation or seconds <= 0:
            return
        if self.monitor.token.wait(seconds):
            logger.debug("Pause interrupted by cancellation")

    def _check_cancelled(self) -> None:
        if self.monitor.is_cancelled():
            raise ScriptCancelled()
