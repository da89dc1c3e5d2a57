"""
Script execution engine.

Runs a script on a dedicated worker thread: validates it, then executes
its steps in order, reporting everything as events.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from relaybox.catalog.templates import TemplateCatalog
from relaybox.catalog.variables import VariableCatalog
from relaybox.core.errors import MaxMessagesReached, ScriptCancelled, StepExecutionError
from relaybox.core.events import EventSink
from relaybox.core.executor import RunCounter, StepExecutor
from relaybox.core.monitor import CancellationToken, ProgressMonitor
from relaybox.core.runtime import RuntimeStep
from relaybox.core.validation import (
    VALIDATION_WORK,
    ValidationFailure,
    ValidationPipeline,
    execution_work,
)
from relaybox.core.variables import VariableResolver
from relaybox.messaging.registry import SessionRegistry
from relaybox.models.results import RunStatus, ScriptStepResult
from relaybox.models.script import Script

logger = logging.getLogger(__name__)


class ScriptExecutionEngine:
    """
    Runs scripts against messaging sessions.

    The whole validate-then-execute sequence runs on one worker thread,
    so the caller stays free to update a display or cancel. Everything
    the caller learns about the run comes through the event sink, which
    always receives ``ScriptStart`` first and exactly one terminal event
    last.

    Example:
        >>> engine = ScriptExecutionEngine(templates, sessions, variables, sink)
        >>> engine.execute(script, simulation=True)
        >>> future = engine.submit(script, max_messages=100)
        >>> engine.cancel()
    """

    def __init__(
        self,
        templates: TemplateCatalog,
        sessions: SessionRegistry,
        variables: VariableCatalog,
        event_sink: EventSink,
        monitor_factory: Callable[[CancellationToken], ProgressMonitor] | None = None,
        clear_logs_before_execution: bool = False,
        rng_factory: Callable[[], random.Random] | None = None,
    ):
        """
        Initialize the engine.

        Args:
            templates: Template catalog
            sessions: Session registry
            variables: Variable catalog
            event_sink: Receiver of the run events
            monitor_factory: Builds the progress monitor of a run
            clear_logs_before_execution: Clear the event sink before each run
            rng_factory: Builds the random source of a run (time seeded by default)
        """
        self.templates = templates
        self.sessions = sessions
        self.variables = variables
        self.event_sink = event_sink
        self.monitor_factory = monitor_factory or ProgressMonitor
        self.clear_logs_before_execution = clear_logs_before_execution
        self.rng_factory = rng_factory or (lambda: random.Random(time.time_ns()))

        # Tokens of the runs in flight
        self._tokens: set[CancellationToken] = set()
        self._tokens_lock = threading.Lock()

    def execute(self, script: Script, simulation: bool = False, max_messages: int = 0) -> None:
        """
        Run a script and wait for the end of the run.

        Args:
            script: Script to run
            simulation: Emit every event without sending nor sleeping
            max_messages: Stop after this many messages (0 = unbounded)
        """
        self.submit(script, simulation, max_messages).result()

    def submit(self, script: Script, simulation: bool = False, max_messages: int = 0) -> Future:
        """
        Start a run on a new worker thread.

        Args:
            script: Script to run
            simulation: Emit every event without sending nor sleeping
            max_messages: Stop after this many messages (0 = unbounded)

        Returns:
            Future giving the terminal RunStatus
        """
        if max_messages < 0:
            raise ValueError("max_messages must be >= 0")

        token = CancellationToken()
        with self._tokens_lock:
            self._tokens.add(token)

        worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="relaybox-script")
        future = worker.submit(self._run, script, simulation, max_messages, token)
        worker.shutdown(wait=False)
        return future

    def cancel(self) -> None:
        """Request cancellation of every run in flight."""
        with self._tokens_lock:
            tokens = list(self._tokens)
        if tokens:
            logger.info("Cancellation requested (%d run(s))", len(tokens))
        for token in tokens:
            token.cancel()

    @property
    def active_runs(self) -> int:
        """Get the number of runs in flight."""
        with self._tokens_lock:
            return len(self._tokens)

    # ---------------
    # Worker side
    # ---------------

    def _run(
        self,
        script: Script,
        simulation: bool,
        max_messages: int,
        token: CancellationToken,
    ) -> RunStatus:
        """Validate then execute a script. Runs on the worker thread."""
        logger.debug("Executing script '%s'. simulation? %s", script.name, simulation)

        monitor = self.monitor_factory(token)
        counter = RunCounter(max_messages)
        resolver = VariableResolver(self.rng_factory())

        if self.clear_logs_before_execution:
            self.event_sink.clear()

        try:
            status = self._validate_and_execute(script, simulation, monitor, counter, resolver)
        except ScriptCancelled:
            logger.info("Script '%s' has been cancelled by user", script.name)
            self._emit(ScriptStepResult.script_cancelled(counter.posted, simulation))
            status = RunStatus.CANCELLED
        except MaxMessagesReached:
            logger.info("Max messages reached (%d)", counter.posted)
            self._emit(ScriptStepResult.script_max_reached(counter.posted, simulation))
            status = RunStatus.MAX_REACHED
        except StepExecutionError as e:
            logger.error("Script '%s' failed: %s", script.name, e)
            self._emit(ScriptStepResult.step_fail(e.destination_name, e.cause))
            status = RunStatus.EXECUTION_FAILED
        except Exception as e:
            logger.exception("Unexpected problem while executing script '%s'", script.name)
            self._emit(ScriptStepResult.script_fail("An unexpected problem occurred", e))
            status = RunStatus.EXECUTION_FAILED
        finally:
            monitor.done()
            with self._tokens_lock:
                self._tokens.discard(token)

        logger.debug("Script '%s' ended: %s", script.name, status.value)
        return status

    def _validate_and_execute(
        self,
        script: Script,
        simulation: bool,
        monitor: ProgressMonitor,
        counter: RunCounter,
        resolver: VariableResolver,
    ) -> RunStatus:
        self._emit(ScriptStepResult.script_start(simulation))

        runtime_steps = [RuntimeStep(step, i) for i, step in enumerate(script.steps)]

        # Data file lines are not known yet, so this is an estimate
        total_work = VALIDATION_WORK + execution_work(runtime_steps)
        task_name = "Executing Script (Simulation)" if simulation else "Executing Script"
        monitor.begin_task(task_name, total_work)

        pipeline = ValidationPipeline(self.templates, self.sessions, self.variables, resolver)
        result = pipeline.run(script, monitor, runtime_steps)
        if isinstance(result, ValidationFailure):
            self._emit(result.to_result())
            return RunStatus.VALIDATION_FAILED

        executor = StepExecutor(
            emit=self._emit,
            monitor=monitor,
            counter=counter,
            resolver=resolver,
            variables=self.variables,
            global_values=result.global_values,
            simulation=simulation,
        )
        for runtime_step in result.runtime_steps:
            executor.execute(runtime_step)

        self._emit(ScriptStepResult.script_success(counter.posted, simulation))
        return RunStatus.SUCCEEDED

    def _emit(self, result: ScriptStepResult) -> None:
        logger.debug(result.to_summary())
        self.event_sink.publish(result)
