"""
Event sinks receiving the events of a script run.

Sinks are called synchronously from the worker thread, in emission order.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable

from relaybox.models.results import ActionCode, ResultStatus, RunStatus, ScriptStepResult


class EventSink(ABC):
    """Base class of event sinks."""

    @abstractmethod
    def publish(self, result: ScriptStepResult) -> None:
        """Receive one event."""
        pass

    def clear(self) -> None:
        """Forget previously received events, if kept."""
        pass


class CollectingEventSink(EventSink):
    """
    Keeps every event in memory.

    Example:
        >>> sink = CollectingEventSink()
        >>> engine = ScriptExecutionEngine(..., event_sink=sink)
        >>> engine.execute(script)
        >>> sink.names
        ['ScriptStart', 'StepStart', 'StepSuccess', 'ScriptSuccess']
    """

    def __init__(self):
        """Initialize an empty sink."""
        self._results: list[ScriptStepResult] = []
        self._lock = threading.Lock()

    def publish(self, result: ScriptStepResult) -> None:
        with self._lock:
            self._results.append(result)

    def clear(self) -> None:
        with self._lock:
            self._results.clear()

    @property
    def results(self) -> list[ScriptStepResult]:
        """Get a copy of the received events."""
        with self._lock:
            return list(self._results)

    @property
    def names(self) -> list[str]:
        """Get the names of the received events."""
        return [r.name for r in self.results]

    @property
    def terminal(self) -> ScriptStepResult | None:
        """Get the terminal event, if the run is over."""
        for result in reversed(self.results):
            if result.is_terminal:
                return result
        return None

    @property
    def run_status(self) -> RunStatus:
        """Get the status of the run as seen from the events."""
        results = self.results
        if not results:
            return RunStatus.NOT_STARTED
        terminal = self.terminal
        if terminal is not None:
            return terminal.run_status
        started = any(
            r.status == ResultStatus.START and r.action in (ActionCode.STEP, ActionCode.PAUSE)
            for r in results
        )
        return RunStatus.RUNNING if started else RunStatus.VALIDATING


class CallbackEventSink(EventSink):
    """Forwards events to callables."""

    def __init__(
        self,
        on_event: Callable[[ScriptStepResult], None],
        on_clear: Callable[[], None] | None = None,
    ):
        """
        Initialize the sink.

        Args:
            on_event: Called for every event
            on_clear: Called when the log is cleared
        """
        self.on_event = on_event
        self.on_clear = on_clear

    def publish(self, result: ScriptStepResult) -> None:
        self.on_event(result)

    def clear(self) -> None:
        if self.on_clear:
            self.on_clear()


class LoggingEventSink(EventSink):
    """Writes events to a logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("relaybox.events")

    def publish(self, result: ScriptStepResult) -> None:
        if result.status == ResultStatus.FAILED:
            self.logger.error(result.to_summary())
        elif result.is_terminal:
            self.logger.info(result.to_summary())
        else:
            self.logger.debug(result.to_summary())


class FanOutEventSink(EventSink):
    """Forwards events to several sinks, in order."""

    def __init__(self, *sinks: EventSink):
        self.sinks = list(sinks)

    def publish(self, result: ScriptStepResult) -> None:
        for sink in self.sinks:
            sink.publish(result)

    def clear(self) -> None:
        for sink in self.sinks:
            sink.clear()
