"""
Core of Relaybox.

This package provides the script execution engine:
- engine: Runs a script on a worker thread and reports events
- validation: Resolves every reference of a script before sending
- executor: Executes PAUSE and REGULAR steps
- history: SQLite record of past runs
"""

from relaybox.core.engine import ScriptExecutionEngine
from relaybox.core.errors import (
    MaxMessagesReached,
    ScriptCancelled,
    ScriptLoadError,
    StepExecutionError,
)
from relaybox.core.events import (
    CallbackEventSink,
    CollectingEventSink,
    EventSink,
    FanOutEventSink,
    LoggingEventSink,
)
from relaybox.core.history import ExecutionHistory, HistoryEventSink
from relaybox.core.monitor import CancellationToken, ProgressMonitor, RecordingProgressMonitor
from relaybox.core.validation import ExecutionPlan, ValidationFailure, ValidationPipeline
from relaybox.core.variables import VariableResolver

__all__ = [
    "ScriptExecutionEngine",
    # Errors
    "MaxMessagesReached",
    "ScriptCancelled",
    "ScriptLoadError",
    "StepExecutionError",
    # Events
    "CallbackEventSink",
    "CollectingEventSink",
    "EventSink",
    "FanOutEventSink",
    "LoggingEventSink",
    # History
    "ExecutionHistory",
    "HistoryEventSink",
    # Monitor
    "CancellationToken",
    "ProgressMonitor",
    "RecordingProgressMonitor",
    # Validation
    "ExecutionPlan",
    "ValidationFailure",
    "ValidationPipeline",
    "VariableResolver",
]
