"""
Script execution events and run statuses.

A run is reported as a stream of ScriptStepResult events. The engine
emits them and never keeps them; sinks decide what to do with them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActionCode(str, Enum):
    """What an event is about."""

    SCRIPT = "SCRIPT"
    PAUSE = "PAUSE"
    STEP = "STEP"
    STEP_PAUSE = "STEP_PAUSE"
    TEMPLATE = "TEMPLATE"
    SESSION = "SESSION"
    VARIABLE = "VARIABLE"
    DATAFILE = "DATAFILE"
    DESTINATION = "DESTINATION"


class ResultStatus(str, Enum):
    """Occurrence reported by an event."""

    START = "START"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    MAX_REACHED = "MAX_REACHED"


class FailureKind(str, Enum):
    """Classification of FAILED events."""

    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VARIABLE_NOT_FOUND = "VARIABLE_NOT_FOUND"
    DATAFILE_PREFIX_NOT_FOUND = "DATAFILE_PREFIX_NOT_FOUND"
    DATAFILE_NOT_FOUND = "DATAFILE_NOT_FOUND"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    DESTINATION_NOT_FOUND = "DESTINATION_NOT_FOUND"
    VALIDATION_EXCEPTION = "VALIDATION_EXCEPTION"
    EXECUTION_EXCEPTION = "EXECUTION_EXCEPTION"
    UNEXPECTED = "UNEXPECTED"

    @property
    def is_validation(self) -> bool:
        """Check if the failure happened before the first send."""
        return self not in (FailureKind.EXECUTION_EXCEPTION, FailureKind.UNEXPECTED)


class RunStatus(str, Enum):
    """States of a script run."""

    NOT_STARTED = "not_started"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    MAX_REACHED = "max_reached"
    EXECUTION_FAILED = "execution_failed"

    @property
    def is_terminal(self) -> bool:
        """Check if the run is over."""
        return self not in (RunStatus.NOT_STARTED, RunStatus.VALIDATING, RunStatus.RUNNING)

    @property
    def is_failure(self) -> bool:
        """Check if the run ended with an error."""
        return self in (RunStatus.VALIDATION_FAILED, RunStatus.EXECUTION_FAILED)


_STATUS_SUFFIXES = {
    ResultStatus.START: "Start",
    ResultStatus.SUCCESS: "Success",
    ResultStatus.FAILED: "Fail",
    ResultStatus.CANCELLED: "Cancelled",
    ResultStatus.MAX_REACHED: "MaxReached",
}


class ScriptStepResult(BaseModel):
    """One event of a script run."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    timestamp: datetime = Field(default_factory=datetime.now)
    action: ActionCode
    status: ResultStatus
    failure: FailureKind | None = None
    message: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    posted_count: int | None = None
    simulation: bool | None = None
    cause: str | None = Field(default=None, description="Text of the original exception")
    exception: BaseException | None = Field(default=None, exclude=True, repr=False)

    @property
    def name(self) -> str:
        """Get the event name, e.g. ``StepStart`` or ``ScriptMaxReached``."""
        prefix = "".join(part.capitalize() for part in self.action.value.split("_"))
        return prefix + _STATUS_SUFFIXES[self.status]

    @property
    def run_status(self) -> RunStatus | None:
        """Get the run status this event terminates with, None if not terminal."""
        if self.status == ResultStatus.FAILED:
            if self.failure is not None and self.failure.is_validation:
                return RunStatus.VALIDATION_FAILED
            return RunStatus.EXECUTION_FAILED
        if self.action != ActionCode.SCRIPT:
            return None
        return {
            ResultStatus.SUCCESS: RunStatus.SUCCEEDED,
            ResultStatus.CANCELLED: RunStatus.CANCELLED,
            ResultStatus.MAX_REACHED: RunStatus.MAX_REACHED,
        }.get(self.status)

    @property
    def is_terminal(self) -> bool:
        """Check if this event ends the run."""
        return self.run_status is not None

    def to_summary(self) -> str:
        """Get a brief summary."""
        text = f"[{self.name}] {self.message}"
        if self.cause:
            text += f" ({self.cause})"
        return text

    # ------------------
    # Script level events
    # ------------------

    @classmethod
    def script_start(cls, simulation: bool) -> "ScriptStepResult":
        message = "Script started (simulation)" if simulation else "Script started"
        return cls(
            action=ActionCode.SCRIPT,
            status=ResultStatus.START,
            message=message,
            simulation=simulation,
        )

    @classmethod
    def script_success(cls, posted_count: int, simulation: bool) -> "ScriptStepResult":
        return cls(
            action=ActionCode.SCRIPT,
            status=ResultStatus.SUCCESS,
            message=f"Script ended successfully. {posted_count} message(s) posted",
            posted_count=posted_count,
            simulation=simulation,
        )

    @classmethod
    def script_cancelled(cls, posted_count: int, simulation: bool) -> "ScriptStepResult":
        return cls(
            action=ActionCode.SCRIPT,
            status=ResultStatus.CANCELLED,
            message=f"Script cancelled by user. {posted_count} message(s) posted",
            posted_count=posted_count,
            simulation=simulation,
        )

    @classmethod
    def script_max_reached(cls, posted_count: int, simulation: bool) -> "ScriptStepResult":
        return cls(
            action=ActionCode.SCRIPT,
            status=ResultStatus.MAX_REACHED,
            message=f"Maximum number of messages reached. {posted_count} message(s) posted",
            posted_count=posted_count,
            simulation=simulation,
        )

    @classmethod
    def script_fail(cls, message: str, exception: BaseException) -> "ScriptStepResult":
        return cls(
            action=ActionCode.SCRIPT,
            status=ResultStatus.FAILED,
            failure=FailureKind.UNEXPECTED,
            message=message,
            cause=_describe(exception),
            exception=exception,
        )

    # -----------------
    # Validation events
    # -----------------

    @classmethod
    def validation_fail(
        cls,
        action: ActionCode,
        failure: FailureKind,
        message: str,
        identifier: str | None = None,
        exception: BaseException | None = None,
    ) -> "ScriptStepResult":
        data = {"identifier": identifier} if identifier is not None else {}
        return cls(
            action=action,
            status=ResultStatus.FAILED,
            failure=failure,
            message=message,
            data=data,
            cause=_describe(exception) if exception else None,
            exception=exception,
        )

    # ----------------
    # Execution events
    # ----------------

    @classmethod
    def pause_start(cls, delay: int) -> "ScriptStepResult":
        return cls(
            action=ActionCode.PAUSE,
            status=ResultStatus.START,
            message=f"Pausing for {delay} second(s)",
            data={"delay": delay},
        )

    @classmethod
    def pause_success(cls) -> "ScriptStepResult":
        return cls(action=ActionCode.PAUSE, status=ResultStatus.SUCCESS, message="Pause ended")

    @classmethod
    def step_start(
        cls,
        template_name: str,
        destination_name: str,
        payload: str | None,
    ) -> "ScriptStepResult":
        return cls(
            action=ActionCode.STEP,
            status=ResultStatus.START,
            message=f"Posting '{template_name}' to '{destination_name}'",
            data={
                "template": template_name,
                "destination": destination_name,
                "payload": payload,
            },
        )

    @classmethod
    def step_success(cls) -> "ScriptStepResult":
        return cls(action=ActionCode.STEP, status=ResultStatus.SUCCESS, message="Message posted")

    @classmethod
    def step_fail(cls, destination_name: str, exception: BaseException) -> "ScriptStepResult":
        return cls(
            action=ActionCode.STEP,
            status=ResultStatus.FAILED,
            failure=FailureKind.EXECUTION_EXCEPTION,
            message=f"Failed to post to '{destination_name}'",
            data={"destination": destination_name},
            cause=_describe(exception),
            exception=exception,
        )

    @classmethod
    def step_pause_start(cls, delay: int) -> "ScriptStepResult":
        return cls(
            action=ActionCode.STEP_PAUSE,
            status=ResultStatus.START,
            message=f"Pausing for {delay} second(s) after message",
            data={"delay": delay},
        )

    @classmethod
    def step_pause_success(cls) -> "ScriptStepResult":
        return cls(action=ActionCode.STEP_PAUSE, status=ResultStatus.SUCCESS, message="Pause ended")


def _describe(exception: BaseException) -> str:
    """Get a one-line description of an exception."""
    text = str(exception)
    name = type(exception).__name__
    return f"{name}: {text}" if text else name
