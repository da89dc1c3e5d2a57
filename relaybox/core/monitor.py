"""
Progress reporting and cooperative cancellation.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """
    Cooperative cancellation signal shared between the caller and the worker.

    The worker polls it at well-defined points and sleeps through
    wait() so that a cancel request cuts pauses short.
    """

    def __init__(self):
        """Initialize a token that is not cancelled."""
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep until the delay elapses or cancellation is requested.

        Args:
            seconds: Delay in seconds

        Returns:
            True if cancellation was requested
        """
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)


class ProgressMonitor:
    """
    Receives the progress of a run and carries its cancellation token.

    The base class reports nothing; front ends override the hooks.
    """

    def __init__(self, token: CancellationToken | None = None):
        """
        Initialize the monitor.

        Args:
            token: Cancellation token (a new one is created if not provided)
        """
        self.token = token or CancellationToken()

    def begin_task(self, name: str, total_work: int) -> None:
        """Start reporting a task made of total_work units."""
        pass

    def sub_task(self, description: str) -> None:
        """Describe the work currently done."""
        pass

    def worked(self, units: int) -> None:
        """Report units of work as done."""
        pass

    def done(self) -> None:
        """Report the end of the task."""
        pass

    def cancel(self) -> None:
        """Request cancellation of the run."""
        self.token.cancel()

    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self.token.is_cancelled


class RecordingProgressMonitor(ProgressMonitor):
    """Monitor keeping track of what it was told, for headless runs and tests."""

    def __init__(self, token: CancellationToken | None = None):
        super().__init__(token)
        self.task_name: str | None = None
        self.total_work = 0
        self.work_done = 0
        self.sub_tasks: list[str] = []
        self.finished = False

    def begin_task(self, name: str, total_work: int) -> None:
        self.task_name = name
        self.total_work = total_work
        self.work_done = 0
        self.finished = False

    def sub_task(self, description: str) -> None:
        self.sub_tasks.append(description)

    def worked(self, units: int) -> None:
        self.work_done += units

    def done(self) -> None:
        self.finished = True
