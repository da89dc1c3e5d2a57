"""
Progress tracking for Relaybox CLI.

Provides a live-updating progress display for script runs using Rich.
"""

from __future__ import annotations

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from relaybox.core.monitor import CancellationToken, ProgressMonitor
from relaybox.models.results import ActionCode, ResultStatus, ScriptStepResult
from relaybox.utils.helpers import truncate_string


def create_progress(console: Console | None = None) -> Progress:
    """
    Create the Rich progress display of a run.
    
    Args:
        console: Rich console to use (creates new if not provided)
    
    Returns:
        Progress to use as a context manager around the run
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(bar_width=30),
        TaskProgressColumn(),
        TextColumn("[dim]{task.fields[posted]} posted[/]"),
        TextColumn("{task.fields[detail]}", markup=False),
        TimeElapsedColumn(),
        console=console or Console(),
        transient=False,
    )


class RichProgressMonitor(ProgressMonitor):
    """
    Progress monitor drawing on a Rich progress display.
    
    Called from the worker thread; Rich progress updates are thread safe.
    
    Example:
        >>> progress = create_progress(console)
        >>> engine = ScriptExecutionEngine(
        ...     ..., monitor_factory=lambda token: RichProgressMonitor(progress, token)
        ... )
        >>> with progress:
        ...     engine.execute(script)
    """
    
    def __init__(
        self,
        progress: Progress,
        token: CancellationToken | None = None,
        max_detail: int = 50,
    ):
        """
        Initialize the monitor.
        
        Args:
            progress: Rich progress display
            token: Cancellation token of the run
            max_detail: Maximum length of the sub task description
        """
        super().__init__(token)
        self.progress = progress
        self.max_detail = max_detail
        self._task_id: TaskID | None = None
        self._posted = 0
    
    def begin_task(self, name: str, total_work: int) -> None:
        self._posted = 0
        self._task_id = self.progress.add_task(name, total=total_work, posted=0, detail="")
    
    def sub_task(self, description: str) -> None:
        if self._task_id is not None:
            self.progress.update(
                self._task_id,
                detail=truncate_string(description, self.max_detail),
            )
    
    def worked(self, units: int) -> None:
        if self._task_id is not None:
            self.progress.advance(self._task_id, units)
    
    def done(self) -> None:
        if self._task_id is not None:
            detail = "Cancelled" if self.is_cancelled() else "Done"
            self.progress.update(self._task_id, detail=detail)
            self.progress.stop_task(self._task_id)
    
    def note_event(self, result: ScriptStepResult) -> None:
        """Count posted messages; usable as a CallbackEventSink callback."""
        if result.action == ActionCode.STEP and result.status == ResultStatus.SUCCESS:
            self._posted += 1
            if self._task_id is not None:
                self.progress.update(self._task_id, posted=self._posted)
