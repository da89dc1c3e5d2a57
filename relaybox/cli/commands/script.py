"""
Script commands for Relaybox CLI.
"""

from __future__ import annotations

import os
import random
import signal
import sys
import time
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from pathlib import Path

import typer
from rich.markup import escape

from relaybox.catalog.templates import FileTemplateCatalog
from relaybox.catalog.variables import VariableCatalog
from relaybox.cli.ui.console import console, print_error, print_success, print_warning
from relaybox.core.engine import ScriptExecutionEngine
from relaybox.core.errors import ScriptLoadError
from relaybox.core.events import (
    CallbackEventSink,
    CollectingEventSink,
    EventSink,
    FanOutEventSink,
    LoggingEventSink,
)
from relaybox.core.monitor import CancellationToken, ProgressMonitor
from relaybox.messaging.registry import SessionRegistry
from relaybox.models.config import RelayboxConfig
from relaybox.models.results import RunStatus, ScriptStepResult
from relaybox.models.script import Script
from relaybox.scripts.loader import ScriptLoader
from relaybox.utils.logger import LogContext, get_logger, log_run_outcome, setup_logging

logger = get_logger("relaybox.cli")

EXIT_CODES = {
    RunStatus.SUCCEEDED: 0,
    RunStatus.MAX_REACHED: 0,
    RunStatus.VALIDATION_FAILED: 1,
    RunStatus.EXECUTION_FAILED: 1,
    RunStatus.CANCELLED: 130,
}

# Global reference for signal handler
_current_engine: ScriptExecutionEngine | None = None
_shutdown_requested = False


def _signal_handler(signum, frame):
    """Handle SIGINT/SIGTERM by cancelling the current run."""
    global _shutdown_requested

    if _shutdown_requested:
        # Second signal; the worker thread would be joined by a normal exit
        console.print("\n[red]Forced exit[/]")
        os._exit(EXIT_CODES[RunStatus.CANCELLED])

    _shutdown_requested = True
    console.print("\n[yellow]Cancelling script (Ctrl+C again to force)[/]")

    if _current_engine:
        _current_engine.cancel()


def _setup_signal_handlers() -> dict[int, object]:
    """Set up signal handlers for cooperative cancellation; return the previous ones."""
    previous = {signal.SIGINT: signal.signal(signal.SIGINT, _signal_handler)}

    # SIGTERM is sent by kill command (not available on Windows)
    if sys.platform != "win32":
        previous[signal.SIGTERM] = signal.signal(signal.SIGTERM, _signal_handler)
    return previous


def _restore_signal_handlers(previous: dict[int, object]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def load_config(config_file: str | None = None) -> RelayboxConfig:
    """Load the configuration and apply logging settings."""
    from relaybox.cli.app import cli_state

    try:
        config = RelayboxConfig.load(config_file)
    except Exception as e:
        print_error(f"Error loading config: {e}")
        raise typer.Exit(1)

    setup_logging(
        level="debug" if cli_state.debug else config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        console=not cli_state.quiet,
    )
    return config


def load_script(name: str, config: RelayboxConfig) -> Script:
    """Load a script by path or by name in the scripts directory."""
    loader = ScriptLoader([Path(config.workspace.scripts_dir)])
    try:
        return loader.load(name)
    except FileNotFoundError:
        print_error(f"Script '{name}' not found")
        available = loader.list_available()
        if available:
            console.print(f"[dim]Available scripts:[/] {escape(', '.join(available))}")
        raise typer.Exit(1)
    except ScriptLoadError as e:
        print_error(str(e))
        raise typer.Exit(1)


def build_engine(
    config: RelayboxConfig,
    event_sink: EventSink,
    monitor_factory=None,
) -> ScriptExecutionEngine:
    """
    Build an engine over the workspace described by the configuration.

    Args:
        config: Relaybox configuration
        event_sink: Receiver of the run events
        monitor_factory: Builds the progress monitor of a run

    Returns:
        Configured engine
    """
    workspace = config.workspace

    templates = FileTemplateCatalog(workspace.templates_dir)

    variables = VariableCatalog()
    if Path(workspace.variables_file).is_file():
        count = variables.load_file(workspace.variables_file)
        logger.debug("Loaded %d variable(s) from %s", count, workspace.variables_file)

    sessions = SessionRegistry()
    if Path(workspace.sessions_file).is_file():
        count = sessions.load_file(workspace.sessions_file)
        logger.debug("Loaded %d session(s) from %s", count, workspace.sessions_file)
    else:
        logger.warning("Sessions file %s not found", workspace.sessions_file)

    seed = config.execution.seed
    rng_factory = (lambda: random.Random(seed)) if seed is not None else None

    return ScriptExecutionEngine(
        templates=templates,
        sessions=sessions,
        variables=variables,
        event_sink=event_sink,
        monitor_factory=monitor_factory,
        clear_logs_before_execution=config.execution.clear_logs_before_execution,
        rng_factory=rng_factory,
    )


def _wait(future: Future) -> RunStatus:
    """Wait for the run while staying responsive to signals."""
    while True:
        try:
            return future.result(timeout=0.2)
        except FutureTimeoutError:
            continue


def _posted_count(sink: CollectingEventSink) -> int:
    terminal = sink.terminal
    if terminal is not None and terminal.posted_count is not None:
        return terminal.posted_count
    return sum(1 for name in sink.names if name == "StepSuccess")


def run_script(
    script_name: str,
    simulate: bool | None = None,
    max_messages: int | None = None,
    config_file: str | None = None,
    show_log: bool = True,
    max_log_rows: int | None = 50,
) -> RunStatus:
    """
    Run a script with a live progress display.

    Args:
        script_name: Script path or name
        simulate: Simulation mode (configuration default if None)
        max_messages: Message limit (configuration default if None)
        config_file: Configuration file path
        show_log: Print the execution log at the end
        max_log_rows: Only print the last rows of the log (None = all)

    Returns:
        Terminal status of the run
    """
    global _current_engine, _shutdown_requested

    from relaybox.cli.app import cli_state
    from relaybox.cli.ui.panels import create_execution_log_table, create_script_panel
    from relaybox.cli.ui.progress import RichProgressMonitor, create_progress
    from relaybox.core.history import ExecutionHistory, HistoryEventSink

    config = load_config(config_file)
    script = load_script(script_name, config)

    simulation = config.execution.simulation if simulate is None else simulate
    limit = config.execution.max_messages if max_messages is None else max_messages
    if limit < 0:
        print_error("--max-messages must be >= 0")
        raise typer.Exit(1)

    console.print(create_script_panel(script, simulation, limit))

    progress = create_progress(console)
    current: dict[str, RichProgressMonitor] = {}

    def monitor_factory(token: CancellationToken) -> ProgressMonitor:
        if cli_state.quiet:
            return ProgressMonitor(token)
        current["monitor"] = RichProgressMonitor(progress, token)
        return current["monitor"]

    def on_event(result: ScriptStepResult) -> None:
        monitor = current.get("monitor")
        if monitor is not None:
            monitor.note_event(result)

    collecting = CollectingEventSink()
    sinks: list[EventSink] = [collecting, LoggingEventSink(), CallbackEventSink(on_event)]

    if config.history.enabled:
        history = ExecutionHistory(config.get_history_dir())
        removed = history.cleanup_old_runs(config.history.retention_days)
        if removed:
            logger.debug("Removed %d old run(s) from the history", removed)
        sinks.append(HistoryEventSink(history, script.name))

    engine = build_engine(config, FanOutEventSink(*sinks), monitor_factory)

    _shutdown_requested = False
    previous_handlers = _setup_signal_handlers()
    _current_engine = engine

    started = time.monotonic()
    try:
        with LogContext(script=script.name, simulation=simulation):
            future = engine.submit(script, simulation=simulation, max_messages=limit)
            if cli_state.quiet:
                status = _wait(future)
            else:
                with progress:
                    status = _wait(future)
            duration = time.monotonic() - started
            log_run_outcome(logger, script.name, status.value, _posted_count(collecting), duration)
    finally:
        _current_engine = None
        _restore_signal_handlers(previous_handlers)

    if show_log:
        console.print()
        console.print(create_execution_log_table(collecting.results, max_rows=max_log_rows))

    _report(status, collecting)
    return status


def _report(status: RunStatus, sink: CollectingEventSink) -> None:
    """Print the outcome of a run."""
    posted = _posted_count(sink)
    terminal = sink.terminal

    console.print()
    if status == RunStatus.SUCCEEDED:
        print_success(f"Script completed, {posted} message(s) posted")
    elif status == RunStatus.MAX_REACHED:
        print_warning(f"Maximum number of messages reached, {posted} message(s) posted")
    elif status == RunStatus.CANCELLED:
        print_warning(f"Script cancelled, {posted} message(s) posted", prefix="Cancelled")
    else:
        detail = terminal.to_summary() if terminal is not None else status.value
        print_error(detail, prefix="Failed")


def validate_script(script_name: str, config_file: str | None = None) -> RunStatus:
    """
    Dry run a script in simulation mode and report whether it is runnable.

    Args:
        script_name: Script path or name
        config_file: Configuration file path

    Returns:
        Terminal status of the simulated run
    """
    config = load_config(config_file)
    script = load_script(script_name, config)

    collecting = CollectingEventSink()
    engine = build_engine(config, FanOutEventSink(collecting, LoggingEventSink()))
    status = _wait(engine.submit(script, simulation=True, max_messages=0))

    if status == RunStatus.SUCCEEDED:
        print_success(
            f"Script '{script.name}' is valid, "
            f"{_posted_count(collecting)} message(s) would be posted"
        )
    else:
        terminal = collecting.terminal
        detail = terminal.to_summary() if terminal is not None else status.value
        print_error(detail, prefix="Invalid")
    return status


def show_script(script_name: str, config_file: str | None = None) -> None:
    """Print the steps, global variables and data files of a script."""
    from rich.table import Table

    from relaybox.cli.ui.panels import create_steps_table

    config = load_config(config_file)
    script = load_script(script_name, config)

    console.print(create_steps_table(script))

    if script.global_variables:
        table = Table(title="Global Variables", show_header=True)
        table.add_column("Name", style="bold")
        table.add_column("Value")
        for variable in script.global_variables:
            value = variable.constant_value
            table.add_row(
                escape(variable.name),
                escape(value) if value is not None else "[dim]generated[/]",
            )
        console.print(table)

    if script.data_files:
        table = Table(title="Data Files", show_header=True)
        table.add_column("Prefix", style="bold")
        table.add_column("File")
        table.add_column("Delimiter")
        table.add_column("Variables")
        for data_file in script.data_files:
            table.add_row(
                escape(data_file.variable_prefix),
                escape(data_file.file_name),
                repr(data_file.delimiter),
                escape(", ".join(data_file.parsed_variable_names())),
            )
        console.print(table)


def list_scripts(config_file: str | None = None) -> list[str]:
    """Print the scripts found in the scripts directory."""
    config = load_config(config_file)
    loader = ScriptLoader([Path(config.workspace.scripts_dir)])
    names = loader.list_available()

    if not names:
        console.print(f"[dim]No scripts found in {escape(config.workspace.scripts_dir)}[/]")
        return names

    for name in names:
        console.print(f"  [cyan]{escape(name)}[/]")
    return names
