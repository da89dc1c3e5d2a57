"""
Rich panels for Relaybox CLI.

Provides styled panels and tables for scripts, run logs and history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from relaybox.cli.ui.console import format_status
from relaybox.models.script import StepKind
from relaybox.utils.helpers import single_line

if TYPE_CHECKING:
    from relaybox.models.results import ScriptStepResult
    from relaybox.models.script import Script


EVENT_STYLES = {
    "Start": "cyan",
    "Success": "green",
    "Fail": "bold red",
    "Cancelled": "yellow",
    "MaxReached": "yellow",
}


def _event_style(name: str) -> str:
    for suffix, style in EVENT_STYLES.items():
        if name.endswith(suffix):
            return style
    return "white"


def create_script_panel(
    script: "Script",
    simulation: bool = False,
    max_messages: int = 0,
) -> Panel:
    """
    Create a panel describing a run about to start.
    
    Args:
        script: Script to run
        simulation: Whether messages are really sent
        max_messages: Message limit (0 = unbounded)
    
    Returns:
        Rich Panel with run info
    """
    content = []
    
    content.append(Text.from_markup(f"[bold]Script:[/] [bold cyan]{escape(script.name)}[/]"))
    content.append(Text.from_markup(f"[bold]Steps:[/] {len(script.steps)}"))
    
    sessions = sorted(script.get_sessions_used())
    if sessions:
        content.append(Text.from_markup(f"[bold]Sessions:[/] {escape(', '.join(sessions))}"))
    
    mode = "[yellow]Simulation[/]" if simulation else "[green]Live[/]"
    content.append(Text.from_markup(f"[bold]Mode:[/] {mode}"))
    
    limit = str(max_messages) if max_messages else "[dim]unbounded[/]"
    content.append(Text.from_markup(f"[bold]Max Messages:[/] {limit}"))
    
    return Panel(
        Group(*content),
        title="[bold blue]Script Execution[/]",
        border_style="blue",
    )


def create_steps_table(script: "Script") -> Table:
    """
    Create a table listing the steps of a script.
    
    Args:
        script: Script to list
    
    Returns:
        Rich Table with one row per step
    """
    table = Table(title=f"Script: {escape(script.name)}", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind")
    table.add_column("Session", style="magenta")
    table.add_column("Destination", style="cyan")
    table.add_column("Template", style="blue")
    table.add_column("Iterations", justify="right")
    table.add_column("Pause", justify="right")
    table.add_column("Data File")
    
    for i, step in enumerate(script.steps, start=1):
        if step.kind == StepKind.PAUSE:
            table.add_row(str(i), "PAUSE", "", "", "", "", f"{step.pause_secs}s", "")
            continue
        template = f"{step.template_name}/" if step.folder else step.template_name
        table.add_row(
            str(i),
            "REGULAR",
            escape(step.session_name),
            escape(step.destination_name),
            escape(template),
            str(step.iterations),
            f"{step.pause_secs_after}s" if step.pause_secs_after else "",
            escape(step.variable_prefix or ""),
        )
    
    return table


def _log_table(title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Time", style="dim", width=12)
    table.add_column("Event", width=18)
    table.add_column("Message", overflow="fold")
    table.add_column("Payload", style="dim", overflow="ellipsis", max_width=40)
    return table


def create_execution_log_table(
    results: list["ScriptStepResult"],
    title: str = "Execution Log",
    max_rows: int | None = None,
) -> Table:
    """
    Create a table displaying the events of a run.
    
    Args:
        results: Events in emission order
        title: Table title
        max_rows: Only show the last rows (None = all)
    
    Returns:
        Rich Table with one row per event
    """
    table = _log_table(title)
    
    shown = results[-max_rows:] if max_rows else results
    for result in shown:
        message = result.message
        if result.cause:
            message += f" ({result.cause})"
        table.add_row(
            result.timestamp.strftime("%H:%M:%S.%f")[:12],
            Text(result.name, style=_event_style(result.name)),
            Text(message),
            Text(single_line(result.data.get("payload"))),
        )
    
    return table


def create_events_table(events: list[dict[str, Any]], title: str = "Events") -> Table:
    """
    Create a table displaying events read back from the history.
    
    Args:
        events: Event records as returned by ExecutionHistory.get_events
        title: Table title
    
    Returns:
        Rich Table with one row per event
    """
    table = _log_table(title)
    
    for event in events:
        message = event.get("message") or ""
        if event.get("cause"):
            message += f" ({event['cause']})"
        table.add_row(
            (event.get("timestamp") or "")[11:23],
            Text(event["name"], style=_event_style(event["name"])),
            Text(message),
            Text(single_line(event.get("data", {}).get("payload"))),
        )
    
    return table


def create_history_table(runs: list[dict[str, Any]], title: str = "Script Runs") -> Table:
    """
    Create a table listing past runs.
    
    Args:
        runs: Run records as returned by ExecutionHistory.list_runs
        title: Table title
    
    Returns:
        Rich Table with one row per run
    """
    table = Table(title=title, show_header=True)
    table.add_column("Run ID", style="bold")
    table.add_column("Script", style="cyan")
    table.add_column("Mode")
    table.add_column("Status")
    table.add_column("Posted", justify="right")
    table.add_column("Started")
    
    for run in runs:
        table.add_row(
            run["run_id"],
            escape(run["script"]),
            "simulation" if run["simulation"] else "live",
            format_status(run["status"]),
            str(run["posted_count"]),
            run["started_at"][:19] if run["started_at"] else "N/A",
        )
    
    return table


def create_run_panel(run: dict[str, Any]) -> Panel:
    """
    Create a panel with the details of a past run.
    
    Args:
        run: Run record as returned by ExecutionHistory.get_run
    
    Returns:
        Rich Panel with run info
    """
    content = [
        Text.from_markup(f"[bold]Script:[/] [bold cyan]{escape(run['script'])}[/]"),
        Text.from_markup(f"[bold]Mode:[/] {'simulation' if run['simulation'] else 'live'}"),
        Text.from_markup(f"[bold]Status:[/] {format_status(run['status'])}"),
        Text.from_markup(f"[bold]Posted:[/] {run['posted_count']}"),
        Text.from_markup(f"[bold]Started:[/] {run['started_at'][:19]}"),
        Text.from_markup(
            f"[bold]Completed:[/] {run['completed_at'][:19] if run['completed_at'] else 'In progress'}"
        ),
    ]
    if run.get("error"):
        content.append(Text.from_markup(f"[bold]Error:[/] [red]{escape(run['error'])}[/]"))
    
    return Panel(
        Group(*content),
        title=f"[bold blue]Run {escape(run['run_id'])}[/]",
        border_style="blue",
    )
