"""
History commands for Relaybox CLI.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from relaybox.cli.ui.console import console, print_error, print_success

app = typer.Typer(help="Execution history")


def _open_history(config_file: str | None):
    from relaybox.cli.commands.script import load_config
    from relaybox.core.history import ExecutionHistory

    config = load_config(config_file)
    return ExecutionHistory(config.get_history_dir())


@app.command("list")
def history_list(
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum runs to show"),
    status: str = typer.Option(None, "--status", "-s", help="Only show runs with this status"),
    config_file: str = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """List past script runs."""
    from relaybox.cli.ui.panels import create_history_table

    history = _open_history(config_file)
    runs = history.list_runs(limit=limit, status=status)

    if not runs:
        console.print("[dim]No runs found[/]")
        return

    console.print(create_history_table(runs))


@app.command("show")
def history_show(
    run_id: str = typer.Argument(..., help="Run ID to show"),
    config_file: str = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Show the details and events of a run."""
    from relaybox.cli.ui.panels import create_events_table, create_run_panel

    history = _open_history(config_file)
    run = history.get_run(run_id)

    if not run:
        print_error(f"Run '{run_id}' not found")
        raise typer.Exit(1)

    console.print(create_run_panel(run))
    events = history.get_events(run_id)
    if events:
        console.print(create_events_table(events))


@app.command("delete")
def history_delete(
    run_id: str = typer.Argument(..., help="Run ID to delete"),
    config_file: str = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Delete a run and its events."""
    history = _open_history(config_file)

    if not history.delete_run(run_id):
        print_error(f"Run '{run_id}' not found")
        raise typer.Exit(1)

    print_success(f"Run '{run_id}' deleted")


@app.command("clear")
def history_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    config_file: str = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Delete every recorded run."""
    history = _open_history(config_file)

    if not yes and not typer.confirm("Delete every recorded run?"):
        console.print("[yellow]Cancelled[/]")
        return

    count = history.clear()
    console.print(f"[green]Deleted {count} run(s) from {escape(str(history.db_path))}[/]")
