"""
Main CLI application.

This module defines the main Typer application and entry point.
"""

from __future__ import annotations

import os
from typing import Optional

import typer

from relaybox import __version__
from relaybox.cli.commands import config, history
from relaybox.cli.ui.console import console

# Create the main app
app = typer.Typer(
    name="relaybox",
    help="Scripted message posting for messaging sessions",
    add_completion=True,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

# Add sub-commands
app.add_typer(history.app, name="history", help="Execution history")
app.add_typer(config.app, name="config", help="Configuration management")


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]Relaybox[/] v{__version__}")
        raise typer.Exit()


# Global state for CLI options
class CLIState:
    """Global CLI state for options like quiet, debug, color."""

    quiet: bool = False
    debug: bool = False
    no_color: bool = False


cli_state = CLIState()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-essential output",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
):
    """
    Relaybox - Scripted message posting for messaging sessions

    Runs scripts that post messages built from templates to the queues
    and topics of messaging sessions.

    Global Options:
        --quiet, -q    Suppress non-essential output
        --debug        Enable debug logging
        --no-color     Disable colored output
    """
    cli_state.quiet = quiet
    cli_state.debug = debug
    cli_state.no_color = no_color

    console.quiet = quiet

    # Set environment variable for no-color (used by Rich)
    if no_color:
        os.environ["NO_COLOR"] = "1"
        console.no_color = True


@app.command()
def run(
    script: str = typer.Argument(..., help="Script file, or name in the scripts directory"),
    simulate: bool = typer.Option(
        False,
        "--simulate",
        help="Emit every event without sending messages nor sleeping",
    ),
    max_messages: Optional[int] = typer.Option(
        None,
        "--max-messages",
        "-n",
        help="Stop after this many messages (0 = unbounded)",
    ),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path",
    ),
    log_rows: int = typer.Option(
        50,
        "--log-rows",
        help="Execution log rows to print at the end (0 = all)",
    ),
    no_log: bool = typer.Option(
        False,
        "--no-log",
        help="Do not print the execution log",
    ),
):
    """
    Run a script.

    Validates the script, then posts its messages with a live progress
    display. Ctrl+C cancels the run cooperatively.

    Exit codes: 0 success or message limit reached, 1 failure,
    130 cancelled.

    Example:
        relaybox run scripts/orders.yaml
        relaybox run orders --simulate
        relaybox run orders --max-messages 100
    """
    from relaybox.cli.commands.script import EXIT_CODES, run_script
    from relaybox.cli.ui.console import show_banner

    if not cli_state.quiet:
        show_banner()

    status = run_script(
        script_name=script,
        simulate=True if simulate else None,
        max_messages=max_messages,
        config_file=config_file,
        show_log=not no_log and not cli_state.quiet,
        max_log_rows=log_rows or None,
    )
    raise typer.Exit(EXIT_CODES.get(status, 1))


@app.command()
def validate(
    script: str = typer.Argument(..., help="Script file, or name in the scripts directory"),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path",
    ),
):
    """
    Check that a script can run.

    Performs a simulated run: every template, session, variable, data
    file and destination is resolved, but nothing is sent.
    """
    from relaybox.cli.commands.script import validate_script
    from relaybox.models.results import RunStatus

    status = validate_script(script, config_file)
    if status != RunStatus.SUCCEEDED:
        raise typer.Exit(1)


@app.command()
def show(
    script: str = typer.Argument(..., help="Script file, or name in the scripts directory"),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path",
    ),
):
    """Show the steps of a script."""
    from relaybox.cli.commands.script import show_script

    show_script(script, config_file)


@app.command("list")
def list_command(
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path",
    ),
):
    """List the scripts of the scripts directory."""
    from relaybox.cli.commands.script import list_scripts

    list_scripts(config_file)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
