"""
Configuration commands for Relaybox CLI.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.panel import Panel

from relaybox.cli.ui.console import console, print_error

app = typer.Typer(help="Configuration management")


@app.command("show")
def config_show(
    config_file: str = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Show current configuration."""
    from relaybox.models.config import RelayboxConfig

    try:
        config = RelayboxConfig.load(config_file)
    except Exception as e:
        print_error(f"Error loading config: {e}")
        raise typer.Exit(1)

    workspace = config.workspace
    execution = config.execution
    history = config.history
    logging_config = config.logging

    console.print(
        Panel.fit(
            f"[bold]Workspace:[/]\n"
            f"  Scripts: {escape(workspace.scripts_dir)}\n"
            f"  Templates: {escape(workspace.templates_dir)}\n"
            f"  Variables: {escape(workspace.variables_file)}\n"
            f"  Sessions: {escape(workspace.sessions_file)}\n"
            f"\n[bold]Execution:[/]\n"
            f"  Simulation: {execution.simulation}\n"
            f"  Max Messages: {execution.max_messages or 'unbounded'}\n"
            f"  Clear Logs Before Execution: {execution.clear_logs_before_execution}\n"
            f"  Seed: {execution.seed if execution.seed is not None else 'time based'}\n"
            f"\n[bold]History:[/]\n"
            f"  Enabled: {history.enabled}\n"
            f"  Directory: {escape(history.directory)}\n"
            f"  Retention: {history.retention_days} days\n"
            f"\n[bold]Logging:[/]\n"
            f"  Level: {logging_config.level}\n"
            f"  File: {escape(logging_config.file or 'console only')}\n"
            f"  JSON: {logging_config.json_format}",
            title="[bold blue]Relaybox Configuration[/]",
        )
    )


@app.command("init")
def config_init(
    config_file: str = typer.Option(
        "relaybox.yaml",
        "--output",
        "-o",
        help="Output file path",
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Initialize a new configuration file."""
    init_config(config_file, force)


def init_config(config_file: str, force: bool = False) -> None:
    """Create a new configuration file with the default values."""
    from relaybox.models.config import RelayboxConfig

    config_path = Path(config_file)

    if config_path.exists() and not force:
        overwrite = typer.confirm(f"{config_file} already exists. Overwrite?")
        if not overwrite:
            console.print("[yellow]Cancelled[/]")
            return

    RelayboxConfig().save(config_path)

    console.print(f"[green]Configuration saved to {escape(config_file)}[/]")
    console.print("\n[bold]Next steps:[/]")
    console.print("1. Describe your sessions in [cyan]sessions.yaml[/]")
    console.print("2. Put message templates under [cyan]templates/[/]")
    console.print("3. Run a script:")
    console.print("   [dim]relaybox run scripts/orders.yaml --simulate[/]")
