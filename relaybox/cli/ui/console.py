"""
Console utilities for Relaybox CLI.

Provides styled console output, banner display, and formatting utilities.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.text import Text
from rich.theme import Theme

from relaybox import __version__


RELAYBOX_THEME = Theme({
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "script": "bold cyan",
    "session": "bold magenta",
    "destination": "cyan",
    "template": "blue",
})

console = Console(theme=RELAYBOX_THEME)


BANNER = r"""
           __           __
  _______ / /__ ___ __ / /  ___ __ __
 / __/ -_) / _ `/ // // _ \/ _ \\ \ /
/_/  \__/_/\_,_/\_, //_.__/\___/_\_\
               /___/
"""

TAGLINE = "Scripted message posting for messaging sessions"

STATUS_STYLES = {
    "succeeded": "green",
    "max_reached": "yellow",
    "cancelled": "yellow",
    "running": "cyan",
    "validating": "cyan",
    "validation_failed": "red",
    "execution_failed": "red",
}


def show_banner() -> None:
    """Display the Relaybox ASCII art banner."""
    banner_text = Text(BANNER, style="bold blue")
    
    version_text = Text()
    version_text.append("v", style="dim")
    version_text.append(__version__, style="bold cyan")
    version_text.append(" | ", style="dim")
    version_text.append(TAGLINE, style="italic")
    
    console.print(banner_text)
    console.print(version_text, justify="center")
    console.print()


def print_error(message: str, prefix: str = "Error") -> None:
    """Print an error message."""
    console.print(f"[error]{prefix}:[/] {escape(message)}")


def print_warning(message: str, prefix: str = "Warning") -> None:
    """Print a warning message."""
    console.print(f"[warning]{prefix}:[/] {escape(message)}")


def print_success(message: str, prefix: str = "Success") -> None:
    """Print a success message."""
    console.print(f"[success]{prefix}:[/] {escape(message)}")


def print_info(message: str, prefix: str = "Info") -> None:
    """Print an info message."""
    console.print(f"[info]{prefix}:[/] {escape(message)}")


def format_status(status: str) -> str:
    """Format a run status with appropriate color."""
    color = STATUS_STYLES.get(status, "white")
    return f"[{color}]{status}[/{color}]"


def format_count(count: int, singular: str, plural: str | None = None) -> str:
    """Format a count with singular/plural label."""
    plural = plural or f"{singular}s"
    label = singular if count == 1 else plural
    return f"{count} {label}"
