"""CLI commands package."""

from relaybox.cli.commands import config, history, script

__all__ = ["config", "history", "script"]
