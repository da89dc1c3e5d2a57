"""
CLI package for Relaybox.

Provides a rich command-line interface using Typer.
"""

from relaybox.cli.app import app, main

__all__ = ["app", "main"]
