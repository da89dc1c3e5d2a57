"""
CLI UI components for Relaybox.

This module provides rich terminal UI components including:
- Banner display
- Progress tracking
- Script, log and history panels
"""

from relaybox.cli.ui.console import (
    console,
    show_banner,
    print_error,
    print_warning,
    print_success,
    print_info,
    format_status,
)
from relaybox.cli.ui.progress import RichProgressMonitor, create_progress
from relaybox.cli.ui.panels import (
    create_script_panel,
    create_steps_table,
    create_execution_log_table,
    create_events_table,
    create_history_table,
    create_run_panel,
)

__all__ = [
    # Console
    "console",
    "show_banner",
    "print_error",
    "print_warning",
    "print_success",
    "print_info",
    "format_status",
    # Progress
    "RichProgressMonitor",
    "create_progress",
    # Panels
    "create_script_panel",
    "create_steps_table",
    "create_execution_log_table",
    "create_events_table",
    "create_history_table",
    "create_run_panel",
]
