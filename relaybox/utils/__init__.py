"""
Utility modules for Relaybox.

This package provides common utilities:
- logger: Structured logging
- helpers: Formatting helpers
"""

from relaybox.utils.logger import (
    get_logger,
    setup_logging,
    LogLevel,
)
from relaybox.utils.helpers import (
    truncate_string,
    single_line,
    format_duration,
)

__all__ = [
    # Logger
    "get_logger",
    "setup_logging",
    "LogLevel",
    # Helpers
    "truncate_string",
    "single_line",
    "format_duration",
]
