"""
Logging setup for Relaybox.

Every Relaybox logger lives under the ``relaybox`` namespace; handlers
are only installed on that namespace root:
- a Rich console handler on stderr
- an optional file handler, plain text or one JSON object per line

Records emitted while a run is active carry the run context (script
name, simulation flag), including records of the worker thread.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from relaybox.utils.helpers import format_duration

ROOT_LOGGER = "relaybox"

PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"


class LogLevel(str, Enum):
    """Log levels accepted by the configuration and the CLI."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value: "LogLevel | str") -> "LogLevel":
        """Accept a level or its name in any case."""
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())

    @property
    def numeric(self) -> int:
        """Get the matching ``logging`` level."""
        return getattr(logging, self.name)


# Context of the active run, shared by the caller and worker threads
_run_context: dict[str, Any] = {}
_run_context_lock = threading.Lock()


class _RunContextFilter(logging.Filter):
    """Attaches the active run context to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        with _run_context_lock:
            record.run = dict(_run_context)
        return True


def _console_handler(level: LogLevel) -> RichHandler:
    # Payloads are user data, so markup is only enabled per record
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level.numeric)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(path: str | Path, level: LogLevel, json_format: bool) -> logging.Handler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    handler.setLevel(level.numeric)
    return handler


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger of the Relaybox namespace.

    Names outside the namespace are moved below it, so every record
    reaches the handlers installed by setup_logging. Until then, the
    namespace root logs to the console at INFO.

    Args:
        name: Logger name, usually ``relaybox.<module>``

    Returns:
        The logger
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"

    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(logging.INFO)
        root.addHandler(_console_handler(LogLevel.INFO))

    return logging.getLogger(name)


def setup_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_file: str | Path | None = None,
    json_format: bool = False,
    console: bool = True,
) -> None:
    """
    (Re)configure the handlers of the Relaybox namespace.

    Args:
        level: Minimum level
        log_file: File receiving the records as well (optional)
        json_format: Write the file as JSON lines
        console: Log to the console
    """
    level = LogLevel.parse(level)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.numeric)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(_console_handler(level))
    if log_file:
        handlers.append(_file_handler(log_file, level, json_format))
    if not handlers:
        handlers.append(logging.NullHandler())

    for handler in handlers:
        handler.addFilter(_RunContextFilter())
        root.addHandler(handler)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the run context under ``run``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        run = getattr(record, "run", None)
        if run:
            entry["run"] = run
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class LogContext:
    """
    Attach run context to the records logged while a run is active.

    Example:
        >>> with LogContext(script="orders", simulation=True):
        ...     engine.execute(script, simulation=True)
    """

    def __init__(self, **context: Any):
        self.context = context
        self._previous: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        with _run_context_lock:
            self._previous = dict(_run_context)
            _run_context.update(self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        with _run_context_lock:
            _run_context.clear()
            _run_context.update(self._previous)


def log_run_outcome(
    logger: logging.Logger,
    script: str,
    status: str,
    posted: int,
    duration: float,
) -> None:
    """
    Log the outcome of a script run.

    Args:
        logger: Logger to use
        script: Script name
        status: Terminal run status value
        posted: Messages posted
        duration: Duration in seconds
    """
    colors = {
        "succeeded": "green",
        "max_reached": "yellow",
        "cancelled": "yellow",
        "validation_failed": "red",
        "execution_failed": "red",
    }
    color = colors.get(status, "white")

    logger.info(
        f"[cyan]{script}[/] ended [{color}]{status}[/{color}] "
        f"after {format_duration(duration)}, {posted} message(s) posted",
        extra={"markup": True},
    )
