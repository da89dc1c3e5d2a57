"""
Helper utilities for Relaybox.

Provides small formatting helpers used by the CLI.
"""

from __future__ import annotations


def truncate_string(
    text: str,
    max_length: int,
    suffix: str = "...",
) -> str:
    """
    Truncate a string to a maximum length.
    
    Args:
        text: Input string
        max_length: Maximum length including suffix
        suffix: Suffix to append when truncated
    
    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text
    
    return text[: max_length - len(suffix)] + suffix


def single_line(text: str | None, max_length: int = 60) -> str:
    """
    Collapse a payload to one truncated line for display.

    Args:
        text: Payload text (None gives an empty string)
        max_length: Maximum length of the result

    Returns:
        Whitespace-collapsed, truncated text
    """
    if not text:
        return ""
    return truncate_string(" ".join(text.split()), max_length)


def format_duration(seconds: float) -> str:
    """
    Format the duration of a run.

    Durations under a minute keep one decimal ("4.2s"), longer ones are
    split into whole hours, minutes and seconds ("1h 2m 5s").

    Args:
        seconds: Duration in seconds

    Returns:
        Human-readable duration
    """
    if seconds < 60:
        return f"{max(seconds, 0):.1f}s"

    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return " ".join(parts)
