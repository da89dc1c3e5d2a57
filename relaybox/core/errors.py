"""
Exceptions raised while running a script.
"""

from __future__ import annotations


class ScriptCancelled(Exception):
    """The run was cancelled by the user."""


class MaxMessagesReached(Exception):
    """The run posted the maximum number of messages allowed."""

    def __init__(self, posted_count: int):
        super().__init__(f"Maximum of {posted_count} message(s) reached")
        self.posted_count = posted_count


class StepExecutionError(Exception):
    """A message could not be built or sent."""

    def __init__(self, destination_name: str, cause: BaseException):
        super().__init__(f"Failed to post to '{destination_name}': {cause}")
        self.destination_name = destination_name
        self.cause = cause


class ScriptLoadError(Exception):
    """A script file could not be read or is invalid."""
