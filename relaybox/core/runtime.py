"""
Per-run state of a script step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaybox.models.script import DataFile, Step, StepKind
from relaybox.models.template import MessageTemplate

if TYPE_CHECKING:
    from relaybox.messaging.base import Destination, MessagingConnection


class RuntimeStep:
    """
    Mutable wrapper around an immutable Step for the duration of one run.

    Validation fills it in: templates, connection, data file binding and
    destination. Templates kept here are never mutated; each iteration
    works on a clone.
    """

    def __init__(self, step: Step, index: int = 0):
        """
        Initialize the runtime step.

        Args:
            step: Step definition
            index: Position of the step in the script
        """
        self.step = step
        self.index = index
        self.templates: list[MessageTemplate] = []
        self.template_names: list[str] = []
        self.data_file: DataFile | None = None
        self.variable_names: list[str] = []
        self.connection: MessagingConnection | None = None
        self.destination: Destination | None = None

    @property
    def kind(self) -> StepKind:
        return self.step.kind

    @property
    def is_regular(self) -> bool:
        return self.step.kind == StepKind.REGULAR

    def add_template(self, template: MessageTemplate, name: str) -> None:
        """Add a resolved template with its display name."""
        self.templates.append(template)
        self.template_names.append(name)

    def iter_templates(self):
        """Iterate over (name, template) pairs in resolution order."""
        return zip(self.template_names, self.templates)

    @property
    def destination_name(self) -> str:
        if self.destination is not None:
            return self.destination.name
        return self.step.destination_name or ""

    def __str__(self) -> str:
        return f"Step {self.index + 1}: {self.step.describe()}"

    def __repr__(self) -> str:
        return f"RuntimeStep(index={self.index}, kind={self.step.kind.value}, templates={self.template_names})"
