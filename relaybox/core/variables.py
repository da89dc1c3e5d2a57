"""
Variable value generation and placeholder substitution.

Placeholders have the form ``${name}``. Substitution is plain text
replacement: a value that itself looks like a placeholder is replaced
again by a later pass.
"""

from __future__ import annotations

import random
import string
from datetime import datetime, timedelta
from typing import Callable, Iterable, Mapping

from relaybox.models.variable import (
    DateKind,
    DateOffsetUnit,
    StringKind,
    Variable,
    VariableKind,
    build_placeholder,
)

_CHARACTERS = {
    StringKind.ALPHANUMERIC: string.ascii_letters + string.digits,
    StringKind.ALPHABETIC: string.ascii_letters,
    StringKind.NUMERIC: string.digits,
}

_OFFSET_UNITS = {
    DateOffsetUnit.SECONDS: "seconds",
    DateOffsetUnit.MINUTES: "minutes",
    DateOffsetUnit.HOURS: "hours",
    DateOffsetUnit.DAYS: "days",
}


def substitute(text: str | None, values: Mapping[str, str]) -> str | None:
    """
    Replace the placeholders of the given variables.

    Args:
        text: Text to rewrite (None is returned unchanged)
        values: Variable name to value

    Returns:
        The rewritten text
    """
    if text is None:
        return None
    for name, value in values.items():
        text = text.replace(build_placeholder(name), value)
    return text


class VariableResolver:
    """
    Generates variable values.

    One resolver is created per run. Given the same random source and
    clock it produces the same values, and SEQUENCE variables count from
    their start value for every new resolver.

    Example:
        >>> resolver = VariableResolver(random.Random(42))
        >>> dice = resolver.resolve(Variable(name="n", kind="INT", min_int=1, max_int=6))
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            rng: Random source of the run (time seeded if not provided)
            clock: Source of the current time
        """
        self.rng = rng or random.Random()
        self.clock = clock or datetime.now
        self._sequences: dict[str, int] = {}

    def resolve(self, variable: Variable) -> str:
        """
        Generate a value for a variable.

        Args:
            variable: Variable definition

        Returns:
            Generated value
        """
        if variable.kind == VariableKind.STRING:
            return self._resolve_string(variable)
        if variable.kind == VariableKind.INT:
            return str(self.rng.randint(variable.min_int, variable.max_int))
        if variable.kind == VariableKind.DATE:
            return self._resolve_date(variable)
        if variable.kind == VariableKind.LIST:
            return self.rng.choice(variable.list_values)
        if variable.kind == VariableKind.SEQUENCE:
            return self._resolve_sequence(variable)
        raise ValueError(f"Unsupported variable kind: {variable.kind}")

    def replace_template_variables(self, variables: Iterable[Variable], text: str | None) -> str | None:
        """
        Replace the placeholders of catalog variables with fresh values.

        A value is generated only for variables whose placeholder occurs
        in the text, one value per variable.

        Args:
            variables: Variable definitions
            text: Text to rewrite

        Returns:
            The rewritten text
        """
        if text is None:
            return None
        for variable in variables:
            placeholder = variable.placeholder
            if placeholder in text:
                text = text.replace(placeholder, self.resolve(variable))
        return text

    def _resolve_string(self, variable: Variable) -> str:
        if variable.string_kind == StringKind.CUSTOM:
            characters = variable.string_chars or ""
        else:
            characters = _CHARACTERS[variable.string_kind]
        return "".join(self.rng.choice(characters) for _ in range(variable.string_length))

    def _resolve_date(self, variable: Variable) -> str:
        if variable.date_kind == DateKind.RANGE:
            span = (variable.max_date - variable.min_date).total_seconds()
            value = variable.min_date + timedelta(seconds=self.rng.uniform(0, span))
        elif variable.date_kind == DateKind.OFFSET:
            unit = _OFFSET_UNITS[variable.date_offset_unit]
            value = self.clock() + timedelta(**{unit: variable.date_offset})
        else:
            value = self.clock()
        return value.strftime(variable.date_pattern)

    def _resolve_sequence(self, variable: Variable) -> str:
        value = self._sequences.get(variable.name, variable.sequence_start)
        self._sequences[variable.name] = value + variable.sequence_step
        if variable.sequence_padding:
            return f"{value:0{variable.sequence_padding}d}"
        return str(value)
