"""
Variable catalog.

Holds the variable definitions templates may reference. A few system
variables are always defined; user variables come from a YAML file:

.. code-block:: yaml

    variables:
      - name: orderId
        kind: SEQUENCE
        sequence_start: 1000
      - name: country
        kind: LIST
        list_values: [FR, DE, IT]
"""

from __future__ import annotations

from pathlib import Path

import yaml

from relaybox.models.variable import DateKind, StringKind, Variable, VariableKind


def system_variables() -> list[Variable]:
    """Get the built-in variables."""
    return [
        Variable(name="currentDate", kind=VariableKind.DATE, system=True,
                 date_kind=DateKind.STANDARD, date_pattern="%Y-%m-%d"),
        Variable(name="currentTime", kind=VariableKind.DATE, system=True,
                 date_kind=DateKind.STANDARD, date_pattern="%H:%M:%S"),
        Variable(name="currentTimestamp", kind=VariableKind.DATE, system=True,
                 date_kind=DateKind.STANDARD, date_pattern="%Y-%m-%d-%H:%M:%S.%f"),
        Variable(name="int", kind=VariableKind.INT, system=True,
                 min_int=0, max_int=9999999),
        Variable(name="string", kind=VariableKind.STRING, system=True,
                 string_kind=StringKind.ALPHANUMERIC, string_length=16),
    ]


class VariableCatalog:
    """
    Catalog of variable definitions.

    Example:
        >>> catalog = VariableCatalog()
        >>> catalog.load_file("variables.yaml")
        >>> variable = catalog.get("orderId")
    """

    def __init__(self, variables: list[Variable] | None = None, include_system: bool = True):
        """
        Initialize the catalog.

        Args:
            variables: Initial user variables
            include_system: Define the built-in variables
        """
        self._variables: dict[str, Variable] = {}
        if include_system:
            for variable in system_variables():
                self._variables[variable.name] = variable
        for variable in variables or []:
            self.register(variable)

    def register(self, variable: Variable) -> None:
        """
        Add or replace a user variable.

        Args:
            variable: Variable definition

        Raises:
            ValueError: If the name belongs to a system variable
        """
        existing = self._variables.get(variable.name)
        if existing is not None and existing.system and not variable.system:
            raise ValueError(f"Cannot redefine system variable '{variable.name}'")
        self._variables[variable.name] = variable

    def get(self, name: str) -> Variable | None:
        """Get a variable definition by name."""
        return self._variables.get(name)

    def all(self) -> list[Variable]:
        """Get every variable definition, system variables first."""
        return sorted(self._variables.values(), key=lambda v: (not v.system, v.name))

    def load_file(self, path: str | Path) -> int:
        """
        Register the variables defined in a YAML file.

        Args:
            path: Path to the variables file

        Returns:
            Number of variables loaded
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        definitions = data.get("variables", []) if isinstance(data, dict) else data
        for definition in definitions:
            self.register(Variable.model_validate(definition))
        return len(definitions)

    def __contains__(self, name: str) -> bool:
        return name in self._variables

    def __len__(self) -> int:
        return len(self._variables)
