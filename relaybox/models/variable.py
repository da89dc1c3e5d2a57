"""
Variable definition models.

Variables are referenced in template payloads as ``${name}`` and get a
value generated from their definition.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VariableKind(str, Enum):
    """Kinds of variable value generators."""

    STRING = "STRING"
    INT = "INT"
    DATE = "DATE"
    LIST = "LIST"
    SEQUENCE = "SEQUENCE"


class StringKind(str, Enum):
    """Character sets for STRING variables."""

    ALPHANUMERIC = "ALPHANUMERIC"
    ALPHABETIC = "ALPHABETIC"
    NUMERIC = "NUMERIC"
    CUSTOM = "CUSTOM"


class DateKind(str, Enum):
    """How DATE variables pick their value."""

    STANDARD = "STANDARD"  # Now
    RANGE = "RANGE"  # Random date between min_date and max_date
    OFFSET = "OFFSET"  # Now shifted by date_offset units


class DateOffsetUnit(str, Enum):
    """Units of DATE offsets."""

    SECONDS = "SECONDS"
    MINUTES = "MINUTES"
    HOURS = "HOURS"
    DAYS = "DAYS"


class Variable(BaseModel):
    """A variable definition from the variable catalog."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Variable name")
    kind: VariableKind = Field(description="Value generator kind")
    system: bool = Field(default=False, description="Built-in variable")

    # STRING
    string_kind: StringKind = Field(default=StringKind.ALPHANUMERIC)
    string_length: int = Field(default=16, ge=1)
    string_chars: str | None = Field(default=None, description="Characters of CUSTOM strings")

    # INT
    min_int: int = Field(default=0)
    max_int: int = Field(default=9999999)

    # DATE
    date_kind: DateKind = Field(default=DateKind.STANDARD)
    date_pattern: str = Field(default="%Y-%m-%d %H:%M:%S", description="strftime pattern")
    min_date: datetime | None = None
    max_date: datetime | None = None
    date_offset: int = Field(default=0)
    date_offset_unit: DateOffsetUnit = Field(default=DateOffsetUnit.DAYS)

    # LIST
    list_values: list[str] = Field(default_factory=list)

    # SEQUENCE
    sequence_start: int = Field(default=1)
    sequence_step: int = Field(default=1)
    sequence_padding: int = Field(default=0, ge=0, description="Zero padded width, 0 = none")

    @field_validator(
        "kind", "string_kind", "date_kind", "date_offset_unit", mode="before"
    )
    @classmethod
    def normalize_enums(cls, v):
        """Accept enum values in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def check_kind_parameters(self) -> "Variable":
        """Reject definitions that cannot generate a value."""
        if self.kind == VariableKind.STRING:
            if self.string_kind == StringKind.CUSTOM and not self.string_chars:
                raise ValueError(f"Variable '{self.name}': CUSTOM strings need string_chars")
        elif self.kind == VariableKind.INT:
            if self.min_int > self.max_int:
                raise ValueError(f"Variable '{self.name}': min_int is greater than max_int")
        elif self.kind == VariableKind.DATE:
            if self.date_kind == DateKind.RANGE:
                if self.min_date is None or self.max_date is None:
                    raise ValueError(f"Variable '{self.name}': RANGE dates need min_date and max_date")
                if self.min_date > self.max_date:
                    raise ValueError(f"Variable '{self.name}': min_date is after max_date")
        elif self.kind == VariableKind.LIST:
            if not self.list_values:
                raise ValueError(f"Variable '{self.name}': LIST variables need list_values")
        return self

    @property
    def placeholder(self) -> str:
        """Get the text replaced by this variable's value."""
        return build_placeholder(self.name)


def build_placeholder(name: str) -> str:
    """Get the placeholder text for a variable name."""
    return "${" + name + "}"
