"""
Script definition models.

A script is an ordered list of steps plus the global variables and data
files the steps refer to. Scripts are immutable once loaded.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class StepKind(str, Enum):
    """Kinds of script steps."""

    REGULAR = "REGULAR"
    PAUSE = "PAUSE"


class GlobalVariable(BaseModel):
    """A variable resolved once per run and shared by every step."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Name of a variable defined in the variable catalog")
    constant_value: str | None = Field(
        default=None,
        description="Fixed value for the run (generated from the definition if absent)"
    )


class DataFile(BaseModel):
    """A delimited text file feeding per-line variable values to a step."""

    model_config = ConfigDict(frozen=True)

    variable_prefix: str = Field(description="Namespace of the variables read from the file")
    file_name: str = Field(description="Path of the data file")
    delimiter: str = Field(default=",", min_length=1, description="Field delimiter")
    variable_names: str = Field(description="Comma separated variable names, in column order")
    encoding: str = Field(default="utf-8", description="Text encoding of the file")

    def parsed_variable_names(self) -> list[str]:
        """Get the column variable names, namespaced with the prefix."""
        return [
            f"{self.variable_prefix}.{name.strip()}"
            for name in self.variable_names.split(",")
        ]


class Step(BaseModel):
    """A single unit of a script: send messages or pause."""

    model_config = ConfigDict(frozen=True)

    kind: StepKind = Field(default=StepKind.REGULAR, description="Step kind")

    # REGULAR steps
    session_name: str | None = Field(default=None, description="Session to post with")
    destination_name: str | None = Field(default=None, description="Destination to post to")
    template_name: str | None = Field(default=None, description="Template path or folder name")
    folder: bool = Field(default=False, description="template_name designates a template folder")
    iterations: int = Field(default=1, ge=1, description="Messages posted per template (and data line)")
    pause_secs_after: int | None = Field(default=None, ge=0, description="Delay after each message")
    variable_prefix: str | None = Field(default=None, description="Prefix of the data file feeding this step")

    # PAUSE steps
    pause_secs: int | None = Field(default=None, ge=0, description="Delay of a pause step")

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v):
        """Accept step kinds in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def check_kind_fields(self) -> "Step":
        """Make sure each kind carries the fields it needs."""
        if self.kind == StepKind.REGULAR:
            missing = [
                field for field in ("session_name", "destination_name", "template_name")
                if not getattr(self, field)
            ]
            if missing:
                raise ValueError(f"REGULAR step requires {', '.join(missing)}")
        elif self.pause_secs is None:
            raise ValueError("PAUSE step requires pause_secs")
        return self

    @classmethod
    def regular(
        cls,
        session_name: str,
        destination_name: str,
        template_name: str,
        iterations: int = 1,
        folder: bool = False,
        pause_secs_after: int | None = None,
        variable_prefix: str | None = None,
    ) -> "Step":
        """Build a message-sending step."""
        return cls(
            kind=StepKind.REGULAR,
            session_name=session_name,
            destination_name=destination_name,
            template_name=template_name,
            iterations=iterations,
            folder=folder,
            pause_secs_after=pause_secs_after,
            variable_prefix=variable_prefix,
        )

    @classmethod
    def pause(cls, pause_secs: int) -> "Step":
        """Build a pause step."""
        return cls(kind=StepKind.PAUSE, pause_secs=pause_secs)

    def describe(self) -> str:
        """Get a one-line description of the step."""
        if self.kind == StepKind.PAUSE:
            return f"Pause {self.pause_secs}s"

        template = f"folder '{self.template_name}'" if self.folder else f"'{self.template_name}'"
        text = (
            f"{self.iterations} x {template} -> "
            f"{self.session_name}:{self.destination_name}"
        )
        if self.variable_prefix:
            text += f" [data file '{self.variable_prefix}']"
        if self.pause_secs_after:
            text += f" (pause {self.pause_secs_after}s after)"
        return text


class Script(BaseModel):
    """A complete script definition."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Script name")
    steps: list[Step] = Field(default_factory=list, description="Steps, executed in order")
    global_variables: list[GlobalVariable] = Field(
        default_factory=list,
        description="Variables resolved once per run"
    )
    data_files: list[DataFile] = Field(default_factory=list, description="Declared data files")

    @model_validator(mode="after")
    def check_unique_prefixes(self) -> "Script":
        """Data file prefixes identify data files, so they must be unique."""
        prefixes = [df.variable_prefix for df in self.data_files]
        duplicates = sorted({p for p in prefixes if prefixes.count(p) > 1})
        if duplicates:
            raise ValueError(f"Duplicate data file prefixes: {', '.join(duplicates)}")
        return self

    def find_data_file(self, variable_prefix: str) -> DataFile | None:
        """
        Find a data file by its variable prefix.

        Args:
            variable_prefix: Prefix declared by the step

        Returns:
            The data file or None if not declared
        """
        for data_file in self.data_files:
            if data_file.variable_prefix == variable_prefix:
                return data_file
        return None

    def get_sessions_used(self) -> set[str]:
        """Get the names of all sessions used by the script."""
        return {
            step.session_name for step in self.steps
            if step.kind == StepKind.REGULAR and step.session_name
        }
