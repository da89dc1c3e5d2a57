"""
Configuration models for Relaybox.

Supports configuration via YAML file, environment variables, or programmatic setup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkspaceConfig(BaseModel):
    """Where templates, variables and sessions are defined."""

    scripts_dir: str = Field(
        default="./scripts",
        description="Directory searched for scripts given by name"
    )
    templates_dir: str = Field(
        default="./templates",
        description="Root directory of the message templates"
    )
    variables_file: str = Field(
        default="./variables.yaml",
        description="YAML file with the variable definitions"
    )
    sessions_file: str = Field(
        default="./sessions.yaml",
        description="YAML file with the messaging sessions"
    )


class ExecutionConfig(BaseModel):
    """Script execution defaults."""

    simulation: bool = Field(
        default=False,
        description="Run scripts without sending messages or sleeping"
    )
    max_messages: int = Field(
        default=0,
        ge=0,
        description="Stop after this many messages (0 = unbounded)"
    )
    clear_logs_before_execution: bool = Field(
        default=True,
        description="Clear the execution log before each run"
    )
    seed: int | None = Field(
        default=None,
        description="Seed of the run random source (None = time based)"
    )


class HistoryConfig(BaseModel):
    """Execution history configuration."""

    enabled: bool = Field(
        default=True,
        description="Record runs and their events"
    )
    directory: str = Field(
        default="./.relaybox",
        description="Directory of the history database"
    )
    retention_days: int = Field(
        default=30,
        ge=1,
        description="Days to retain finished runs"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level"
    )
    file: str | None = Field(
        default=None,
        description="Log file path (None = console only)"
    )
    json_format: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )


class RelayboxConfig(BaseSettings):
    """
    Main Relaybox configuration.

    Configuration can be loaded from:
    1. YAML file (relaybox.yaml or config.yaml)
    2. Environment variables (RELAYBOX_* prefix)
    3. Programmatic setup
    """

    model_config = SettingsConfigDict(
        env_prefix="RELAYBOX_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "RelayboxConfig":
        """
        Load configuration from file and environment.

        Priority (highest to lowest):
        1. Environment variables
        2. Specified config file
        3. Default config files (relaybox.yaml, config.yaml)
        4. Default values
        """
        config_data: dict = {}

        if config_path:
            config_file = Path(config_path)
            if config_file.exists():
                config_data = cls._load_yaml(config_file)
        else:
            for filename in ["relaybox.yaml", "config.yaml", "relaybox.yml", "config.yml"]:
                config_file = Path(filename)
                if config_file.exists():
                    config_data = cls._load_yaml(config_file)
                    break

        return cls(**config_data)

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        """Load YAML configuration file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if data else {}

    def save(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )

    def get_history_dir(self) -> Path:
        """Get the history directory, creating it if necessary."""
        history_dir = Path(self.history.directory)
        history_dir.mkdir(parents=True, exist_ok=True)
        return history_dir
