"""
Script loader for Relaybox.

Loads and validates script definitions from YAML files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from relaybox.core.errors import ScriptLoadError
from relaybox.models.script import Script


class ScriptLoader:
    """
    Loads script definitions from YAML files.

    Relative data file paths are resolved against the directory of the
    script file.

    Example:
        >>> loader = ScriptLoader([Path("./scripts")])
        >>> script = loader.load("orders")
        >>> print(script.name)
    """

    def __init__(self, script_dirs: list[Path] | None = None):
        """
        Initialize the loader.

        Args:
            script_dirs: Directories to search for scripts by name
        """
        self.script_dirs = list(script_dirs or [])

    def load(self, name: str) -> Script:
        """
        Load a script by name or path.

        Args:
            name: Script file path, or name (without extension) in the script directories

        Returns:
            Loaded script

        Raises:
            FileNotFoundError: If the script is not found
            ScriptLoadError: If the script is invalid
        """
        path = Path(name)
        if path.is_file():
            return self.load_file(path)

        for dir_path in self.script_dirs:
            for suffix in (".yaml", ".yml"):
                candidate = dir_path / f"{name}{suffix}"
                if candidate.exists():
                    return self.load_file(candidate)

        raise FileNotFoundError(f"Script not found: {name}")

    def load_file(self, path: str | Path) -> Script:
        """
        Load a script from a file path.

        Args:
            path: Path to YAML file

        Returns:
            Loaded script
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ScriptLoadError(f"Invalid YAML in {path}: {e}") from e

        return self._build(data, path.stem, path.parent)

    def load_from_string(self, content: str, base_dir: Path | None = None) -> Script:
        """
        Load a script from a YAML string.

        Args:
            content: YAML content
            base_dir: Directory relative data file paths are resolved against

        Returns:
            Loaded script
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ScriptLoadError(f"Invalid YAML: {e}") from e
        return self._build(data, "script", base_dir)

    def list_available(self) -> list[str]:
        """
        List all script names found in the script directories.

        Returns:
            Sorted script names
        """
        scripts = set()

        for dir_path in self.script_dirs:
            if not dir_path.exists():
                continue
            for pattern in ("*.yaml", "*.yml"):
                for file_path in dir_path.glob(pattern):
                    scripts.add(file_path.stem)

        return sorted(scripts)

    def _build(self, data: Any, default_name: str, base_dir: Path | None) -> Script:
        """Validate raw YAML data into a Script."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ScriptLoadError("A script must be a mapping")

        data = dict(data)
        data.setdefault("name", default_name)

        if base_dir is not None:
            data_files = []
            for data_file in data.get("data_files") or []:
                if isinstance(data_file, dict) and data_file.get("file_name"):
                    data_file = dict(data_file)
                    file_path = Path(data_file["file_name"])
                    if not file_path.is_absolute():
                        data_file["file_name"] = str(base_dir / file_path)
                data_files.append(data_file)
            data["data_files"] = data_files

        try:
            return Script.model_validate(data)
        except ValidationError as e:
            raise ScriptLoadError(f"Invalid script '{data['name']}': {e}") from e

    @staticmethod
    def dump(script: Script, path: str | Path) -> None:
        """
        Write a script to a YAML file.

        Args:
            script: Script to write
            path: Destination file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                script.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )
