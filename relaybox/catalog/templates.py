"""
Message template catalog.

Templates are YAML files below a root directory. A template is referenced
by its path relative to the root with a leading slash
(``/orders/new.yaml``); a template folder by its relative directory name
(``orders``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import yaml

from relaybox.models.template import MessageTemplate

TEMPLATE_SUFFIXES = (".yaml", ".yml")


class TemplateCatalog(ABC):
    """Lookup of message templates."""

    @abstractmethod
    def get(self, path: str) -> MessageTemplate | None:
        """
        Get a template by path.

        Args:
            path: Template path

        Returns:
            A fresh template or None if not found
        """
        pass

    @abstractmethod
    def get_folder(self, name: str) -> list[tuple[str, MessageTemplate]] | None:
        """
        Get all templates under a folder.

        Args:
            name: Folder name

        Returns:
            (template name, template) pairs sorted by name, or None if
            the folder does not exist
        """
        pass


class FileTemplateCatalog(TemplateCatalog):
    """
    Template catalog backed by a directory of YAML files.

    Example:
        >>> catalog = FileTemplateCatalog("./templates")
        >>> template = catalog.get("/orders/new.yaml")
        >>> batch = catalog.get_folder("orders")
    """

    def __init__(self, root: str | Path):
        """
        Initialize the catalog.

        Args:
            root: Root directory of the templates
        """
        self.root = Path(root)

    def get(self, path: str) -> MessageTemplate | None:
        file_path = self._resolve(path)
        if file_path is None or not file_path.is_file():
            return None
        if file_path.suffix not in TEMPLATE_SUFFIXES:
            return None
        return self.load_file(file_path)

    def get_folder(self, name: str) -> list[tuple[str, MessageTemplate]] | None:
        folder = self._resolve(name)
        if folder is None or not folder.is_dir():
            return None

        folder_name = name.strip("/")
        return [
            (f"{folder_name}/{file_path.relative_to(folder).as_posix()}", self.load_file(file_path))
            for file_path in self._list_files(folder)
        ]

    def list_names(self) -> list[str]:
        """Get the paths of all templates in the catalog."""
        if not self.root.is_dir():
            return []
        return [
            "/" + file_path.relative_to(self.root).as_posix()
            for file_path in self._list_files(self.root)
        ]

    @staticmethod
    def load_file(path: Path) -> MessageTemplate:
        """
        Load a template from a YAML file.

        Args:
            path: Template file

        Returns:
            Loaded template
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return MessageTemplate.model_validate(data)

    def save(self, path: str, template: MessageTemplate) -> Path:
        """
        Write a template to the catalog.

        Args:
            path: Template path
            template: Template to write

        Returns:
            Path of the written file
        """
        file_path = self._resolve(path)
        if file_path is None:
            raise ValueError(f"Template path outside of the catalog: {path}")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            yaml.dump(
                template.model_dump(mode="json", exclude_defaults=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )
        return file_path

    def _resolve(self, path: str) -> Path | None:
        """Map a catalog path to a file system path inside the root."""
        root = self.root.resolve()
        candidate = (root / path.lstrip("/")).resolve()
        if candidate != root and root not in candidate.parents:
            return None
        return candidate

    @staticmethod
    def _list_files(folder: Path) -> list[Path]:
        return sorted(
            p for p in folder.rglob("*")
            if p.is_file() and p.suffix in TEMPLATE_SUFFIXES
        )
