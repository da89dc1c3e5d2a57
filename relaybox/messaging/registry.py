"""
Session registry for looking up messaging sessions by name.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from relaybox.messaging.base import MessagingSession
from relaybox.messaging.transports.memory import InMemoryBroker, InMemorySession
from relaybox.messaging.transports.spool import SpoolSession


class SessionRegistry:
    """
    Registry of messaging sessions.

    Sessions are registered programmatically or loaded from a YAML file:

    .. code-block:: yaml

        sessions:
          - name: local
            kind: memory
            queues: [ORDERS.IN]
          - name: outbox
            kind: spool
            directory: ./spool
            queues: [ORDERS.IN]

    Example:
        >>> registry = SessionRegistry()
        >>> registry.register(InMemorySession("local", queues=["Q1"]))
        >>> session = registry.get("local")
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._sessions: dict[str, MessagingSession] = {}
        # Shared by every memory session loaded from configuration
        self.broker = InMemoryBroker()

    def register(self, session: MessagingSession) -> None:
        """
        Register a session in the registry.

        Args:
            session: Session to register, replacing any session with the same name
        """
        self._sessions[session.name] = session

    def get(self, name: str) -> MessagingSession | None:
        """
        Get a session by name.

        Args:
            name: Session name

        Returns:
            Session or None if not found
        """
        return self._sessions.get(name)

    def get_all(self) -> dict[str, MessagingSession]:
        """Get all registered sessions."""
        return self._sessions.copy()

    def list_names(self) -> list[str]:
        """Get the sorted list of session names."""
        return sorted(self._sessions)

    def load_file(self, path: str | Path) -> int:
        """
        Register the sessions defined in a YAML file.

        Args:
            path: Path to the sessions file

        Returns:
            Number of sessions loaded
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        base_dir = Path(path).parent
        definitions = data.get("sessions", []) if isinstance(data, dict) else data
        for definition in definitions:
            self.register(self._build_session(definition, base_dir))
        return len(definitions)

    def _build_session(self, definition: dict[str, Any], base_dir: Path) -> MessagingSession:
        """Create a session from its YAML definition."""
        definition = dict(definition)
        name = definition.pop("name", None)
        if not name:
            raise ValueError("Session definition without a name")
        kind = definition.pop("kind", "memory")

        if kind == "memory":
            return InMemorySession(
                name,
                queues=definition.get("queues"),
                topics=definition.get("topics"),
                broker=self.broker,
                description=definition.get("description", ""),
            )

        if kind == "spool":
            directory = Path(definition.get("directory", f"./spool/{name}"))
            if not directory.is_absolute():
                directory = base_dir / directory
            return SpoolSession(
                name,
                directory=directory,
                create=definition.get("create", True),
                queues=definition.get("queues"),
                topics=definition.get("topics"),
                description=definition.get("description", ""),
            )

        raise ValueError(f"Session '{name}': unknown kind '{kind}'")
