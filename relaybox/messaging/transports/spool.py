"""
Directory spool transport.

Every destination is a sub-directory of the spool directory and every
message is written to it as one JSON file. Other programs pick the files
up from there.
"""

from __future__ import annotations

import base64
import json
from pathlib import Path

from relaybox.messaging.base import (
    ClientType,
    ConnectionFailedError,
    Destination,
    DestinationKind,
    MessagingConnection,
    MessagingSession,
    SendError,
)
from relaybox.models.template import Message


class SpoolConnection(MessagingConnection):
    """Connection of a spool session."""

    def __init__(
        self,
        session_name: str,
        client_type: ClientType,
        directory: Path,
        create: bool = True,
        declared: dict[DestinationKind, list[str]] | None = None,
    ):
        super().__init__(session_name, client_type)
        self.directory = directory
        self.create = create
        self.declared = declared or {}
        self._sequence = 0

    def _open(self) -> None:
        if self.directory.exists() and not self.directory.is_dir():
            raise ConnectionFailedError(f"Spool path is not a directory: {self.directory}")
        if not self.directory.exists() and not self.create:
            raise ConnectionFailedError(f"Spool directory does not exist: {self.directory}")
        if not self.create:
            return

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for kind, names in self.declared.items():
                for name in names:
                    self._destination_dir(kind, name).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectionFailedError(f"Cannot prepare spool directory {self.directory}: {e}") from e

    def _close(self) -> None:
        pass

    def _lookup_destination(self, name: str) -> Destination | None:
        for kind in DestinationKind:
            if self._destination_dir(kind, name).is_dir():
                return Destination(name=name, kind=kind)
        return None

    def _deliver(self, destination: Destination, message: Message) -> None:
        self._sequence += 1
        stamp = message.timestamp.strftime("%Y%m%d_%H%M%S_%f") if message.timestamp else "0"
        path = self._destination_dir(destination.kind, destination.name) / (
            f"{stamp}_{self._sequence:06d}_{message.message_id[:8]}.json"
        )

        data = message.model_dump(mode="json", exclude={"data"})
        if message.data is not None:
            data["data"] = base64.b64encode(message.data).decode("ascii")

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            raise SendError(f"Cannot write {path}: {e}") from e

    def _destination_dir(self, kind: DestinationKind, name: str) -> Path:
        return self.directory / kind.value.lower() / name


class SpoolSession(MessagingSession):
    """
    Session writing messages to a spool directory.

    Layout: ``<directory>/queue/<name>/`` and ``<directory>/topic/<name>/``.
    """

    kind = "spool"

    def __init__(
        self,
        name: str,
        directory: str | Path,
        create: bool = True,
        queues: list[str] | None = None,
        topics: list[str] | None = None,
        description: str = "",
    ):
        """
        Initialize the session.

        Args:
            name: Session name
            directory: Spool directory
            create: Create the spool and declared destination directories on connect
            queues: Queue names to declare
            topics: Topic names to declare
            description: Free text description
        """
        super().__init__(name, description)
        self.directory = Path(directory)
        self.create = create
        self.declared = {
            DestinationKind.QUEUE: list(queues or []),
            DestinationKind.TOPIC: list(topics or []),
        }

    def _create_connection(self, client_type: ClientType) -> SpoolConnection:
        return SpoolConnection(
            self.name,
            client_type,
            self.directory,
            create=self.create,
            declared=self.declared,
        )
