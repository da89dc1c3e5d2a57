"""
Base classes for messaging sessions.

A session is a named handle on a broker endpoint. It hands out one
connection per client type; connections look up destinations, build
messages and send them. Transports subclass MessagingSession and
MessagingConnection.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from relaybox.models.template import Message, MessageType

logger = logging.getLogger(__name__)


class MessagingError(Exception):
    """Base class of transport errors."""


class ConnectionFailedError(MessagingError):
    """Raised when a connection cannot be opened."""


class SendError(MessagingError):
    """Raised when a message cannot be sent."""


class ClientType(str, Enum):
    """Users of a session connection."""

    GUI = "GUI"
    SCRIPT_EXEC = "SCRIPT_EXEC"


class DestinationKind(str, Enum):
    """Destination kinds."""

    QUEUE = "QUEUE"
    TOPIC = "TOPIC"


class Destination(BaseModel):
    """A named destination of a connection."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Destination name")
    kind: DestinationKind = Field(default=DestinationKind.QUEUE)


class MessagingConnection(ABC):
    """
    A connection to a broker.

    Subclasses must implement:
    - _open(): Open the underlying connection
    - _close(): Close it
    - _lookup_destination(): Find a destination by name
    - _deliver(): Hand a message to the broker
    """

    def __init__(self, session_name: str, client_type: ClientType):
        """
        Initialize the connection.

        Args:
            session_name: Name of the owning session
            client_type: User of this connection
        """
        self.session_name = session_name
        self.client_type = client_type
        self._connected = False
        self.connected_at: datetime | None = None

    @property
    def is_connected(self) -> bool:
        """Check if the connection is open."""
        return self._connected

    def connect(self) -> None:
        """
        Open the connection.

        Raises:
            ConnectionFailedError: If the broker cannot be reached
        """
        if self._connected:
            return
        logger.debug("Connecting session '%s' (%s)", self.session_name, self.client_type.value)
        self._open()
        self._connected = True
        self.connected_at = datetime.now()

    def disconnect(self) -> None:
        """Close the connection."""
        if not self._connected:
            return
        logger.debug("Disconnecting session '%s' (%s)", self.session_name, self.client_type.value)
        self._close()
        self._connected = False
        self.connected_at = None

    def get_destination(self, name: str) -> Destination | None:
        """
        Find a destination by name.

        Args:
            name: Destination name

        Returns:
            The destination or None if unknown
        """
        self._ensure_connected()
        return self._lookup_destination(name)

    def create_message(self, message_type: MessageType) -> Message:
        """
        Create an empty message of the given type.

        Args:
            message_type: Body type

        Returns:
            New message
        """
        self._ensure_connected()
        return Message(message_type=message_type)

    def send(self, message: Message) -> None:
        """
        Send a message to its destination.

        Args:
            message: Message with its destination set

        Raises:
            SendError: If the message cannot be delivered
        """
        self._ensure_connected()
        if not message.destination:
            raise SendError("Message has no destination")
        destination = self._lookup_destination(message.destination)
        if destination is None:
            raise SendError(f"Unknown destination: {message.destination}")

        message.timestamp = datetime.now()
        self._deliver(destination, message)
        logger.debug("Message %s sent to '%s'", message.message_id, destination.name)

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise MessagingError(f"Session '{self.session_name}' is not connected")

    @abstractmethod
    def _open(self) -> None:
        """Open the underlying connection."""
        pass

    @abstractmethod
    def _close(self) -> None:
        """Close the underlying connection."""
        pass

    @abstractmethod
    def _lookup_destination(self, name: str) -> Destination | None:
        """Find a destination by name."""
        pass

    @abstractmethod
    def _deliver(self, destination: Destination, message: Message) -> None:
        """Hand a message to the broker."""
        pass


class MessagingSession(ABC):
    """
    Base class for all messaging sessions.

    Subclasses set ``kind`` and implement _create_connection().
    """

    kind: str

    def __init__(self, name: str, description: str = ""):
        """
        Initialize the session.

        Args:
            name: Session name, unique in a registry
            description: Free text description
        """
        self.name = name
        self.description = description
        self._connections: dict[ClientType, MessagingConnection] = {}

    def get_connection(self, client_type: ClientType = ClientType.SCRIPT_EXEC) -> MessagingConnection:
        """
        Get the connection of a client type, creating it on first use.

        The connection is not opened here.

        Args:
            client_type: User of the connection

        Returns:
            The connection, the same instance on every call
        """
        connection = self._connections.get(client_type)
        if connection is None:
            connection = self._create_connection(client_type)
            self._connections[client_type] = connection
        return connection

    def disconnect_all(self) -> None:
        """Close every open connection of the session."""
        for connection in self._connections.values():
            connection.disconnect()

    def get_info(self) -> dict[str, Any]:
        """Get a description of the session."""
        return {
            "name": self.name,
            "kind": self.kind,
            "description": self.description,
            "connected": any(c.is_connected for c in self._connections.values()),
        }

    @abstractmethod
    def _create_connection(self, client_type: ClientType) -> MessagingConnection:
        """Create a new, unopened connection."""
        pass
