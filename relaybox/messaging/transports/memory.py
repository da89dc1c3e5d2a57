"""
In-process messaging transport.

Messages are kept in memory, one list per destination. Useful for dry
runs and tests.
"""

from __future__ import annotations

import threading
from collections import defaultdict

from relaybox.messaging.base import (
    ClientType,
    Destination,
    DestinationKind,
    MessagingConnection,
    MessagingSession,
)
from relaybox.models.template import Message


class InMemoryBroker:
    """Holds the messages sent to in-memory destinations."""

    def __init__(self):
        """Initialize an empty broker."""
        self._messages: dict[str, list[Message]] = defaultdict(list)
        self._lock = threading.Lock()

    def put(self, destination: str, message: Message) -> None:
        """Store a message."""
        with self._lock:
            self._messages[destination].append(message)

    def get_messages(self, destination: str) -> list[Message]:
        """Get the messages sent to a destination, oldest first."""
        with self._lock:
            return list(self._messages.get(destination, []))

    def count(self, destination: str | None = None) -> int:
        """Count messages of a destination, or of all destinations."""
        with self._lock:
            if destination is not None:
                return len(self._messages.get(destination, []))
            return sum(len(m) for m in self._messages.values())

    def clear(self) -> None:
        """Drop every stored message."""
        with self._lock:
            self._messages.clear()


class InMemoryConnection(MessagingConnection):
    """Connection of an in-memory session."""

    def __init__(
        self,
        session_name: str,
        client_type: ClientType,
        destinations: dict[str, Destination],
        broker: InMemoryBroker,
    ):
        super().__init__(session_name, client_type)
        self._destinations = destinations
        self.broker = broker

    def _open(self) -> None:
        pass

    def _close(self) -> None:
        pass

    def _lookup_destination(self, name: str) -> Destination | None:
        return self._destinations.get(name)

    def _deliver(self, destination: Destination, message: Message) -> None:
        self.broker.put(destination.name, message)


class InMemorySession(MessagingSession):
    """
    Session backed by an InMemoryBroker.

    Example:
        >>> session = InMemorySession("local", queues=["Q1"], topics=["T1"])
        >>> connection = session.get_connection()
        >>> connection.connect()
    """

    kind = "memory"

    def __init__(
        self,
        name: str,
        queues: list[str] | None = None,
        topics: list[str] | None = None,
        broker: InMemoryBroker | None = None,
        description: str = "",
    ):
        """
        Initialize the session.

        Args:
            name: Session name
            queues: Queue names
            topics: Topic names
            broker: Shared broker (a private one is created if not provided)
            description: Free text description
        """
        super().__init__(name, description)
        self.broker = broker or InMemoryBroker()
        self.destinations: dict[str, Destination] = {}
        for queue in queues or []:
            self.destinations[queue] = Destination(name=queue, kind=DestinationKind.QUEUE)
        for topic in topics or []:
            self.destinations[topic] = Destination(name=topic, kind=DestinationKind.TOPIC)

    def _create_connection(self, client_type: ClientType) -> InMemoryConnection:
        return InMemoryConnection(self.name, client_type, self.destinations, self.broker)
