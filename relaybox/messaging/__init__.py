"""
Messaging package for Relaybox.

Provides the session/connection abstraction used by the script engine
and the reference transports:
- memory: in-process destinations
- spool: one JSON file per message in a directory tree
"""

from relaybox.messaging.base import (
    ClientType,
    ConnectionFailedError,
    Destination,
    DestinationKind,
    MessagingConnection,
    MessagingError,
    MessagingSession,
    SendError,
)
from relaybox.messaging.registry import SessionRegistry

__all__ = [
    "ClientType",
    "ConnectionFailedError",
    "Destination",
    "DestinationKind",
    "MessagingConnection",
    "MessagingError",
    "MessagingSession",
    "SendError",
    "SessionRegistry",
]
