"""Reference messaging transports."""

from relaybox.messaging.transports.memory import InMemoryBroker, InMemorySession
from relaybox.messaging.transports.spool import SpoolSession

__all__ = [
    "InMemoryBroker",
    "InMemorySession",
    "SpoolSession",
]
