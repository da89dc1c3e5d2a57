"""
Relaybox - scripted message posting for messaging sessions

Runs declarative scripts that post messages built from templates to
queues and topics, with variable substitution, data-file driven
iterations, pauses, simulation and message-count limits.
"""

__version__ = "0.1.0"

from relaybox.models.config import RelayboxConfig

__all__ = [
    "__version__",
    "RelayboxConfig",
]
