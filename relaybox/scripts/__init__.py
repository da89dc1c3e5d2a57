"""
Script definitions for Relaybox.

Provides YAML loading and validation of scripts.
"""

from relaybox.scripts.loader import ScriptLoader

__all__ = [
    "ScriptLoader",
]
