"""
Catalogs for Relaybox.

Provides the template and variable catalogs scripts are resolved against.
"""

from relaybox.catalog.templates import FileTemplateCatalog, TemplateCatalog
from relaybox.catalog.variables import VariableCatalog, system_variables

__all__ = [
    "FileTemplateCatalog",
    "TemplateCatalog",
    "VariableCatalog",
    "system_variables",
]
