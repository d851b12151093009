"""
Philosophy catalog: schema, loaders, and the bundled v1 catalog.
"""

from philoscope.catalog.schema import (
    SignalDefinition,
    VisualMotif,
    PhilosophyDefinition,
    PhilosophyCatalog,
)
from philoscope.catalog.loader import (
    CatalogHandle,
    load_catalog,
    load_default_catalog,
    parse_catalog,
    read_document,
)

__all__ = [
    "SignalDefinition",
    "VisualMotif",
    "PhilosophyDefinition",
    "PhilosophyCatalog",
    "CatalogHandle",
    "load_catalog",
    "load_default_catalog",
    "parse_catalog",
    "read_document",
]
