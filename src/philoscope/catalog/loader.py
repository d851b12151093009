"""
Load and validate philosophy catalogs.

The schema, not the file format, is the contract: the same document can be
written as YAML, JSON or TOML. Any schema violation raises CatalogError;
a broken catalog is fatal at startup. Rule text is not compiled here; a
malformed rule only degrades scoring at evaluation time.

Document shape:
    version: "1"
    philosophies:
      - id: passive_indexing_bogleheads
        display_name: Passive Indexing
        detection:
          weight: 1.0
          signals:
            - {name: ..., rule: ..., points: 30}
        exclusions: ["pct_single_stocks >= 0.50"]
        visual_motifs: [{type: allocation_donut, caption: ...}]
"""

import json
import logging
import math
import threading
import tomllib
from functools import lru_cache
from importlib import resources
from numbers import Real
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

import yaml

from philoscope.catalog.schema import (
    PhilosophyCatalog,
    PhilosophyDefinition,
    SignalDefinition,
    VisualMotif,
)
from philoscope.constants import CATALOG_SUFFIXES, DEFAULT_CATALOG_FILENAME
from philoscope.errors import CatalogError

logger = logging.getLogger(__name__)


# =============================================================================
# DOCUMENT PARSING
# =============================================================================

def read_document(text: str, fmt: str) -> Any:
    """
    Decode catalog text in the given format ("yaml", "json" or "toml").

    Raises:
        CatalogError: If the text cannot be decoded.
    """
    try:
        if fmt == "yaml":
            return yaml.safe_load(text)
        if fmt == "json":
            return json.loads(text)
        if fmt == "toml":
            return tomllib.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise CatalogError(f"Cannot decode {fmt} catalog: {exc}") from exc
    raise CatalogError(f"Unsupported catalog format: {fmt}")


def parse_catalog(document: Any, source: Optional[str] = None) -> PhilosophyCatalog:
    """
    Validate a decoded catalog document and build the immutable catalog.

    Args:
        document: Decoded document (dict with a "philosophies" list).
        source: Where the document came from, for error messages.

    Returns:
        PhilosophyCatalog in declaration order.

    Raises:
        CatalogError: On any schema violation.
    """
    where = source or "<catalog>"
    if not isinstance(document, Mapping):
        raise CatalogError(f"{where}: top level must be a mapping, got {type(document).__name__}")
    entries = document.get("philosophies")
    if not isinstance(entries, list):
        raise CatalogError(f"{where}: 'philosophies' must be a list")

    philosophies: List[PhilosophyDefinition] = []
    seen = set()
    for position, entry in enumerate(entries):
        philosophy = _parse_philosophy(entry, f"{where}: philosophies[{position}]")
        if philosophy.id in seen:
            raise CatalogError(f"{where}: duplicate philosophy id {philosophy.id!r}")
        seen.add(philosophy.id)
        philosophies.append(philosophy)

    version = document.get("version", "")
    return PhilosophyCatalog(
        philosophies=tuple(philosophies),
        version="" if version is None else str(version),
        source=source,
    )


def _parse_philosophy(entry: Any, where: str) -> PhilosophyDefinition:
    if not isinstance(entry, Mapping):
        raise CatalogError(f"{where}: entry must be a mapping")

    philosophy_id = entry.get("id")
    if not isinstance(philosophy_id, str) or not philosophy_id.strip():
        raise CatalogError(f"{where}: 'id' must be a non-empty string")
    where = f"{where} ({philosophy_id})"

    display_name = entry.get("display_name")
    if not isinstance(display_name, str) or not display_name.strip():
        raise CatalogError(f"{where}: 'display_name' must be a non-empty string")

    detection = entry.get("detection") or {}
    if not isinstance(detection, Mapping):
        raise CatalogError(f"{where}: 'detection' must be a mapping")
    raw_signals = detection.get("signals") or []
    if not isinstance(raw_signals, list):
        raise CatalogError(f"{where}: 'detection.signals' must be a list")
    weight = detection.get("weight", 1.0)
    if not _is_number(weight):
        raise CatalogError(f"{where}: 'detection.weight' must be a finite number")

    exclusions = entry.get("exclusions") or []
    if not isinstance(exclusions, list) or not all(isinstance(r, str) for r in exclusions):
        raise CatalogError(f"{where}: 'exclusions' must be a list of rule strings")

    raw_motifs = entry.get("visual_motifs") or []
    if not isinstance(raw_motifs, list):
        raise CatalogError(f"{where}: 'visual_motifs' must be a list")

    description = entry.get("description") or ""
    return PhilosophyDefinition(
        id=philosophy_id,
        display_name=display_name,
        signals=tuple(
            _parse_signal(raw, f"{where}: signals[{i}]") for i, raw in enumerate(raw_signals)
        ),
        exclusions=tuple(exclusions),
        weight=float(weight),
        description=str(description).strip(),
        visual_motifs=tuple(
            _parse_motif(raw, f"{where}: visual_motifs[{i}]") for i, raw in enumerate(raw_motifs)
        ),
    )


def _parse_signal(raw: Any, where: str) -> SignalDefinition:
    if not isinstance(raw, Mapping):
        raise CatalogError(f"{where}: signal must be a mapping")
    name = raw.get("name")
    rule = raw.get("rule")
    points = raw.get("points")
    if not isinstance(name, str) or not name.strip():
        raise CatalogError(f"{where}: 'name' must be a non-empty string")
    if not isinstance(rule, str):
        raise CatalogError(f"{where} ({name}): 'rule' must be a string")
    if not _is_number(points) or points <= 0:
        raise CatalogError(f"{where} ({name}): 'points' must be a positive finite number")
    return SignalDefinition(name=name, rule=rule, points=points)


def _parse_motif(raw: Any, where: str) -> VisualMotif:
    if not isinstance(raw, Mapping) or not isinstance(raw.get("type"), str):
        raise CatalogError(f"{where}: motif must be a mapping with a string 'type'")
    return VisualMotif(type=raw["type"], caption=str(raw.get("caption") or ""))


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


# =============================================================================
# LOADING
# =============================================================================

def load_catalog(path: Union[str, Path]) -> PhilosophyCatalog:
    """
    Load a catalog file; the format is chosen by suffix (.yml/.yaml/.json/.toml).

    Raises:
        CatalogError: If the file is missing, undecodable or invalid.
    """
    path = Path(path)
    fmt = CATALOG_SUFFIXES.get(path.suffix.lower())
    if fmt is None:
        raise CatalogError(f"Unsupported catalog file type: {path.suffix or path.name}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogError(f"Cannot read catalog {path}: {exc}") from exc

    catalog = parse_catalog(read_document(text, fmt), source=str(path))
    logger.info("Loaded %d philosophies from %s", len(catalog), path)
    return catalog


@lru_cache(maxsize=1)
def load_default_catalog() -> PhilosophyCatalog:
    """Load the bundled catalog once per process."""
    resource = resources.files("philoscope.catalog").joinpath("data").joinpath(DEFAULT_CATALOG_FILENAME)
    text = resource.read_text(encoding="utf-8")
    catalog = parse_catalog(read_document(text, "yaml"), source=DEFAULT_CATALOG_FILENAME)
    logger.info("Loaded %d philosophies from bundled catalog v%s", len(catalog), catalog.version)
    return catalog


# =============================================================================
# HOT RELOAD
# =============================================================================

class CatalogHandle:
    """
    Single reference to the active catalog.

    Readers take one snapshot (handle.current) per scoring call, so an
    in-flight call always sees one consistent catalog. swap() and reload()
    replace the reference in one assignment; catalogs themselves are never
    mutated.
    """

    def __init__(self, catalog: PhilosophyCatalog):
        self._catalog = catalog
        self._write_lock = threading.Lock()

    @property
    def current(self) -> PhilosophyCatalog:
        return self._catalog

    def swap(self, catalog: PhilosophyCatalog) -> PhilosophyCatalog:
        """Install a new catalog and return the previous one."""
        with self._write_lock:
            previous = self._catalog
            self._catalog = catalog
        return previous

    def reload(self, path: Union[str, Path]) -> PhilosophyCatalog:
        """
        Load a catalog from disk and install it.

        On CatalogError the active catalog is left untouched and the error
        propagates.
        """
        catalog = load_catalog(path)
        self.swap(catalog)
        return catalog
