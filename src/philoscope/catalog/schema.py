"""
Philosophy catalog contract definitions.

These dataclasses describe the canonical, read-only shape of the catalog once
it has been loaded and validated. The catalog document itself (YAML, JSON or
TOML) is parsed in philoscope.catalog.loader.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class SignalDefinition:
    """A named rule that adds points when it holds."""

    name: str
    rule: str
    points: float

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class VisualMotif:
    """Presentation metadata. Passed through to consumers, never scored."""

    type: str
    caption: str = ""

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class PhilosophyDefinition:
    """One investment philosophy: signals that support it, rules that rule it out."""

    id: str
    display_name: str
    signals: Tuple[SignalDefinition, ...] = ()
    exclusions: Tuple[str, ...] = ()
    weight: float = 1.0
    description: str = ""
    visual_motifs: Tuple[VisualMotif, ...] = ()

    @property
    def max_points(self) -> float:
        return sum(signal.points for signal in self.signals)

    def rules(self) -> Iterator[Tuple[str, str]]:
        """Yield (kind, rule) for every exclusion and signal rule."""
        for rule in self.exclusions:
            yield "exclusion", rule
        for signal in self.signals:
            yield "signal", signal.rule


@dataclass(frozen=True)
class PhilosophyCatalog:
    """
    Ordered, immutable collection of philosophy definitions.

    Declaration order is significant: it is the tie-break order for equal
    scores.
    """

    philosophies: Tuple[PhilosophyDefinition, ...]
    version: str = ""
    source: Optional[str] = None
    _index: Dict[str, PhilosophyDefinition] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        object.__setattr__(self, "_index", {p.id: p for p in self.philosophies})

    def __len__(self) -> int:
        return len(self.philosophies)

    def __iter__(self) -> Iterator[PhilosophyDefinition]:
        return iter(self.philosophies)

    def __contains__(self, philosophy_id: object) -> bool:
        return philosophy_id in self._index

    def get(self, philosophy_id: str) -> Optional[PhilosophyDefinition]:
        return self._index.get(philosophy_id)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self.philosophies)
