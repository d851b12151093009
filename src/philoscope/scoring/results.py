"""
Scoring output records.

All records are frozen and serialize to plain JSON (camelCase keys) so a
ComplianceResult can cross a process or network boundary unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from philoscope.catalog.schema import SignalDefinition, VisualMotif
from philoscope.core.features import FeatureVector
from philoscope.utils.serialize import camel_keys, to_jsonable


@dataclass(frozen=True)
class SignalMatch:
    name: str
    points: float
    rule: str

    @classmethod
    def from_definition(cls, signal: SignalDefinition) -> "SignalMatch":
        return cls(name=signal.name, points=signal.points, rule=signal.rule)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "points": to_jsonable(self.points), "rule": self.rule}


@dataclass(frozen=True)
class PhilosophyMatch:
    """How well one portfolio fits one philosophy."""

    id: str
    display_name: str
    score: int
    matched_signals: Tuple[SignalMatch, ...] = ()
    missing_signals: Tuple[SignalMatch, ...] = ()
    is_excluded: bool = False
    exclusion_reason: Optional[str] = None
    visual_motifs: Tuple[VisualMotif, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = camel_keys({
            "id": self.id,
            "display_name": self.display_name,
            "score": self.score,
            "matched_signals": [s.to_dict() for s in self.matched_signals],
            "missing_signals": [s.to_dict() for s in self.missing_signals],
            "is_excluded": self.is_excluded,
            "visual_motifs": [m.to_dict() for m in self.visual_motifs],
        })
        if self.exclusion_reason is not None:
            data["exclusionReason"] = self.exclusion_reason
        return data


@dataclass(frozen=True)
class ComplianceResult:
    """
    Every philosophy's match for one portfolio, best first.

    Attributes:
        philosophies: Matches sorted by score descending; equal scores keep
            catalog order.
        best_match: philosophies[0] when its score is above 0, else None.
        features: The scored input, passed through untouched.
    """

    philosophies: Tuple[PhilosophyMatch, ...]
    best_match: Optional[PhilosophyMatch]
    features: Union[FeatureVector, Mapping[str, Any]]

    def get(self, philosophy_id: str) -> Optional[PhilosophyMatch]:
        for match in self.philosophies:
            if match.id == philosophy_id:
                return match
        return None

    def top(self, k: int) -> Tuple[PhilosophyMatch, ...]:
        return self.philosophies[:max(k, 0)]

    def scores(self) -> Dict[str, int]:
        return {match.id: match.score for match in self.philosophies}

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.features, FeatureVector):
            features = self.features.to_dict()
        else:
            features = to_jsonable(dict(self.features))
        return {
            "philosophies": [m.to_dict() for m in self.philosophies],
            "bestMatch": self.best_match.to_dict() if self.best_match is not None else None,
            "features": features,
        }
