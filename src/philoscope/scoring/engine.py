"""
Scoring Engine: rank every catalog philosophy for one portfolio.

Per philosophy, independently:
    1. Exclusions, in order. The first rule that holds marks the philosophy
       excluded with score 0; later exclusions and all signals are skipped.
    2. Otherwise every signal is evaluated (no short-circuit, so
       missing_signals is complete) and partitioned into matched/missing.
    3. score = round_half_up(matched points / total points * 100), or 0 when
       the philosophy has no signals.

Results are stably sorted by score descending, so equal scores keep catalog
order. best_match is the first result when its score is above 0.

The engine holds no mutable state besides the shared rule cache; score() is
safe to call concurrently.
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Union

from philoscope.catalog.loader import CatalogHandle, load_default_catalog
from philoscope.catalog.schema import PhilosophyCatalog, PhilosophyDefinition
from philoscope.constants import EXCLUSION_REASON_TEMPLATE, MAX_SCORE
from philoscope.core.evaluator import RuleEvaluator, default_evaluator
from philoscope.core.features import FeatureVector
from philoscope.scoring.results import ComplianceResult, PhilosophyMatch, SignalMatch
from philoscope.utils.serialize import to_python_scalar

logger = logging.getLogger(__name__)

Features = Union[FeatureVector, Mapping[str, Any]]


def normalize_score(raw_score: float, max_possible_score: float) -> int:
    """
    Scale matched points to 0-100, rounding half up.

    Example:
        >>> normalize_score(1, 8)
        13
        >>> normalize_score(0, 0)
        0
    """
    if not math.isfinite(max_possible_score) or max_possible_score <= 0:
        return 0
    return int(math.floor(raw_score / max_possible_score * MAX_SCORE + 0.5))


def build_context(features: Features) -> Dict[str, Any]:
    """Copy the scored input into a fresh rule context."""
    if isinstance(features, FeatureVector):
        return features.to_context()
    if isinstance(features, Mapping):
        return {str(k): to_python_scalar(v) for k, v in features.items()}
    raise TypeError(f"features must be a FeatureVector or mapping, got {type(features).__name__}")


class ScoringEngine:
    """
    Scores feature vectors against a philosophy catalog.

    Args:
        catalog: A PhilosophyCatalog, or a CatalogHandle when the catalog may
            be hot-swapped. Each score() call reads one snapshot.
        evaluator: Rule evaluator (and compile cache) to use. Defaults to
            the process-wide evaluator.
    """

    def __init__(
        self,
        catalog: Union[PhilosophyCatalog, CatalogHandle],
        evaluator: Optional[RuleEvaluator] = None,
    ):
        self._catalog = catalog
        self.evaluator = evaluator or default_evaluator()

    @property
    def catalog(self) -> PhilosophyCatalog:
        if isinstance(self._catalog, CatalogHandle):
            return self._catalog.current
        return self._catalog

    def score(self, features: Features) -> ComplianceResult:
        """
        Score a portfolio against every philosophy in the catalog.

        Args:
            features: FeatureVector, or a plain mapping of feature values.
                Fields absent from a mapping read as missing in rules.

        Returns:
            ComplianceResult with philosophies sorted by score descending.
        """
        catalog = self.catalog
        context = build_context(features)

        results = [self.score_philosophy(philosophy, context) for philosophy in catalog]
        # sorted() is stable: ties keep catalog order
        ranked = tuple(sorted(results, key=lambda match: match.score, reverse=True))
        best = ranked[0] if ranked and ranked[0].score > 0 else None

        logger.debug(
            "Scored %d philosophies; best=%s",
            len(ranked),
            f"{best.id}:{best.score}" if best else None,
        )
        return ComplianceResult(philosophies=ranked, best_match=best, features=features)

    def score_philosophy(
        self,
        philosophy: PhilosophyDefinition,
        context: Mapping[str, Any],
    ) -> PhilosophyMatch:
        """Score one philosophy against a prepared rule context."""
        for rule in philosophy.exclusions:
            if self.evaluator.evaluate(rule, context):
                return PhilosophyMatch(
                    id=philosophy.id,
                    display_name=philosophy.display_name,
                    score=0,
                    is_excluded=True,
                    exclusion_reason=EXCLUSION_REASON_TEMPLATE.format(rule=rule),
                    visual_motifs=philosophy.visual_motifs,
                )

        matched: List[SignalMatch] = []
        missing: List[SignalMatch] = []
        raw_score = 0.0
        max_possible_score = 0.0
        for signal in philosophy.signals:
            max_possible_score += signal.points
            if self.evaluator.evaluate(signal.rule, context):
                matched.append(SignalMatch.from_definition(signal))
                raw_score += signal.points
            else:
                missing.append(SignalMatch.from_definition(signal))

        return PhilosophyMatch(
            id=philosophy.id,
            display_name=philosophy.display_name,
            score=normalize_score(raw_score, max_possible_score),
            matched_signals=tuple(matched),
            missing_signals=tuple(missing),
            is_excluded=False,
            visual_motifs=philosophy.visual_motifs,
        )


def score_portfolio(
    features: Features,
    catalog: Optional[PhilosophyCatalog] = None,
) -> ComplianceResult:
    """
    Score a portfolio with the bundled catalog (or the one given).

    For repeated scoring against a custom catalog, build a ScoringEngine once.
    """
    engine = ScoringEngine(catalog if catalog is not None else load_default_catalog())
    return engine.score(features)
