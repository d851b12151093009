"""
Scoring: rank catalog philosophies for a portfolio's feature vector.
"""

from philoscope.scoring.results import (
    SignalMatch,
    PhilosophyMatch,
    ComplianceResult,
)
from philoscope.scoring.engine import (
    ScoringEngine,
    build_context,
    normalize_score,
    score_portfolio,
)
from philoscope.scoring.batch import score_frame, rank_frame

__all__ = [
    "SignalMatch",
    "PhilosophyMatch",
    "ComplianceResult",
    "ScoringEngine",
    "build_context",
    "normalize_score",
    "score_portfolio",
    "score_frame",
    "rank_frame",
]
