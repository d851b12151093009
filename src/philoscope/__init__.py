"""
philoscope: investment philosophy detection.

Scores a portfolio's feature vector against a catalog of investment
philosophies written in a small rule language, and ranks every philosophy
0-100 with the signals that matched, the signals that were missing, and any
exclusion that ruled it out.

Usage:
    from philoscope import FeatureVector, score_portfolio

    result = score_portfolio(FeatureVector(pct_index_funds=0.9, ...))
    result.best_match.id
"""

from philoscope.errors import PhilosophyEngineError, RuleSyntaxError, CatalogError
from philoscope.core import (
    FeatureVector,
    CompiledRule,
    RuleEvaluator,
    compile_rule,
    evaluate_rule,
)
from philoscope.catalog import (
    PhilosophyCatalog,
    PhilosophyDefinition,
    SignalDefinition,
    CatalogHandle,
    load_catalog,
    load_default_catalog,
)
from philoscope.scoring import (
    ScoringEngine,
    ComplianceResult,
    PhilosophyMatch,
    SignalMatch,
    score_portfolio,
    score_frame,
)

__version__ = "0.1.0"

__all__ = [
    "PhilosophyEngineError",
    "RuleSyntaxError",
    "CatalogError",
    "FeatureVector",
    "CompiledRule",
    "RuleEvaluator",
    "compile_rule",
    "evaluate_rule",
    "PhilosophyCatalog",
    "PhilosophyDefinition",
    "SignalDefinition",
    "CatalogHandle",
    "load_catalog",
    "load_default_catalog",
    "ScoringEngine",
    "ComplianceResult",
    "PhilosophyMatch",
    "SignalMatch",
    "score_portfolio",
    "score_frame",
]
