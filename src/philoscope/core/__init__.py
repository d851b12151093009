"""
philoscope core: feature vector contract and the rule language.

Usage:
    from philoscope.core import (
        FeatureVector,
        compile_rule,
        evaluate_rule,
        RuleEvaluator,
    )
"""

from philoscope.core.features import (
    FeatureVector,
    RebalanceFrequency,
    Sensitivity,
    OptionsOverlayType,
    ExtractFeatures,
)
from philoscope.core.predicates import (
    Comparator,
    BoolOperator,
    RuleNode,
    CompiledRule,
    PredicateEvaluator,
    RuleParser,
    compile_rule,
    parse_rule,
    referenced_fields,
    render,
)
from philoscope.core.evaluator import (
    RuleEvaluator,
    default_evaluator,
    evaluate_rule,
)

__all__ = [
    # Feature vector
    "FeatureVector",
    "RebalanceFrequency",
    "Sensitivity",
    "OptionsOverlayType",
    "ExtractFeatures",
    # Rule language
    "Comparator",
    "BoolOperator",
    "RuleNode",
    "CompiledRule",
    "PredicateEvaluator",
    "RuleParser",
    "compile_rule",
    "parse_rule",
    "referenced_fields",
    "render",
    # Evaluation
    "RuleEvaluator",
    "default_evaluator",
    "evaluate_rule",
]
