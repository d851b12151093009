"""
Rule evaluation with a per-text compile cache.

The same catalog is evaluated against every portfolio, so each distinct rule
text is compiled once and reused. A broken rule is compiled (and logged) once
and then quietly evaluates to False on every later call.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Mapping

from philoscope.core.features import FeatureVector
from philoscope.core.predicates import CompiledRule, compile_rule

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 1024


class RuleEvaluator:
    """
    Evaluates rule text against a context, caching compiled rules.

    Args:
        cache_size: Maximum number of compiled rules kept (LRU). 0 disables
            caching, so every call recompiles.
    """

    def __init__(self, cache_size: int = DEFAULT_CACHE_SIZE):
        if cache_size < 0:
            raise ValueError(f"cache_size must be >= 0, got {cache_size}")
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, CompiledRule]" = OrderedDict()
        self._lock = threading.Lock()

    def compile(self, rule: str) -> CompiledRule:
        """Return the compiled form of a rule, compiling on first use."""
        if self.cache_size == 0 or not isinstance(rule, str):
            return compile_rule(rule)
        with self._lock:
            cached = self._cache.get(rule)
            if cached is not None:
                self._cache.move_to_end(rule)
                return cached
        compiled = compile_rule(rule)
        with self._lock:
            self._cache[rule] = compiled
            self._cache.move_to_end(rule)
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return compiled

    def evaluate(self, rule: str, context: Any) -> bool:
        """
        Evaluate a rule string against a context.

        Args:
            rule: Rule text.
            context: A mapping of field name -> value, or a FeatureVector.

        Returns:
            True if the rule holds; False if it does not, cannot be compiled,
            or cannot be evaluated.
        """
        return self.compile(rule)(_as_context(context))

    def cache_info(self) -> Mapping[str, int]:
        with self._lock:
            return {"size": len(self._cache), "max_size": self.cache_size}

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


def _as_context(context: Any) -> Mapping[str, Any]:
    if isinstance(context, FeatureVector):
        return context.to_context()
    if context is None:
        return {}
    return context


_DEFAULT_EVALUATOR = RuleEvaluator()


def default_evaluator() -> RuleEvaluator:
    """Process-wide evaluator shared by module-level helpers."""
    return _DEFAULT_EVALUATOR


def evaluate_rule(rule: str, context: Any) -> bool:
    """
    Evaluate a single rule string against a context in one step.

    Example:
        >>> evaluate_rule("pct_equity >= 0.75", {"pct_equity": 0.8})
        True
        >>> evaluate_rule("nonexistent_field > 5", {})
        False
    """
    return default_evaluator().evaluate(rule, context)
