import logging
import threading

import pytest

from philoscope.core import FeatureVector, RuleEvaluator, default_evaluator, evaluate_rule


def test_evaluate_rule_reference_cases():
    assert evaluate_rule("pct_equity >= 0.75", {"pct_equity": 0.8}) is True
    assert evaluate_rule("nonexistent_field > 5", {}) is False


def test_evaluate_accepts_feature_vector():
    features = FeatureVector(pct_equity=0.8, rebalance_frequency="annual")
    evaluator = RuleEvaluator()
    assert evaluator.evaluate("pct_equity >= 0.75", features) is True
    assert evaluator.evaluate("rebalance_frequency in [annual]", features) is True


def test_none_context_reads_as_empty():
    assert RuleEvaluator().evaluate("x > 1", None) is False


def test_compiled_rules_are_cached_per_text():
    evaluator = RuleEvaluator(cache_size=10)
    first = evaluator.compile("pct_equity >= 0.5")
    second = evaluator.compile("pct_equity >= 0.5")
    assert first is second
    assert evaluator.cache_info() == {"size": 1, "max_size": 10}


def test_cache_evicts_least_recently_used():
    evaluator = RuleEvaluator(cache_size=2)
    a = evaluator.compile("a > 1")
    evaluator.compile("b > 1")
    evaluator.compile("a > 1")  # a is now most recent
    evaluator.compile("c > 1")  # evicts b
    assert evaluator.cache_info()["size"] == 2
    assert evaluator.compile("a > 1") is a
    assert evaluator.cache_info()["size"] == 2


def test_zero_cache_size_disables_caching():
    evaluator = RuleEvaluator(cache_size=0)
    assert evaluator.compile("a > 1") is not evaluator.compile("a > 1")
    assert evaluator.cache_info()["size"] == 0


def test_negative_cache_size_rejected():
    with pytest.raises(ValueError):
        RuleEvaluator(cache_size=-1)


def test_broken_rule_logged_once_when_cached(caplog):
    evaluator = RuleEvaluator()
    with caplog.at_level(logging.WARNING, logger="philoscope.core.predicates"):
        for _ in range(3):
            assert evaluator.evaluate("pct_equity >>> 1", {"pct_equity": 2}) is False
    warnings = [r for r in caplog.records if "Failed to compile rule" in r.getMessage()]
    assert len(warnings) == 1


def test_clear_empties_cache():
    evaluator = RuleEvaluator()
    evaluator.compile("a > 1")
    evaluator.clear()
    assert evaluator.cache_info()["size"] == 0


def test_concurrent_evaluation_is_consistent():
    evaluator = RuleEvaluator(cache_size=4)
    rules = [f"x > {i}" for i in range(8)]
    failures = []

    def worker():
        for _ in range(50):
            for i, rule in enumerate(rules):
                if evaluator.evaluate(rule, {"x": 4}) != (4 > i):
                    failures.append(rule)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert failures == []
    assert evaluator.cache_info()["size"] <= 4


def test_oversized_rule_evaluates_false():
    rule = "(" * 600 + "x > 1" + ")" * 600
    assert evaluate_rule(rule, {"x": 5}) is False
    assert evaluate_rule(" and ".join(["x > 1"] * 1500), {"x": 5}) is False


def test_default_evaluator_is_shared_across_threads():
    seen = []

    def worker():
        seen.append(default_evaluator())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(seen) == 8
    assert all(evaluator is default_evaluator() for evaluator in seen)
