from __future__ import annotations

from philoscope.catalog import PhilosophyCatalog, load_default_catalog
from philoscope.evaluation.catalog_audits import (
    field_reference_gate,
    membership_literal_gate,
    rule_syntax_gate,
    run_catalog_audits,
    signal_points_gate,
)


def test_bundled_catalog_passes_every_gate():
    results = run_catalog_audits(load_default_catalog())
    assert [r.gate_id for r in results] == [
        "catalog_rule_syntax",
        "catalog_field_references",
        "catalog_signal_points",
        "catalog_membership_literals",
    ]
    for result in results:
        assert result.passed, f"{result.gate_id}: {result.details}"
        assert result.success_rate == 1.0


def test_rule_syntax_gate_flags_broken_rule(make_philosophy):
    catalog = PhilosophyCatalog(philosophies=(
        make_philosophy(
            "p",
            signals=[("ok", "a > 1", 1), ("bad", "a >>> 1", 1)],
            exclusions=["b between 1"],
        ),
    ))
    result = rule_syntax_gate(catalog)
    assert result.passed is False
    assert result.total == 3
    assert result.succeeded == 1
    assert "a >>> 1" in result.details


def test_field_reference_gate_flags_unknown_fields(make_philosophy):
    catalog = PhilosophyCatalog(philosophies=(
        make_philosophy("p", signals=[("typo", "pct_equty >= 0.5", 1), ("ok", "pct_equity >= 0.5", 1)]),
    ))
    result = field_reference_gate(catalog)
    assert result.passed is False
    assert result.succeeded == 1
    assert "pct_equty" in result.details


def test_field_reference_gate_accepts_custom_vocabulary(make_philosophy):
    catalog = PhilosophyCatalog(philosophies=(
        make_philosophy("p", signals=[("custom", "risk_score > 3", 1)]),
    ))
    assert field_reference_gate(catalog, known_fields=["risk_score"]).passed


def test_signal_points_gate_flags_empty_philosophy(make_philosophy):
    catalog = PhilosophyCatalog(philosophies=(
        make_philosophy("full", signals=[("s", "a > 1", 1)]),
        make_philosophy("hollow"),
    ))
    result = signal_points_gate(catalog)
    assert result.passed is False
    assert result.total == 2
    assert "hollow" in result.details


def test_membership_literal_gate_flags_numeric_lists(make_philosophy):
    catalog = PhilosophyCatalog(philosophies=(
        make_philosophy("p", signals=[
            ("numeric", "n_positions in [1, 2, 3]", 1),
            ("words", "rebalance_frequency in [annual, threshold]", 1),
        ]),
    ))
    result = membership_literal_gate(catalog)
    assert result.passed is False
    assert result.total == 2
    assert result.succeeded == 1


def test_details_are_truncated(make_philosophy):
    signals = [(f"s{i}", f"unknown_{i} > 1", 1) for i in range(8)]
    catalog = PhilosophyCatalog(philosophies=(make_philosophy("p", signals=signals),))
    result = field_reference_gate(catalog)
    assert result.succeeded == 0
    assert result.details.endswith("... 3 more")


def test_empty_catalog_passes():
    for result in run_catalog_audits(PhilosophyCatalog(philosophies=())):
        assert result.passed
        assert result.success_rate == 1.0
