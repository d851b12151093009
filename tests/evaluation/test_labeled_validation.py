"""
Labeled validation harness tests.
"""

import json
from pathlib import Path

import pytest

from philoscope.errors import PhilosophyEngineError
from philoscope.evaluation.validation import (
    NO_MATCH,
    load_labeled_cases,
    parse_labeled_cases,
    report_markdown,
    validate_cases,
)
from philoscope.scoring import ScoringEngine

DATASET = Path(__file__).resolve().parents[2] / "data" / "labeled_portfolios.json"


def _case(case_id, features, primary, **expected):
    return {
        "id": case_id,
        "features": features,
        "expected": {"primaryPhilosophy": primary, **expected},
    }


@pytest.fixture
def engine(equity_catalog):
    return ScoringEngine(equity_catalog)


class TestParsing:

    def test_parse_cases(self):
        cases = parse_labeled_cases({"cases": [
            _case("a", {"pct_equity": 0.9}, "aggressive",
                  allowAlternatePrimary=["balanced"], minPrimaryScore=70),
        ]})
        assert len(cases) == 1
        case = cases[0]
        assert case.features.pct_equity == 0.9
        assert case.allowed == ("aggressive", "balanced")
        assert case.min_primary_score == 70

    @pytest.mark.parametrize("document", [
        {},
        {"cases": {}},
        {"cases": ["x"]},
        {"cases": [{"features": {}, "expected": {"primaryPhilosophy": "p"}}]},
        {"cases": [{"id": "a", "features": [], "expected": {"primaryPhilosophy": "p"}}]},
        {"cases": [{"id": "a", "features": {}, "expected": {}}]},
    ])
    def test_malformed_dataset(self, document):
        with pytest.raises(PhilosophyEngineError):
            parse_labeled_cases(document)

    def test_load_from_file(self, tmp_path: Path):
        path = tmp_path / "cases.json"
        path.write_text(json.dumps({"cases": [_case("a", {}, "aggressive")]}), encoding="utf-8")
        assert [c.id for c in load_labeled_cases(path)] == ["a"]


class TestValidation:

    def test_metrics(self, engine):
        cases = parse_labeled_cases({"cases": [
            _case("hit", {"pct_equity": 0.9, "pct_bonds": 0.0}, "aggressive"),
            _case("alt", {"pct_equity": 0.6, "pct_bonds": 0.3}, "aggressive",
                  allowAlternatePrimary=["balanced"]),
            _case("miss", {"pct_equity": 0.9, "pct_bonds": 0.0}, "balanced"),
            _case("none", {"pct_equity": 0.1, "pct_bonds": 0.1}, "conservative", minPrimaryScore=50),
        ]})
        report = validate_cases(cases, engine=engine)

        assert report.total == 4
        assert report.correct == 2
        assert report.accuracy == 0.5
        assert [m.case_id for m in report.mismatches] == ["miss", "none"]
        assert report.mismatches[1].predicted == NO_MATCH
        assert report.low_scores == [("none", 0, 50)]

        metrics = report.per_philosophy
        assert metrics.loc["aggressive", "support"] == 2
        assert metrics.loc["aggressive", "tp"] == 1
        assert metrics.loc["aggressive", "fp"] == 1
        assert report.recall("aggressive") == 0.5
        assert metrics.loc["aggressive", "precision"] == 0.5
        assert report.recall("unknown") == 0.0

        assert report.confusion.loc["balanced", "aggressive"] == 1
        assert report.confusion.loc["conservative", NO_MATCH] == 1

    def test_passes_thresholds(self, engine):
        cases = parse_labeled_cases({"cases": [
            _case("hit", {"pct_equity": 0.9, "pct_bonds": 0.0}, "aggressive"),
            _case("miss", {"pct_equity": 0.6, "pct_bonds": 0.3}, "aggressive"),
        ]})
        report = validate_cases(cases, engine=engine)
        assert report.passes(min_accuracy=0.5)
        assert not report.passes(min_accuracy=0.6)
        assert not report.passes(min_recall={"aggressive": 0.75})

    def test_empty_case_list(self, engine):
        report = validate_cases([], engine=engine)
        assert report.total == 0
        assert report.accuracy == 0.0
        assert "_no cases_" in report_markdown(report)

    def test_markdown_report(self, engine):
        cases = parse_labeled_cases({"cases": [
            _case("miss", {"pct_equity": 0.9, "pct_bonds": 0.0}, "balanced"),
        ]})
        text = report_markdown(validate_cases(cases, engine=engine))
        assert text.startswith("# Philosophy Validation Report")
        assert "## Per-philosophy metrics" in text
        assert "## Confusion matrix" in text
        assert "- miss: expected=balanced, predicted=aggressive" in text


def test_bundled_dataset_is_fully_recognized():
    report = validate_cases(load_labeled_cases(DATASET))
    assert report.total == 10
    assert report.mismatches == []
    assert report.low_scores == []
    assert report.accuracy == 1.0
