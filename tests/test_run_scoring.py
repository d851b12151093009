"""
Command-line runner tests. main() is called in-process with an argv list.
"""

import json
from pathlib import Path

import pandas as pd
import pytest

from philoscope.run_scoring import main

pytestmark = pytest.mark.usefixtures("clean_env")

DATASET = Path(__file__).resolve().parents[1] / "data" / "labeled_portfolios.json"

INDEXER = {
    "pct_index_funds": 0.9,
    "pct_equity": 0.8,
    "pct_bonds": 0.2,
    "avg_expense_ratio": 0.10,
    "top_5_positions_pct": 0.10,
}


@pytest.fixture
def features_file(tmp_path: Path) -> Path:
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(INDEXER), encoding="utf-8")
    return path


class TestScoring:

    def test_prints_compliance_result_json(self, features_file, capsys):
        assert main(["--features", str(features_file)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["bestMatch"]["id"] == "passive_indexing_bogleheads"
        assert len(data["philosophies"]) == 10

    def test_top_limits_ranking(self, features_file, capsys):
        assert main(["--features", str(features_file), "--top", "2"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data["philosophies"]) == 2

    def test_table_output(self, features_file, capsys):
        assert main(["--features", str(features_file), "--table", "--top", "3"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Best match: Passive Indexing (Bogleheads) (95)")
        assert "  1. passive_indexing_bogleheads" in out
        assert "  4. " not in out

    def test_csv_batch(self, tmp_path: Path, capsys):
        path = tmp_path / "portfolios.csv"
        pd.DataFrame([INDEXER, {"pct_crypto": 0.9, "n_positions": 3}]).to_csv(path, index=False)
        assert main(["--features", str(path)]) == 0
        out = capsys.readouterr().out
        assert "passive_indexing_bogleheads" in out
        assert "crypto_maximal" in out

    def test_custom_catalog(self, features_file, tmp_path: Path, capsys):
        catalog = tmp_path / "catalog.json"
        catalog.write_text(json.dumps({"philosophies": [{
            "id": "anything_indexed",
            "display_name": "Anything indexed",
            "detection": {"signals": [{"name": "core", "rule": "pct_index_funds > 0", "points": 1}]},
        }]}), encoding="utf-8")
        assert main(["--features", str(features_file), "--catalog", str(catalog)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["bestMatch"]["id"] == "anything_indexed"
        assert data["bestMatch"]["score"] == 100


class TestAuditAndValidation:

    def test_audit_bundled_catalog(self, capsys):
        assert main(["--audit"]) == 0
        out = capsys.readouterr().out
        assert "[PASS] catalog_rule_syntax" in out
        assert "[FAIL]" not in out

    def test_audit_fails_on_broken_catalog(self, tmp_path: Path, capsys):
        catalog = tmp_path / "catalog.yml"
        catalog.write_text(
            "philosophies:\n"
            "  - id: broken\n"
            "    display_name: Broken\n"
            "    detection:\n"
            "      signals:\n"
            "        - {name: bad, rule: 'pct_equity >>> 1', points: 1}\n",
            encoding="utf-8",
        )
        assert main(["--audit", "--catalog", str(catalog)]) == 1
        assert "[FAIL] catalog_rule_syntax" in capsys.readouterr().out

    def test_validate_bundled_dataset(self, capsys):
        assert main(["--validate", str(DATASET), "--min-accuracy", "0.9"]) == 0
        assert "# Philosophy Validation Report" in capsys.readouterr().out

    def test_validate_below_threshold(self, tmp_path: Path):
        dataset = tmp_path / "cases.json"
        dataset.write_text(json.dumps({"cases": [{
            "id": "wrong",
            "features": INDEXER,
            "expected": {"primaryPhilosophy": "crypto_maximal"},
        }]}), encoding="utf-8")
        assert main(["--validate", str(dataset), "--min-accuracy", "0.5"]) == 1


class TestFailures:

    def test_missing_catalog_exits_nonzero(self, features_file, tmp_path: Path):
        assert main(["--features", str(features_file), "--catalog", str(tmp_path / "nope.yml")]) == 1

    def test_missing_features_file_exits_nonzero(self, tmp_path: Path):
        assert main(["--features", str(tmp_path / "nope.json")]) == 1

    def test_nothing_to_do(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 2
