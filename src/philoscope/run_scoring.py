#!/usr/bin/env python3
"""
Score portfolios against the investment philosophy catalog.

Usage:
    python -m philoscope.run_scoring --features PATH [--catalog PATH] [--top N]
    python -m philoscope.run_scoring --audit [--catalog PATH]
    python -m philoscope.run_scoring --validate DATASET [--catalog PATH]

--features accepts a JSON object (one portfolio, printed as a serialized
ComplianceResult), a JSON list of objects, or a CSV file with one portfolio
per row. Exit status is 1 when an audit gate or validation fails.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from philoscope.config import EngineConfig, build_engine
from philoscope.core.features import FeatureVector
from philoscope.errors import PhilosophyEngineError
from philoscope.evaluation.catalog_audits import run_catalog_audits
from philoscope.evaluation.validation import load_labeled_cases, report_markdown, validate_cases
from philoscope.scoring.batch import score_frame
from philoscope.scoring.engine import ScoringEngine
from philoscope.scoring.results import ComplianceResult

logger = logging.getLogger(__name__)


def print_ranking(result: ComplianceResult, top: int) -> None:
    best = result.best_match
    print(f"Best match: {best.display_name} ({best.score})" if best else "Best match: none")
    for rank, match in enumerate(result.top(top), start=1):
        flag = "  [excluded]" if match.is_excluded else ""
        print(f"{rank:>3}. {match.id:<32} {match.score:>3}{flag}")
        if match.is_excluded:
            print(f"       {match.exclusion_reason}")
        elif match.missing_signals:
            missing = ", ".join(s.name for s in match.missing_signals)
            print(f"       missing: {missing}")


def score_features_file(engine: ScoringEngine, path: Path, top: Optional[int], as_table: bool) -> None:
    if path.suffix.lower() == ".csv":
        frame = pd.read_csv(path)
        print(score_frame(frame, engine=engine, show_progress=True).to_string())
        return

    with open(path, "r", encoding="utf-8") as fh:
        document = json.load(fh)

    if isinstance(document, list):
        frame = pd.DataFrame(document)
        print(score_frame(frame, engine=engine, show_progress=True).to_string())
        return

    if not isinstance(document, dict):
        raise PhilosophyEngineError(f"{path}: expected a JSON object or list of objects")
    result = engine.score(FeatureVector.from_mapping(document))
    if as_table:
        print_ranking(result, top if top is not None else len(result.philosophies))
        return
    data = result.to_dict()
    if top is not None:
        data["philosophies"] = data["philosophies"][:max(top, 0)]
    print(json.dumps(data, indent=2))


def run_audits(engine: ScoringEngine) -> bool:
    print("=" * 70)
    print("Catalog audits")
    print("=" * 70)
    all_passed = True
    for gate in run_catalog_audits(engine.catalog):
        status = "PASS" if gate.passed else "FAIL"
        print(f"[{status}] {gate.gate_id}: {gate.succeeded}/{gate.total} ({gate.success_rate:.0%})")
        if gate.details:
            print(f"       {gate.details}")
        all_passed = all_passed and gate.passed
    return all_passed


def run_validation(engine: ScoringEngine, path: Path, min_accuracy: float) -> bool:
    cases = load_labeled_cases(path)
    report = validate_cases(cases, engine=engine)
    print(report_markdown(report))
    return report.passes(min_accuracy=min_accuracy) and not report.low_scores


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Detect investment philosophies from portfolio features"
    )
    parser.add_argument(
        "--features",
        type=Path,
        help="Feature vector file (.json object/list or .csv)",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        help="Catalog file (.yml, .json, .toml); defaults to the bundled catalog",
    )
    parser.add_argument(
        "--top",
        type=int,
        help="Number of ranked philosophies to show (default: all)",
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Print a ranked table instead of JSON",
    )
    parser.add_argument(
        "--audit",
        action="store_true",
        help="Run deterministic catalog audits",
    )
    parser.add_argument(
        "--validate",
        type=Path,
        help="Labeled dataset (JSON) to validate the catalog against",
    )
    parser.add_argument(
        "--min-accuracy",
        type=float,
        default=0.0,
        help="Fail validation below this overall accuracy (0-1)",
    )

    args = parser.parse_args(argv)
    if not (args.features or args.audit or args.validate):
        parser.error("nothing to do: pass --features, --audit or --validate")

    config = EngineConfig.from_env()
    if args.catalog is not None:
        config.catalog_path = args.catalog
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        engine = build_engine(config)
        ok = True
        if args.audit:
            ok = run_audits(engine) and ok
        if args.validate:
            ok = run_validation(engine, args.validate, args.min_accuracy) and ok
        if args.features:
            score_features_file(engine, args.features, args.top, args.table)
    except (PhilosophyEngineError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
