"""
Labeled validation of philosophy detection.

Scores a set of hand-labeled feature vectors and measures how often the top
ranked philosophy is the expected one. Produces overall accuracy,
per-philosophy precision/recall, a confusion matrix and a Markdown report.

Dataset shape (JSON):
    {
      "datasetVersion": "1",
      "cases": [
        {
          "id": "bogle_3fund",
          "description": "...",
          "features": {"pct_index_funds": 0.95, ...},
          "expected": {
            "primaryPhilosophy": "passive_indexing_bogleheads",
            "allowAlternatePrimary": ["time_to_financial_freedom"],
            "minPrimaryScore": 70
          }
        }
      ]
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from philoscope.catalog.loader import load_default_catalog
from philoscope.core.features import FeatureVector
from philoscope.errors import PhilosophyEngineError
from philoscope.scoring.engine import ScoringEngine

logger = logging.getLogger(__name__)

NO_MATCH = "no_match"


@dataclass(frozen=True)
class LabeledCase:
    id: str
    features: FeatureVector
    primary: str
    alternates: Tuple[str, ...] = ()
    min_primary_score: Optional[int] = None
    description: str = ""

    @property
    def allowed(self) -> Tuple[str, ...]:
        return (self.primary,) + self.alternates


@dataclass(frozen=True)
class Mismatch:
    case_id: str
    expected: str
    predicted: str
    top3: Tuple[Tuple[str, int], ...]


@dataclass
class ValidationReport:
    total: int
    correct: int
    per_philosophy: pd.DataFrame
    confusion: pd.DataFrame
    mismatches: List[Mismatch] = field(default_factory=list)
    low_scores: List[Tuple[str, int, int]] = field(default_factory=list)

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    def recall(self, philosophy_id: str) -> float:
        if self.per_philosophy.empty or philosophy_id not in self.per_philosophy.index:
            return 0.0
        return float(self.per_philosophy.loc[philosophy_id, "recall"])

    def passes(
        self,
        min_accuracy: float = 0.0,
        min_recall: Optional[Mapping[str, float]] = None,
    ) -> bool:
        """Check the report against regression thresholds."""
        if self.accuracy < min_accuracy:
            return False
        for philosophy_id, threshold in (min_recall or {}).items():
            if self.recall(philosophy_id) < threshold:
                return False
        return True


def parse_labeled_cases(document: Mapping[str, Any]) -> List[LabeledCase]:
    """
    Validate a decoded dataset document.

    Raises:
        PhilosophyEngineError: If the document or any case is malformed.
    """
    raw_cases = document.get("cases") if isinstance(document, Mapping) else None
    if not isinstance(raw_cases, list):
        raise PhilosophyEngineError("Labeled dataset must contain a 'cases' list")

    cases = []
    for position, raw in enumerate(raw_cases):
        if not isinstance(raw, Mapping):
            raise PhilosophyEngineError(f"cases[{position}] must be a mapping")
        case_id = raw.get("id")
        if not isinstance(case_id, str) or not case_id:
            raise PhilosophyEngineError(f"cases[{position}]: missing id")
        features = raw.get("features")
        if not isinstance(features, Mapping):
            raise PhilosophyEngineError(f"{case_id}: 'features' must be a mapping")
        expected = raw.get("expected")
        if not isinstance(expected, Mapping) or not expected.get("primaryPhilosophy"):
            raise PhilosophyEngineError(f"{case_id}: missing expected.primaryPhilosophy")
        min_score = expected.get("minPrimaryScore")
        cases.append(LabeledCase(
            id=case_id,
            features=FeatureVector.from_mapping(features),
            primary=str(expected["primaryPhilosophy"]),
            alternates=tuple(expected.get("allowAlternatePrimary") or ()),
            min_primary_score=int(min_score) if min_score is not None else None,
            description=str(raw.get("description") or ""),
        ))
    return cases


def load_labeled_cases(path: Union[str, Path]) -> List[LabeledCase]:
    with open(path, "r", encoding="utf-8") as fh:
        document = json.load(fh)
    cases = parse_labeled_cases(document)
    logger.info("Loaded %d labeled cases from %s", len(cases), path)
    return cases


def validate_cases(
    cases: Sequence[LabeledCase],
    engine: Optional[ScoringEngine] = None,
) -> ValidationReport:
    """
    Score every case and compare the top prediction with its label.

    A case counts as correct when the best match is the expected primary or
    one of its allowed alternates. Precision/recall use the primary label
    only. When no philosophy scores above 0 the prediction is "no_match".
    """
    engine = engine if engine is not None else ScoringEngine(load_default_catalog())

    rows = []
    mismatches: List[Mismatch] = []
    low_scores: List[Tuple[str, int, int]] = []
    correct = 0
    for case in cases:
        result = engine.score(case.features)
        predicted = result.best_match.id if result.best_match else NO_MATCH
        rows.append({"case_id": case.id, "actual": case.primary, "predicted": predicted})

        if predicted in case.allowed:
            correct += 1
        else:
            mismatches.append(Mismatch(
                case_id=case.id,
                expected=case.primary,
                predicted=predicted,
                top3=tuple((m.id, m.score) for m in result.top(3)),
            ))

        if case.min_primary_score is not None:
            primary = result.get(case.primary)
            score = primary.score if primary is not None else 0
            if score < case.min_primary_score:
                low_scores.append((case.id, score, case.min_primary_score))

    outcomes = pd.DataFrame(rows, columns=["case_id", "actual", "predicted"])
    return ValidationReport(
        total=len(outcomes),
        correct=correct,
        per_philosophy=_per_philosophy_metrics(outcomes),
        confusion=_confusion_matrix(outcomes),
        mismatches=mismatches,
        low_scores=low_scores,
    )


def _per_philosophy_metrics(outcomes: pd.DataFrame) -> pd.DataFrame:
    columns = ["support", "tp", "fp", "fn", "precision", "recall", "f1"]
    if outcomes.empty:
        return pd.DataFrame(columns=columns)

    labels = sorted(set(outcomes["actual"]) | set(outcomes["predicted"]))
    hit = outcomes["actual"] == outcomes["predicted"]
    metrics = pd.DataFrame(index=pd.Index(labels, name="philosophy_id"))
    metrics["support"] = outcomes.groupby("actual").size()
    metrics["tp"] = outcomes[hit].groupby("actual").size()
    metrics["fp"] = outcomes[~hit].groupby("predicted").size()
    metrics["fn"] = outcomes[~hit].groupby("actual").size()
    metrics = metrics.fillna(0).astype(int)

    predicted_pos = metrics["tp"] + metrics["fp"]
    actual_pos = metrics["tp"] + metrics["fn"]
    metrics["precision"] = (metrics["tp"] / predicted_pos.where(predicted_pos > 0)).fillna(0.0)
    metrics["recall"] = (metrics["tp"] / actual_pos.where(actual_pos > 0)).fillna(0.0)
    denom = metrics["precision"] + metrics["recall"]
    metrics["f1"] = (2 * metrics["precision"] * metrics["recall"] / denom.where(denom > 0)).fillna(0.0)
    return metrics[columns]


def _confusion_matrix(outcomes: pd.DataFrame) -> pd.DataFrame:
    if outcomes.empty:
        return pd.DataFrame()
    return pd.crosstab(
        outcomes["actual"],
        outcomes["predicted"],
        rownames=["actual"],
        colnames=["predicted"],
    )


def report_markdown(report: ValidationReport) -> str:
    """Render a validation report as Markdown."""
    lines = [
        "# Philosophy Validation Report",
        "",
        f"- Total cases: {report.total}",
        f"- Correct primary (incl. allowed alternates): {report.correct}",
        f"- Overall accuracy: {_pct(report.accuracy)}",
        "",
        "## Per-philosophy metrics",
        "",
        "| philosophy | support | precision | recall | f1 |",
        "|---|---|---|---|---|",
    ]
    for philosophy_id, row in report.per_philosophy.iterrows():
        lines.append(
            f"| {philosophy_id} | {int(row['support'])} | {_pct(row['precision'])} "
            f"| {_pct(row['recall'])} | {_pct(row['f1'])} |"
        )

    lines += ["", "## Confusion matrix", ""]
    if report.confusion.empty:
        lines.append("_no cases_")
    else:
        predicted = list(report.confusion.columns)
        lines.append(f"| actual \\ predicted | {' | '.join(predicted)} |")
        lines.append("|---|" + "|".join("---" for _ in predicted) + "|")
        for actual, row in report.confusion.iterrows():
            lines.append(f"| {actual} | {' | '.join(str(int(v)) for v in row.tolist())} |")

    lines += ["", "## Mismatches", ""]
    if not report.mismatches:
        lines.append("_none_")
    for mismatch in report.mismatches:
        top3 = ", ".join(f"{pid}:{score}" for pid, score in mismatch.top3)
        lines.append(
            f"- {mismatch.case_id}: expected={mismatch.expected}, "
            f"predicted={mismatch.predicted} (top3: {top3})"
        )

    if report.low_scores:
        lines += ["", "## Primary scores below minimum", ""]
        for case_id, score, minimum in report.low_scores:
            lines.append(f"- {case_id}: {score} < {minimum}")
    return "\n".join(lines) + "\n"


def _pct(x: float) -> str:
    return f"{x * 100:.1f}%"
