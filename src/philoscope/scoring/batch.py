"""
Batch scoring over DataFrames of feature vectors.

Each input row is one portfolio; columns are feature names. Rows are scored
independently with the same engine.
"""

from typing import Dict, List, Optional

import pandas as pd
from tqdm import tqdm

from philoscope.catalog.loader import load_default_catalog
from philoscope.constants import SCORE_COLUMN_PREFIX
from philoscope.core.features import FeatureVector
from philoscope.scoring.engine import ScoringEngine
from philoscope.scoring.results import ComplianceResult


def _default_engine(engine: Optional[ScoringEngine]) -> ScoringEngine:
    return engine if engine is not None else ScoringEngine(load_default_catalog())


def _iter_results(frame: pd.DataFrame, engine: ScoringEngine, show_progress: bool):
    rows = frame.to_dict(orient="records")
    iterator = tqdm(rows, desc="Scoring portfolios", unit="portfolio", disable=not show_progress)
    for index, row in zip(frame.index, iterator):
        yield index, engine.score(FeatureVector.from_mapping(row))


def score_frame(
    frame: pd.DataFrame,
    engine: Optional[ScoringEngine] = None,
    show_progress: bool = False,
) -> pd.DataFrame:
    """
    Score every row and return a wide summary.

    Columns missing from the frame take FeatureVector defaults.

    Returns:
        DataFrame indexed like the input with best_match, best_score and one
        score__<philosophy_id> column per philosophy in catalog order.
    """
    engine = _default_engine(engine)
    ids = engine.catalog.ids
    columns = ["best_match", "best_score"] + [f"{SCORE_COLUMN_PREFIX}{pid}" for pid in ids]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    records: List[Dict[str, object]] = []
    index = []
    for row_index, result in _iter_results(frame, engine, show_progress):
        records.append(_summary_record(result))
        index.append(row_index)
    summary = pd.DataFrame(records, index=index, columns=columns)
    summary["best_match"] = pd.Series(
        [record["best_match"] for record in records], index=summary.index, dtype=object
    )
    return summary


def rank_frame(
    frame: pd.DataFrame,
    engine: Optional[ScoringEngine] = None,
    show_progress: bool = False,
) -> pd.DataFrame:
    """
    Score every row and return the full ranking in long form.

    Returns:
        DataFrame with columns row, rank (1-based), philosophy_id, score,
        is_excluded.
    """
    engine = _default_engine(engine)
    columns = ["row", "rank", "philosophy_id", "score", "is_excluded"]
    records = []
    for row_index, result in _iter_results(frame, engine, show_progress):
        for rank, match in enumerate(result.philosophies, start=1):
            records.append({
                "row": row_index,
                "rank": rank,
                "philosophy_id": match.id,
                "score": match.score,
                "is_excluded": match.is_excluded,
            })
    return pd.DataFrame(records, columns=columns)


def _summary_record(result: ComplianceResult) -> Dict[str, object]:
    best = result.best_match
    record: Dict[str, object] = {
        "best_match": best.id if best else None,
        "best_score": best.score if best else 0,
    }
    for match in result.philosophies:
        record[f"{SCORE_COLUMN_PREFIX}{match.id}"] = match.score
    return record
