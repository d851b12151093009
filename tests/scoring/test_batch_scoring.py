import numpy as np
import pandas as pd

from philoscope.scoring import ScoringEngine, rank_frame, score_frame


def _portfolios():
    return pd.DataFrame(
        [
            {"pct_equity": 0.9, "pct_bonds": 0.02, "pct_cash": np.nan},
            {"pct_equity": 0.6, "pct_bonds": 0.3, "pct_cash": 0.0},
            {"pct_equity": 0.1, "pct_bonds": 0.1, "pct_cash": 0.8},
        ],
        index=["alice", "bob", "carol"],
    )


def test_score_frame_wide_summary(equity_catalog):
    summary = score_frame(_portfolios(), engine=ScoringEngine(equity_catalog))
    assert list(summary.columns) == [
        "best_match",
        "best_score",
        "score__aggressive",
        "score__balanced",
        "score__conservative",
    ]
    assert list(summary.index) == ["alice", "bob", "carol"]
    assert summary.loc["alice", "best_match"] == "aggressive"
    assert summary.loc["alice", "best_score"] == 100
    assert summary.loc["bob", "best_match"] == "balanced"
    assert summary["best_match"].dtype == object
    assert summary.loc["carol", "best_match"] is None
    assert summary.loc["carol", "best_score"] == 0
    assert summary.loc["carol", "score__aggressive"] == 0


def test_rank_frame_long_form(equity_catalog):
    ranking = rank_frame(_portfolios(), engine=ScoringEngine(equity_catalog))
    assert list(ranking.columns) == ["row", "rank", "philosophy_id", "score", "is_excluded"]
    assert len(ranking) == 9
    bob = ranking[ranking["row"] == "bob"]
    assert list(bob["philosophy_id"]) == ["balanced", "aggressive", "conservative"]
    assert list(bob["rank"]) == [1, 2, 3]
    carol = ranking[(ranking["row"] == "carol") & (ranking["philosophy_id"] == "aggressive")]
    assert bool(carol["is_excluded"].iloc[0]) is True


def test_empty_frame(equity_catalog):
    engine = ScoringEngine(equity_catalog)
    assert score_frame(pd.DataFrame(), engine=engine).empty
    assert rank_frame(pd.DataFrame(), engine=engine).empty


def test_default_engine_uses_bundled_catalog():
    frame = pd.DataFrame([{
        "pct_index_funds": 0.9,
        "pct_equity": 0.8,
        "pct_bonds": 0.2,
        "avg_expense_ratio": 0.10,
        "top_5_positions_pct": 0.10,
        "rebalance_frequency": "annual",
    }])
    summary = score_frame(frame)
    assert summary.loc[0, "best_match"] == "passive_indexing_bogleheads"
    assert summary.loc[0, "best_score"] == 100
