"""Shared fixtures: small synthetic catalogs built in memory."""

import pytest

from philoscope.catalog import (
    PhilosophyCatalog,
    PhilosophyDefinition,
    SignalDefinition,
    VisualMotif,
)


def _make_philosophy(philosophy_id, signals=(), exclusions=(), display_name=None, motifs=()):
    return PhilosophyDefinition(
        id=philosophy_id,
        display_name=display_name or philosophy_id.replace("_", " ").title(),
        signals=tuple(SignalDefinition(name=n, rule=r, points=p) for n, r, p in signals),
        exclusions=tuple(exclusions),
        visual_motifs=tuple(VisualMotif(type=t) for t in motifs),
    )


@pytest.fixture
def make_philosophy():
    """Factory for PhilosophyDefinition from (name, rule, points) triples."""
    return _make_philosophy


@pytest.fixture
def equity_catalog():
    """Three philosophies keyed off pct_equity, in a fixed declaration order."""
    return PhilosophyCatalog(
        philosophies=(
            _make_philosophy(
                "aggressive",
                signals=[
                    ("mostly_equity", "pct_equity >= 0.80", 3),
                    ("no_bonds", "pct_bonds < 0.05", 1),
                ],
                exclusions=["pct_bonds >= 0.50", "pct_cash >= 0.50"],
                motifs=["allocation_donut"],
            ),
            _make_philosophy(
                "balanced",
                signals=[
                    ("equity_band", "pct_equity between 0.40 and 0.70", 1),
                    ("some_bonds", "pct_bonds >= 0.20", 1),
                ],
            ),
            _make_philosophy(
                "conservative",
                signals=[("bond_heavy", "pct_bonds >= 0.60", 1)],
            ),
        ),
        version="test",
    )


ENGINE_ENV_VARS = ("PHILOSCOPE_CATALOG", "PHILOSCOPE_RULE_CACHE_SIZE", "PHILOSCOPE_LOG_LEVEL")


@pytest.fixture
def clean_env(monkeypatch):
    """Unset engine variables; anything a .env file sets is undone afterwards."""
    for name in ENGINE_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
