"""
Feature Vector: the normalized description of a portfolio.

The feature vector is the only input the scoring engine reads. It is produced
upstream by a feature extractor (holdings and manual assets in, vector out)
and is treated as immutable from then on.

Field groups:
    Composition (0..1):      pct_equity ... pct_sector_thematic
    Concentration:           top_1_position_pct, top_5_positions_pct,
                             n_positions, herfindahl_index
    Geography (0..1):        pct_us_equity, pct_ex_us_dev_equity,
                             pct_em_equity, home_bias_score
    Factor tilts (-1..+1):   tilt_value, tilt_size, tilt_quality,
                             tilt_momentum, tilt_low_vol
    Risk & implementation:   est_equity_beta ... avg_expense_ratio

Composition buckets overlap (an index fund counts toward both pct_index_funds
and pct_equity), so they are not expected to sum to 1. Values are never
range-checked here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, Union

from philoscope.utils.serialize import to_python_scalar

logger = logging.getLogger(__name__)


class RebalanceFrequency(str, Enum):
    NONE = "none"
    AD_HOC = "ad_hoc"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    THRESHOLD = "threshold"


class Sensitivity(str, Enum):
    """Shared by tax_sensitivity and fee_sensitivity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OptionsOverlayType(str, Enum):
    NONE = "none"
    COVERED_CALL = "covered_call"
    PROTECTIVE_PUT = "protective_put"
    COLLAR = "collar"
    OTHER = "other"


ContextValue = Union[float, int, str, bool, None]


@dataclass(frozen=True)
class FeatureVector:
    """Immutable, flat feature record. Defaults describe an empty portfolio."""

    # Composition
    pct_equity: float = 0.0
    pct_bonds: float = 0.0
    pct_cash: float = 0.0
    pct_real_assets: float = 0.0
    pct_alternatives: float = 0.0
    pct_crypto: float = 0.0
    pct_single_stocks: float = 0.0
    pct_index_funds: float = 0.0
    pct_active_funds: float = 0.0
    pct_sector_thematic: float = 0.0

    # Concentration & diversification
    top_1_position_pct: float = 0.0
    top_5_positions_pct: float = 0.0
    n_positions: int = 0
    herfindahl_index: float = 0.0

    # Geography
    pct_us_equity: float = 0.0
    pct_ex_us_dev_equity: float = 0.0
    pct_em_equity: float = 0.0
    home_bias_score: float = 0.0

    # Style / factors
    tilt_value: float = 0.0
    tilt_size: float = 0.0
    tilt_quality: float = 0.0
    tilt_momentum: float = 0.0
    tilt_low_vol: float = 0.0

    # Risk & implementation
    est_equity_beta: float = 1.0
    est_duration: float = 0.0
    leverage_ratio: float = 1.0
    uses_leveraged_etfs: bool = False
    uses_options_overlay: bool = False
    options_overlay_type: Union[OptionsOverlayType, str] = OptionsOverlayType.NONE
    rebalance_frequency: Union[RebalanceFrequency, str] = RebalanceFrequency.NONE
    tax_sensitivity: Union[Sensitivity, str] = Sensitivity.LOW
    fee_sensitivity: Union[Sensitivity, str] = Sensitivity.LOW
    avg_expense_ratio: float = 0.0
    total_net_worth: Optional[float] = None

    @classmethod
    def field_names(cls) -> Sequence[str]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "FeatureVector":
        """
        Build a vector from a plain mapping (JSON payload, DataFrame row).

        Unknown keys are ignored. Absent keys, and keys whose value is None or
        NaN (an empty DataFrame cell), take the empty-portfolio default.
        Enum fields accept either the enum member or its string value; strings
        outside the vocabulary are kept as-is.

        Args:
            mapping: Field name -> value.

        Returns:
            A new FeatureVector.
        """
        known = set(cls.field_names())
        kwargs: Dict[str, Any] = {}
        for raw_key, raw_value in mapping.items():
            key = _FIELD_ALIASES.get(raw_key, raw_key)
            if key not in known:
                logger.debug("Ignoring unknown feature field: %s", raw_key)
                continue
            value = to_python_scalar(raw_value)
            if value is None:
                continue
            enum_type = _ENUM_FIELDS.get(key)
            if enum_type is not None:
                value = _coerce_enum(enum_type, value)
            kwargs[key] = value
        return cls(**kwargs)

    def to_context(self) -> Dict[str, ContextValue]:
        """Return a fresh rule context. Enum members become their string values."""
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}

    def to_dict(self) -> Dict[str, ContextValue]:
        """JSON-safe representation used in serialized scoring results."""
        return self.to_context()


class ExtractFeatures(Protocol):
    """Interface of the upstream feature extractor (not part of this package)."""

    def __call__(
        self,
        holdings: Sequence[Mapping[str, Any]],
        manual_assets: Sequence[Mapping[str, Any]] = (),
    ) -> FeatureVector:
        ...


_ENUM_FIELDS = {
    "options_overlay_type": OptionsOverlayType,
    "rebalance_frequency": RebalanceFrequency,
    "tax_sensitivity": Sensitivity,
    "fee_sensitivity": Sensitivity,
}

_FIELD_ALIASES = {
    "totalNetWorthCAD": "total_net_worth",
    "totalNetWorth": "total_net_worth",
}


def _coerce_enum(enum_type: type, value: Any) -> Any:
    if isinstance(value, enum_type) or not isinstance(value, str):
        return value
    try:
        return enum_type(value)
    except ValueError:
        logger.debug("Value %r outside %s vocabulary", value, enum_type.__name__)
        return value


def _plain(value: Any) -> ContextValue:
    if isinstance(value, Enum):
        return value.value
    return value
