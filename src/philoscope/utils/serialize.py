"""
Serialization utilities for philoscope.

Feature vectors frequently arrive from pandas/numpy pipelines, so cells may be
numpy scalars or NaN. Scoring results must cross process boundaries as plain
JSON. These helpers convert both directions to plain Python types.
"""

import math
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict

import numpy as np


def to_python_scalar(x: Any) -> Any:
    """
    Convert numpy scalars to their Python equivalents.

    Handles:
    - numpy.bool_ -> bool
    - numpy.integer -> int
    - numpy.floating -> float (NaN becomes None)
    - float NaN -> None
    - anything else -> pass-through

    Example:
        >>> to_python_scalar(np.float64(0.25))
        0.25
        >>> to_python_scalar(np.int64(3))
        3
        >>> to_python_scalar(float("nan")) is None
        True
    """
    if isinstance(x, np.bool_):
        return bool(x)
    if isinstance(x, np.integer):
        return int(x)
    if isinstance(x, np.floating):
        x = float(x)
    if isinstance(x, float) and math.isnan(x):
        return None
    return x


def to_jsonable(value: Any) -> Any:
    """
    Recursively convert a value into JSON-compatible Python types.

    Dataclasses are expanded with asdict, enums become their values, tuples
    and numpy arrays become lists.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, np.ndarray):
        return [to_jsonable(v) for v in value.tolist()]
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return to_python_scalar(value)


def camel_case(name: str) -> str:
    """
    Convert a snake_case key to camelCase.

    Example:
        >>> camel_case("matched_signals")
        'matchedSignals'
    """
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Rename top-level keys of a dict to camelCase."""
    return {camel_case(k): v for k, v in data.items()}
