import json
from dataclasses import dataclass
from enum import Enum

import numpy as np

from philoscope.utils import camel_case, camel_keys, to_jsonable, to_python_scalar


class Colour(Enum):
    RED = "red"


@dataclass
class Sample:
    weights: tuple
    colour: Colour
    values: np.ndarray


def test_to_python_scalar():
    assert to_python_scalar(np.bool_(False)) is False
    assert type(to_python_scalar(np.int32(4))) is int
    assert type(to_python_scalar(np.float32(0.5))) is float
    assert to_python_scalar(np.float64("nan")) is None
    assert to_python_scalar(float("nan")) is None
    assert to_python_scalar("text") == "text"


def test_to_jsonable_expands_nested_values():
    sample = Sample(weights=(np.int64(1), 2.5), colour=Colour.RED, values=np.array([0.1, np.nan]))
    data = to_jsonable(sample)
    assert data == {"weights": [1, 2.5], "colour": "red", "values": [0.1, None]}
    json.dumps(data)


def test_camel_case():
    assert camel_case("matched_signals") == "matchedSignals"
    assert camel_case("id") == "id"
    assert camel_keys({"is_excluded": True, "display_name": "X"}) == {
        "isExcluded": True,
        "displayName": "X",
    }
