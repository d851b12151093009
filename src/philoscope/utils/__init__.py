"""
Utility modules for philoscope.

Submodules:
    serialize: numpy-safe scalar normalization and JSON conversion helpers
"""

from philoscope.utils.serialize import (
    to_python_scalar,
    to_jsonable,
    camel_case,
    camel_keys,
)

__all__ = [
    "to_python_scalar",
    "to_jsonable",
    "camel_case",
    "camel_keys",
]
