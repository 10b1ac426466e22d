"""
Parameter binding helpers.

Each bound value gets a parameter type inferred from its runtime type and is
coerced to match before it is handed to the driver:

- ``bool``  -> BOOL (checked before int, since bool is an int subclass)
- ``int``   -> INT
- ``None``  -> NULL
- anything else -> STR, sent as ``str(value)`` and cast by the server
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any, Iterable, List


class ParamType(str, enum.Enum):
    BOOL = "bool"
    INT = "int"
    NULL = "null"
    STR = "str"


_NON_SCALAR = (Mapping, list, tuple, set, frozenset, bytes, bytearray)


def infer_param_type(value: Any) -> ParamType:
    """Pick the parameter type for a single scalar value."""
    if isinstance(value, bool):
        return ParamType.BOOL
    if isinstance(value, int):
        return ParamType.INT
    if value is None:
        return ParamType.NULL
    return ParamType.STR


def bind_value(value: Any) -> Any:
    """
    Coerce a value to the Python type psycopg adapts as the inferred parameter type.

    Raises
    ------
    TypeError
        If the value is a container or bytes rather than a column scalar.
    """
    if isinstance(value, _NON_SCALAR):
        raise TypeError(
            f"Unsupported parameter value of type {type(value).__name__}; "
            "expected str, int, bool or None"
        )
    param_type = infer_param_type(value)
    if param_type is ParamType.STR:
        return value if isinstance(value, str) else str(value)
    return value


def bind_values(values: Iterable[Any]) -> List[Any]:
    """Apply `bind_value` to every value, preserving order."""
    return [bind_value(value) for value in values]


def bind_id(record_id: Any) -> int:
    """
    Bind a primary key as an integer parameter.

    Accepts ints and strings of decimal digits (e.g. "42"). Anything else,
    including bools, floats and Decimals, raises ValueError rather than
    being truncated to a different id.
    """
    if isinstance(record_id, int) and not isinstance(record_id, bool):
        return record_id
    if isinstance(record_id, str):
        text = record_id.strip()
        if text.lstrip("+-").isdigit():
            return int(text)
    raise ValueError(f"Invalid record id: {record_id!r}")


__all__ = ["ParamType", "bind_id", "bind_value", "bind_values", "infer_param_type"]
