"""
Raw value -> typed value conversion.

Coercion never raises: unparsable numbers become zero and unparsable
collections become empty, so malformed environment data degrades instead
of crashing the caller.
"""

import json
import math
import re
import sys
from typing import Any, Callable, Dict, List

from settings_registry.variables import VarType

TRUE_VALUES = frozenset({"true", "1", "yes", "on"})

_INT_PREFIX = re.compile(r"\s*([+-]?\d+(?:_\d+)*)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:\d+(?:_\d+)*(?:\.\d+(?:_\d+)*)?|\.\d+(?:_\d+)*)(?:[eE][+-]?\d+)?)"
)


def coerce_string(raw: Any) -> str:
    return raw if isinstance(raw, str) else str(raw)


def coerce_integer(raw: Any) -> int:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        # inf and nan have no integer value
        return int(raw) if math.isfinite(raw) else 0
    match = _INT_PREFIX.match(str(raw))
    if not match:
        return 0
    try:
        return int(match.group(1).replace("_", ""))
    except ValueError:
        # beyond the interpreter's int string conversion limit
        return 0


def coerce_float(raw: Any) -> float:
    if isinstance(raw, (int, float)):
        try:
            return float(raw)
        except OverflowError:
            return 0.0
    match = _FLOAT_PREFIX.match(str(raw))
    if not match:
        return 0.0
    return float(match.group(1).replace("_", ""))


def coerce_boolean(raw: Any) -> bool:
    return str(raw).lower() in TRUE_VALUES


def coerce_array(raw: Any) -> List[Any]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    text = coerce_string(raw)
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        parsed = None
    if isinstance(parsed, list):
        return parsed
    return [segment.strip() for segment in text.split(",")]


def coerce_map(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return dict(raw)
    text = coerce_string(raw)
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def coerce_symbol(raw: Any) -> str:
    return sys.intern(coerce_string(raw))


_COERCERS: Dict[VarType, Callable[[Any], Any]] = {
    VarType.STRING: coerce_string,
    VarType.INTEGER: coerce_integer,
    VarType.FLOAT: coerce_float,
    VarType.BOOLEAN: coerce_boolean,
    VarType.ARRAY: coerce_array,
    VarType.MAP: coerce_map,
    VarType.SYMBOL: coerce_symbol,
}


def coerce(raw: Any, var_type: VarType) -> Any:
    """Convert a non-None raw value into the shape implied by var_type."""
    return _COERCERS[var_type](raw)
