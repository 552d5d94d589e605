"""
JLS Canonical JSON

The issuer serializes license custom data with sorted object keys and
compact separators; this module reproduces that form and parses signed
JSON strictly.
"""

import json
import math
from typing import Any, Dict, List, Tuple, Union

# Same bound as the issuer's JSON parser
MAX_NESTING = 128


def canonicalize(obj: Any) -> bytes:
    """
    Convert an object to canonical JSON bytes.

    Rules:
    - Object keys sorted lexicographically (Unicode code point order)
    - No whitespace between tokens (compact form)
    - UTF-8 encoding, non-ASCII characters emitted raw
    - Arrays preserve order
    - NaN and Infinity are rejected

    Returns:
        UTF-8 encoded bytes of canonical JSON
    """
    return canonicalize_str(obj).encode('utf-8')


def canonicalize_str(obj: Any) -> str:
    """Return canonical JSON as string."""
    try:
        return dumps_compact(canonical_value(obj))
    except RecursionError as e:
        raise ValueError("value is nested too deeply") from e


def dumps_compact(value: Any) -> str:
    """Serialize without reordering keys; callers control member order."""
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False, allow_nan=False)


def canonical_value(value: Any, depth: int = 0) -> Any:
    """
    Recursively canonicalize a value.

    Arrays and objects may nest at most MAX_NESTING levels deep.
    """
    if isinstance(value, (dict, list, tuple)) and depth >= MAX_NESTING:
        raise ValueError(f"Cannot canonicalize values nested deeper than {MAX_NESTING} levels")
    if value is None:
        return None
    elif isinstance(value, bool):
        return value
    elif isinstance(value, int):
        return value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError("Cannot canonicalize non-finite number")
        return value
    elif isinstance(value, str):
        return value
    elif isinstance(value, dict):
        return _canonicalize_object(value, depth + 1)
    elif isinstance(value, (list, tuple)):
        return _canonicalize_array(value, depth + 1)
    else:
        raise ValueError(f"Cannot canonicalize type: {type(value)}")


def _canonicalize_object(obj: Dict[str, Any], depth: int) -> Dict[str, Any]:
    for k in obj:
        if not isinstance(k, str):
            raise ValueError(f"Object keys must be strings, got {type(k)}")
    sorted_keys = sorted(obj.keys())
    return {k: canonical_value(obj[k], depth) for k in sorted_keys}


def _canonicalize_array(arr: Union[List, tuple], depth: int) -> List:
    return [canonical_value(item, depth) for item in arr]


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    obj = {}
    for key, value in pairs:
        if key in obj:
            raise ValueError(f"Duplicate object key: {key!r}")
        obj[key] = value
    return obj


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_json(data: Union[bytes, str]) -> Any:
    """
    Parse JSON strictly.

    Signed bytes must be UTF-8; duplicate object keys, the NaN/Infinity
    extensions and arrays or objects nested more than MAX_NESTING levels
    deep are rejected.

    Raises:
        ValueError: If the input is not strict JSON
    """
    if isinstance(data, bytes):
        data = data.decode('utf-8')
    try:
        value = json.loads(
            data,
            object_pairs_hook=_reject_duplicate_keys,
            parse_constant=_reject_constant,
        )
    except RecursionError as e:
        raise ValueError("JSON is nested too deeply") from e
    _check_nesting(value)
    return value


def _check_nesting(value: Any) -> None:
    stack = [(value, 0)]
    while stack:
        item, depth = stack.pop()
        if isinstance(item, dict):
            children = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        if depth >= MAX_NESTING:
            raise ValueError(f"JSON is nested deeper than {MAX_NESTING} levels")
        stack.extend((child, depth + 1) for child in children)
