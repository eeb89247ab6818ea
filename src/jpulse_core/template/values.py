"""Value coercion shared by the engine and helpers."""

import json
import math
import re
from typing import Any

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def stringify(value: Any) -> str:
    """Render a value for template output.

    None -> "", booleans -> "true"/"false", whole floats without a decimal
    point, mappings and sequences as compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def is_truthy(value: Any) -> bool:
    """Condition truthiness: 0, "", False, None and empty containers are falsy."""
    return bool(value)


def is_number_like(value: Any) -> bool:
    """True for numbers and strings that parse fully as numbers."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str) and value.strip():
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def to_number(value: Any, default: float = 0) -> float:
    """Lenient numeric conversion; unparseable input yields ``default``.

    Strings use their leading numeric prefix ("12px" -> 12).
    """
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value if not (isinstance(value, float) and math.isnan(value)) else default
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match:
            return float(match.group(0))
    return default


def normalize_number(value: float) -> int | float:
    """Collapse whole floats to int so results print as "4", not "4.0"."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def loose_equal(left: Any, right: Any) -> bool:
    """Template equality: numeric when both sides are numeric, else textual."""
    if is_number_like(left) and is_number_like(right):
        return float(left) == float(right)
    return stringify(left) == stringify(right)


def compare(left: Any, right: Any) -> int:
    """Three-way compare, numeric when possible, else by rendered text."""
    if is_number_like(left) and is_number_like(right):
        a, b = float(left), float(right)
    else:
        a, b = stringify(left), stringify(right)
    return (a > b) - (a < b)


def lookup_path(context: Any, path: str) -> Any:
    """Resolve a dotted path; any missing segment yields None.

    Mappings are indexed by key, sequences by integer segment, other
    objects by public attribute. Segments starting with "_" never reach
    attributes, so "obj.__dict__" and "obj._secret" are None.
    """
    current = context
    for part in path.split("."):
        if current is None or part == "":
            return None
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, (list, tuple)):
            if not part.isdigit():
                return None
            index = int(part)
            current = current[index] if index < len(current) else None
        elif part.startswith("_"):
            return None
        else:
            current = getattr(current, part, None)
            if callable(current):
                return None
    return current


def set_path(target: dict[str, Any], path: str, value: Any) -> None:
    """Assign a dotted path, creating intermediate mappings."""
    parts = path.split(".")
    current = target
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value
