"""math.* helpers. Non-numeric arguments count as 0; never raises."""

import math
from functools import reduce
from typing import Any

from ..types import HelperArgs, HelperScope
from ..values import normalize_number, to_number


def _numbers(args: HelperArgs) -> list[float]:
    return [to_number(v) for v in args.positional]


def math_add(args: HelperArgs, scope: HelperScope) -> int | float:
    """Sum of all arguments."""
    return normalize_number(sum(_numbers(args)))


def math_subtract(args: HelperArgs, scope: HelperScope) -> int | float:
    """First argument minus the rest."""
    values = _numbers(args)
    if not values:
        return 0
    return normalize_number(reduce(lambda a, b: a - b, values))


def math_multiply(args: HelperArgs, scope: HelperScope) -> int | float:
    """Product of all arguments."""
    values = _numbers(args)
    if not values:
        return 0
    return normalize_number(reduce(lambda a, b: a * b, values))


def math_divide(args: HelperArgs, scope: HelperScope) -> int | float:
    """First argument divided by the rest; division by zero gives 0."""
    values = _numbers(args)
    if not values:
        return 0
    result = values[0]
    for divisor in values[1:]:
        if divisor == 0:
            return 0
        result = result / divisor
    return normalize_number(result)


def math_mod(args: HelperArgs, scope: HelperScope) -> int | float:
    """Remainder of exactly two arguments (sign follows the dividend)."""
    values = _numbers(args)
    if len(values) != 2 or values[1] == 0:
        return 0
    return normalize_number(math.fmod(values[0], values[1]))


def _unary(args: HelperArgs, fn: Any) -> int | float:
    values = _numbers(args)
    if len(values) != 1:
        return 0
    return normalize_number(fn(values[0]))


def math_round(args: HelperArgs, scope: HelperScope) -> int | float:
    """Round half up (3.5 -> 4, -3.5 -> -3)."""
    return _unary(args, lambda x: math.floor(x + 0.5))


def math_floor(args: HelperArgs, scope: HelperScope) -> int | float:
    """Round down."""
    return _unary(args, math.floor)


def math_ceil(args: HelperArgs, scope: HelperScope) -> int | float:
    """Round up."""
    return _unary(args, math.ceil)


def math_abs(args: HelperArgs, scope: HelperScope) -> int | float:
    """Absolute value."""
    return _unary(args, abs)


def math_min(args: HelperArgs, scope: HelperScope) -> int | float:
    """Smallest argument."""
    values = _numbers(args)
    return normalize_number(min(values)) if values else 0


def math_max(args: HelperArgs, scope: HelperScope) -> int | float:
    """Largest argument."""
    values = _numbers(args)
    return normalize_number(max(values)) if values else 0


MATH_HELPERS: dict[str, Any] = {
    "math.add": math_add,
    "math.subtract": math_subtract,
    "math.multiply": math_multiply,
    "math.divide": math_divide,
    "math.mod": math_mod,
    "math.round": math_round,
    "math.floor": math_floor,
    "math.ceil": math_ceil,
    "math.abs": math_abs,
    "math.min": math_min,
    "math.max": math_max,
}
