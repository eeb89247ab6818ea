"""Logical and comparison helpers.

Each returns a boolean inline (rendered "true"/"false") and works as a
condition block: ``{{#eq user.role "admin"}}...{{else}}...{{/eq}}``.
"""

from typing import Any

from ..types import HelperArgs, HelperScope
from ..values import compare, is_truthy, loose_equal


def logic_and(args: HelperArgs, scope: HelperScope) -> bool:
    """True when every argument is truthy."""
    return bool(args.positional) and all(is_truthy(v) for v in args.positional)


def logic_or(args: HelperArgs, scope: HelperScope) -> bool:
    """True when any argument is truthy."""
    return any(is_truthy(v) for v in args.positional)


def logic_not(args: HelperArgs, scope: HelperScope) -> bool:
    """Negate the first argument."""
    return not is_truthy(args.target)


def _pair(args: HelperArgs) -> tuple[Any, Any] | None:
    if len(args.positional) < 2:
        return None
    return args.positional[0], args.positional[1]


def logic_eq(args: HelperArgs, scope: HelperScope) -> bool:
    """Loose equality: 5 equals "5"."""
    pair = _pair(args)
    return pair is not None and loose_equal(*pair)


def logic_ne(args: HelperArgs, scope: HelperScope) -> bool:
    """Loose inequality."""
    pair = _pair(args)
    return pair is not None and not loose_equal(*pair)


def logic_gt(args: HelperArgs, scope: HelperScope) -> bool:
    """First argument greater than second."""
    pair = _pair(args)
    return pair is not None and compare(*pair) > 0


def logic_gte(args: HelperArgs, scope: HelperScope) -> bool:
    """First argument greater than or equal to second."""
    pair = _pair(args)
    return pair is not None and compare(*pair) >= 0


def logic_lt(args: HelperArgs, scope: HelperScope) -> bool:
    """First argument less than second."""
    pair = _pair(args)
    return pair is not None and compare(*pair) < 0


def logic_lte(args: HelperArgs, scope: HelperScope) -> bool:
    """First argument less than or equal to second."""
    pair = _pair(args)
    return pair is not None and compare(*pair) <= 0


LOGIC_HELPERS: dict[str, Any] = {
    "and": logic_and,
    "or": logic_or,
    "not": logic_not,
    "eq": logic_eq,
    "ne": logic_ne,
    "gt": logic_gt,
    "gte": logic_gte,
    "lt": logic_lt,
    "lte": logic_lte,
}
