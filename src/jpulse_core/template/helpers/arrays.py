"""array.* helpers.

Non-list input is treated softly: accessors return "", predicates return
false, transforms return []. ``isEmpty`` and ``length`` also accept mappings.
"""

from typing import Any

from ..types import HelperArgs, HelperScope
from ..values import is_number_like, loose_equal, lookup_path, stringify, to_number
from .strings import _int_arg


def _as_list(value: Any) -> list[Any] | None:
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def array_at(args: HelperArgs, scope: HelperScope) -> Any:
    """Element at a zero-based index; out of range or negative gives ""."""
    items = _as_list(args.target)
    index = _int_arg(args.positional[1]) if len(args.positional) > 1 else None
    if items is None or index is None or index < 0 or index >= len(items):
        return ""
    return items[index]


def array_first(args: HelperArgs, scope: HelperScope) -> Any:
    """First element."""
    items = _as_list(args.target)
    return items[0] if items else ""


def array_last(args: HelperArgs, scope: HelperScope) -> Any:
    """Last element."""
    items = _as_list(args.target)
    return items[-1] if items else ""


def array_includes(args: HelperArgs, scope: HelperScope) -> bool:
    """Whether the list contains the value (loose equality)."""
    items = _as_list(args.target)
    if items is None or len(args.positional) < 2:
        return False
    needle = args.positional[1]
    return any(loose_equal(item, needle) for item in items)


def array_is_empty(args: HelperArgs, scope: HelperScope) -> bool:
    """True for empty lists, empty mappings and non-collections."""
    value = args.target
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return True


def array_length(args: HelperArgs, scope: HelperScope) -> int:
    """Number of elements (keys for mappings)."""
    value = args.target
    if isinstance(value, (list, tuple, dict)):
        return len(value)
    return 0


def array_join(args: HelperArgs, scope: HelperScope) -> str:
    """Join elements with a separator (default ",")."""
    items = _as_list(args.target)
    if items is None:
        return ""
    separator = stringify(args.positional[1]) if len(args.positional) > 1 else ","
    return separator.join(stringify(item) for item in items)


def array_concat(args: HelperArgs, scope: HelperScope) -> list[Any]:
    """Concatenate list arguments; other arguments are skipped."""
    result: list[Any] = []
    for value in args.positional:
        items = _as_list(value)
        if items is not None:
            result.extend(items)
    return result


def array_reverse(args: HelperArgs, scope: HelperScope) -> list[Any]:
    """Reversed copy."""
    items = _as_list(args.target)
    return list(reversed(items)) if items is not None else []


def array_sort(args: HelperArgs, scope: HelperScope) -> list[Any]:
    """Sorted copy.

    Named parameters:
        sortBy: Dotted property path for lists of mappings
        sortAs: "number" or "string"; auto-detected from the values otherwise
        reverse: Descending order

    Missing and null values always sort last.
    """
    items = _as_list(args.target)
    if not items:
        return []

    sort_by = args.get("sortBy")
    keys = [lookup_path(item, str(sort_by)) if sort_by else item for item in items]
    present = [k for k in keys if k is not None]

    sort_as = args.get("sortAs")
    if sort_as not in ("number", "string"):
        numeric = all(isinstance(k, (int, float)) and not isinstance(k, bool) for k in present)
        sort_as = "number" if present and numeric else "string"

    def sort_key(k: Any) -> Any:
        if sort_as == "number":
            return to_number(k) if is_number_like(k) else 0
        return stringify(k)

    pairs = [(k, item) for k, item in zip(keys, items)]
    ranked = sorted(
        (p for p in pairs if p[0] is not None),
        key=lambda p: sort_key(p[0]),
        reverse=args.get("reverse") in (True, "true"),
    )
    missing = [p for p in pairs if p[0] is None]
    return [item for _, item in ranked + missing]


ARRAY_HELPERS: dict[str, Any] = {
    "array.at": array_at,
    "array.first": array_first,
    "array.last": array_last,
    "array.includes": array_includes,
    "array.isEmpty": array_is_empty,
    "array.length": array_length,
    "array.join": array_join,
    "array.concat": array_concat,
    "array.reverse": array_reverse,
    "array.sort": array_sort,
}
