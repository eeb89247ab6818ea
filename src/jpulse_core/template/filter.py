"""Context visibility filter.

Hides namespaces from anonymous (or, rarely, authenticated) requests and
re-exposes an explicit allowlist of leaf values. Runs before every
expansion; the input mapping is never mutated.

Rule entries are dotted paths. A plain name ("system") hides a top-level
key; segments may be globs ("*.port", "email.smtp*") and "**" matches any
depth ("**.password").
"""

import logging
from collections.abc import Mapping
from fnmatch import fnmatchcase
from typing import Any

from jpulse_core.config.models import ContextFilterRule

logger = logging.getLogger(__name__)

_MISSING = object()


def filter_context(
    context: Mapping[str, Any],
    is_authenticated: bool,
    rule: ContextFilterRule,
) -> dict[str, Any]:
    """Produce the filtered view of ``context`` for one request.

    Args:
        context: Mapping to filter (left untouched)
        is_authenticated: Whether the request has a logged-in user
        rule: Visibility rule

    Returns:
        New mapping; containers along removed paths are copies, untouched
        branches are shared with the input.
    """
    hidden = rule.with_auth if is_authenticated else rule.without_auth
    result: Any = dict(context)
    for pattern in hidden:
        parts = [p for p in pattern.split(".") if p]
        if parts:
            result = _without(result, parts)

    for path in rule.always_allow:
        value = _lookup(context, path.split("."))
        if value is _MISSING:
            logger.debug(f"alwaysAllow path not present, skipped: {path}")
            continue
        result = _with(result, path.split("."), value)

    return result


def _without(node: Any, parts: list[str]) -> Any:
    """Copy of node with every key matching the pattern path removed."""
    if not isinstance(node, Mapping):
        return node
    head, rest = parts[0], parts[1:]

    if head == "**":
        # Match the remainder here, then keep searching below every child
        pruned = _without(node, rest) if rest else {}
        return {k: _without(v, parts) for k, v in pruned.items()}

    result = dict(node)
    for k in node:
        if not fnmatchcase(str(k), head):
            continue
        if rest:
            result[k] = _without(node[k], rest)
        else:
            del result[k]
    return result


def _lookup(node: Any, parts: list[str]) -> Any:
    for part in parts:
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _with(node: Any, parts: list[str], value: Any) -> Any:
    """Copy of node with value set at the path, creating mappings as needed."""
    result = dict(node) if isinstance(node, Mapping) else {}
    head, rest = parts[0], parts[1:]
    result[head] = _with(result.get(head), rest, value) if rest else value
    return result
