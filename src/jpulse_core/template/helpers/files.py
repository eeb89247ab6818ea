"""file.* helpers.

All paths are relative to the ``view/`` directory and resolve through the
engine's PathResolver (site, then plugins, then framework).
"""

import copy
import logging
import os
import re
import time
from typing import Any

from jpulse_core.errors import JPulseError, create_error
from jpulse_core.paths import PathResolver, ResolvedPath, is_traversal

from ..types import ComponentDef, HelperArgs, HelperScope, RenderState
from ..values import set_path, stringify

logger = logging.getLogger(__name__)

# Stylesheets and scripts may exist only as templates ("app.css.tmpl")
_TEMPLATE_FALLBACK_EXTENSIONS = (".css", ".js")

# sortBy modes of file.list and file.includeComponents
SORT_MODES = ("component-order", "plugin-order", "filename", "filesystem")

# Sort key for components and files without an explicit order
_LAST = 99999

_PLUGIN_IN_NAME = re.compile(r"jpulse-plugins/([^/.]+)")


def _view_path(path: str) -> str:
    return path if path.startswith("view/") else f"view/{path}"


def _is_prohibited(path: str) -> bool:
    return not path or path.startswith("/") or is_traversal(path)


def _find(scope: HelperScope, path: str) -> ResolvedPath | None:
    resolver = scope.engine.resolver
    if resolver is None or _is_prohibited(path):
        return None
    rel = _view_path(path)
    found = resolver.resolve_asset(rel)
    if found is None and rel.endswith(_TEMPLATE_FALLBACK_EXTENSIONS):
        found = resolver.resolve_asset(f"{rel}.tmpl")
    return found


async def file_include(args: HelperArgs, scope: HelperScope) -> str:
    """Include and expand a view fragment.

    ``{{file.include "jpulse-header.tmpl" title="Home"}}``: named parameters
    are added to the context of the included template.

    Raises:
        JPulseError(TEMPLATE_ERROR): No path given
    """
    path = stringify(args.target)
    if not path:
        raise create_error("TEMPLATE_ERROR", reason="file.include requires a file path")
    context = scope.derive(**args.named) if args.named else scope.context
    return await scope.engine.include_file(path, context, scope.state)


def file_exists(args: HelperArgs, scope: HelperScope) -> bool:
    """Whether a view file exists in any layer."""
    return _find(scope, stringify(args.target)) is not None


def file_timestamp(args: HelperArgs, scope: HelperScope) -> int:
    """Modification time in milliseconds; current time if the file is missing.

    Meant for cache busting: ``app.css?t={{file.timestamp "app.css"}}``.
    """
    found = _find(scope, stringify(args.target))
    if found is not None:
        try:
            return int(os.path.getmtime(found.absolute_path) * 1000)
        except OSError as e:
            logger.debug(f"Cannot stat {found.absolute_path}: {e}")
    return int(time.time() * 1000)


def _sort_mode(args: HelperArgs, helper: str, default: str) -> str:
    sort_by = stringify(args.get("sortBy")) or default
    if sort_by not in SORT_MODES:
        logger.warning(f"{helper}: unknown sortBy '{sort_by}', using {default}")
        return default
    return sort_by


def _plugin_rank(resolver: PathResolver, resolved: ResolvedPath) -> int:
    """Load-order index of the plugin a file belongs to; other files sort last.

    A file belongs to a plugin when the plugin's layer provides it or when
    its name contains ``jpulse-plugins/<plugin>``.
    """
    names = [plugin.name for plugin in resolver.plugin_dirs]
    name = resolved.plugin
    if name is None:
        match = _PLUGIN_IN_NAME.search(resolved.requested_path)
        name = match.group(1) if match else None
    return names.index(name) if name in names else _LAST


def _list_view(resolver: PathResolver, pattern: str, sort_by: str) -> list[ResolvedPath]:
    """Matching view files in the order a sortBy mode asks for.

    Only ``filesystem`` and ``plugin-order`` reorder files; every other
    mode lists them by name.
    """
    found = resolver.list_resolved(_view_path(pattern), sort=sort_by != "filesystem")
    if sort_by == "plugin-order":
        found.sort(key=lambda resolved: _plugin_rank(resolver, resolved))
    return found


def file_list(args: HelperArgs, scope: HelperScope) -> list[str]:
    """View files matching a single-level glob, site overrides first.

    ``{{#each file.list "jpulse-examples/*.shtml" sortBy="filename"}}``.
    Returned names are relative to ``view/``. Recursive ``**`` patterns are
    not supported. ``sortBy`` is ``filename`` (default), ``filesystem``
    (site, then plugins, then framework) or ``plugin-order`` (plugin load
    order, other files last); ``component-order`` lists by name.
    """
    pattern = stringify(args.target)
    resolver = scope.engine.resolver
    if resolver is None or _is_prohibited(pattern) or "**" in pattern:
        logger.warning(f"file.list rejected pattern: {pattern!r}")
        return []
    sort_by = _sort_mode(args, "file.list", "filename")
    prefix = "view/"
    return [resolved.requested_path[len(prefix) :] for resolved in _list_view(resolver, pattern, sort_by)]


def _name_matches(name: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        if pattern.endswith(".*"):
            if name.startswith(pattern[:-1]):
                return True
        elif name == pattern:
            return True
    return False


def _order(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return _LAST


async def _collect_components(scope: HelperScope, resolved: ResolvedPath) -> list[ComponentDef]:
    """Components defined by one file, in definition order.

    The file is expanded in its own render state with a private copy of
    ``vars``; its output is dropped.
    """
    state = RenderState(request=scope.state.request, include_stack=list(scope.state.include_stack))
    context = scope.derive(vars=copy.deepcopy(scope.vars))
    await scope.engine.include_file(resolved.requested_path, context, state)
    return list(state.components.values())


async def file_include_components(args: HelperArgs, scope: HelperScope) -> str:
    """Register the components defined in all view files matching a glob.

    ``{{file.includeComponents "admin/cards/*.shtml" component="adminCards.*" sortBy="component-order"}}``

    Only the ``{{#component}}`` definitions of each file are kept.
    ``component`` filters by name: exact names or ``namespace.*``, comma
    separated. An ``order=N`` default on a definition is its sort key for
    ``component-order``, the default mode; definitions without one sort
    last. The other modes are as for ``file.list`` and keep definition
    order within a file.

    Matched components are callable as ``{{components.adminCards.config}}``.
    Their text, expanded in the current context, is also published under
    ``components`` in sort order so ``{{#each components.adminCards}}``
    iterates them. Produces no output.

    Raises:
        JPulseError(TEMPLATE_ERROR): No pattern, or a recursive ``**`` pattern
        JPulseError(PATH_PROHIBITED): Absolute or traversal pattern
    """
    pattern = stringify(args.target)
    if not pattern:
        raise create_error("TEMPLATE_ERROR", reason="file.includeComponents requires a glob pattern")
    if _is_prohibited(pattern):
        raise create_error("PATH_PROHIBITED", path=pattern)
    if "**" in pattern:
        raise create_error("TEMPLATE_ERROR", reason=f"Recursive patterns (**) are not supported: {pattern}")
    resolver = scope.engine.resolver
    if resolver is None:
        return ""

    sort_by = _sort_mode(args, "file.includeComponents", "component-order")
    filters = [part.strip() for part in stringify(args.get("component")).split(",") if part.strip()]

    files = _list_view(resolver, pattern, sort_by)
    found: list[tuple[int, ComponentDef]] = []
    for resolved in files:
        try:
            components = await _collect_components(scope, resolved)
        except JPulseError as e:
            logger.warning(f"file.includeComponents skipped {resolved.requested_path}: {e.message}")
            continue
        for component in components:
            if filters and not _name_matches(component.name, filters):
                continue
            defaults = dict(component.defaults)
            order = _order(defaults.pop("order", _LAST))
            found.append((order, ComponentDef(name=component.name, template=component.template, defaults=defaults)))
    if sort_by == "component-order":
        found.sort(key=lambda item: item[0])

    published = scope.context.setdefault("components", {})
    for order, component in found:
        usage = scope.engine.register_component(scope.state, component.name, component.template, component.defaults)
        text = await scope.expand(component.template, scope.derive(**component.defaults))
        set_path(published, usage, text)
        logger.debug(f"Component included: {component.name} (order: {order})")

    logger.info(f"Registered {len(found)} component(s) from {len(files)} file(s) with pattern: {pattern}")
    return ""


FILE_HELPERS: dict[str, Any] = {
    "file.include": file_include,
    "file.includeComponents": file_include_components,
    "file.exists": file_exists,
    "file.timestamp": file_timestamp,
    "file.list": file_list,
}
