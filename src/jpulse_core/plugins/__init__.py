"""jPulse plugin framework.

Usage:
    from jpulse_core.plugins import JPulsePlugin, PluginRegistry

    class HelloPlugin(JPulsePlugin):
        def handlebar_hello(self, args, scope):
            # {{hello "World"}}
            return f"Hello {args.target}"

    registry = PluginRegistry(plugins_dir="plugins")
    registry.load_plugins(config.plugins)
    registry.register_helpers(helper_registry)
"""

from .base import JPulsePlugin
from .registry import (
    PluginLoadResult,
    PluginRegistry,
    discover_helpers,
    helper_name,
    load_module_from_file,
)
from .site import register_site_helpers

__all__ = [
    "JPulsePlugin",
    "PluginRegistry",
    "PluginLoadResult",
    "discover_helpers",
    "helper_name",
    "load_module_from_file",
    "register_site_helpers",
]
