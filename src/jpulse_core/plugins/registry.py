"""Plugin registry: load plugins and wire their helpers and files.

Plugins are loaded from a Python file or an installed package, sorted by
priority, and exposed to the rest of the application as:
- webapp layers for the PathResolver (``webapp_dirs``)
- helpers registered with ``source=<plugin name>`` (``register_helpers``)
- context extensions (``register_context_extensions``)
"""

import importlib
import importlib.util
import inspect
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jpulse_core.config.models import PluginDefinition
from jpulse_core.paths import PluginDirectory
from jpulse_core.template.context import ContextBuilder
from jpulse_core.template.helpers import describe
from jpulse_core.template.registry import HelperRegistry

from .base import JPulsePlugin

logger = logging.getLogger(__name__)

HELPER_PREFIX = "handlebar_"


@dataclass
class PluginLoadResult:
    """Result of loading plugins.

    Attributes:
        loaded: List of successfully loaded plugins
        failed: List of (name, error) tuples for failed loads
    """

    loaded: list[JPulsePlugin] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.loaded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


def helper_name(attribute: str) -> str:
    """``handlebar_hello__greet`` -> ``hello.greet``."""
    return attribute[len(HELPER_PREFIX) :].replace("__", ".")


def discover_helpers(registry: HelperRegistry, provider: Any, source: str) -> list[str]:
    """Register every ``handlebar_*`` callable found on ``provider``.

    ``provider`` may be a plugin instance or a module. Description and
    example come from the callable's docstring.

    Returns:
        Registered helper names
    """
    registered: list[str] = []
    for attribute in sorted(dir(provider)):
        if not attribute.startswith(HELPER_PREFIX):
            continue
        handler = getattr(provider, attribute)
        if not callable(handler):
            continue
        name = helper_name(attribute)
        description, example = describe(handler)
        registry.register(name, handler, source=source, description=description, example=example)
        registered.append(name)
    if registered:
        logger.info(f"Registered {len(registered)} helper(s) from {source}: {', '.join(registered)}")
    return registered


def load_module_from_file(path: str | Path, module_name: str) -> Any:
    """Import a Python file as a module.

    Raises:
        FileNotFoundError: If the file does not exist
        ImportError: If the file cannot be loaded
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Module file not found: {path}")

    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if not spec or not spec.loader:
        raise ImportError(f"Cannot load module from: {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


class PluginRegistry:
    """Registry for loaded jPulse plugins, sorted by priority."""

    def __init__(self, plugins_dir: str | Path | None = None):
        """Initialize an empty plugin registry.

        Args:
            plugins_dir: Base directory for relative plugin paths
        """
        self.plugins_dir = Path(plugins_dir) if plugins_dir else None
        self._plugins: list[JPulsePlugin] = []

    @property
    def plugins(self) -> list[JPulsePlugin]:
        """Get list of loaded plugins (sorted by priority)."""
        return self._plugins.copy()

    def load_plugins(self, definitions: list[PluginDefinition]) -> PluginLoadResult:
        """Load plugins from definitions; failures are recorded, not raised.

        Args:
            definitions: List of plugin definitions from config

        Returns:
            PluginLoadResult with loaded and failed plugins
        """
        result = PluginLoadResult()

        for defn in definitions:
            if not defn.enabled:
                logger.debug(f"Skipping disabled plugin: {defn.name}")
                continue

            try:
                plugin = self._load_plugin(defn)
                plugin.name = defn.name
                plugin.priority = defn.priority
                if plugin.webapp_dir is None:
                    plugin.webapp_dir = self._default_webapp_dir(defn)
                result.loaded.append(plugin)
                logger.info(f"Loaded plugin: {defn.name} (priority={defn.priority})")
            except Exception as e:
                result.failed.append((defn.name, str(e)))
                logger.error(f"Failed to load plugin {defn.name}: {e}")

        self._plugins = sorted(result.loaded, key=lambda p: p.priority)
        return result

    def add(self, plugin: JPulsePlugin) -> None:
        """Add an already constructed plugin."""
        self._plugins = sorted([*self._plugins, plugin], key=lambda p: p.priority)

    def webapp_dirs(self) -> list[PluginDirectory]:
        """Existing plugin webapp roots in load order."""
        return [
            PluginDirectory(plugin.name, Path(plugin.webapp_dir))
            for plugin in self._plugins
            if plugin.webapp_dir and Path(plugin.webapp_dir).is_dir()
        ]

    def register_helpers(self, registry: HelperRegistry) -> int:
        """Register helpers of all plugins in load order; returns the count."""
        return sum(len(discover_helpers(registry, plugin, plugin.name)) for plugin in self._plugins)

    def register_context_extensions(self, builder: ContextBuilder) -> None:
        """Register plugins that override ``context_extension``."""
        for plugin in self._plugins:
            if type(plugin).context_extension is not JPulsePlugin.context_extension:
                builder.register_extension(plugin.name, plugin.context_extension, plugin.priority)

    def _load_plugin(self, defn: PluginDefinition) -> JPulsePlugin:
        if defn.type == "file":
            return self._load_from_file(defn.name, self._resolve(defn.path), defn.config)
        if defn.type == "package":
            return self._load_from_package(defn.package, defn.config)
        raise ValueError(f"Unknown plugin type: {defn.type}")

    def _resolve(self, path: str | None) -> Path:
        if not path:
            raise ValueError("Plugin path is required for file type")
        file_path = Path(path)
        if not file_path.is_absolute() and self.plugins_dir and not file_path.exists():
            file_path = self.plugins_dir / file_path
        return file_path

    def _load_from_file(self, name: str, path: Path, config: dict[str, Any]) -> JPulsePlugin:
        module = load_module_from_file(path, f"jpulse_plugin_{name.replace('-', '_')}")
        plugin_class = self._find_plugin_class(module)
        if not plugin_class:
            raise ValueError(f"No JPulsePlugin subclass found in: {path}")
        plugin = plugin_class(config)
        if plugin.webapp_dir is None and (path.parent / "webapp").is_dir():
            plugin.webapp_dir = path.parent / "webapp"
        return plugin

    def _load_from_package(self, package: str | None, config: dict[str, Any]) -> JPulsePlugin:
        if not package:
            raise ValueError("Package name is required for package type")

        try:
            module = importlib.import_module(package)
        except ImportError as e:
            raise ImportError(f"Cannot import plugin package: {package}") from e

        plugin_class = self._find_plugin_class(module)
        if not plugin_class:
            raise ValueError(f"No JPulsePlugin subclass found in package: {package}")
        return plugin_class(config)

    def _default_webapp_dir(self, defn: PluginDefinition) -> Path | None:
        if self.plugins_dir is None:
            return None
        candidate = self.plugins_dir / defn.name / "webapp"
        return candidate if candidate.is_dir() else None

    def _find_plugin_class(self, module: Any) -> type[JPulsePlugin] | None:
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, JPulsePlugin) and obj is not JPulsePlugin:
                return obj
        return None
