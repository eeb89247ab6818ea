"""jPulse application: wires configuration, resolver, helpers and engine.

Initialization sequence:

1. Config loading (framework file, optional site override)
2. Logging setup
3. Plugin loading
4. Path resolver (site > plugins > framework)
5. Helper registry (core, then plugin, then site helpers)
6. Include cache
7. Template engine
8. Translations
9. Context builder (with plugin context extensions)
"""

import logging
from pathlib import Path
from typing import Any, TextIO

from jpulse_core.api import create_app
from jpulse_core.api.middleware.request_id import get_request_id
from jpulse_core.config import ConfigLoader, JPulseConfig
from jpulse_core.errors import ErrorFactory, ErrorRegistry
from jpulse_core.i18n import I18n
from jpulse_core.logging import LogConfig, setup_logging
from jpulse_core.paths import PathResolver
from jpulse_core.plugins import PluginRegistry, register_site_helpers
from jpulse_core.template import (
    ContextBuilder,
    FileCache,
    HandlebarEngine,
    HelperRegistry,
    register_core_helpers,
)
from jpulse_core.types import RequestInfo

logger = logging.getLogger(__name__)


class JPulseApplication:
    """Holds every long-lived component; one instance per process.

    Components are created in ``initialize()`` and shared by all requests.
    Nothing request-specific is stored here.
    """

    def __init__(
        self,
        config: JPulseConfig | None = None,
        config_path: str | Path | None = None,
        site_config_path: str | Path | None = None,
        base_dir: str | Path | None = None,
        log_output: TextIO | None = None,
        configure_logging: bool = True,
    ):
        """Initialize application.

        Args:
            config: Ready configuration (skips file loading)
            config_path: Framework config file (default lookup when None)
            site_config_path: Site config deep-merged over the framework file
            base_dir: Root for relative directories in ``paths`` (default: cwd)
            log_output: Log stream (default: stderr)
            configure_logging: Install the jpulse_core log handler
        """
        self._config_path = config_path
        self._site_config_path = site_config_path
        self._log_output = log_output
        self._configure_logging = configure_logging
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self._initialized = False

        self.config_loader = ConfigLoader()
        self.config: JPulseConfig | Any = config
        self.error_registry: ErrorRegistry | None = None
        self.error_factory: ErrorFactory | None = None
        self.plugins: PluginRegistry | Any = None
        self.resolver: PathResolver | Any = None
        self.helpers: HelperRegistry | Any = None
        self.cache: FileCache | Any = None
        self.engine: HandlebarEngine | Any = None
        self.i18n: I18n | None = None
        self.context_builder: ContextBuilder | Any = None

    def initialize(self) -> "JPulseApplication":
        """Create and wire all components. Safe to call more than once."""
        if self._initialized:
            return self

        # 1. Config
        if self.config is None:
            if self._site_config_path is not None and self._config_path is not None:
                self.config = self.config_loader.load_layered(self._config_path, self._site_config_path)
            else:
                self.config = self.config_loader.load(self._config_path)
        config = self.config

        # 2. Logging
        if self._configure_logging:
            log_config = LogConfig(level=config.logging.level, format=config.logging.format)
            if self._log_output is not None:
                log_config.output = self._log_output
            setup_logging(log_config, request_id_provider=get_request_id)

        self.error_registry = ErrorRegistry()
        self.error_factory = ErrorFactory(self.error_registry)

        # 3. Plugins
        self.plugins = PluginRegistry(self._dir(config.paths.plugins_dir))
        result = self.plugins.load_plugins(config.plugins)
        if result.failed:
            logger.warning(f"{result.failure_count} plugin(s) failed to load")

        # 4. Resolver
        self.resolver = PathResolver(
            framework_dir=self._dir(config.paths.framework_dir),
            site_dir=self._dir(config.paths.site_dir),
            plugin_dirs=self.plugins.webapp_dirs(),
        )

        # 5. Helpers: later registrations override earlier ones
        handlebar = config.handlebar
        self.helpers = HelperRegistry()
        register_core_helpers(self.helpers, handlebar.titlecase_small_words)
        self.plugins.register_helpers(self.helpers)
        register_site_helpers(self.helpers, self.resolver.site_dir)

        # 6. Include cache
        cache_enabled = handlebar.cache_includes.enabled and not config.app.test_mode
        self.cache = FileCache("include", enabled=cache_enabled, ttl_minutes=handlebar.cache_includes.ttl_minutes)

        # 7. Engine
        self.engine = HandlebarEngine(
            self.helpers,
            resolver=self.resolver,
            cache=self.cache,
            max_include_depth=handlebar.max_include_depth,
        )

        # 8. Translations
        i18n_config = config.utils.i18n
        i18n_dir = self._dir(i18n_config.directory)
        if i18n_dir:
            self.i18n = I18n.from_directory(i18n_dir, i18n_config.default)
        else:
            self.i18n = I18n(default=i18n_config.default)

        # 9. Context
        self.context_builder = ContextBuilder(config, self.i18n)
        self.plugins.register_context_extensions(self.context_builder)

        self._initialized = True
        logger.info(
            f"jPulse initialized: {len(self.helpers)} helpers, {len(self.plugins.plugins)} plugin(s), "
            f"include cache {'on' if cache_enabled else 'off'}"
        )
        return self

    async def expand(
        self,
        request: RequestInfo | None,
        template: str,
        extra: dict[str, Any] | None = None,
    ) -> str:
        """Expand a template in the request's context.

        Args:
            request: Current request, None outside a request
            template: Template source
            extra: Additional context keys (override built-in ones)

        Returns:
            Expanded text
        """
        context = await self.context_builder.build(request, extra)
        return await self.engine.expand_handlebars(request, template, context)

    async def render(self, request: RequestInfo | None, template: str) -> str:
        """i18n pass followed by expansion, as used for view files."""
        if self.i18n is not None:
            template = self.i18n.expand_i18n_handlebars(request, template)
        return await self.expand(request, template)

    def create_app(self) -> Any:
        """FastAPI app for this application (initializes if needed)."""
        return create_app(self.initialize())

    def _dir(self, value: str | None) -> Path | None:
        if not value:
            return None
        path = Path(value)
        return path if path.is_absolute() else self.base_dir / path
