"""jPulse configuration - YAML loading and typed models."""

from .loader import (
    ConfigLoader,
    deep_merge,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    AppInfoConfig,
    CacheIncludesConfig,
    ContextFilterRule,
    ControllerConfig,
    HandlebarConfig,
    I18nConfig,
    JPulseConfig,
    LoggingConfig,
    PathsConfig,
    PluginDefinition,
    ServerConfig,
    UserConfig,
    UtilsConfig,
)

__all__ = [
    # Config models
    "JPulseConfig",
    "AppInfoConfig",
    "ServerConfig",
    "PathsConfig",
    "PluginDefinition",
    "ControllerConfig",
    "HandlebarConfig",
    "ContextFilterRule",
    "CacheIncludesConfig",
    "UserConfig",
    "UtilsConfig",
    "I18nConfig",
    "LoggingConfig",
    # Loader
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    "resolve_env_vars",
    "deep_merge",
]
