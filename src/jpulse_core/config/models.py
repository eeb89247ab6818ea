"""jPulse configuration data models.

Keys in the YAML file keep their camelCase spelling (``maxIncludeDepth``);
fields that differ from the key carry it in ``metadata["key"]``.
"""

from dataclasses import dataclass, field
from typing import Any

from jpulse_core.types import LogFormat, LogLevel


def key(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field read from a differently-named config key."""
    metadata = {"key": name}
    return field(metadata=metadata, **kwargs)


@dataclass
class AppInfoConfig:
    """Application identity."""

    name: str = "jPulse"
    version: str = "1.0.0"
    test_mode: bool = key("testMode", default=False)


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class PathsConfig:
    """Filesystem layout: framework webapp, site overrides and plugins."""

    framework_dir: str = key("frameworkDir", default="webapp")
    site_dir: str | None = key("siteDir", default="site/webapp")
    plugins_dir: str | None = key("pluginsDir", default="plugins")


@dataclass
class PluginDefinition:
    """A plugin contributing helpers and/or webapp files."""

    name: str = ""
    enabled: bool = True
    type: str = "file"  # "file" | "package"
    path: str | None = None
    package: str | None = None
    priority: int = 50
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class ContextFilterRule:
    """Visibility rule applied to the appConfig namespace of the template context."""

    without_auth: list[str] = key("withoutAuth", default_factory=list)
    with_auth: list[str] = key("withAuth", default_factory=list)
    always_allow: list[str] = key("alwaysAllow", default_factory=list)


@dataclass
class CacheIncludesConfig:
    """Include cache settings. ttl_minutes == 0 means entries never expire."""

    enabled: bool = True
    ttl_minutes: float = key("ttlMinutes", default=0)


@dataclass
class HandlebarConfig:
    """Template engine settings."""

    context_filter: ContextFilterRule = key("contextFilter", default_factory=ContextFilterRule)
    max_include_depth: int = key("maxIncludeDepth", default=16)
    cache_includes: CacheIncludesConfig = key("cacheIncludes", default_factory=CacheIncludesConfig)
    titlecase_small_words: list[str] | None = key("titlecaseSmallWords", default=None)


@dataclass
class ControllerConfig:
    """Controller settings."""

    handlebar: HandlebarConfig = field(default_factory=HandlebarConfig)


@dataclass
class UserConfig:
    """User model settings used when building the template context."""

    admin_roles: list[str] = key("adminRoles", default_factory=lambda: ["admin", "root"])


@dataclass
class I18nConfig:
    """Translation settings."""

    default: str = "en"
    directory: str = "webapp/translations"


@dataclass
class UtilsConfig:
    """Utility settings."""

    i18n: I18nConfig = field(default_factory=I18nConfig)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED


@dataclass
class JPulseConfig:
    """Complete jPulse configuration.

    ``raw`` keeps the full mapping (after env var resolution); it is what
    templates see as ``appConfig`` once filtered.
    """

    app: AppInfoConfig = field(default_factory=AppInfoConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    plugins: list[PluginDefinition] = field(default_factory=list)
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    user: UserConfig = field(default_factory=UserConfig)
    utils: UtilsConfig = field(default_factory=UtilsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    raw: dict[str, Any] = field(default_factory=dict, metadata={"key": None})

    @property
    def handlebar(self) -> HandlebarConfig:
        """Shortcut for controller.handlebar."""
        return self.controller.handlebar
