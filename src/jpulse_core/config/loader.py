"""jPulse configuration loader."""

import logging
import os
import re
import types
import typing
from collections.abc import Callable
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from jpulse_core.errors import create_error
from jpulse_core.types import ValidationIssue, ValidationResult

from .models import JPulseConfig

logger = logging.getLogger(__name__)

# Pattern: ${VAR}, ${VAR:-default}, ${VAR:?error}
_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([?-])([^}]*))?\}")

VALID_TOP_LEVEL_KEYS = frozenset(
    {"app", "server", "paths", "plugins", "controller", "user", "utils", "logging", "system", "view"}
)


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Raises:
        JPulseError: If a required variable is not set
    """

    def replacer(match: re.Match[str]) -> str:
        var_name, operator, operand = match.group(1), match.group(2), match.group(3)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        error_msg = (operator == "?" and operand) or f"Required environment variable {var_name} not set"
        raise create_error("CONFIG_INVALID", detail=error_msg)

    return _ENV_PATTERN.sub(replacer, value)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries; override wins on conflicts."""
    result = base.copy()

    for k, value in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(value, dict):
            result[k] = deep_merge(result[k], value)
        else:
            result[k] = value

    return result


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    if isinstance(data, str):
        return resolve_env_vars(data)
    return data


class ConfigLoader:
    """Load and validate jPulse configuration."""

    def __init__(self) -> None:
        self._config: JPulseConfig | None = None
        self._config_path: Path | None = None
        self._change_callbacks: list[Callable[[JPulseConfig], None]] = []

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> JPulseConfig:
        """Load configuration from a YAML file.

        Resolution order if path not specified:
        1. JPULSE_CONFIG_PATH environment variable
        2. ./jpulse.yaml
        3. If use_defaults=True and no file found, default configuration

        Args:
            path: Optional path to config file
            use_defaults: Use defaults when no file is found

        Returns:
            Loaded JPulseConfig instance

        Raises:
            JPulseError: If file not found (when use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)
        if not config_path.exists():
            if use_defaults:
                logger.info("No config file found, using default configuration")
                return self.load_from_dict({})
            raise create_error("CONFIG_INVALID", detail=f"Configuration file not found: {config_path}")

        data = self._read_yaml(config_path)
        return self.load_from_dict(data, config_path)

    def load_layered(self, framework_path: str | Path, site_path: str | Path | None) -> JPulseConfig:
        """Load the framework config and deep-merge a site config over it.

        A missing site file is not an error; the framework file must exist.
        """
        framework_path = Path(framework_path)
        if not framework_path.exists():
            raise create_error(
                "CONFIG_INVALID", detail=f"Configuration file not found: {framework_path}"
            )
        data = self._read_yaml(framework_path)

        if site_path is not None and Path(site_path).exists():
            data = deep_merge(data, self._read_yaml(Path(site_path)))
            logger.debug(f"Merged site configuration from {site_path}")

        return self.load_from_dict(data, framework_path)

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> JPulseConfig:
        """Load configuration from dictionary.

        Raises:
            JPulseError: If configuration is invalid
        """
        data = _resolve_env_vars_recursive(data)

        validation = self.validate(data)
        for issue in validation.warnings:
            logger.warning(f"{issue.path}: {issue.message}")
        if not validation.valid:
            error_messages = [f"- {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._convert_field(JPulseConfig, data)
        except (TypeError, ValueError) as e:
            raise create_error("CONFIG_INVALID", detail=f"Failed to parse configuration: {e}") from e

        config.raw = data
        if os.environ.get("JPULSE_ENV") == "test":
            config.app.test_mode = True

        self._config = config
        self._config_path = config_path
        logger.info("Configuration loaded successfully")
        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading."""
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for k in data:
            if k not in VALID_TOP_LEVEL_KEYS:
                warnings.append(
                    ValidationIssue(path=k, message=f"Unknown configuration key: {k}", severity="warning")
                )

        handlebar = data.get("controller", {}).get("handlebar", {}) if isinstance(data.get("controller"), dict) else {}
        if not isinstance(handlebar, dict):
            errors.append(ValidationIssue(path="controller.handlebar", message="handlebar must be a dictionary"))
            handlebar = {}

        if "maxIncludeDepth" in handlebar:
            depth = handlebar["maxIncludeDepth"]
            if isinstance(depth, bool) or not isinstance(depth, int) or depth <= 0:
                errors.append(
                    ValidationIssue(
                        path="controller.handlebar.maxIncludeDepth",
                        message="maxIncludeDepth must be a positive integer",
                    )
                )

        context_filter = handlebar.get("contextFilter", {})
        if not isinstance(context_filter, dict):
            errors.append(
                ValidationIssue(path="controller.handlebar.contextFilter", message="contextFilter must be a dictionary")
            )
        else:
            for list_key in ("withoutAuth", "withAuth", "alwaysAllow"):
                entries = context_filter.get(list_key, [])
                if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
                    errors.append(
                        ValidationIssue(
                            path=f"controller.handlebar.contextFilter.{list_key}",
                            message=f"{list_key} must be a list of strings",
                        )
                    )

        if "plugins" in data and not isinstance(data["plugins"], list):
            errors.append(ValidationIssue(path="plugins", message="plugins must be a list"))

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> JPulseConfig:
        """Get current configuration.

        Raises:
            JPulseError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def reload(self) -> JPulseConfig:
        """Reload configuration from file and notify change callbacks."""
        if self._config_path is None:
            raise create_error("CONFIG_INVALID", detail="No config path set, cannot reload")

        new_config = self.load(self._config_path)

        for callback in self._change_callbacks:
            try:
                callback(new_config)
            except Exception as e:
                logger.error(f"Config change callback failed: {e}")

        return new_config

    def on_change(self, callback: Callable[[JPulseConfig], None]) -> None:
        """Register callback for config changes."""
        self._change_callbacks.append(callback)

    def _read_yaml(self, config_path: Path) -> dict[str, Any]:
        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error("CONFIG_INVALID", detail=f"Invalid YAML in config file: {e}") from e
        if not isinstance(data, dict):
            raise create_error("CONFIG_INVALID", detail=f"Top level of {config_path} must be a mapping")
        return data

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get("JPULSE_CONFIG_PATH")
        if env_path:
            return Path(env_path)
        return Path("jpulse.yaml")

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert a raw config value to the declared field type."""
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        # Optional[X] / X | None
        if origin in (typing.Union, types.UnionType):
            candidates = [a for a in typing.get_args(field_type) if a is not type(None)]
            if len(candidates) == 1:
                return self._convert_field(candidates[0], value)
            return value

        if origin is list:
            if not isinstance(value, list):
                return value
            args = typing.get_args(field_type)
            return [self._convert_field(args[0], item) for item in value] if args else value

        if is_dataclass(field_type):
            if not isinstance(value, dict):
                return value
            kwargs = {}
            for f in fields(field_type):
                source_key = f.metadata.get("key", f.name)
                if source_key is not None and source_key in value:
                    kwargs[f.name] = self._convert_field(f.type, value[source_key])
            return field_type(**kwargs)

        if isinstance(field_type, type) and issubclass(field_type, Enum):
            return field_type(value) if isinstance(value, str) else value

        return value


# Convenience singleton
_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get default config loader singleton."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(path: str | Path | None = None) -> JPulseConfig:
    """Convenience function to load config."""
    return get_config_loader().load(path)
