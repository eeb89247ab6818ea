"""jPulse logging setup - colored or structured JSON output on stdlib logging."""

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from jpulse_core.logging.colors import LEVEL_COLORS, LIGHT_BLUE, MAGENTA, RESET
from jpulse_core.types import LogFormat, LogLevel

ROOT_LOGGER = "jpulse_core"

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

# LogRecord attributes that are not user supplied extras
_RESERVED = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "pathname", "process",
        "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
        "thread", "threadName", "message", "taskName",
    }
)


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)
    output: TextIO = field(default=sys.stderr)


def _component(record: logging.LogRecord) -> str:
    """Short component name: jpulse_core.template.engine -> template."""
    parts = record.name.split(".")
    if parts[0] == ROOT_LOGGER and len(parts) > 1:
        return parts[1]
    return parts[0]


class ComponentFilter(logging.Filter):
    """Drops records for components switched off in LogConfig.components."""

    def __init__(self, components: dict[str, bool]):
        super().__init__()
        self.components = components

    def filter(self, record: logging.LogRecord) -> bool:
        return self.components.get(_component(record), True)


class ColoredFormatter(logging.Formatter):
    """Format: [COMPONENT] message {extras}."""

    def __init__(self, truncate_at: int = 200):
        super().__init__()
        self.truncate_at = truncate_at

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, RESET)
        output = f"{MAGENTA}[{_component(record).upper()}]{RESET} {color}{record.getMessage()}{RESET}"

        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED}
        if extras:
            extras_str = str(extras)
            if len(extras_str) > self.truncate_at:
                extras_str = extras_str[: self.truncate_at] + "..."
            output += f" {LIGHT_BLUE}{extras_str}{RESET}"

        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter, one object per record.

    Fields: timestamp, level, component, message, request_id (when a request
    is in flight) plus any ``extra=`` fields.
    """

    def __init__(self, request_id_provider: Callable[[], str | None] | None = None):
        super().__init__()
        self.request_id_provider = request_id_provider

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
        }

        if self.request_id_provider:
            request_id = self.request_id_provider()
            if request_id:
                log_data["request_id"] = request_id

        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    config: LogConfig | None = None,
    request_id_provider: Callable[[], str | None] | None = None,
) -> logging.Logger:
    """Install a single handler on the jpulse_core logger.

    Calling it again replaces the previous handler (hot reload of log config).

    Args:
        config: Logger configuration (defaults to LogConfig())
        request_id_provider: Callable returning the current request id

    Returns:
        The configured package logger
    """
    config = config or LogConfig()
    root = logging.getLogger(ROOT_LOGGER)

    for handler in list(root.handlers):
        if getattr(handler, "_jpulse_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(config.output)
    handler._jpulse_handler = True  # type: ignore[attr-defined]
    if config.format == LogFormat.JSON:
        handler.setFormatter(StructuredLogFormatter(request_id_provider))
    else:
        handler.setFormatter(ColoredFormatter(config.truncate_at))
    if config.components:
        handler.addFilter(ComponentFilter(config.components))

    root.addHandler(handler)
    root.setLevel(_LEVELS.get(config.level, logging.INFO))
    root.propagate = False
    return root
