"""jPulse logging - stdlib logging with colored or JSON output."""

from .colors import CYAN, GREEN, LIGHT_BLUE, MAGENTA, RED, RESET, YELLOW
from .logger import (
    ColoredFormatter,
    ComponentFilter,
    LogConfig,
    StructuredLogFormatter,
    setup_logging,
)

__all__ = [
    "LogConfig",
    "setup_logging",
    "ColoredFormatter",
    "StructuredLogFormatter",
    "ComponentFilter",
    # Colors
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]
