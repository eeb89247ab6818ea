"""Shared enumerations for jPulse."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class HelperType(str, Enum):
    """Helper invocation style."""

    REGULAR = "regular"
    BLOCK = "block"


class PathOrigin(str, Enum):
    """Layer a resolved file came from."""

    SITE = "site"
    PLUGIN = "plugin"
    FRAMEWORK = "framework"
