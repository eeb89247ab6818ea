"""Shared types for jPulse.

Import from here rather than submodules:
    from jpulse_core.types import HelperType, PathOrigin
"""

from .enums import HelperType, LogFormat, LogLevel, PathOrigin
from .request import RequestInfo
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "HelperType",
    "PathOrigin",
    # Request
    "RequestInfo",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
