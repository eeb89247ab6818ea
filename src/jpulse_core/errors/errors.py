"""jPulse error types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    RESOLUTION = "RESOLUTION"
    TEMPLATE = "TEMPLATE"
    HELPER = "HELPER"
    CONFIG = "CONFIG"
    SYSTEM = "SYSTEM"


@dataclass
class JPulseError(Exception):
    """Structured error with context. Base exception for all jPulse errors."""

    # Identity
    code: str  # e.g., "RESOLUTION_FAILED"
    category: ErrorCategory

    # Messages
    message: str
    detail: str | None = None
    suggestion: str | None = None

    # Context
    http_status: int = 500
    path: str | None = None  # Relative path involved, if any
    helper: str | None = None  # Helper name involved, if any

    cause: "JPulseError | None" = None

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "path": self.path,
            "helper": self.helper,
            "timestamp": self.timestamp.isoformat(),
            "cause": self.cause.to_dict() if self.cause else None,
        }


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Module not found: {path} ..."
    detail_template: str | None = None
    suggestion_template: str | None = None
    default_http_status: int = 500
