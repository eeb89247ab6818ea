"""Error factory for creating JPulseErrors from any exception type."""

from typing import Any

from .errors import JPulseError
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates JPulseErrors from codes or arbitrary exceptions."""

    def __init__(self, registry: ErrorRegistry | None = None):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
        """
        self.registry = registry or ErrorRegistry()

    def from_exception(self, error: Exception) -> JPulseError:
        """Convert any exception to JPulseError.

        Args:
            error: Exception to convert

        Returns:
            The same error if already a JPulseError, else an INTERNAL_ERROR wrapper
        """
        if isinstance(error, JPulseError):
            return error

        return self.registry.create(
            "INTERNAL_ERROR",
            context={"message": str(error) or type(error).__name__, "error_type": type(error).__name__},
        )

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> JPulseError:
        """Create JPulseError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            **kwargs: Additional context variables

        Returns:
            JPulseError instance
        """
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton."""
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> JPulseError:
    """Convenience function to create error.

    Args:
        code: Error code
        **context: Context variables for template interpolation

    Returns:
        JPulseError instance
    """
    return get_error_factory().create(code, context)
