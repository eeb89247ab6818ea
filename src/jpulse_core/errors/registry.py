"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, JPulseError


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code."""
        return self._templates.get(code)

    def register(self, template: ErrorTemplate) -> None:
        """Add or replace a template."""
        self._templates[template.code] = template

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates.keys())

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: JPulseError | None = None,
    ) -> JPulseError:
        """Create error instance from template + context.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error

        Returns:
            JPulseError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context) or f"Error {code}"
        # An explicit detail in the context wins over the template text
        detail = context.get("detail") or self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        return JPulseError(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            http_status=template.default_http_status,
            path=context.get("path"),
            helper=context.get("helper"),
            cause=cause,
        )

    def _interpolate(self, template: str | None, context: dict[str, Any]) -> str | None:
        """Safe string interpolation; missing variables leave the template as-is."""
        if template is None:
            return None

        try:
            return template.format(**context)
        except (KeyError, IndexError):
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # RESOLUTION Errors
        self._templates["RESOLUTION_FAILED"] = ErrorTemplate(
            code="RESOLUTION_FAILED",
            category=ErrorCategory.RESOLUTION,
            message_template="Module not found: {path} (checked site override and framework paths)",
            suggestion_template="Check the file exists under site/webapp or webapp",
            default_http_status=404,
        )

        self._templates["PATH_PROHIBITED"] = ErrorTemplate(
            code="PATH_PROHIBITED",
            category=ErrorCategory.RESOLUTION,
            message_template="Path not allowed: {path}",
            detail_template="Absolute paths and parent directory segments are rejected",
            default_http_status=400,
        )

        # TEMPLATE Errors
        self._templates["INCLUDE_DEPTH_EXCEEDED"] = ErrorTemplate(
            code="INCLUDE_DEPTH_EXCEEDED",
            category=ErrorCategory.TEMPLATE,
            message_template="Maximum include depth ({max_depth}) exceeded",
            detail_template="Include chain: {chain}",
            suggestion_template="Check for a file that includes itself",
            default_http_status=500,
        )

        self._templates["TEMPLATE_ERROR"] = ErrorTemplate(
            code="TEMPLATE_ERROR",
            category=ErrorCategory.TEMPLATE,
            message_template="{reason}",
            detail_template="Template expansion failed",
            suggestion_template="Check template syntax and variable names",
            default_http_status=400,
        )

        # HELPER Errors
        self._templates["UNKNOWN_HELPER"] = ErrorTemplate(
            code="UNKNOWN_HELPER",
            category=ErrorCategory.HELPER,
            message_template="Unknown helper: {helper}",
            default_http_status=404,
        )

        self._templates["HELPER_INVALID"] = ErrorTemplate(
            code="HELPER_INVALID",
            category=ErrorCategory.HELPER,
            message_template="Invalid helper '{helper}'",
            suggestion_template="Regular helpers take (args, scope); block helpers take (args, block, scope)",
            default_http_status=400,
        )

        # CONFIG / SYSTEM Errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Invalid configuration",
            detail_template="The jPulse configuration is invalid",
            suggestion_template="Check the configuration file and fix errors",
            default_http_status=500,
        )

        self._templates["INTERNAL_ERROR"] = ErrorTemplate(
            code="INTERNAL_ERROR",
            category=ErrorCategory.SYSTEM,
            message_template="{message}",
            detail_template="An unexpected {error_type} was raised",
            default_http_status=500,
        )
