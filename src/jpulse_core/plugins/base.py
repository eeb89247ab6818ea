"""Plugin base class."""

from pathlib import Path
from typing import Any

from jpulse_core.types import RequestInfo


class JPulsePlugin:
    """Base class for jPulse plugins.

    A plugin contributes three things, all optional:

    - a ``webapp`` directory layered between site and framework files
    - template helpers: methods named ``handlebar_<name>`` register as
      ``<name>`` (a double underscore becomes a dot, so
      ``handlebar_hello__greet`` is ``hello.greet``)
    - context data via ``context_extension``

    Attributes:
        name: Plugin name (set from config)
        priority: Load order (lower = earlier, default 50)
        webapp_dir: Plugin webapp root, or None
        config: Plugin-specific configuration
    """

    name: str = "base"
    priority: int = 50
    webapp_dir: Path | None = None

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize the plugin.

        Args:
            config: Plugin-specific configuration from jpulse.yaml
        """
        self.config = config or {}

    def context_extension(self, request: RequestInfo | None) -> dict[str, Any] | None:
        """Keys to add to every template context. Override to contribute."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, priority={self.priority})"
