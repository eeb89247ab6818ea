"""jPulse Core - Handlebars-style template engine with layered file resolution.

Usage:
    from jpulse_core import JPulseApplication

    application = JPulseApplication(config_path="jpulse.yaml").initialize()
    html = await application.expand(None, "Hello {{user.firstName}}")
"""

from jpulse_core.application import JPulseApplication
from jpulse_core.errors import JPulseError, create_error
from jpulse_core.paths import PathResolver, ResolvedPath
from jpulse_core.template import HandlebarEngine, HelperRegistry
from jpulse_core.types import RequestInfo

__version__ = "0.1.0"

__all__ = [
    "JPulseApplication",
    "JPulseError",
    "create_error",
    "PathResolver",
    "ResolvedPath",
    "HandlebarEngine",
    "HelperRegistry",
    "RequestInfo",
    "__version__",
]
