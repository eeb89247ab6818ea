"""Site-level helpers: ``handlebar_*`` functions in the site's helpers.py."""

import logging
from pathlib import Path

from jpulse_core.template.registry import HelperRegistry

from .registry import discover_helpers, load_module_from_file

logger = logging.getLogger(__name__)

SITE_HELPERS_FILE = "helpers.py"


def register_site_helpers(registry: HelperRegistry, site_dir: str | Path | None) -> list[str]:
    """Load ``<site_dir>/helpers.py`` if present and register its helpers.

    Runs after core and plugin helpers so site helpers win on name clashes.

    Returns:
        Registered helper names
    """
    if not site_dir:
        return []
    path = Path(site_dir) / SITE_HELPERS_FILE
    if not path.is_file():
        logger.debug(f"No site helpers at {path}")
        return []
    module = load_module_from_file(path, "jpulse_site_helpers")
    return discover_helpers(registry, module, "site")
