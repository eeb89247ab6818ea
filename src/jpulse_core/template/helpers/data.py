"""json.* helpers."""

import json
from typing import Any

from ..types import HelperArgs, HelperScope


def json_parse(args: HelperArgs, scope: HelperScope) -> Any:
    """Parse a JSON string; invalid input gives None."""
    source = args.target
    if not isinstance(source, str):
        return None
    try:
        return json.loads(source.strip())
    except ValueError:
        return None


DATA_HELPERS: dict[str, Any] = {
    "json.parse": json_parse,
}
