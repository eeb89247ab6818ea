"""date.* helpers.

Dates travel through templates as Unix timestamps in milliseconds.
``date.parse`` and ``date.format`` accept a datetime, a timestamp or an
ISO 8601 string; anything unparseable renders as "".
"""

import logging
import time
from datetime import datetime, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..types import HelperArgs, HelperScope
from ..values import stringify

logger = logging.getLogger(__name__)

BROWSER_TIMEZONE_ALIASES = frozenset({"browser", "client", "user", "view"})

# (seconds, long singular, short suffix)
_UNITS = (
    (365 * 86400, "year", "y"),
    (30 * 86400, "month", "mo"),
    (86400, "day", "d"),
    (3600, "hour", "h"),
    (60, "minute", "m"),
    (1, "second", "s"),
)


def to_datetime(value: Any) -> datetime | None:
    """Coerce a template value to an aware UTC datetime, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = stringify(value).strip()
    if not text:
        return None
    if text.lstrip("-").isdigit():
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_millis(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))


def resolve_timezone(name: Any, scope: HelperScope) -> tzinfo | None:
    """Map a ``timezone=`` parameter to a tzinfo.

    None means UTC. "server" is the host's local zone; browser aliases use
    the request's reported zone and fall back to the server zone.
    Unknown names fall back to UTC.
    """
    if not name:
        return None
    name = str(name)
    if name in BROWSER_TIMEZONE_ALIASES:
        reported = scope.request.timezone if scope.request else None
        if not reported:
            return _server_timezone()
        name = reported
    if name == "server":
        return _server_timezone()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug(f"Unknown timezone '{name}', using UTC")
        return None


def _server_timezone() -> tzinfo | None:
    return datetime.now().astimezone().tzinfo


def format_datetime(moment: datetime, fmt: str, zone: tzinfo | None) -> str:
    """Substitute %TOKEN% placeholders."""
    local = moment.astimezone(zone or timezone.utc)
    ms = f"{local.microsecond // 1000:03d}"
    date_part = f"{local.year:04d}-{local.month:02d}-{local.day:02d}"
    time_part = f"{local.hour:02d}:{local.minute:02d}:{local.second:02d}"
    if zone is None:
        iso = f"{date_part}T{time_part}.{ms}Z"
    else:
        offset = local.strftime("%z")
        iso = f"{date_part}T{time_part}.{ms}{offset[:3]}:{offset[3:]}"

    tokens = {
        "%ISO%": iso,
        "%DATETIME%": f"{date_part} {time_part}",
        "%DATE%": date_part,
        "%TIME%": time_part,
        "%Y%": f"{local.year:04d}",
        "%MIN%": f"{local.minute:02d}",
        "%MS%": ms,
        "%M%": f"{local.month:02d}",
        "%D%": f"{local.day:02d}",
        "%H%": f"{local.hour:02d}",
        "%SEC%": f"{local.second:02d}",
    }
    result = fmt
    for token, replacement in tokens.items():
        result = result.replace(token, replacement)
    return result


def format_relative(delta_ms: float, fmt: str = "long 2") -> str:
    """Human-readable distance such as "in 6 days, 12 hours" or "3h 5m ago".

    ``fmt`` is "long" or "short", optionally followed by the number of units.
    """
    parts = fmt.split()
    style = parts[0] if parts and parts[0] in ("long", "short") else "long"
    levels = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 2
    levels = max(levels, 1)

    future = delta_ms > 0
    seconds = int(abs(delta_ms) // 1000)

    if seconds == 0 and style == "long":
        return "in a moment" if future else "just now"

    amounts = []
    remainder = seconds
    for size, _, _ in _UNITS:
        amounts.append(remainder // size)
        remainder %= size

    first = next((i for i, amount in enumerate(amounts) if amount), len(_UNITS) - 1)
    words = []
    for (_, singular, suffix), amount in list(zip(_UNITS, amounts))[first : first + levels]:
        if style == "short":
            words.append(f"{amount}{suffix}")
        else:
            words.append(f"{amount} {singular}{'' if amount == 1 else 's'}")
    text = " ".join(words) if style == "short" else ", ".join(words)
    return f"in {text}" if future else f"{text} ago"


def date_now(args: HelperArgs, scope: HelperScope) -> int:
    """Current time in milliseconds."""
    return int(time.time() * 1000)


def date_parse(args: HelperArgs, scope: HelperScope) -> Any:
    """Timestamp in milliseconds; numbers pass through unchanged."""
    value = args.target
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    moment = to_datetime(value)
    return to_millis(moment) if moment else ""


def date_format(args: HelperArgs, scope: HelperScope) -> str:
    """Format a date: ``{{date.format value format="%DATE%" timezone="server"}}``.

    Without a value the current time is formatted; the default format is %ISO%.
    """
    if args.positional:
        moment = to_datetime(args.target)
        if moment is None:
            return ""
    else:
        moment = datetime.now(timezone.utc)
    fmt = stringify(args.get("format")) or "%ISO%"
    return format_datetime(moment, fmt, resolve_timezone(args.get("timezone"), scope))


def date_from_now(args: HelperArgs, scope: HelperScope) -> str:
    """Relative time: ``{{date.fromNow value format="short 3"}}``."""
    moment = to_datetime(args.target)
    if moment is None:
        return ""
    delta = to_millis(moment) - time.time() * 1000
    return format_relative(delta, stringify(args.get("format")) or "long 2")


DATE_HELPERS: dict[str, Any] = {
    "date.now": date_now,
    "date.parse": date_parse,
    "date.format": date_format,
    "date.fromNow": date_from_now,
}
