"""Build the template layer's RequestInfo from a Starlette request."""

from starlette.requests import Request

from jpulse_core.types import RequestInfo

TIMEZONE_COOKIE = "timezone"


def parse_accept_language(header: str | None) -> str | None:
    """Highest-weighted language tag, e.g. "de-CH,de;q=0.9,en;q=0.8" -> "de-CH"."""
    if not header:
        return None
    best: tuple[float, str] | None = None
    for part in header.split(","):
        pieces = part.strip().split(";")
        tag = pieces[0].strip()
        if not tag or tag == "*":
            continue
        weight = 1.0
        for param in pieces[1:]:
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    weight = float(value)
                except ValueError:
                    weight = 0.0
        if best is None or weight > best[0]:
            best = (weight, tag)
    return best[1] if best else None


def request_info_from(request: Request) -> RequestInfo:
    """Snapshot of what templates need; ``request.state.user`` is set by auth middleware."""
    user = getattr(request.state, "user", None)
    return RequestInfo(
        path=request.url.path,
        query=dict(request.query_params),
        protocol=request.url.scheme,
        hostname=request.url.hostname or "localhost",
        port=request.url.port,
        user=user if isinstance(user, dict) else None,
        language=parse_accept_language(request.headers.get("accept-language")),
        timezone=request.cookies.get(TIMEZONE_COOKIE),
    )
