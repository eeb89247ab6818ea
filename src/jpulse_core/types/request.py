"""Request abstraction consumed by the template layer."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RequestInfo:
    """What the template layer needs to know about the current request.

    ``user`` is the session user mapping, or None for anonymous visitors.
    ``timezone`` comes from the browser (timezone cookie) when known.
    """

    path: str = "/"
    query: dict[str, str] = field(default_factory=dict)
    protocol: str = "http"
    hostname: str = "localhost"
    port: int | None = None
    user: dict[str, Any] | None = None
    language: str | None = None
    timezone: str | None = None  # IANA name reported by the browser

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user)

    @property
    def domain(self) -> str:
        """protocol://host[:port]"""
        default_port = {"http": 80, "https": 443}.get(self.protocol)
        if self.port and self.port != default_port:
            return f"{self.protocol}://{self.hostname}:{self.port}"
        return f"{self.protocol}://{self.hostname}"
