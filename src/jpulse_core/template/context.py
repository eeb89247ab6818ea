"""Per-request template context."""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from jpulse_core.config.models import JPulseConfig
from jpulse_core.i18n import I18n
from jpulse_core.types import RequestInfo

from .filter import filter_context

logger = logging.getLogger(__name__)

ContextProvider = Callable[[RequestInfo | None], Any]

_USER_FIELDS = ("id", "username", "firstName", "nickName", "lastName", "email")


@dataclass
class ContextExtension:
    """Adds keys to every context; lower priority runs first, later ones win."""

    name: str
    provider: ContextProvider
    priority: int = 50


class ContextBuilder:
    """Assemble the context mapping handed to the engine.

    Keys: ``app``, ``user``, ``appConfig`` (filtered by the contextFilter
    rule for the request's auth state), ``url``, ``i18n``, ``components``
    and ``vars``, followed by whatever registered extensions contribute.
    """

    def __init__(self, config: JPulseConfig, i18n: I18n | None = None):
        self.config = config
        self.i18n = i18n
        self._extensions: list[ContextExtension] = []

    def register_extension(self, name: str, provider: ContextProvider, priority: int = 50) -> None:
        """Register a provider returning a mapping (sync or async)."""
        self._extensions = [e for e in self._extensions if e.name != name]
        self._extensions.append(ContextExtension(name, provider, priority))
        self._extensions.sort(key=lambda e: e.priority)
        logger.debug(f"Context extension registered: {name} (priority {priority})")

    def list_extensions(self) -> list[ContextExtension]:
        return list(self._extensions)

    async def build(self, request: RequestInfo | None, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        """Build the context for one request.

        Args:
            request: Current request, None for background rendering
            extra: Caller-supplied keys, applied last

        Returns:
            Fresh mapping; nothing in it is shared with the configuration
            except unfiltered, read-only branches of ``appConfig``
        """
        authenticated = bool(request and request.is_authenticated)
        app_config = filter_context(self.config.raw, authenticated, self.config.handlebar.context_filter)

        context: dict[str, Any] = {
            "app": {"name": self.config.app.name, "version": self.config.app.version},
            "user": self.user_context(request),
            "appConfig": app_config,
            "url": self.url_context(request),
            "i18n": self.i18n.get_lang(self.i18n.language_for(request)) if self.i18n else {},
            "components": {},
            "vars": {},
        }

        for extension in self._extensions:
            try:
                contributed = extension.provider(request)
                if inspect.isawaitable(contributed):
                    contributed = await contributed
            except Exception as e:
                logger.warning(f"Context extension '{extension.name}' failed: {e}", exc_info=True)
                continue
            if isinstance(contributed, dict):
                context.update(contributed)

        if extra:
            context.update(extra)
        return context

    def user_context(self, request: RequestInfo | None) -> dict[str, Any]:
        """Template view of the session user; empty strings when anonymous."""
        user = (request.user if request else None) or {}
        roles = list(user.get("roles") or [])
        view: dict[str, Any] = {name: user.get(name) or "" for name in _USER_FIELDS}
        view.update(
            {
                "initials": user.get("initials") or self._initials(user),
                "roles": roles,
                "preferences": user.get("preferences") or {},
                "isAuthenticated": bool(user),
                "isAdmin": bool(user) and any(r in self.config.user.admin_roles for r in roles),
            }
        )
        return view

    @staticmethod
    def url_context(request: RequestInfo | None) -> dict[str, Any]:
        request = request or RequestInfo()
        search = "&".join(f"{k}={v}" for k, v in request.query.items())
        return {
            "domain": request.domain,
            "protocol": request.protocol,
            "hostname": request.hostname,
            "port": str(request.port or ""),
            "pathname": request.path,
            "search": f"?{search}" if search else "",
            "param": dict(request.query),
        }

    @staticmethod
    def _initials(user: dict[str, Any]) -> str:
        first = str(user.get("firstName") or "")[:1]
        last = str(user.get("lastName") or "")[:1]
        return (first + last).upper() or "?"
