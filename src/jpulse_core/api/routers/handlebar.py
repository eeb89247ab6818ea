"""Template expansion API."""

from fastapi import APIRouter, Request

from jpulse_core.api.models import EngineHealth, ExpandRequest, ExpandResponse, HelperInfo, HelperList
from jpulse_core.api.request import request_info_from

handlebar_router = APIRouter(prefix="/api/1/handlebar", tags=["Handlebar"])


@handlebar_router.post("/expand", response_model=ExpandResponse)
async def expand(body: ExpandRequest, request: Request) -> ExpandResponse:
    """Expand template text in the caller's request context."""
    application = request.app.state.application
    text = await application.expand(request_info_from(request), body.text, body.context)
    return ExpandResponse(success=True, text=text)


@handlebar_router.get("/helpers", response_model=HelperList)
async def list_helpers(request: Request) -> HelperList:
    """List registered helpers with their source and type."""
    registry = request.app.state.application.helpers
    return HelperList(
        helpers=[
            HelperInfo(
                name=entry.name,
                type=entry.type.value,
                source=entry.source,
                description=entry.description,
                example=entry.example,
            )
            for entry in registry.list_helpers()
        ],
        stats=registry.stats(),
    )


@handlebar_router.get("/health", response_model=EngineHealth)
async def health(request: Request) -> EngineHealth:
    """Helper counts, include cache stats and loaded plugins."""
    application = request.app.state.application
    return EngineHealth(
        version=application.config.app.version,
        helpers=application.helpers.stats(),
        cache=application.cache.stats(),
        plugins=[plugin.name for plugin in application.plugins.plugins],
    )
