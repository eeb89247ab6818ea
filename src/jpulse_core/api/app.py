"""FastAPI application factory."""

from typing import TYPE_CHECKING

from fastapi import FastAPI

from jpulse_core.api.errors import setup_error_handlers
from jpulse_core.api.middleware import RequestIDMiddleware
from jpulse_core.api.routers import handlebar_router, view_router

if TYPE_CHECKING:
    from jpulse_core.application import JPulseApplication


def create_app(application: "JPulseApplication") -> FastAPI:
    """Create the FastAPI app serving the API and the view tree.

    Args:
        application: Initialized application holding engine, resolver and config

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(title=application.config.app.name, version=application.config.app.version)
    app.state.application = application

    app.add_middleware(RequestIDMiddleware)
    setup_error_handlers(app)

    # API routes first; the view router catches every other path
    app.include_router(handlebar_router)
    app.include_router(view_router)
    return app
