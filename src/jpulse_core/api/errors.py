"""HTTP error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jpulse_core.api.middleware.request_id import get_request_id
from jpulse_core.errors import JPulseError, get_error_factory

logger = logging.getLogger(__name__)


def setup_error_handlers(app: FastAPI) -> None:
    """Translate exceptions into ``{"error": {...}}`` JSON responses."""

    @app.exception_handler(JPulseError)
    async def jpulse_error_handler(request: Request, exc: JPulseError) -> JSONResponse:
        error_dict = exc.to_dict()
        error_dict["request_id"] = get_request_id()
        return JSONResponse(status_code=exc.http_status, content={"error": error_dict})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if isinstance(exc.detail, dict):
            return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": f"HTTP_{exc.status_code}",
                    "category": "SYSTEM",
                    "message": str(exc.detail),
                    "request_id": get_request_id(),
                }
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first_error = errors[0] if errors else {"msg": "Validation error"}
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "category": "VALIDATION",
                    "message": first_error.get("msg", "Validation error"),
                    "detail": str(errors),
                    "request_id": get_request_id(),
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        application = getattr(request.app.state, "application", None)
        factory = getattr(application, "error_factory", None) or get_error_factory()
        error = factory.from_exception(exc)

        error_dict = error.to_dict()
        # Exception text stays in the log
        error_dict["message"] = "An unexpected error occurred"
        error_dict["request_id"] = get_request_id()
        return JSONResponse(status_code=error.http_status, content={"error": error_dict})
