"""View router: serves files under ``view/`` with template expansion.

Binary assets and ``.json`` are streamed untouched. Templates
(``.shtml .tmpl .html .svg .txt``) go through the i18n pass and then the
engine. ``.css`` and ``.js`` are concatenated from every layer that
provides them (framework, site, plugins) before expansion.
"""

import html
import logging
import time
from dataclasses import replace

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, Response

from jpulse_core.api.content_types import APPEND_EXTENSIONS, content_type_for, extension_of, is_template
from jpulse_core.api.request import request_info_from
from jpulse_core.paths import is_traversal
from jpulse_core.types import RequestInfo

logger = logging.getLogger(__name__)

view_router = APIRouter(tags=["View"])

DEFAULT_TEMPLATE = "index.shtml"
ERROR_PAGE = "view/error/index.shtml"


def view_relative_path(url_path: str, is_dir: bool = False) -> str:
    """Map a URL path to a file path relative to ``view/``.

    "/" and paths ending in "/" (or known directories) get index.shtml.

    Raises:
        HTTPException(400): Path contains a ".." segment
    """
    if is_traversal(url_path):
        raise HTTPException(status_code=400, detail="Invalid path")
    rel = url_path.strip("/")
    if not rel or url_path.endswith("/") or is_dir:
        rel = f"{rel}/{DEFAULT_TEMPLATE}".lstrip("/")
    return rel


@view_router.get("/{path:path}", include_in_schema=False)
async def serve_view(path: str, request: Request) -> Response:
    """Serve one view file."""
    started = time.monotonic()
    application = request.app.state.application
    resolver = application.resolver
    info = request_info_from(request)

    rel = view_relative_path(path)
    if not extension_of(rel) and resolver.resolve_asset(f"view/{rel}") is None:
        # Extensionless request: serve the directory's index page
        rel = view_relative_path(path, is_dir=True)

    if not is_template(rel):
        resolved = resolver.resolve_asset(f"view/{rel}")
        if resolved is None:
            return await _not_found(application, info)
        logger.debug(f"Raw asset {rel} from {resolved.origin.value}")
        return FileResponse(resolved.absolute_path, media_type=content_type_for(rel))

    if extension_of(rel) in APPEND_EXTENSIONS:
        layers = resolver.collect_all(f"view/{rel}")
        if not layers:
            return await _not_found(application, info)
        parts = [await application.cache.read(layer.absolute_path) for layer in layers]
        content = "\n".join(parts)
        logger.debug(f"Append mode: concatenated {len(layers)} file(s) for {rel}")
    else:
        resolved = resolver.resolve_asset(f"view/{rel}")
        if resolved is None:
            return await _not_found(application, info)
        content = await application.cache.read(resolved.absolute_path)

    content = await application.render(info, content)
    logger.info(f"{info.path} completed in {(time.monotonic() - started) * 1000:.0f}ms")
    return Response(content, media_type=content_type_for(rel))


async def _not_found(application, info: RequestInfo) -> Response:
    """Render the error page with code=404, or a minimal page if there is none."""
    message = "Page not found: {path}"
    if application.i18n is not None:
        translated = application.i18n.translate(info, "controller.view.pageNotFoundError", {"path": info.path})
        if translated != "controller.view.pageNotFoundError":
            message = translated
    message = message.replace("{path}", info.path)
    logger.warning(f"File not found: {info.path}")

    error_page = application.resolver.resolve_asset(ERROR_PAGE)
    if error_page is None:
        body = f"<!DOCTYPE html><html><body><h1>404</h1><p>{html.escape(message)}</p></body></html>"
        return HTMLResponse(body, status_code=404)

    error_info = replace(info, query={"code": "404", "msg": message})
    content = await application.cache.read(error_page.absolute_path)
    content = await application.render(error_info, content)
    return HTMLResponse(content, status_code=404)
