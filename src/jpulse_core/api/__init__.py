"""HTTP surface: expansion API and view serving."""

from .app import create_app
from .middleware import RequestIDMiddleware, get_request_id
from .request import parse_accept_language, request_info_from

__all__ = [
    "create_app",
    "RequestIDMiddleware",
    "get_request_id",
    "parse_accept_language",
    "request_info_from",
]
