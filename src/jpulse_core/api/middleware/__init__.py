"""HTTP middleware."""

from .request_id import RequestIDMiddleware, get_request_id, request_id_var

__all__ = ["RequestIDMiddleware", "get_request_id", "request_id_var"]
