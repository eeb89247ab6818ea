"""HTTP routers."""

from .handlebar import handlebar_router
from .view import view_router

__all__ = ["handlebar_router", "view_router"]
