"""API routes."""

from .auth_routes import router as auth_router
from .library import router as library_router
from .nodes import router as nodes_router
from .problems import router as problems_router

__all__ = [
    "auth_router",
    "library_router",
    "nodes_router",
    "problems_router",
]
