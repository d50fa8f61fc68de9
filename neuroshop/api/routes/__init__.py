"""API routers."""

from .search import router as search_router

__all__ = ["search_router"]
