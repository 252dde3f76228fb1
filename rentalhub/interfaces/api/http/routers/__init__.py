"""Routers HTTP por bounded context."""

from .complaints import router as complaints_router

__all__ = ["complaints_router"]
