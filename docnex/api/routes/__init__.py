"""API routes for the DOCNEX service.

This module exports all API routers for registration in main.py.
"""

from docnex.api.routes.agents import router as agents_router
from docnex.api.routes.documents import router as documents_router
from docnex.api.routes.editor import router as editor_router
from docnex.api.routes.health import router as health_router
from docnex.api.routes.imports import router as imports_router


__all__ = [
    "agents_router",
    "documents_router",
    "editor_router",
    "health_router",
    "imports_router",
]
