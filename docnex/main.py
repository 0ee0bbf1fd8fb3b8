"""
Main entry point for the DOCNEX service.

Creates the FastAPI application instance for uvicorn:

    uvicorn docnex.main:app --port 8090
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from docnex import __version__
from docnex.api.dependencies import close_clients, get_llm_client
from docnex.api.error_handlers import register_error_handlers
from docnex.api.routes import (
    agents_router,
    documents_router,
    editor_router,
    health_router,
    imports_router,
)
from docnex.api.routes.health import set_service_start_time
from docnex.core.config import get_settings
from docnex.core.logging import (
    REQUEST_ID_HEADER,
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    new_request_id,
)


# Configure structured logging on module load
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    On startup: record the start time and report the Gemini configuration
    On shutdown: close the Gemini and Supabase clients
    """
    settings = get_settings()
    logger.info(
        "Starting DOCNEX service",
        port=settings.port,
        environment=settings.environment,
        model=settings.gemini_model,
    )

    set_service_start_time()

    if not getattr(get_llm_client(), "is_configured", True):
        logger.warning("Gemini API key not configured, semantic splitting will use the paragraph fallback")

    yield

    logger.info("Shutting down DOCNEX service")
    await close_clients()
    logger.info("Clients closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers:
    - health_router: GET /health, /health/ready, /health/live
    - imports_router: POST /v1/import/*
    - agents_router: POST /v1/agents/*
    - editor_router: POST /v1/editor/*
    - documents_router: /v1/documents/{id}/*
    """
    app = FastAPI(
        title="DOCNEX Service",
        description="Hierarchical document blocks with AI splitting, semantic linking and a regulatory library",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next) -> Response:
        """Bind a request id to every log entry of the request and echo it back."""
        request_id = new_request_id(request.headers.get(REQUEST_ID_HEADER))
        bind_request_context(request_id, method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(imports_router)
    app.include_router(agents_router)
    app.include_router(editor_router)
    app.include_router(documents_router)

    return app


# Create application instance
app = create_app()
