"""Structured logging for DOCNEX.

Entries are rendered as JSON in production and staging and as colored
console lines elsewhere. Each carries the service name and environment, plus
whatever request and document context is bound for the current task:

    bind_request_context(request_id, method="POST", path="/v1/import/split")
    bind_document_context(document_id=doc_id)

Bound values live in structlog's contextvars, so concurrent requests never
see each other's context.
"""

import logging
import sys
import uuid
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from docnex.core.config import Settings, get_settings


REQUEST_ID_HEADER = "X-Request-ID"

_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "hpack", "uvicorn.access")


class ServiceContext:
    """Processor stamping every entry with the service name and environment."""

    def __init__(self, service: str, environment: str) -> None:
        self.service = service
        self.environment = environment

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", self.service)
        event_dict.setdefault("environment", self.environment)
        return event_dict


def _build_processors(settings: Settings) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        ServiceContext(settings.service_name, settings.environment),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.environment in ("production", "staging"):
        return [*shared, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [*shared, structlog.dev.ConsoleRenderer(colors=True)]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the standard library root logger."""
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())

    structlog.configure(
        processors=_build_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# =============================================================================
# Request and document context
# =============================================================================

def new_request_id(incoming: str | None = None) -> str:
    """Reuse a caller-supplied request id or mint a new one."""
    incoming = (incoming or "").strip()
    return incoming[:128] if incoming else uuid.uuid4().hex


def bind_request_context(request_id: str, **fields: Any) -> None:
    """Start a fresh logging context for one HTTP request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **fields)


def bind_document_context(document_id: str | None = None, project_id: str | None = None) -> None:
    """Attach the document or project being worked on; None values are skipped."""
    values = {"document_id": document_id, "project_id": project_id}
    structlog.contextvars.bind_contextvars(**{k: v for k, v in values.items() if v is not None})


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def current_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("request_id")


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a structlog logger, by convention named after the module.

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Split finished", strategy="header", blocks=12)
        ```
    """
    return structlog.get_logger(name)


Logger = structlog.BoundLogger
