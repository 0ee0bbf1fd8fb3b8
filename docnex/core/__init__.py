"""Core module - configuration, logging, constants and exceptions.

Exports:
    - Settings, get_settings: Pydantic Settings configuration
    - configure_logging, get_logger: Structured logging (structlog)
    - Exception classes: DocnexError, AIError and its subclasses
"""

from docnex.core.config import Settings, get_settings
from docnex.core.constants import API_PREFIX, API_VERSION, HierarchyLevel, Table
from docnex.core.exceptions import (
    AIConfigError,
    AIError,
    AIRateLimitError,
    AISecurityError,
    AIServiceError,
    AITimeoutError,
    AIValidationError,
    AgentExecutionError,
    DatabaseClientError,
    DocnexError,
    RecordNotFoundError,
    categorize_error,
    get_user_friendly_message,
    is_retryable_error,
)
from docnex.core.logging import configure_logging, get_logger


__all__ = [
    "API_PREFIX",
    "API_VERSION",
    "AIConfigError",
    "AIError",
    "AIRateLimitError",
    "AISecurityError",
    "AIServiceError",
    "AITimeoutError",
    "AIValidationError",
    "AgentExecutionError",
    "DatabaseClientError",
    "DocnexError",
    "HierarchyLevel",
    "RecordNotFoundError",
    "Settings",
    "Table",
    "categorize_error",
    "configure_logging",
    "get_logger",
    "get_settings",
    "get_user_friendly_message",
    "is_retryable_error",
]
