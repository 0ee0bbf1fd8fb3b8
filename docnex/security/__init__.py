"""Input security: sanitizing, upload validation and rate limiting."""

from docnex.security.rate_limit import RateLimiter
from docnex.security.sanitizer import (
    FileValidationResult,
    SanitizationResult,
    ensure_safe_input,
    sanitize_ai_response,
    sanitize_input,
    validate_file_upload,
)


__all__ = [
    "FileValidationResult",
    "RateLimiter",
    "SanitizationResult",
    "ensure_safe_input",
    "sanitize_ai_response",
    "sanitize_input",
    "validate_file_upload",
]
