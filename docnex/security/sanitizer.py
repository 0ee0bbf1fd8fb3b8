"""Input sanitizing for text sent to the LLM.

Blocks likely prompt injection and script payloads, strips characters that
break parsing, and validates uploaded file metadata.
"""

import re

from pydantic import BaseModel, Field

from docnex.core.exceptions import AISecurityError, AIValidationError
from docnex.core.logging import get_logger


logger = get_logger(__name__)


PROMPT_INJECTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ignore\s+(all\s+)?(previous|prior|above)\s+instructions?", re.IGNORECASE),
    re.compile(r"you\s+are\s+now", re.IGNORECASE),
    re.compile(r"pretend\s+(to\s+)?be", re.IGNORECASE),
    re.compile(r"system\s+prompt", re.IGNORECASE),
    re.compile(r"reveal\s+your", re.IGNORECASE),
    re.compile(r"forget\s+(everything|all)", re.IGNORECASE),
    re.compile(r"new\s+instructions?:", re.IGNORECASE),
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
    re.compile(r"\$\{.*\}"),  # template injection
    re.compile(r"eval\(", re.IGNORECASE),
    re.compile(r"exec\(", re.IGNORECASE),
    re.compile(r"require\(", re.IGNORECASE),
    re.compile(r"import\s+.*from", re.IGNORECASE),
]

MALICIOUS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"<embed", re.IGNORECASE),
    re.compile(r"<object", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),  # onclick=, onerror=...
    re.compile(r"\bjavascript:", re.IGNORECASE),
    re.compile(r"\bvbscript:", re.IGNORECASE),
    re.compile(r"\bdata:.*base64", re.IGNORECASE),
]

DEFAULT_MAX_LENGTH = 5 * 1024 * 1024

_INVISIBLE_CHARS = re.compile("[\u200b-\u200d\ufeff]")
_CODE_FENCE_JSON = re.compile(r"```json\s*")
_CODE_FENCE = re.compile(r"```\s*")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class SanitizationResult(BaseModel):
    """Outcome of sanitize_input."""

    is_valid: bool
    sanitized_text: str
    warnings: list[str] = Field(default_factory=list)
    blocked: bool = False
    block_reason: str | None = None


def sanitize_input(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> SanitizationResult:
    """Sanitize user text before it is sent to the LLM.

    Detection runs on the original text; cleanup (truncation, null bytes,
    line endings, zero-width characters) is applied to the returned copy.

    Args:
        text: Raw user input
        max_length: Characters kept before truncation

    Returns:
        SanitizationResult with the cleaned text and any block reason
    """
    if not text:
        return SanitizationResult(
            is_valid=False,
            sanitized_text="",
            warnings=["Input is empty"],
            blocked=True,
            block_reason="Empty input",
        )

    warnings: list[str] = []
    sanitized = text
    block_reason: str | None = None

    if len(text) > max_length:
        warnings.append(f"Input truncated from {len(text)} to {max_length} characters")
        sanitized = text[:max_length]

    for pattern in PROMPT_INJECTION_PATTERNS:
        if pattern.search(text):
            block_reason = "Potential prompt injection detected"
            warnings.append(f'Blocked: Detected pattern "{pattern.pattern}"')
            break

    if block_reason is None:
        for pattern in MALICIOUS_PATTERNS:
            if pattern.search(text):
                block_reason = "Malicious pattern detected"
                warnings.append(f'Blocked: Detected malicious code pattern "{pattern.pattern}"')
                break

    sanitized = sanitized.replace("\0", "")
    sanitized = sanitized.replace("\r\n", "\n").replace("\r", "\n")
    sanitized = _INVISIBLE_CHARS.sub("", sanitized)

    blocked = block_reason is not None
    if blocked:
        logger.warning("Input blocked", reason=block_reason, length=len(text))

    return SanitizationResult(
        is_valid=not blocked,
        sanitized_text=sanitized,
        warnings=warnings,
        blocked=blocked,
        block_reason=block_reason,
    )


def ensure_safe_input(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Sanitize text and raise if it was blocked.

    Returns:
        The sanitized text

    Raises:
        AIValidationError: If the input is empty
        AISecurityError: If an injection or malicious pattern was found
    """
    result = sanitize_input(text, max_length)
    if not result.blocked:
        return result.sanitized_text
    if result.block_reason == "Empty input":
        raise AIValidationError("Input is empty", result.warnings)
    reason = "prompt_injection" if "injection" in (result.block_reason or "") else "malicious_content"
    raise AISecurityError(result.block_reason or "Input blocked", reason)


# =============================================================================
# File uploads
# =============================================================================

MAX_FILE_SIZE = 100 * 1024 * 1024
ALLOWED_MIME_TYPES = (
    "application/pdf",
    "text/plain",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
)
ALLOWED_EXTENSIONS = ("pdf", "txt", "docx", "doc")


class FileInfo(BaseModel):
    name: str
    size: int
    type: str


class FileValidationResult(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    file_info: FileInfo | None = None


def validate_file_upload(
    name: str,
    size: int,
    mime_type: str,
    max_size: int = MAX_FILE_SIZE,
) -> FileValidationResult:
    """Check an upload's size, MIME type and extension.

    All failing checks are reported, not just the first one.
    """
    errors: list[str] = []

    if size == 0:
        errors.append("File is empty")
    if size > max_size:
        errors.append(
            f"File too large: {size / (1024 * 1024):.2f}MB (max: {max_size // (1024 * 1024)}MB)"
        )
    if mime_type not in ALLOWED_MIME_TYPES:
        errors.append(f"Unsupported file type: {mime_type}")

    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    if extension not in ALLOWED_EXTENSIONS:
        errors.append(f"Unsupported file extension: .{extension}")

    return FileValidationResult(
        is_valid=not errors,
        errors=errors,
        file_info=FileInfo(name=name, size=size, type=mime_type) if not errors else None,
    )


def sanitize_ai_response(response: str) -> str:
    """Strip code fences and surrounding prose from an LLM JSON reply."""
    cleaned = _CODE_FENCE.sub("", _CODE_FENCE_JSON.sub("", response)).strip()
    match = _JSON_OBJECT.search(cleaned)
    return match.group(0) if match else cleaned
