"""Custom exceptions for the DOCNEX service.

All exceptions derive from DocnexError so callers can catch any service
error with a single except clause. AI failures carry a machine-readable code,
an HTTP status and a retryable flag; the API layer renders them directly.
"""

from typing import Any, Literal


SecurityReason = Literal["prompt_injection", "malicious_content", "file_validation"]


class DocnexError(Exception):
    """Base exception for all DOCNEX errors."""


# =============================================================================
# AI errors
# =============================================================================

class AIError(DocnexError):
    """Base exception for failures around LLM calls.

    Attributes:
        code: Machine-readable error code
        status_code: HTTP status to report
        retryable: Whether the same request may succeed later
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        """Initialize AI error.

        Args:
            message: Error description
            code: Machine-readable error code
            status_code: HTTP status to report
            retryable: Whether a retry may succeed
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)


class AIValidationError(AIError):
    """Raised when input or an LLM reply fails schema validation."""

    def __init__(self, message: str, validation_errors: list[str] | None = None) -> None:
        self.validation_errors = validation_errors or []
        super().__init__(message, "AI_VALIDATION_ERROR", 400, False)


class AIRateLimitError(AIError):
    """Raised when the caller or the provider is rate limited."""

    def __init__(self, message: str, retry_after: float = 60) -> None:
        self.retry_after = retry_after
        super().__init__(message, "AI_RATE_LIMIT", 429, True)


class AITimeoutError(AIError):
    """Raised when an LLM call exceeds its timeout."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "AI_TIMEOUT", 408, True)


class AISecurityError(AIError):
    """Raised when input is blocked by the sanitizer or file validation."""

    def __init__(self, message: str, reason: SecurityReason) -> None:
        self.reason = reason
        super().__init__(message, "AI_SECURITY", 403, False)


class AIServiceError(AIError):
    """Raised when the LLM provider fails or returns an unusable reply."""

    def __init__(self, message: str, original_error: Any | None = None) -> None:
        self.original_error = original_error
        if isinstance(original_error, BaseException):
            self.__cause__ = original_error
        super().__init__(message, "AI_SERVICE_ERROR", 503, True)


class AIConfigError(AIError):
    """Raised when the LLM is not configured (missing or invalid key)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "AI_CONFIG_ERROR", 500, False)


class AgentExecutionError(AIError):
    """Raised when an agent workflow fails as a whole.

    Node-level LLM failures are recorded in state instead; this error covers
    failures of the graph machinery itself.
    """

    def __init__(
        self,
        message: str,
        step: str,
        cause: Exception | None = None,
        agent_name: str | None = None,
    ) -> None:
        """Initialize execution error.

        Args:
            message: Error description
            step: The workflow step that failed
            cause: Original exception that caused this error
            agent_name: Name of the agent that failed
        """
        self.step = step
        self.cause = cause
        self.agent_name = agent_name
        if cause:
            self.__cause__ = cause
        super().__init__(message, "AGENT_EXECUTION_ERROR", 500, False)


# =============================================================================
# Persistence errors
# =============================================================================

class DatabaseClientError(DocnexError):
    """Raised when a database request fails.

    Attributes:
        table: Table the request targeted
        status_code: HTTP status returned by the backend, if any
        code: Postgres or PostgREST error code, if the backend answered
    """

    def __init__(
        self,
        message: str,
        table: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.table = table
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class RecordNotFoundError(DatabaseClientError):
    """Raised when a single record lookup finds nothing."""

    def __init__(self, table: str, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"{table} record '{record_id}' not found", table=table, status_code=404)


# =============================================================================
# Helpers
# =============================================================================

def categorize_error(error: object) -> AIError:
    """Map an arbitrary failure onto the AI error taxonomy.

    AIError instances pass through unchanged. Other exceptions are classified
    by their message text.

    Args:
        error: Exception (or any object) raised by an AI operation

    Returns:
        The matching AIError subclass instance
    """
    if isinstance(error, AIError):
        return error

    if isinstance(error, Exception):
        text = str(error)
        message = text.lower()

        if "timeout" in message or "timed out" in message:
            return AITimeoutError(text)
        if "rate limit" in message or "quota" in message:
            return AIRateLimitError(text, 60)
        if "api key" in message or "unauthorized" in message:
            return AIConfigError("Invalid or missing API key")
        if "validation" in message or "invalid" in message:
            return AIValidationError(text, [text])
        return AIServiceError(text, error)

    return AIServiceError("An unknown error occurred", error)


def is_retryable_error(error: object) -> bool:
    """Return True if the error is an AIError flagged as retryable."""
    return isinstance(error, AIError) and error.retryable


_FRIENDLY_MESSAGES: dict[str, str] = {
    "AI_VALIDATION_ERROR": "La respuesta de la IA no es válida. Por favor, intenta de nuevo.",
    "AI_RATE_LIMIT": "Has excedido el límite de solicitudes. Por favor, espera un momento.",
    "AI_TIMEOUT": "La solicitud tardó demasiado. Por favor, intenta de nuevo.",
    "AI_SERVICE_ERROR": "Error al comunicarse con el servicio de IA. Por favor, intenta más tarde.",
    "AI_CONFIG_ERROR": "Error de configuración. Por favor, contacta al administrador.",
}


def get_user_friendly_message(error: AIError) -> str:
    """Return the Spanish message shown to end users for an AI error."""
    if isinstance(error, AISecurityError):
        if error.reason == "prompt_injection":
            return (
                "Detectamos un intento de manipulación del sistema. "
                "Por favor, usa instrucciones válidas."
            )
        return "Contenido no válido o inseguro detectado."
    return _FRIENDLY_MESSAGES.get(
        error.code,
        "Ocurrió un error inesperado. Por favor, intenta de nuevo.",
    )
