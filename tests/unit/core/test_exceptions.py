"""Unit tests for the error taxonomy."""

import pytest

from docnex.core.exceptions import (
    AgentExecutionError,
    AIConfigError,
    AIError,
    AIRateLimitError,
    AISecurityError,
    AIServiceError,
    AITimeoutError,
    AIValidationError,
    DatabaseClientError,
    DocnexError,
    RecordNotFoundError,
    categorize_error,
    get_user_friendly_message,
    is_retryable_error,
)


class TestAIErrors:
    """Tests for AIError subclasses."""

    @pytest.mark.parametrize(
        ("error", "code", "status", "retryable"),
        [
            (AIValidationError("bad"), "AI_VALIDATION_ERROR", 400, False),
            (AIRateLimitError("slow down"), "AI_RATE_LIMIT", 429, True),
            (AITimeoutError("late"), "AI_TIMEOUT", 408, True),
            (AISecurityError("blocked", "prompt_injection"), "AI_SECURITY", 403, False),
            (AIServiceError("down"), "AI_SERVICE_ERROR", 503, True),
            (AIConfigError("no key"), "AI_CONFIG_ERROR", 500, False),
            (AgentExecutionError("boom", step="workflow_execution"), "AGENT_EXECUTION_ERROR", 500, False),
        ],
    )
    def test_code_status_and_retryable(
        self,
        error: AIError,
        code: str,
        status: int,
        retryable: bool,
    ) -> None:
        assert isinstance(error, DocnexError)
        assert error.code == code
        assert error.status_code == status
        assert error.retryable is retryable

    def test_rate_limit_default_retry_after(self) -> None:
        assert AIRateLimitError("x").retry_after == 60

    def test_validation_errors_default_empty(self) -> None:
        assert AIValidationError("x").validation_errors == []

    def test_service_error_chains_cause(self) -> None:
        cause = RuntimeError("socket closed")

        error = AIServiceError("down", cause)

        assert error.original_error is cause
        assert error.__cause__ is cause

    def test_agent_execution_error_keeps_step(self) -> None:
        cause = KeyError("node")

        error = AgentExecutionError("failed", step="analyze", cause=cause, agent_name="librarian_agent")

        assert error.step == "analyze"
        assert error.agent_name == "librarian_agent"
        assert error.__cause__ is cause


class TestDatabaseErrors:
    """Tests for persistence errors."""

    def test_record_not_found(self) -> None:
        error = RecordNotFoundError("documents", "abc")

        assert isinstance(error, DatabaseClientError)
        assert error.status_code == 404
        assert error.table == "documents"
        assert str(error) == "documents record 'abc' not found"


class TestCategorizeError:
    """Tests for categorize_error."""

    def test_ai_error_passes_through(self) -> None:
        error = AITimeoutError("late")

        assert categorize_error(error) is error

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Request timed out", AITimeoutError),
            ("TIMEOUT after 30s", AITimeoutError),
            ("Rate limit reached", AIRateLimitError),
            ("quota exceeded", AIRateLimitError),
            ("API key not valid", AIConfigError),
            ("401 Unauthorized", AIConfigError),
            ("invalid response", AIValidationError),
            ("connection reset", AIServiceError),
        ],
    )
    def test_message_heuristics(self, message: str, expected: type[AIError]) -> None:
        assert type(categorize_error(RuntimeError(message))) is expected

    def test_config_error_hides_original_message(self) -> None:
        assert categorize_error(RuntimeError("bad api key xyz")).message == "Invalid or missing API key"

    def test_non_exception(self) -> None:
        error = categorize_error("weird")

        assert isinstance(error, AIServiceError)
        assert error.message == "An unknown error occurred"


class TestHelpers:
    """Tests for is_retryable_error and get_user_friendly_message."""

    def test_is_retryable(self) -> None:
        assert is_retryable_error(AITimeoutError("x")) is True
        assert is_retryable_error(AIConfigError("x")) is False
        assert is_retryable_error(ValueError("x")) is False

    def test_friendly_message_by_code(self) -> None:
        assert get_user_friendly_message(AIRateLimitError("x")) == (
            "Has excedido el límite de solicitudes. Por favor, espera un momento."
        )

    def test_friendly_message_for_injection(self) -> None:
        message = get_user_friendly_message(AISecurityError("x", "prompt_injection"))

        assert message.startswith("Detectamos un intento de manipulación del sistema.")

    def test_friendly_message_for_other_security(self) -> None:
        message = get_user_friendly_message(AISecurityError("x", "malicious_content"))

        assert message == "Contenido no válido o inseguro detectado."

    def test_friendly_message_fallback(self) -> None:
        message = get_user_friendly_message(AgentExecutionError("x", step="s"))

        assert message == "Ocurrió un error inesperado. Por favor, intenta de nuevo."
