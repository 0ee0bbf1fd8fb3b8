"""Unit tests for logging configuration and context binding."""

from collections.abc import Iterator

import pytest
import structlog

from docnex.core.config import Settings
from docnex.core.logging import (
    ServiceContext,
    bind_document_context,
    bind_request_context,
    clear_request_context,
    configure_logging,
    current_request_id,
    get_logger,
    new_request_id,
)


@pytest.fixture(autouse=True)
def clean_context() -> Iterator[None]:
    clear_request_context()
    yield
    clear_request_context()


class TestConfiguration:
    """Tests for structlog setup."""

    def test_service_context_added(self) -> None:
        event = ServiceContext("docnex", "test")(None, "info", {"event": "x"})

        assert event == {"event": "x", "service": "docnex", "environment": "test"}

    def test_service_context_keeps_explicit_values(self) -> None:
        event = ServiceContext("docnex", "test")(None, "info", {"event": "x", "service": "worker"})

        assert event["service"] == "worker"

    def test_production_renders_json(self) -> None:
        configure_logging(Settings(_env_file=None, environment="production"))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.contextvars.merge_contextvars in processors

    def test_development_renders_console(self) -> None:
        configure_logging(Settings(_env_file=None, environment="development"))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_configure_and_log(self) -> None:
        configure_logging()

        logger = get_logger("docnex.test")
        logger.info("Logging configured", check=True)


class TestRequestContext:
    """Tests for request and document context binding."""

    def test_request_id_reused_or_minted(self) -> None:
        assert new_request_id(" abc-123 ") == "abc-123"
        assert len(new_request_id(None)) == 32
        assert new_request_id("") != new_request_id("")

    def test_request_id_truncated(self) -> None:
        assert len(new_request_id("x" * 500)) == 128

    def test_bind_request_replaces_previous_context(self) -> None:
        bind_request_context("first", path="/a")
        bind_document_context(document_id="doc-1")

        bind_request_context("second", path="/b")

        assert structlog.contextvars.get_contextvars() == {"request_id": "second", "path": "/b"}
        assert current_request_id() == "second"

    def test_document_context_skips_missing_values(self) -> None:
        bind_request_context("req")

        bind_document_context(project_id="proj-1")

        context = structlog.contextvars.get_contextvars()
        assert context["project_id"] == "proj-1"
        assert "document_id" not in context

    def test_clear(self) -> None:
        bind_request_context("req")

        clear_request_context()

        assert current_request_id() is None
