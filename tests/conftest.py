"""Test configuration and shared fixtures.

Pattern: Pytest fixtures, conftest.py
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from docnex.api import dependencies
from docnex.core.config import Settings
from docnex.core.constants import Table
from docnex.persistence.store import DocumentStore
from tests.fakes.fake_clients import FakeDatabaseClient, FakeLLMClient


PROJECT_ID = "11111111-1111-4111-8111-111111111111"
OTHER_PROJECT_ID = "22222222-2222-4222-8222-222222222222"
DOCUMENT_ID = "33333333-3333-4333-8333-333333333333"
OTHER_DOCUMENT_ID = "44444444-4444-4444-8444-444444444444"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    return Settings(
        gemini_api_key=None,
        supabase_url="http://localhost:54321",
        librarian_max_iterations=3,
        split_timeout_seconds=1.0,
        log_level="DEBUG",
    )


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def fake_db() -> FakeDatabaseClient:
    """Database seeded with two projects, one document each."""
    return FakeDatabaseClient(
        tables={
            Table.PROJECTS: [
                {"id": PROJECT_ID, "name": "Ley de Vivienda", "created_at": "2025-01-01T00:00:00+00:00"},
                {"id": OTHER_PROJECT_ID, "name": "Reglamento Urbanístico", "created_at": "2024-06-01T00:00:00+00:00"},
            ],
            Table.DOCUMENTS: [
                {"id": DOCUMENT_ID, "project_id": PROJECT_ID, "title": "Borrador", "category": "main"},
                {"id": OTHER_DOCUMENT_ID, "project_id": OTHER_PROJECT_ID, "title": "Texto refundido", "category": "main"},
            ],
        }
    )


@pytest.fixture
def store(fake_db: FakeDatabaseClient) -> DocumentStore:
    return DocumentStore(fake_db)


@pytest.fixture
def installed_clients(
    fake_llm: FakeLLMClient,
    fake_db: FakeDatabaseClient,
) -> Iterator[tuple[FakeLLMClient, FakeDatabaseClient]]:
    """Route the API dependencies to the fakes and reset them afterwards."""
    dependencies.set_llm_client(fake_llm)
    dependencies.set_database(fake_db)
    dependencies.set_rate_limiter(None)
    yield fake_llm, fake_db
    dependencies.set_llm_client(None)
    dependencies.set_database(None)
    dependencies.set_rate_limiter(None)
