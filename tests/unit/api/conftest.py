"""Fixtures for the route tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from docnex.main import create_app
from tests.fakes.fake_clients import FakeDatabaseClient, FakeLLMClient


@pytest.fixture
def client(installed_clients: tuple[FakeLLMClient, FakeDatabaseClient]) -> TestClient:
    """Test client wired to the fake LLM and database."""
    return TestClient(create_app())
