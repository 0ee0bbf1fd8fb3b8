"""Tests for the agent routes."""

import json

from fastapi.testclient import TestClient

from docnex.core.constants import DIVISION_PREFERENCES_KEY, Table
from tests.conftest import PROJECT_ID
from tests.fakes.fake_clients import FakeDatabaseClient, FakeLLMClient


Clients = tuple[FakeLLMClient, FakeDatabaseClient]

BLOCKS = [
    {"title": "TITULO I", "content": "Disposiciones generales"},
    {"title": "TITULO II", "content": "Régimen sancionador"},
]


class TestLibrarianRoutes:
    """Tests for /v1/agents/librarian/*."""

    def test_structure(self, client: TestClient, installed_clients: Clients) -> None:
        llm, _ = installed_clients
        llm._replies = [
            json.dumps({"blocks": BLOCKS}),
            "APROBADO",
            json.dumps({"links": [{"source_index": 1, "target_index": 0, "type": "cita", "reason": "Remite"}]}),
        ]

        response = client.post("/v1/agents/librarian/structure", json={"text": "TITULO I. Disposiciones generales"})

        assert response.status_code == 200
        body = response.json()
        assert [b["title"] for b in body["blocks"]] == ["TITULO I", "TITULO II"]
        assert body["links"] == [{"source_index": 1, "target_index": 0, "type": "cita", "reason": "Remite"}]

    def test_structure_empty_text(self, client: TestClient) -> None:
        response = client.post("/v1/agents/librarian/structure", json={"text": "  "})

        assert response.status_code == 400
        assert response.json()["error"] == "BadRequest"

    def test_learn_stores_rule(self, client: TestClient, installed_clients: Clients) -> None:
        llm, db = installed_clients
        llm._replies = ["Separar cada TITULO en su propio bloque"]

        response = client.post(
            "/v1/agents/librarian/learn",
            json={"original": BLOCKS[:1], "final": BLOCKS, "user_id": "u1"},
        )

        assert response.json() == {"learned": True, "rule": "Separar cada TITULO en su propio bloque"}
        memory = db.rows(Table.COGNITIVE_MEMORY)[0]
        assert memory["memory_key"] == DIVISION_PREFERENCES_KEY
        assert memory["memory_value"] == "- Separar cada TITULO en su propio bloque"

    def test_learn_nothing(self, client: TestClient) -> None:
        response = client.post("/v1/agents/librarian/learn", json={"original": BLOCKS, "final": BLOCKS})

        assert response.json() == {"learned": False, "rule": None}


class TestResearcherRoute:
    """Tests for /v1/agents/researcher."""

    def test_insights(self, client: TestClient, installed_clients: Clients) -> None:
        llm, _ = installed_clients
        llm._replies = [
            json.dumps([{"type": "analogy", "project": "Reglamento Urbanístico", "suggestion": "Reutilizar"}]),
            json.dumps([{"type": "compliance", "severity": "low", "message": "Revisar plazos"}]),
        ]

        response = client.post("/v1/agents/researcher", json={"content": "Plan de vivienda", "project_id": PROJECT_ID})

        insights = response.json()["insights"]
        assert [i["type"] for i in insights] == ["analogy", "compliance"]
        assert insights[1]["severity"] == "low"

    def test_failed_steps_yield_no_insights(self, client: TestClient) -> None:
        response = client.post("/v1/agents/researcher", json={"content": "Plan", "project_id": PROJECT_ID})

        assert response.status_code == 200
        assert response.json() == {"insights": []}

    def test_missing_content(self, client: TestClient) -> None:
        response = client.post("/v1/agents/researcher", json={"content": " ", "project_id": PROJECT_ID})

        assert response.status_code == 400
        assert response.json()["detail"] == "Content and project_id are required"


class TestRelationalRoute:
    """Tests for /v1/agents/relational."""

    def test_links(self, client: TestClient, installed_clients: Clients) -> None:
        llm, _ = installed_clients
        llm._replies = [json.dumps({"links": [
            {"source_index": 0, "target_index": 1, "type": "amplía"},
            {"source_index": 0, "target_index": 0, "type": "cita"},
        ]})]

        response = client.post("/v1/agents/relational", json={"blocks": BLOCKS, "document_context": "Ley"})

        assert response.json()["links"] == [{"source_index": 0, "target_index": 1, "type": "amplía", "reason": ""}]

    def test_single_block(self, client: TestClient, installed_clients: Clients) -> None:
        llm, _ = installed_clients

        response = client.post("/v1/agents/relational", json={"blocks": BLOCKS[:1]})

        assert response.json() == {"links": []}
        assert llm.call_history == []


class TestBriefingRoute:
    """Tests for /v1/agents/briefing."""

    def test_briefing(self, client: TestClient, installed_clients: Clients) -> None:
        llm, _ = installed_clients
        llm._replies = ["# Misión", "## Prompt 1"]

        response = client.post(
            "/v1/agents/briefing",
            json={"project_context": "Ley de vivienda", "objective": "Comparar", "target_audience": "Técnicos"},
        )

        assert response.json() == {"briefing": "# Misión", "image_prompts": "## Prompt 1"}

    def test_empty_context(self, client: TestClient) -> None:
        response = client.post("/v1/agents/briefing", json={"project_context": ""})

        assert response.status_code == 400


class TestFeedbackRoute:
    """Tests for /v1/agents/feedback."""

    def test_stored(self, client: TestClient, installed_clients: Clients) -> None:
        _, db = installed_clients

        response = client.post(
            "/v1/agents/feedback",
            json={"event_type": "edit", "agent_id": "librarian_agent", "metrics": {"edit_distance": 12}},
        )

        assert response.json() == {"stored": True}
        assert db.rows(Table.INTERACTION_LOGS)[0]["event_type"] == "edit"

    def test_missing_event_type(self, client: TestClient) -> None:
        assert client.post("/v1/agents/feedback", json={}).status_code == 422
