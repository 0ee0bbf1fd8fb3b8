"""Shared service objects for the API routes.

Clients are created lazily on first use and can be replaced through the
``set_*`` functions (tests, alternative backends). Agents are compiled once
per client pair and rebuilt whenever a client is replaced.
"""

from __future__ import annotations

from typing import Any

from docnex.agents.briefing import BriefingAgent
from docnex.agents.importer import ImportAgent
from docnex.agents.librarian import LibrarianAgent
from docnex.agents.relational import RelationalAgent
from docnex.agents.researcher import ResearcherAgent
from docnex.clients.gemini import GeminiClient
from docnex.clients.protocols import LLMClient
from docnex.core.config import get_settings
from docnex.persistence.database import DatabaseClient
from docnex.persistence.snapshots import SnapshotService
from docnex.persistence.store import DocumentStore
from docnex.persistence.supabase import SupabaseClient
from docnex.pipelines.cognitive import CognitivePipeline
from docnex.security.rate_limit import RateLimiter
from docnex.services.editor import DocumentAIService


_llm_client: LLMClient | None = None
_database: DatabaseClient | None = None
_rate_limiter: RateLimiter | None = None
_agents: dict[str, Any] = {}


# =============================================================================
# Clients
# =============================================================================

def get_llm_client() -> LLMClient:
    """Get or create the LLM client."""
    global _llm_client
    if _llm_client is None:
        _llm_client = GeminiClient()
    return _llm_client


def set_llm_client(client: LLMClient | None) -> None:
    """Replace the LLM client; None resets to the lazily created default."""
    global _llm_client
    _llm_client = client
    _agents.clear()


def get_database() -> DatabaseClient:
    """Get or create the database client."""
    global _database
    if _database is None:
        _database = SupabaseClient()
    return _database


def set_database(database: DatabaseClient | None) -> None:
    global _database
    _database = database
    _agents.clear()


def get_rate_limiter() -> RateLimiter:
    """Limiter shared by the AI split endpoints."""
    global _rate_limiter
    if _rate_limiter is None:
        settings = get_settings()
        _rate_limiter = RateLimiter(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _rate_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    global _rate_limiter
    _rate_limiter = limiter
    _agents.clear()


async def close_clients() -> None:
    """Close and forget every client created so far."""
    global _llm_client, _database
    if _llm_client is not None:
        await _llm_client.close()
    if _database is not None:
        await _database.close()
    _llm_client = None
    _database = None
    _agents.clear()


# =============================================================================
# Services
# =============================================================================

def get_store() -> DocumentStore:
    return DocumentStore(get_database())


def get_snapshot_service() -> SnapshotService:
    return SnapshotService(get_database())


def get_editor_service() -> DocumentAIService:
    return DocumentAIService(get_llm_client())


# =============================================================================
# Agents
# =============================================================================

def get_import_agent() -> ImportAgent:
    if "import" not in _agents:
        _agents["import"] = ImportAgent(ai=get_editor_service(), rate_limiter=get_rate_limiter())
    return _agents["import"]


def get_librarian_agent() -> LibrarianAgent:
    if "librarian" not in _agents:
        _agents["librarian"] = LibrarianAgent(get_llm_client())
    return _agents["librarian"]


def get_researcher_agent() -> ResearcherAgent:
    if "researcher" not in _agents:
        _agents["researcher"] = ResearcherAgent(get_llm_client(), get_store())
    return _agents["researcher"]


def get_relational_agent() -> RelationalAgent:
    if "relational" not in _agents:
        _agents["relational"] = RelationalAgent(get_llm_client())
    return _agents["relational"]


def get_briefing_agent() -> BriefingAgent:
    if "briefing" not in _agents:
        _agents["briefing"] = BriefingAgent(get_llm_client())
    return _agents["briefing"]


def get_pipeline() -> CognitivePipeline:
    return CognitivePipeline(get_store(), get_librarian_agent(), get_relational_agent())


__all__ = [
    "close_clients",
    "get_briefing_agent",
    "get_database",
    "get_editor_service",
    "get_import_agent",
    "get_librarian_agent",
    "get_llm_client",
    "get_pipeline",
    "get_rate_limiter",
    "get_relational_agent",
    "get_researcher_agent",
    "get_snapshot_service",
    "get_store",
    "set_database",
    "set_llm_client",
    "set_rate_limiter",
]
