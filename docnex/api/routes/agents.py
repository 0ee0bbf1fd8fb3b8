"""Agent API routes.

POST endpoints for the librarian (through the cognitive pipeline), the
researcher, the relational agent and the briefing writer, plus the feedback
log the agents learn from.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from docnex.agents.briefing import BriefingInput, BriefingResult
from docnex.agents.relational import DiscoveredLink, RelationalInput
from docnex.agents.researcher import ResearchInput, ResearchInsight
from docnex.api.dependencies import (
    get_briefing_agent,
    get_pipeline,
    get_relational_agent,
    get_researcher_agent,
)
from docnex.api.error_handlers import ErrorResponse
from docnex.core.constants import API_PREFIX
from docnex.core.logging import bind_document_context, get_logger
from docnex.pipelines.cognitive import StructuredDocument
from docnex.schemas.analysis import AIContext
from docnex.schemas.blocks import BlockItem
from docnex.schemas.entities import InteractionLog


logger = get_logger(__name__)


# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix=f"{API_PREFIX}/agents",
    tags=["Agents"],
)

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    500: {"model": ErrorResponse, "description": "Agent workflow failed"},
}


# =============================================================================
# Request/Response Models
# =============================================================================

class StructureRequest(BaseModel):
    text: str = Field(..., description="Document text to structure")
    context: AIContext | None = None


class LearnRequest(BaseModel):
    """Blocks proposed by the librarian and the user's corrected version."""

    original: list[BlockItem]
    final: list[BlockItem]
    user_id: str | None = None


class LearnResponse(BaseModel):
    learned: bool
    rule: str | None = None


class ResearchResponse(BaseModel):
    insights: list[ResearchInsight] = Field(default_factory=list)


class RelationalResponse(BaseModel):
    links: list[DiscoveredLink] = Field(default_factory=list)


class FeedbackResponse(BaseModel):
    stored: bool


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/librarian/structure", response_model=StructuredDocument, responses=_ERROR_RESPONSES)
async def structure_document(request: StructureRequest) -> StructuredDocument:
    """Structure a document with the learned criteria and find block relations."""
    try:
        return await get_pipeline().structure_document(request.text, request.context)
    except ValueError as e:
        logger.warning("Validation error in librarian", error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/librarian/learn", response_model=LearnResponse)
async def learn_from_feedback(request: LearnRequest) -> LearnResponse:
    """Learn a segmentation rule from the user's edits to a proposal."""
    rule = await get_pipeline().finalize_learning(request.original, request.final, request.user_id)
    return LearnResponse(learned=rule is not None, rule=rule)


@router.post("/researcher", response_model=ResearchResponse, responses=_ERROR_RESPONSES)
async def run_research(request: ResearchInput) -> ResearchResponse:
    bind_document_context(project_id=request.project_id or None)
    try:
        insights = await get_researcher_agent().run(request)
    except ValueError as e:
        logger.warning("Validation error in researcher", error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e
    return ResearchResponse(insights=insights)


@router.post("/relational", response_model=RelationalResponse, responses=_ERROR_RESPONSES)
async def discover_links(request: RelationalInput) -> RelationalResponse:
    """Relations between the given blocks; fewer than two blocks yields none."""
    return RelationalResponse(links=await get_relational_agent().run(request))


@router.post("/briefing", response_model=BriefingResult, responses=_ERROR_RESPONSES)
async def generate_briefing(request: BriefingInput) -> BriefingResult:
    try:
        return await get_briefing_agent().run(request)
    except ValueError as e:
        logger.warning("Validation error in briefing", error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/feedback", response_model=FeedbackResponse)
async def log_feedback(entry: InteractionLog) -> FeedbackResponse:
    """Record how the user reacted to an AI proposal."""
    return FeedbackResponse(stored=await get_pipeline().log_feedback(entry))


__all__ = ["router"]
