"""Editor AI API routes.

Single-call helpers used while editing a block: rewrite, free-form edit
proposal, analysis and the document-level assistant. Each request may carry
the project's global AI context.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import AliasChoices, BaseModel, Field

from docnex.api.dependencies import get_editor_service
from docnex.api.error_handlers import ErrorResponse
from docnex.core.config import get_settings
from docnex.core.constants import API_PREFIX
from docnex.core.logging import get_logger
from docnex.schemas.analysis import (
    AIContext,
    AnalysisType,
    ChatContext,
    DeepAnalysisResult,
    EditProposal,
    TransformInstruction,
)
from docnex.security.sanitizer import ensure_safe_input


logger = get_logger(__name__)


# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix=f"{API_PREFIX}/editor",
    tags=["Editor"],
)


# =============================================================================
# Request/Response Models
# =============================================================================

class _EditorRequest(BaseModel):
    ai_context: AIContext | None = Field(
        default=None,
        validation_alias=AliasChoices("ai_context", "aiContext"),
    )


class TransformRequest(_EditorRequest):
    text: str
    instruction: TransformInstruction


class TransformResponse(BaseModel):
    text: str


class ProposalRequest(_EditorRequest):
    text: str
    instruction: str = Field(..., min_length=1)


class AnalyzeRequest(_EditorRequest):
    text: str
    analysis_type: AnalysisType = Field(
        default="summary",
        validation_alias=AliasChoices("analysis_type", "analysisType"),
    )


class AnalyzeResponse(BaseModel):
    result: str


class DeepAnalysisRequest(_EditorRequest):
    text: str


class AssistantRequest(_EditorRequest):
    message: str = Field(..., min_length=1)
    context: ChatContext | None = None


class AssistantResponse(BaseModel):
    reply: str


def _safe(text: str) -> str:
    return ensure_safe_input(text, get_settings().max_input_length)


# =============================================================================
# Endpoints
# =============================================================================

@router.post(
    "/transform",
    response_model=TransformResponse,
    responses={403: {"model": ErrorResponse, "description": "Input blocked by the sanitizer"}},
)
async def transform_text(request: TransformRequest) -> TransformResponse:
    """Rewrite text; the original comes back unchanged if the model fails."""
    text = _safe(request.text)
    return TransformResponse(
        text=await get_editor_service().transform_text(text, request.instruction, request.ai_context),
    )


@router.post(
    "/proposal",
    response_model=EditProposal,
    responses={
        403: {"model": ErrorResponse, "description": "Input blocked by the sanitizer"},
        503: {"model": ErrorResponse, "description": "AI service unavailable"},
    },
)
async def generate_edit_proposal(request: ProposalRequest) -> EditProposal:
    text = _safe(request.text)
    instruction = _safe(request.instruction)
    return await get_editor_service().generate_edit_proposal(text, instruction, request.ai_context)


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_text(request: AnalyzeRequest) -> AnalyzeResponse:
    text = _safe(request.text)
    result = await get_editor_service().analyze_text(text, request.analysis_type, request.ai_context)
    return AnalyzeResponse(result=result)


@router.post(
    "/deep-analysis",
    response_model=DeepAnalysisResult,
    responses={502: {"model": ErrorResponse, "description": "Model reply could not be used"}},
)
async def analyze_document_deeply(request: DeepAnalysisRequest) -> DeepAnalysisResult:
    """Structural report used to recommend a split strategy."""
    text = _safe(request.text)
    result = await get_editor_service().analyze_document_deeply(text, request.ai_context)
    if result is None:
        raise HTTPException(status_code=502, detail="Deep analysis could not be completed")
    return result


@router.post("/chat", response_model=AssistantResponse)
async def chat(request: AssistantRequest) -> AssistantResponse:
    """Document assistant; replies with a fixed apology when the model fails."""
    message = _safe(request.message)
    reply = await get_editor_service().chat(message, request.context, request.ai_context)
    return AssistantResponse(reply=reply)


__all__ = ["router"]
