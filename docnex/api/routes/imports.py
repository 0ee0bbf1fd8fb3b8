"""Import wizard API routes.

Endpoints behind the paste-and-split wizard: splitting, pattern inference,
the rule-based assistant, index detection and the input checks run before
anything reaches the LLM.
"""

from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException
from pydantic import AliasChoices, BaseModel, Field

from docnex.agents.importer import ImportChatContext, ImportRequest
from docnex.api.dependencies import get_import_agent
from docnex.api.error_handlers import ErrorResponse
from docnex.core.config import get_settings
from docnex.core.constants import API_PREFIX
from docnex.core.logging import get_logger
from docnex.schemas.analysis import AIContext
from docnex.schemas.blocks import AIChatResponse, ImportTarget, SplitItem, SplitMetadata
from docnex.security.sanitizer import (
    FileValidationResult,
    SanitizationResult,
    sanitize_input,
    validate_file_upload,
)
from docnex.splitting import PatternSuggestion


logger = get_logger(__name__)


# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix=f"{API_PREFIX}/import",
    tags=["Import"],
)


# =============================================================================
# Request/Response Models
# =============================================================================

class SplitResponse(BaseModel):
    """Draft blocks for the wizard preview."""

    blocks: list[SplitItem] = Field(default_factory=list)
    metadata: SplitMetadata


class PatternRequest(BaseModel):
    examples: str = Field(..., min_length=1, description="Example heading lines, one per line")


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    context: ImportChatContext
    ai_context: AIContext | None = Field(
        default=None,
        validation_alias=AliasChoices("ai_context", "aiContext"),
    )


class TextRequest(BaseModel):
    text: str


class DetectIndexResponse(BaseModel):
    index: str | None = None


class SuggestTargetResponse(BaseModel):
    target: ImportTarget


class FileValidationRequest(BaseModel):
    name: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)
    type: str = Field(..., description="MIME type reported by the browser")


class SanitizeRequest(BaseModel):
    text: str
    max_length: int | None = Field(default=None, gt=0)


# =============================================================================
# Endpoints
# =============================================================================

@router.post(
    "/split",
    response_model=SplitResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid pattern or empty input"},
        403: {"model": ErrorResponse, "description": "Input blocked by the sanitizer"},
    },
)
async def split_text(request: ImportRequest) -> SplitResponse:
    """Split pasted text with the selected strategy.

    The semantic strategies never fail on LLM errors; they fall back to
    paragraph splitting.
    """
    started = time.perf_counter()
    try:
        blocks = await get_import_agent().process_text(request.text, request.strategy, request.options)
    except ValueError as e:
        logger.warning("Invalid split request", strategy=request.strategy, error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info("Text split", strategy=request.strategy, blocks=len(blocks), elapsed_ms=elapsed_ms)
    return SplitResponse(
        blocks=blocks,
        metadata=SplitMetadata(
            total_blocks=len(blocks),
            strategy=request.strategy,
            processing_time=elapsed_ms,
        ),
    )


@router.post("/patterns", response_model=PatternSuggestion)
async def generate_patterns(request: PatternRequest) -> PatternSuggestion:
    return get_import_agent().generate_patterns(request.examples)


@router.post("/chat", response_model=AIChatResponse)
async def chat(request: ChatRequest) -> AIChatResponse:
    """Turn a wizard instruction into a pattern, index or strategy action."""
    return get_import_agent().chat(request.message, request.context, request.ai_context)


@router.post("/detect-index", response_model=DetectIndexResponse)
async def detect_index(request: TextRequest) -> DetectIndexResponse:
    return DetectIndexResponse(index=get_import_agent().detect_index(request.text))


@router.post("/suggest-target", response_model=SuggestTargetResponse)
async def suggest_target(request: TextRequest) -> SuggestTargetResponse:
    return SuggestTargetResponse(target=get_import_agent().suggest_target(request.text))


@router.post("/validate-file", response_model=FileValidationResult)
async def validate_file(request: FileValidationRequest) -> FileValidationResult:
    """Check an upload's metadata before the file is sent."""
    result = validate_file_upload(
        request.name,
        request.size,
        request.type,
        max_size=get_settings().max_file_size,
    )
    if not result.is_valid:
        logger.info("File rejected", file=request.name, errors=result.errors)
    return result


@router.post("/sanitize", response_model=SanitizationResult)
async def sanitize(request: SanitizeRequest) -> SanitizationResult:
    """Report what the sanitizer would do with ``text``; never raises."""
    return sanitize_input(request.text, request.max_length or get_settings().max_input_length)


__all__ = ["router"]
