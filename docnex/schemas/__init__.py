"""Pydantic models for imports, AI replies and database records."""

from docnex.schemas.analysis import (
    AIContext,
    ChatContext,
    DeepAnalysisResult,
    EditProposal,
)
from docnex.schemas.blocks import (
    AIChatResponse,
    AISplitResponse,
    BlockItem,
    DocumentSplitResult,
    ImportItem,
    ImportMode,
    ImportResult,
    ImportTarget,
    SplitStrategy,
    validate_ai_response,
    validate_import_item,
)


__all__ = [
    "AIChatResponse",
    "AIContext",
    "AISplitResponse",
    "BlockItem",
    "ChatContext",
    "DeepAnalysisResult",
    "DocumentSplitResult",
    "EditProposal",
    "ImportItem",
    "ImportMode",
    "ImportResult",
    "ImportTarget",
    "SplitStrategy",
    "validate_ai_response",
    "validate_import_item",
]
