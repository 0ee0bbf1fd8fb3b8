"""Import and split schemas.

ImportItem is what the import wizard hands to the persistence layer.
BlockItem is the shape proposed by the LLM splitters and the librarian.
Both are recursive.
"""

from __future__ import annotations

import uuid
from enum import StrEnum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator


class ImportTarget(StrEnum):
    """Where an imported block ends up."""

    ACTIVE_VERSION = "active_version"
    VERSION = "version"
    LINKED_REF = "linked_ref"
    UNLINKED_REF = "unlinked_ref"
    NOTE = "note"


class SplitStrategy(StrEnum):
    """Splitting strategies offered by the import wizard."""

    HEADER = "header"
    SEMANTIC = "semantic"
    MANUAL = "manual"
    CUSTOM = "custom"
    INDEX = "index"
    SMART = "smart"
    SELECTION = "selection"
    SINGLE = "single"


ImportCategory = Literal["main", "version", "linked_ref", "unlinked_ref"]
BlockTarget = Literal[
    "active_version",
    "version",
    "linked_ref",
    "unlinked_ref",
    "note",
    "section",
    "main_content",
]


def _check_uuid(value: str) -> str:
    try:
        uuid.UUID(value)
    except ValueError as e:
        raise ValueError("Invalid UUID format") from e
    return value


class ImportItem(BaseModel):
    """A block ready for import, validated before it reaches the database."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Block UUID")
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1, max_length=100000)
    target: ImportTarget = ImportTarget.ACTIVE_VERSION
    category: ImportCategory | None = None
    tags: list[str] | None = None
    level: int | None = Field(default=None, ge=0, le=10)
    parent_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("parent_id", "parentId"),
    )
    children: list[ImportItem] | None = None

    @field_validator("id")
    @classmethod
    def _validate_id(cls, value: str) -> str:
        return _check_uuid(value)

    @field_validator("parent_id")
    @classmethod
    def _validate_parent_id(cls, value: str | None) -> str | None:
        return None if value is None else _check_uuid(value)


class SplitItem(BaseModel):
    """A draft block produced by a splitter, before user review.

    Unlike ImportItem it allows empty content: headers with no body are kept
    so the user can see and merge them.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    content: str = ""
    target: ImportTarget = ImportTarget.ACTIVE_VERSION
    level: int | None = None
    children: list[SplitItem] | None = None


class BlockItem(BaseModel):
    """A block proposed by an AI splitter (up to three hierarchy levels)."""

    title: str = Field(default="", description="Short block title (TITULO I, CAPITULO 3...)")
    content: str = Field(default="", description="Block body in HTML or Markdown")
    target: BlockTarget = "active_version"
    hierarchy_level: Literal[0, 1, 2] | None = None
    order_index: float | None = None
    children: list[BlockItem] | None = None


class SplitError(BaseModel):
    code: str
    message: str
    line: int | None = None


class SplitMetadata(BaseModel):
    total_blocks: int = Field(..., ge=0, validation_alias=AliasChoices("total_blocks", "totalBlocks"))
    strategy: SplitStrategy
    processing_time: float | None = Field(
        default=None,
        validation_alias=AliasChoices("processing_time", "processingTime"),
    )
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class AISplitResponse(BaseModel):
    """Envelope returned by a full AI split."""

    success: bool
    blocks: list[ImportItem]
    metadata: SplitMetadata | None = None
    errors: list[SplitError] | None = None


class DocumentSplitResult(BaseModel):
    """Raw split result as the LLM returns it."""

    blocks: list[BlockItem] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None


class ImportMode(StrEnum):
    """How imported items meet the blocks already in the document."""

    REPLACE = "replace"
    MERGE = "merge"


class ImportResult(BaseModel):
    """Outcome of persisting import items."""

    success: bool = True
    count: int = Field(default=0, ge=0, description="Blocks created, children included")
    document_ids: list[str] = Field(
        default_factory=list,
        description="Documents that received blocks, support documents included",
    )


class ChatAction(BaseModel):
    type: Literal["set_pattern", "set_index", "set_strategy"]
    value: str


class AIChatResponse(BaseModel):
    """Reply of the import assistant, with an optional wizard action."""

    reply: str = Field(..., min_length=1, max_length=2000)
    action: ChatAction | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


# =============================================================================
# Validator helpers
# =============================================================================

def format_validation_errors(error: ValidationError) -> list[str]:
    """Render pydantic errors as ``"path: message"`` strings."""
    return [
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    ]


def validate_import_item(item: Any) -> tuple[ImportItem | None, list[str]]:
    """Validate a raw import item.

    Args:
        item: Mapping (or model) to validate

    Returns:
        ``(item, [])`` on success, ``(None, errors)`` otherwise
    """
    try:
        return ImportItem.model_validate(item), []
    except ValidationError as e:
        return None, format_validation_errors(e)


def validate_ai_response(response: Any) -> tuple[AISplitResponse | None, list[str]]:
    """Validate a full AI split response envelope."""
    try:
        return AISplitResponse.model_validate(response), []
    except ValidationError as e:
        return None, format_validation_errors(e)
