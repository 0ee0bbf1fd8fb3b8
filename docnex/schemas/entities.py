"""Records stored in the remote database.

These mirror the Supabase rows the service reads and writes. Unknown columns
are ignored so schema additions on the database side do not break parsing.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Project(_Record):
    name: str = ""
    description: str | None = None


class Document(_Record):
    project_id: str
    title: str
    category: str = "main"
    status: str | None = None


class DocumentBlock(_Record):
    document_id: str
    title: str = ""
    content: str = ""
    order_index: float = 0
    parent_block_id: str | None = None
    is_deleted: bool = False
    tags: list[str] | None = None
    block_type: str | None = "text"
    last_edited_at: datetime | None = None


class Resource(_Record):
    project_id: str
    document_id: str | None = None
    title: str
    kind: str = "other"
    file_path: str | None = None
    mime_type: str | None = None
    file_size: int | None = None
    ingest_status: str | None = None
    tags: list[str] | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class BlockResourceLink(_Record):
    block_id: str
    resource_id: str
    extract_id: str | None = None


class ResourceExtract(_Record):
    resource_id: str
    excerpt: str
    label: str = "Extract"
    locator: dict[str, Any] = Field(default_factory=dict)


class BlockComment(_Record):
    block_id: str
    text_selection: str = ""
    content: str
    comment_type: Literal["review", "ai_instruction"] = "review"
    start_offset: int = 0
    end_offset: int = 0
    resolved: bool = False
    meta: dict[str, Any] = Field(default_factory=dict)


class BlockCommentReply(_Record):
    comment_id: str
    content: str
    user_id: str | None = None


class BlockVersion(_Record):
    block_id: str
    version_number: int
    title: str = ""
    content: str = ""
    is_active: bool = False


class DocumentHistory(_Record):
    document_id: str
    action_type: str
    description: str = ""
    snapshot: list[dict[str, Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class LinkType(StrEnum):
    """How a semantic link was created."""

    MANUAL_REF = "manual_ref"
    AUTO_MENTION = "auto_mention"
    TAG_SIMILARITY = "tag_similarity"
    SEMANTIC_SIMILARITY = "semantic_similarity"
    HIERARCHY = "hierarchy"


class SemanticLink(_Record):
    source_block_id: str
    target_block_id: str | None = None
    target_document_id: str | None = None
    link_type: LinkType = LinkType.MANUAL_REF
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Regulatory library
# =============================================================================

class RegulatoryStatus(StrEnum):
    ACTIVE = "ACTIVE"
    OBSOLETE = "OBSOLETE"
    VETOED = "VETOED"


class RegulatoryRange(StrEnum):
    ESTATAL = "ESTATAL"
    REGIONAL = "REGIONAL"
    SUBREGIONAL = "SUBREGIONAL"
    MUNICIPAL = "MUNICIPAL"


class RegulatoryMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    area: str | None = None
    range: RegulatoryRange | None = None
    compliance_type: Literal["OBLIGATORY", "RECOMMENDATION", "REFERENCE"] | None = None
    jurisdiction: str | None = None
    version_date: str | None = None
    summary: str | None = None


class RegulatoryResource(_Record):
    """A regulation in the library; superseded ones are kept as OBSOLETE."""

    title: str
    theme: str | None = None
    kind: str | None = None
    status: RegulatoryStatus = RegulatoryStatus.ACTIVE
    veto_reason: str | None = None
    replaced_by_id: str | None = None
    document_id: str | None = None
    source_uri: str | None = None
    meta: RegulatoryMeta = Field(default_factory=RegulatoryMeta)


# =============================================================================
# Learning
# =============================================================================

class CognitiveMemory(BaseModel):
    """Learned criteria stored under a key, with a growing confidence."""

    model_config = ConfigDict(extra="ignore")

    memory_key: str
    memory_value: str = ""
    confidence_score: float = 0.0
    user_id: str | None = None
    updated_at: datetime | None = None


class InteractionLog(BaseModel):
    """A user reaction to an AI proposal."""

    model_config = ConfigDict(extra="ignore")

    event_type: str
    agent_id: str | None = None
    project_id: str | None = None
    user_id: str | None = None
    user_feedback: str | None = None
    metrics: dict[str, Any] = Field(default_factory=dict)
