"""Document API routes.

Read the block hierarchy of a document, snapshot and restore it, and persist
wizard import items or a librarian block tree.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from docnex.agents.relational import DiscoveredLink
from docnex.api.dependencies import get_pipeline, get_snapshot_service, get_store
from docnex.api.error_handlers import ErrorResponse
from docnex.core.constants import API_PREFIX
from docnex.core.logging import bind_document_context, get_logger
from docnex.hierarchy.tree import TreeIssues
from docnex.persistence.snapshots import RestoreResult, SnapshotAction, get_snapshot_description
from docnex.pipelines.cognitive import BatchImportResult
from docnex.schemas.blocks import BlockItem, ImportItem, ImportMode, ImportResult
from docnex.schemas.entities import DocumentHistory


logger = get_logger(__name__)


# =============================================================================
# Router Configuration
# =============================================================================

async def document_log_context(document_id: str) -> None:
    bind_document_context(document_id=document_id)


router = APIRouter(
    prefix=f"{API_PREFIX}/documents",
    tags=["Documents"],
    dependencies=[Depends(document_log_context)],
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Document not found"}}


# =============================================================================
# Request/Response Models
# =============================================================================

class TreeResponse(BaseModel):
    document_id: str
    block_count: int
    blocks: list[dict[str, Any]] = Field(default_factory=list, description="Nested block tree")
    issues: TreeIssues


class SnapshotRequest(BaseModel):
    action_type: SnapshotAction = "manual"
    description: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)


class ImportBlocksRequest(BaseModel):
    """A block tree from the librarian, with links indexed in preorder."""

    blocks: list[BlockItem] = Field(..., min_length=1)
    links: list[DiscoveredLink] = Field(default_factory=list)


class ImportItemsRequest(BaseModel):
    """Items accepted in the import wizard."""

    items: list[ImportItem] = Field(..., min_length=1)
    mode: ImportMode = ImportMode.MERGE


class NormalizeOrderResponse(BaseModel):
    order: dict[str, int]


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/{document_id}/tree", response_model=TreeResponse, responses=_NOT_FOUND)
async def get_tree(document_id: str) -> TreeResponse:
    """Active blocks as a nested tree, with any structural issues found."""
    store = get_store()
    await store.get_document(document_id)
    tree = await store.get_block_tree(document_id)
    issues = tree.validate()
    if not issues.ok:
        logger.warning(
            "Block tree has structural issues",
            document_id=document_id,
            orphans=len(issues.orphans),
            cycles=len(issues.cycles),
            duplicate_order=len(issues.duplicate_order),
        )
    return TreeResponse(
        document_id=document_id,
        block_count=len(tree),
        blocks=tree.to_nested(),
        issues=issues,
    )


@router.post("/{document_id}/normalize-order", response_model=NormalizeOrderResponse, responses=_NOT_FOUND)
async def normalize_order(document_id: str) -> NormalizeOrderResponse:
    store = get_store()
    await store.get_document(document_id)
    return NormalizeOrderResponse(order=await store.normalize_order(document_id))


@router.post(
    "/{document_id}/snapshots",
    response_model=DocumentHistory,
    status_code=201,
    responses=_NOT_FOUND,
)
async def create_snapshot(document_id: str, request: SnapshotRequest) -> DocumentHistory:
    """Snapshot the document's active blocks; old snapshots are pruned."""
    store = get_store()
    await store.get_document(document_id)
    blocks = await store.list_active_blocks(document_id)
    description = request.description or get_snapshot_description(request.action_type, request.context)
    return await get_snapshot_service().create_snapshot(
        document_id,
        description,
        blocks,
        action_type=request.action_type,
    )


@router.get("/{document_id}/history", response_model=list[DocumentHistory])
async def list_history(document_id: str) -> list[DocumentHistory]:
    return await get_store().list_document_history(document_id)


@router.post(
    "/{document_id}/history/{snapshot_id}/restore",
    response_model=RestoreResult,
    responses={
        **_NOT_FOUND,
        400: {"model": ErrorResponse, "description": "Snapshot holds no blocks"},
    },
)
async def restore_snapshot(document_id: str, snapshot_id: str) -> RestoreResult:
    """Replace the document's blocks with a snapshot, keeping a safety copy."""
    await get_store().get_document(document_id)
    try:
        return await get_snapshot_service().restore(document_id, snapshot_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post(
    "/{document_id}/import-items",
    response_model=ImportResult,
    status_code=201,
    responses=_NOT_FOUND,
)
async def import_items(document_id: str, request: ImportItemsRequest) -> ImportResult:
    """Persist wizard items, replacing or merging with the current blocks."""
    return await get_store().import_items(document_id, request.items, request.mode)


@router.post(
    "/{document_id}/import",
    response_model=BatchImportResult,
    status_code=201,
    responses=_NOT_FOUND,
)
async def import_blocks(document_id: str, request: ImportBlocksRequest) -> BatchImportResult:
    """Persist a block tree and its semantic links into the document."""
    await get_store().get_document(document_id)
    result = await get_pipeline().batch_import(document_id, request.blocks, request.links)
    logger.info(
        "Blocks imported",
        document_id=document_id,
        blocks=len(result.block_ids),
        links=result.links_created,
    )
    return result


__all__ = ["router"]
