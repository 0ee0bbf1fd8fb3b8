"""Document store: CRUD over projects, documents, blocks and their satellites.

Every operation goes through a DatabaseClient, so the same store runs
against Supabase in production and the in-memory fake in tests. Failures
propagate as DatabaseClientError; single-record lookups that find nothing
raise RecordNotFoundError.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from docnex.core.constants import Table
from docnex.core.exceptions import RecordNotFoundError
from docnex.core.logging import get_logger
from docnex.hierarchy.tree import BlockTree
from docnex.persistence.database import DatabaseClient, Filter, Order, Row
from docnex.persistence.snapshots import SnapshotService, get_snapshot_description
from docnex.schemas.blocks import ImportItem, ImportMode, ImportResult, ImportTarget
from docnex.schemas.entities import (
    BlockComment,
    BlockCommentReply,
    BlockResourceLink,
    BlockVersion,
    CognitiveMemory,
    Document,
    DocumentBlock,
    DocumentHistory,
    Project,
    RegulatoryResource,
    RegulatoryStatus,
    Resource,
    ResourceExtract,
    SemanticLink,
)
from docnex.text.html import decode_html_entities
from docnex.text.keywords import extract_keywords


logger = get_logger(__name__)

_SUPPORT_LABELS = {
    ImportTarget.LINKED_REF: "Referencia Vinculada",
    ImportTarget.UNLINKED_REF: "Referencia Externa",
    ImportTarget.VERSION: "Versión",
}


def _now() -> str:
    return datetime.now(UTC).isoformat()


class ResearchContextBlock(BaseModel):
    """A block from another project, with where it came from."""

    project_title: str
    document_title: str
    title: str
    content: str


class DocumentStore:
    """CRUD facade over the DOCNEX tables.

    Args:
        db: Database client implementing the DatabaseClient protocol
        snapshots: Snapshot service used by imports, built on ``db`` if omitted
    """

    def __init__(self, db: DatabaseClient, snapshots: SnapshotService | None = None) -> None:
        self.db = db
        self._snapshots = snapshots

    @property
    def snapshots(self) -> SnapshotService:
        if self._snapshots is None:
            self._snapshots = SnapshotService(self.db)
        return self._snapshots

    async def _one(self, table: Table, record_id: str) -> Row:
        rows = await self.db.select(table, [Filter.eq("id", record_id)], limit=1)
        if not rows:
            raise RecordNotFoundError(table, record_id)
        return rows[0]

    async def _insert_one(self, table: Table, row: Row) -> Row:
        return (await self.db.insert(table, row))[0]

    async def _update_one(self, table: Table, record_id: str, values: Row) -> Row:
        rows = await self.db.update(table, values, [Filter.eq("id", record_id)])
        if not rows:
            raise RecordNotFoundError(table, record_id)
        return rows[0]

    # =========================================================================
    # Projects and documents
    # =========================================================================

    async def get_active_project(self) -> Project | None:
        rows = await self.db.select(Table.PROJECTS, limit=1)
        return Project.model_validate(rows[0]) if rows else None

    async def list_documents(self, project_id: str, category: str = "main") -> list[Document]:
        rows = await self.db.select(
            Table.DOCUMENTS,
            [Filter.eq("project_id", project_id), Filter.eq("category", category)],
            order=[Order("updated_at", ascending=False)],
        )
        return [Document.model_validate(r) for r in rows]

    async def get_document(self, document_id: str) -> Document:
        return Document.model_validate(await self._one(Table.DOCUMENTS, document_id))

    async def create_document(self, project_id: str, title: str, category: str = "main") -> Document:
        row = await self._insert_one(
            Table.DOCUMENTS,
            {"project_id": project_id, "title": title, "category": category},
        )
        logger.info("Document created", document_id=row["id"], project_id=project_id)
        return Document.model_validate(row)

    async def update_document(self, document_id: str, updates: Row) -> Document:
        return Document.model_validate(await self._update_one(Table.DOCUMENTS, document_id, updates))

    async def delete_document(self, document_id: str) -> None:
        await self.db.delete(Table.DOCUMENTS, [Filter.eq("id", document_id)])

    async def archive_document(self, document_id: str) -> Document:
        return await self.update_document(document_id, {"status": "archived"})

    async def duplicate_document(self, document_id: str, new_title: str | None = None) -> Document:
        """Copy a document and its blocks (flat; parent links are not carried over)."""
        original = await self.get_document(document_id)
        created = await self.create_document(
            original.project_id,
            new_title or f"{original.title} (Copy)",
            original.category,
        )

        blocks = await self.list_blocks(document_id)
        if blocks:
            await self.db.insert(
                Table.DOCUMENT_BLOCKS,
                [
                    {
                        "document_id": created.id,
                        "content": b.content,
                        "title": b.title,
                        "order_index": b.order_index,
                        "tags": b.tags,
                        "block_type": b.block_type or "text",
                        "is_deleted": False,
                    }
                    for b in blocks
                ],
            )
        return created

    # =========================================================================
    # Blocks
    # =========================================================================

    async def list_blocks(self, document_id: str) -> list[DocumentBlock]:
        rows = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.eq("document_id", document_id)],
            order=[Order("order_index")],
        )
        return [DocumentBlock.model_validate(r) for r in rows]

    async def list_active_blocks(self, document_id: str) -> list[DocumentBlock]:
        rows = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.eq("document_id", document_id), Filter.eq("is_deleted", False)],
            order=[Order("order_index")],
        )
        return [DocumentBlock.model_validate(r) for r in rows]

    async def list_deleted_blocks(self, document_id: str) -> list[DocumentBlock]:
        rows = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.eq("document_id", document_id), Filter.eq("is_deleted", True)],
            order=[Order("updated_at", ascending=False)],
        )
        return [DocumentBlock.model_validate(r) for r in rows]

    async def get_block(self, block_id: str) -> DocumentBlock:
        return DocumentBlock.model_validate(await self._one(Table.DOCUMENT_BLOCKS, block_id))

    async def get_block_tree(self, document_id: str) -> BlockTree:
        return BlockTree(await self.list_active_blocks(document_id))

    async def create_block(
        self,
        document_id: str,
        content: str,
        order_index: float,
        title: str = "New Block",
        tags: list[str] | None = None,
        parent_block_id: str | None = None,
        block_type: str | None = None,
    ) -> DocumentBlock:
        row: Row = {
            "document_id": document_id,
            "content": content,
            "order_index": order_index,
            "title": title or "New Block",
            "is_deleted": False,
        }
        if tags is not None:
            row["tags"] = tags
        if parent_block_id is not None:
            row["parent_block_id"] = parent_block_id
        if block_type is not None:
            row["block_type"] = block_type
        return DocumentBlock.model_validate(await self._insert_one(Table.DOCUMENT_BLOCKS, row))

    async def create_sub_block(
        self,
        document_id: str,
        parent_block_id: str,
        content: str,
        order_index: float,
        title: str = "New Sub-block",
    ) -> DocumentBlock:
        return await self.create_block(
            document_id,
            content,
            order_index,
            title=title,
            parent_block_id=parent_block_id,
        )

    async def update_block(
        self,
        block_id: str,
        content: str,
        tags: list[str] | None = None,
    ) -> DocumentBlock:
        updates: Row = {"content": content, "last_edited_at": _now()}
        if tags is not None:
            updates["tags"] = tags
        return DocumentBlock.model_validate(
            await self._update_one(Table.DOCUMENT_BLOCKS, block_id, updates)
        )

    async def update_block_title(self, block_id: str, title: str) -> DocumentBlock:
        return DocumentBlock.model_validate(
            await self._update_one(
                Table.DOCUMENT_BLOCKS,
                block_id,
                {"title": title, "last_edited_at": _now()},
            )
        )

    async def delete_block(self, block_id: str) -> None:
        await self.db.delete(Table.DOCUMENT_BLOCKS, [Filter.eq("id", block_id)])

    async def soft_delete_block(self, block_id: str) -> None:
        await self.db.update(
            Table.DOCUMENT_BLOCKS,
            {"is_deleted": True, "updated_at": _now()},
            [Filter.eq("id", block_id)],
        )

    async def restore_block(self, block_id: str) -> None:
        await self.db.update(
            Table.DOCUMENT_BLOCKS,
            {"is_deleted": False, "updated_at": _now()},
            [Filter.eq("id", block_id)],
        )

    async def reorder_blocks(self, document_id: str, ordered_ids: Sequence[str]) -> None:
        """Set order_index to each block's position in ``ordered_ids``."""
        timestamp = _now()
        await asyncio.gather(*(
            self.db.update(
                Table.DOCUMENT_BLOCKS,
                {"order_index": index, "updated_at": timestamp},
                [Filter.eq("id", block_id), Filter.eq("document_id", document_id)],
            )
            for index, block_id in enumerate(ordered_ids)
        ))

    async def normalize_order(self, document_id: str) -> dict[str, int]:
        """Rewrite order_index as contiguous integers within each sibling group.

        Returns:
            The new order_index per block id (only changed blocks are written)
        """
        blocks = await self.list_active_blocks(document_id)
        order = BlockTree(blocks).normalized_order()
        timestamp = _now()
        await asyncio.gather(*(
            self.db.update(
                Table.DOCUMENT_BLOCKS,
                {"order_index": order[b.id], "updated_at": timestamp},
                [Filter.eq("id", b.id)],
            )
            for b in blocks
            if b.order_index != order[b.id]
        ))
        return order

    async def duplicate_block(self, block_id: str) -> DocumentBlock:
        """Copy a block to the end of its document."""
        original = await self.get_block(block_id)
        last = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.eq("document_id", original.document_id), Filter.eq("is_deleted", False)],
            columns="order_index",
            order=[Order("order_index", ascending=False)],
            limit=1,
        )
        max_order = last[0]["order_index"] if last else 0

        row = await self._insert_one(
            Table.DOCUMENT_BLOCKS,
            {
                "document_id": original.document_id,
                "title": f"{original.title} (copy)",
                "content": original.content,
                "order_index": max_order + 1,
                "block_type": original.block_type,
                "is_deleted": False,
            },
        )
        return DocumentBlock.model_validate(row)

    async def merge_blocks(
        self,
        keep_block_id: str,
        merge_block_id: str,
        separator: str = "\n\n",
    ) -> DocumentBlock | None:
        """Append one block into another and move the merged one to the trash.

        Returns:
            The updated kept block, or None if either block is missing
        """
        rows = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.in_("id", [keep_block_id, merge_block_id])],
        )
        by_id = {r["id"]: DocumentBlock.model_validate(r) for r in rows}
        keep = by_id.get(keep_block_id)
        merge = by_id.get(merge_block_id)
        if keep is None or merge is None or keep_block_id == merge_block_id:
            return None

        updated = await self._update_one(
            Table.DOCUMENT_BLOCKS,
            keep_block_id,
            {
                "content": f"{keep.content}{separator}{merge.content}",
                "title": f"{keep.title} + {merge.title}",
                "last_edited_at": _now(),
            },
        )
        await self.soft_delete_block(merge_block_id)
        return DocumentBlock.model_validate(updated)

    async def split_block(self, block_id: str, split_index: int) -> DocumentBlock:
        """Split a block's content at a character offset.

        The original keeps the first part; a new "(continued)" block right
        after it gets the rest. Order indexes are then renumbered.
        """
        original = await self.get_block(block_id)
        before = original.content[:split_index].strip()
        after = original.content[split_index:].strip()

        await self.db.update(
            Table.DOCUMENT_BLOCKS,
            {"content": before, "last_edited_at": _now()},
            [Filter.eq("id", block_id)],
        )
        row: Row = {
            "document_id": original.document_id,
            "title": f"{original.title} (continued)",
            "content": after,
            "order_index": original.order_index + 0.5,
            "block_type": original.block_type,
            "is_deleted": False,
        }
        if original.parent_block_id is not None:
            row["parent_block_id"] = original.parent_block_id
        new_block = DocumentBlock.model_validate(await self._insert_one(Table.DOCUMENT_BLOCKS, row))

        ordered = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.eq("document_id", original.document_id), Filter.eq("is_deleted", False)],
            columns="id",
            order=[Order("order_index")],
        )
        await self.reorder_blocks(original.document_id, [r["id"] for r in ordered])
        return new_block

    # =========================================================================
    # Imports
    # =========================================================================

    async def import_items(
        self,
        document_id: str,
        items: Sequence[ImportItem],
        mode: ImportMode = ImportMode.MERGE,
    ) -> ImportResult:
        """Persist import wizard items into a document.

        Replace mode snapshots and deletes the existing blocks first; merge
        mode logs the import and appends after them. Top-level items whose
        target is not the active version go, with their children, into a new
        draft support document per target. HTML entities are decoded, and
        blocks without tags get the keywords extracted from their content.

        Raises:
            RecordNotFoundError: Unknown document
            DatabaseClientError: On backend failure
        """
        document = await self.get_document(document_id)
        existing = await self.list_blocks(document_id)

        if mode is ImportMode.REPLACE:
            if existing:
                await self.snapshots.create_snapshot(
                    document_id,
                    get_snapshot_description("import_replace", {"count": len(existing)}),
                    existing,
                    action_type="import_replace",
                )
            await self.db.delete(Table.DOCUMENT_BLOCKS, [Filter.eq("document_id", document_id)])
            existing = []
        else:
            await self.snapshots.create_snapshot(
                document_id,
                get_snapshot_description("import_merge"),
                [],
                action_type="import_merge",
                metadata={"items_to_import": len(items)},
            )

        by_target: dict[ImportTarget, list[ImportItem]] = {}
        for item in items:
            by_target.setdefault(item.target, []).append(item)

        result = ImportResult()
        for target, target_items in by_target.items():
            if target is ImportTarget.ACTIVE_VERSION:
                target_id = document_id
                start = max((b.order_index for b in existing), default=-1) + 1
            else:
                target_id = (await self._create_support_document(document.project_id, target)).id
                start = 0
            result.document_ids.append(target_id)
            result.count += await self._insert_import_items(target_id, target_items, start)

        logger.info(
            "Items imported",
            document_id=document_id,
            mode=mode.value,
            count=result.count,
            documents=len(result.document_ids),
        )
        return result

    async def _create_support_document(self, project_id: str, target: ImportTarget) -> Document:
        label = _SUPPORT_LABELS.get(target, "Referencia")
        category = ImportTarget.LINKED_REF if target is ImportTarget.NOTE else target
        row = await self._insert_one(
            Table.DOCUMENTS,
            {
                "project_id": project_id,
                "title": f"Importado: {label} ({datetime.now(UTC):%d/%m/%Y})",
                "category": category.value,
                "status": "draft",
            },
        )
        logger.info("Support document created", document_id=row["id"], category=category.value)
        return Document.model_validate(row)

    async def _insert_import_items(
        self,
        document_id: str,
        items: Sequence[ImportItem],
        start: float,
    ) -> int:
        """Insert items depth-first with consecutive order indexes."""
        order = start
        count = 0

        async def insert_level(level: Sequence[ImportItem], parent_id: str | None) -> None:
            nonlocal order, count
            for item in level:
                content = decode_html_entities(item.content)
                row = await self._insert_one(
                    Table.DOCUMENT_BLOCKS,
                    {
                        "document_id": document_id,
                        "title": decode_html_entities(item.title),
                        "content": content,
                        "block_type": "section",
                        "order_index": order,
                        "parent_block_id": parent_id,
                        "tags": item.tags or extract_keywords(content),
                        "is_deleted": False,
                    },
                )
                order += 1
                count += 1
                if item.children:
                    await insert_level(item.children, row["id"])

        await insert_level(items, None)
        return count

    # =========================================================================
    # Resources, links and extracts
    # =========================================================================

    async def create_resource(
        self,
        project_id: str,
        title: str,
        kind: str,
        meta: dict[str, Any] | None = None,
        document_id: str | None = None,
    ) -> Resource:
        row = await self._insert_one(
            Table.RESOURCES,
            {
                "project_id": project_id,
                "document_id": document_id,
                "title": title,
                "kind": kind,
                "meta": meta or {},
                "created_at": _now(),
            },
        )
        return Resource.model_validate(row)

    async def create_file_resource(
        self,
        project_id: str,
        title: str,
        kind: str,
        file_path: str,
        mime_type: str,
        file_size: int,
    ) -> Resource:
        row = await self._insert_one(
            Table.RESOURCES,
            {
                "project_id": project_id,
                "title": title,
                "kind": kind,
                "file_path": file_path,
                "mime_type": mime_type,
                "file_size": file_size,
                "ingest_status": "pending",
            },
        )
        return Resource.model_validate(row)

    async def list_resources(self, project_id: str, document_id: str | None = None) -> list[Resource]:
        """Resources of a project; with ``document_id`` only that document's."""
        filters = [Filter.eq("project_id", project_id)]
        if document_id:
            filters.append(Filter.eq("document_id", document_id))
        rows = await self.db.select(
            Table.RESOURCES,
            filters,
            order=[Order("created_at", ascending=False)],
        )
        return [Resource.model_validate(r) for r in rows]

    async def update_resource(self, resource_id: str, updates: Row) -> Resource:
        return Resource.model_validate(
            await self._update_one(Table.RESOURCES, resource_id, {**updates, "updated_at": _now()})
        )

    async def delete_resource(self, resource_id: str) -> None:
        await self.db.delete(Table.RESOURCES, [Filter.eq("id", resource_id)])

    async def update_resource_tags(self, resource_id: str, tags: list[str]) -> None:
        await self.db.update(
            Table.RESOURCES,
            {"tags": tags, "updated_at": _now()},
            [Filter.eq("id", resource_id)],
        )

    async def fetch_resource_content(self, resource_id: str) -> dict[str, str]:
        """Text content of a resource for the integrated viewer.

        Content lives in ``meta.content``; resources without it get a
        placeholder naming the resource.
        """
        resource = Resource.model_validate(await self._one(Table.RESOURCES, resource_id))
        content = resource.meta.get("content") or f"Contenido de ejemplo para: {resource.title}"
        return {"content": str(content), "type": resource.kind}

    async def list_block_links(self, block_id: str) -> list[BlockResourceLink]:
        rows = await self.db.select(Table.BLOCK_RESOURCE_LINKS, [Filter.eq("block_id", block_id)])
        return [BlockResourceLink.model_validate(r) for r in rows]

    async def create_link(
        self,
        block_id: str,
        resource_id: str,
        extract_id: str | None = None,
    ) -> BlockResourceLink:
        row = await self._insert_one(
            Table.BLOCK_RESOURCE_LINKS,
            {"block_id": block_id, "resource_id": resource_id, "extract_id": extract_id},
        )
        return BlockResourceLink.model_validate(row)

    async def remove_link(self, link_id: str) -> None:
        await self.db.delete(Table.BLOCK_RESOURCE_LINKS, [Filter.eq("id", link_id)])

    async def list_resource_extracts(self, resource_id: str) -> list[ResourceExtract]:
        rows = await self.db.select(
            Table.RESOURCE_EXTRACTS,
            [Filter.eq("resource_id", resource_id)],
            order=[Order("created_at", ascending=False)],
        )
        return [ResourceExtract.model_validate(r) for r in rows]

    async def create_resource_extract(
        self,
        resource_id: str,
        excerpt: str,
        label: str = "Extract",
        locator: dict[str, Any] | None = None,
    ) -> ResourceExtract:
        row = await self._insert_one(
            Table.RESOURCE_EXTRACTS,
            {"resource_id": resource_id, "excerpt": excerpt, "label": label, "locator": locator or {}},
        )
        return ResourceExtract.model_validate(row)

    # =========================================================================
    # Comments
    # =========================================================================

    async def list_block_comments(self, block_id: str) -> list[BlockComment]:
        rows = await self.db.select(
            Table.BLOCK_COMMENTS,
            [Filter.eq("block_id", block_id)],
            order=[Order("created_at", ascending=False)],
        )
        return [BlockComment.model_validate(r) for r in rows]

    async def create_block_comment(
        self,
        block_id: str,
        text_selection: str,
        content: str,
        comment_type: str = "review",
        start_offset: int = 0,
        end_offset: int = 0,
        meta: dict[str, Any] | None = None,
    ) -> BlockComment:
        row = await self._insert_one(
            Table.BLOCK_COMMENTS,
            {
                "block_id": block_id,
                "text_selection": text_selection,
                "content": content,
                "comment_type": comment_type,
                "start_offset": start_offset,
                "end_offset": end_offset,
                "meta": meta or {},
            },
        )
        return BlockComment.model_validate(row)

    async def update_block_comment(self, comment_id: str, updates: Row) -> BlockComment:
        return BlockComment.model_validate(
            await self._update_one(Table.BLOCK_COMMENTS, comment_id, {**updates, "updated_at": _now()})
        )

    async def resolve_block_comment(self, comment_id: str) -> None:
        await self.db.update(Table.BLOCK_COMMENTS, {"resolved": True}, [Filter.eq("id", comment_id)])

    async def delete_block_comment(self, comment_id: str) -> None:
        await self.db.delete(Table.BLOCK_COMMENTS, [Filter.eq("id", comment_id)])

    async def list_comment_replies(self, comment_id: str) -> list[BlockCommentReply]:
        rows = await self.db.select(
            Table.BLOCK_COMMENT_REPLIES,
            [Filter.eq("comment_id", comment_id)],
            order=[Order("created_at")],
        )
        return [BlockCommentReply.model_validate(r) for r in rows]

    async def add_comment_reply(
        self,
        comment_id: str,
        content: str,
        user_id: str | None = None,
    ) -> BlockCommentReply:
        row = await self._insert_one(
            Table.BLOCK_COMMENT_REPLIES,
            {"comment_id": comment_id, "content": content, "user_id": user_id},
        )
        return BlockCommentReply.model_validate(row)

    # =========================================================================
    # Versions and history
    # =========================================================================

    async def list_block_versions(self, block_id: str) -> list[BlockVersion]:
        rows = await self.db.select(
            Table.BLOCK_VERSIONS,
            [Filter.eq("block_id", block_id)],
            order=[Order("version_number", ascending=False)],
        )
        return [BlockVersion.model_validate(r) for r in rows]

    async def create_block_version(self, block: DocumentBlock) -> BlockVersion:
        """Save the block's current title and content as the next version."""
        latest = await self.db.select(
            Table.BLOCK_VERSIONS,
            [Filter.eq("block_id", block.id)],
            columns="version_number",
            order=[Order("version_number", ascending=False)],
            limit=1,
        )
        next_version = latest[0]["version_number"] + 1 if latest else 1

        row = await self._insert_one(
            Table.BLOCK_VERSIONS,
            {
                "block_id": block.id,
                "version_number": next_version,
                "title": block.title,
                "content": block.content,
                "is_active": False,
            },
        )
        return BlockVersion.model_validate(row)

    async def restore_block_version(self, version_id: str) -> dict[str, str]:
        """Copy a version's title and content back onto its block."""
        version = BlockVersion.model_validate(await self._one(Table.BLOCK_VERSIONS, version_id))
        await self._update_one(
            Table.DOCUMENT_BLOCKS,
            version.block_id,
            {"title": version.title, "content": version.content, "updated_at": _now()},
        )
        return {"title": version.title, "content": version.content}

    async def delete_block_version(self, version_id: str) -> None:
        await self.db.delete(Table.BLOCK_VERSIONS, [Filter.eq("id", version_id)])

    async def list_document_history(self, document_id: str) -> list[DocumentHistory]:
        rows = await self.db.select(
            Table.DOCUMENT_HISTORY,
            [Filter.eq("document_id", document_id)],
            order=[Order("created_at", ascending=False)],
        )
        return [DocumentHistory.model_validate(r) for r in rows]

    # =========================================================================
    # Semantic links
    # =========================================================================

    async def create_semantic_link(self, link: Row) -> SemanticLink:
        return SemanticLink.model_validate(await self._insert_one(Table.SEMANTIC_LINKS, link))

    async def create_semantic_links(self, links: Sequence[Row]) -> list[SemanticLink]:
        if not links:
            return []
        rows = await self.db.insert(Table.SEMANTIC_LINKS, list(links))
        return [SemanticLink.model_validate(r) for r in rows]

    async def delete_semantic_link(self, link_id: str) -> None:
        await self.db.delete(Table.SEMANTIC_LINKS, [Filter.eq("id", link_id)])

    async def _links_where(self, column: str, value: str) -> list[SemanticLink]:
        rows = await self.db.select(
            Table.SEMANTIC_LINKS,
            [Filter.eq(column, value)],
            order=[Order("created_at", ascending=False)],
        )
        return [SemanticLink.model_validate(r) for r in rows]

    async def list_semantic_links_by_block(self, block_id: str) -> list[SemanticLink]:
        return await self._links_where("source_block_id", block_id)

    async def list_semantic_links_by_document(self, document_id: str) -> list[SemanticLink]:
        return await self._links_where("target_document_id", document_id)

    async def get_backlinks_by_block(self, block_id: str) -> list[SemanticLink]:
        return await self._links_where("target_block_id", block_id)

    # =========================================================================
    # Regulatory library
    # =========================================================================

    async def list_regulatory_resources(
        self,
        status: RegulatoryStatus | None = None,
    ) -> list[RegulatoryResource]:
        filters = [Filter.eq("status", status.value)] if status else []
        rows = await self.db.select(
            Table.REGULATORY_RESOURCES,
            filters,
            order=[Order("created_at", ascending=False)],
        )
        return [RegulatoryResource.model_validate(r) for r in rows]

    async def register_regulatory_resource(self, resource: Row) -> RegulatoryResource:
        row = {"status": RegulatoryStatus.ACTIVE.value, **resource}
        return RegulatoryResource.model_validate(
            await self._insert_one(Table.REGULATORY_RESOURCES, row)
        )

    async def update_regulatory_resource(self, resource_id: str, updates: Row) -> RegulatoryResource:
        return RegulatoryResource.model_validate(
            await self._update_one(Table.REGULATORY_RESOURCES, resource_id, updates)
        )

    async def mark_regulation_obsolete(
        self,
        resource_id: str,
        replaced_by_id: str | None = None,
    ) -> RegulatoryResource:
        return await self.update_regulatory_resource(
            resource_id,
            {"status": RegulatoryStatus.OBSOLETE.value, "replaced_by_id": replaced_by_id},
        )

    async def veto_regulation(self, resource_id: str, reason: str) -> RegulatoryResource:
        return await self.update_regulatory_resource(
            resource_id,
            {"status": RegulatoryStatus.VETOED.value, "veto_reason": reason},
        )

    # =========================================================================
    # Cognitive memory and interaction logs
    # =========================================================================

    async def get_memory(self, memory_key: str) -> CognitiveMemory | None:
        rows = await self.db.select(
            Table.COGNITIVE_MEMORY,
            [Filter.eq("memory_key", memory_key)],
            limit=1,
        )
        return CognitiveMemory.model_validate(rows[0]) if rows else None

    async def upsert_memory(self, memory: CognitiveMemory) -> CognitiveMemory:
        rows = await self.db.upsert(
            Table.COGNITIVE_MEMORY,
            memory.model_dump(mode="json", exclude_none=True),
            on_conflict="memory_key",
        )
        return CognitiveMemory.model_validate(rows[0]) if rows else memory

    async def log_interaction(self, entry: Row) -> None:
        await self.db.insert(Table.INTERACTION_LOGS, entry)

    # =========================================================================
    # Research context
    # =========================================================================

    async def list_blocks_outside_project(
        self,
        project_id: str,
        limit: int = 10,
    ) -> list[ResearchContextBlock]:
        """Blocks from documents of other projects, with their origin titles."""
        documents = await self.db.select(
            Table.DOCUMENTS,
            [Filter.neq("project_id", project_id)],
            columns="id,title,project_id",
        )
        if not documents:
            return []

        projects = await self.db.select(
            Table.PROJECTS,
            [Filter.in_("id", sorted({d["project_id"] for d in documents}))],
            columns="id,name",
        )
        project_names = {p["id"]: p.get("name") or "" for p in projects}
        doc_by_id = {d["id"]: d for d in documents}

        blocks = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.in_("document_id", list(doc_by_id)), Filter.eq("is_deleted", False)],
            columns="title,content,document_id",
            limit=limit,
        )
        return [
            ResearchContextBlock(
                project_title=project_names.get(doc_by_id[b["document_id"]]["project_id"], ""),
                document_title=doc_by_id[b["document_id"]]["title"],
                title=b.get("title") or "",
                content=b.get("content") or "",
            )
            for b in blocks
        ]

    async def list_article_blocks(self, limit: int = 10) -> list[DocumentBlock]:
        """Blocks whose title looks like a legal article (regulation library)."""
        rows = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.ilike("title", "%ARTICULO%")],
            limit=limit,
        )
        return [DocumentBlock.model_validate(r) for r in rows]
