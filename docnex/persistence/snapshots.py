"""Document snapshots stored in ``document_history``."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel

from docnex.core.config import Settings, get_settings
from docnex.core.constants import Table
from docnex.core.exceptions import DatabaseClientError, RecordNotFoundError
from docnex.core.logging import get_logger
from docnex.persistence.database import DatabaseClient, Filter, Order
from docnex.schemas.entities import DocumentBlock, DocumentHistory


logger = get_logger(__name__)

SnapshotAction = Literal[
    "auto_save",
    "pre_delete",
    "pre_merge",
    "pre_migration",
    "manual",
    "import_replace",
    "import_merge",
    "restore",
]

_SNAPSHOT_FIELDS = ("id", "title", "content", "order_index", "parent_block_id", "block_type")


def get_snapshot_description(action_type: str, context: dict[str, Any] | None = None) -> str:
    """Human-readable (Spanish) description for an automatic snapshot."""
    context = context or {}
    match action_type:
        case "auto_save":
            return "Auto-guardado periódico"
        case "pre_delete":
            return f"Antes de eliminar {context.get('count') or 1} bloque(s)"
        case "pre_merge":
            return f"Antes de fusionar {context.get('count') or 2} bloques"
        case "pre_migration":
            return "Backup antes de migración de base de datos"
        case "manual":
            return context.get("description") or "Snapshot manual"
        case "import_replace":
            return f"Sustitución de contenido: {context.get('count') or 0} bloques reemplazados."
        case "import_merge":
            return "Importación parcial (fusión): Se añadirán nuevos bloques al final."
        case "restore":
            date = context.get("date") or "historial"
            return f"Snapshot de seguridad antes de restaurar versión del {date}."
        case _:
            return "Snapshot del sistema"


class RestoreResult(BaseModel):
    document_id: str
    count: int
    safety_snapshot_id: str | None = None


class SnapshotService:
    """Creates document snapshots and prunes old ones.

    Attributes:
        retention: Number of snapshots kept per document
        interval_seconds: Minimum time between automatic snapshots
    """

    def __init__(
        self,
        db: DatabaseClient,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        settings = settings or get_settings()
        self.db = db
        self.retention = settings.snapshot_retention
        self.interval_seconds = settings.snapshot_interval_seconds
        self._clock = clock

    def should_create_snapshot(
        self,
        last_snapshot_time: float | None,
        interval_seconds: float | None = None,
    ) -> bool:
        """Return True when no snapshot exists yet or the interval has elapsed."""
        if not last_snapshot_time:
            return True
        interval = self.interval_seconds if interval_seconds is None else interval_seconds
        return self._clock() - last_snapshot_time >= interval

    async def create_snapshot(
        self,
        document_id: str,
        description: str,
        blocks: Sequence[DocumentBlock],
        action_type: SnapshotAction = "manual",
        metadata: dict[str, Any] | None = None,
    ) -> DocumentHistory:
        """Store a copy of ``blocks`` and prune snapshots beyond the retention.

        ``metadata`` is merged over the default block count and timestamp.

        Raises:
            DatabaseClientError: If the snapshot insert fails. Pruning failures
                are logged and do not fail the snapshot.
        """
        snapshot = [b.model_dump(mode="json", include=set(_SNAPSHOT_FIELDS)) for b in blocks]
        rows = await self.db.insert(
            Table.DOCUMENT_HISTORY,
            {
                "document_id": document_id,
                "action_type": action_type,
                "description": description,
                "snapshot": snapshot,
                "metadata": {
                    "block_count": len(blocks),
                    "timestamp": datetime.now(UTC).isoformat(),
                    **(metadata or {}),
                },
            },
        )
        history = DocumentHistory.model_validate(rows[0])
        logger.info(
            "Snapshot created",
            document_id=document_id,
            action_type=action_type,
            block_count=len(blocks),
        )

        try:
            await self.prune(document_id)
        except DatabaseClientError as e:
            logger.warning("Snapshot pruning failed", document_id=document_id, error=str(e))
        return history

    async def prune(self, document_id: str) -> int:
        """Delete snapshots older than the newest ``retention``; returns the count."""
        rows = await self.db.select(
            Table.DOCUMENT_HISTORY,
            [Filter.eq("document_id", document_id)],
            columns="id,created_at",
            order=[Order("created_at", ascending=False)],
        )
        if len(rows) <= self.retention:
            return 0

        stale = [r["id"] for r in rows[self.retention:]]
        await self.db.delete(Table.DOCUMENT_HISTORY, [Filter.in_("id", stale)])
        logger.info("Old snapshots removed", document_id=document_id, count=len(stale))
        return len(stale)

    async def restore(self, document_id: str, snapshot_id: str) -> RestoreResult:
        """Replace the document's blocks with the ones stored in a snapshot.

        The current blocks are snapshotted first so the restore can itself be
        undone. Parent links are remapped onto the new block ids; a parent
        missing from the snapshot leaves its child at the root.

        Raises:
            RecordNotFoundError: Unknown snapshot, or one of another document
            ValueError: The snapshot holds no blocks
            DatabaseClientError: On backend failure
        """
        rows = await self.db.select(
            Table.DOCUMENT_HISTORY,
            [Filter.eq("id", snapshot_id)],
            limit=1,
        )
        if not rows or rows[0].get("document_id") != document_id:
            raise RecordNotFoundError(Table.DOCUMENT_HISTORY, snapshot_id)
        history = DocumentHistory.model_validate(rows[0])
        if not history.snapshot:
            raise ValueError("El registro de historial no tiene snapshot")

        current = await self.db.select(
            Table.DOCUMENT_BLOCKS,
            [Filter.eq("document_id", document_id)],
            order=[Order("order_index")],
        )
        safety_id = None
        if current:
            taken = f"{history.created_at:%d/%m/%Y}" if history.created_at else None
            safety = await self.create_snapshot(
                document_id,
                get_snapshot_description("restore", {"date": taken}),
                [DocumentBlock.model_validate(r) for r in current],
                action_type="restore",
            )
            safety_id = safety.id

        await self.db.delete(Table.DOCUMENT_BLOCKS, [Filter.eq("document_id", document_id)])
        count = await self._reinsert(document_id, history.snapshot)
        logger.info(
            "Document restored from snapshot",
            document_id=document_id,
            snapshot_id=snapshot_id,
            block_count=count,
        )
        return RestoreResult(document_id=document_id, count=count, safety_snapshot_id=safety_id)

    async def _reinsert(self, document_id: str, snapshot: list[dict[str, Any]]) -> int:
        """Insert snapshot blocks parents-first and return how many were inserted."""
        known = {b["id"] for b in snapshot if b.get("id")}
        pending = sorted(snapshot, key=lambda b: b.get("order_index") or 0)
        new_ids: dict[str, str] = {}

        while pending:
            ready = [
                b for b in pending
                if not b.get("parent_block_id")
                or b["parent_block_id"] not in known
                or b["parent_block_id"] in new_ids
            ]
            # Only a parent cycle leaves nothing ready; those blocks go to the root
            batch = ready or pending
            for block in batch:
                parent = block.get("parent_block_id")
                rows = await self.db.insert(
                    Table.DOCUMENT_BLOCKS,
                    {
                        "document_id": document_id,
                        "title": block.get("title") or "",
                        "content": block.get("content") or "",
                        "order_index": block.get("order_index") or 0,
                        "parent_block_id": new_ids.get(parent) if parent else None,
                        "block_type": block.get("block_type") or "section",
                        "is_deleted": False,
                    },
                )
                if block.get("id"):
                    new_ids[block["id"]] = rows[0]["id"]
            inserted = {id(b) for b in batch}
            pending = [b for b in pending if id(b) not in inserted]

        return len(snapshot)
