"""Cognitive pipeline.

Chains the librarian and relational agents with the cognitive memory:

1. structure_document: learned criteria -> librarian -> relational links
2. batch_import: persist the accepted block tree and its links
3. finalize_learning: learn a rule from the user's edits and store it
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from docnex.agents.librarian import LibrarianAgent
from docnex.agents.relational import DiscoveredLink, RelationalAgent
from docnex.core.constants import DIVISION_PREFERENCES_KEY, LEVEL_TAGS, MAX_HIERARCHY_LEVEL
from docnex.core.exceptions import DatabaseClientError
from docnex.core.logging import get_logger
from docnex.persistence.store import DocumentStore
from docnex.schemas.analysis import AIContext
from docnex.schemas.blocks import BlockItem
from docnex.schemas.entities import CognitiveMemory, InteractionLog, LinkType


logger = get_logger(__name__)

DOCUMENT_CONTEXT_LIMIT = 1000
LINK_CONFIDENCE = 0.8
CONFIDENCE_STEP = 0.1


class StructuredDocument(BaseModel):
    """Librarian blocks plus the links found between them.

    Link indices refer to ``flatten_blocks(blocks)``.
    """

    blocks: list[BlockItem] = Field(default_factory=list)
    links: list[DiscoveredLink] = Field(default_factory=list)


class BatchImportResult(BaseModel):
    block_ids: list[str] = Field(default_factory=list)
    links_created: int = 0


def flatten_blocks(blocks: Sequence[BlockItem]) -> list[tuple[BlockItem, int]]:
    """Pre-order ``(block, level)`` pairs, descending no deeper than ARTÍCULO.

    This is the exact order in which batch_import persists blocks.
    """
    flat: list[tuple[BlockItem, int]] = []
    stack: list[tuple[BlockItem, int]] = [(b, 0) for b in reversed(blocks)]
    while stack:
        block, level = stack.pop()
        flat.append((block, level))
        if block.children and level < MAX_HIERARCHY_LEVEL:
            stack.extend((child, level + 1) for child in reversed(block.children))
    return flat


class CognitivePipeline:
    """Coordinates agents, persistence and learned criteria.

    Args:
        store: Document store
        librarian: Structuring agent
        relational: Link discovery agent
    """

    def __init__(
        self,
        store: DocumentStore,
        librarian: LibrarianAgent,
        relational: RelationalAgent,
    ) -> None:
        self.store = store
        self.librarian = librarian
        self.relational = relational

    async def load_criteria(self) -> str:
        memory = await self.store.get_memory(DIVISION_PREFERENCES_KEY)
        return memory.memory_value if memory else ""

    async def structure_document(
        self,
        text: str,
        context: AIContext | None = None,
    ) -> StructuredDocument:
        """Split ``text`` with the learned criteria and discover block relations.

        Raises:
            ValueError: Empty text
            AgentExecutionError: A workflow failed
            DatabaseClientError: Criteria could not be loaded
        """
        criteria = await self.load_criteria()
        blocks = await self.librarian.structure_document(text, criteria, context)

        links: list[DiscoveredLink] = []
        flat = [block for block, _level in flatten_blocks(blocks)]
        if len(flat) > 1:
            logger.info("Discovering links", blocks=len(flat))
            links = await self.relational.discover_links(flat, text[:DOCUMENT_CONTEXT_LIMIT])
            logger.info("Semantic relationships found", links=len(links))

        return StructuredDocument(blocks=blocks, links=links)

    async def batch_import(
        self,
        document_id: str,
        blocks: Sequence[BlockItem],
        links: Sequence[DiscoveredLink] = (),
    ) -> BatchImportResult:
        """Persist a block tree in pre-order, then its semantic links.

        Blocks get a global, gap-free order_index and a tag naming their
        level. A failing block insert aborts the import; failing link
        inserts are logged and reported as zero links created.

        Raises:
            DatabaseClientError: A block could not be inserted
        """
        block_ids: list[str] = []
        parent_at_level: dict[int, str] = {}

        for order, (block, level) in enumerate(flatten_blocks(blocks)):
            created = await self.store.create_block(
                document_id,
                block.content,
                order,
                title=block.title,
                tags=[LEVEL_TAGS[level]] if level in LEVEL_TAGS else [],
                parent_block_id=parent_at_level.get(level - 1) if level > 0 else None,
                block_type=block.target or "section",
            )
            block_ids.append(created.id)
            parent_at_level[level] = created.id
            logger.debug("Block imported", level=LEVEL_TAGS.get(level), title=block.title)

        logger.info("Batch import blocks created", document_id=document_id, blocks=len(block_ids))

        link_rows = [
            {
                "source_block_id": block_ids[link.source_index],
                "target_block_id": block_ids[link.target_index],
                "target_document_id": document_id,
                "link_type": LinkType.SEMANTIC_SIMILARITY.value,
                "metadata": {"reason": link.reason, "confidence": LINK_CONFIDENCE, "relation": link.type},
            }
            for link in links
            if link.source_index < len(block_ids) and link.target_index < len(block_ids)
        ]

        links_created = 0
        if link_rows:
            try:
                links_created = len(await self.store.create_semantic_links(link_rows))
            except DatabaseClientError as e:
                logger.warning("Some semantic links failed", document_id=document_id, error=str(e))

        return BatchImportResult(block_ids=block_ids, links_created=links_created)

    async def finalize_learning(
        self,
        original: list[BlockItem],
        final: list[BlockItem],
        user_id: str | None = None,
    ) -> str | None:
        """Learn a rule from the user's edits and append it to the criteria.

        Returns:
            The learned rule, or None when nothing was learned
        """
        rule = await self.librarian.learn_from_feedback(original, final)
        if not rule:
            return None

        existing = await self.store.get_memory(DIVISION_PREFERENCES_KEY)
        value = f"{existing.memory_value}\n- {rule}" if existing else f"- {rule}"
        confidence = (existing.confidence_score if existing else 0.0) + CONFIDENCE_STEP

        await self.store.upsert_memory(
            CognitiveMemory(
                user_id=user_id,
                memory_key=DIVISION_PREFERENCES_KEY,
                memory_value=value,
                confidence_score=round(confidence, 4),
                updated_at=datetime.now(UTC),
            )
        )
        logger.info("New instruction learned", rule=rule)
        return rule

    async def log_feedback(self, entry: InteractionLog) -> bool:
        """Record an AI interaction; failures are logged, not raised.

        Returns:
            True if the entry was stored
        """
        try:
            await self.store.log_interaction(entry.model_dump(mode="json"))
        except DatabaseClientError as e:
            logger.warning("Failed to log AI feedback", event_type=entry.event_type, error=str(e))
            return False
        return True
