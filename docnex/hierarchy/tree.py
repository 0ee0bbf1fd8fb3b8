"""Adjacency-indexed view over a flat list of document blocks.

Blocks arrive from the database as a flat list linked by parent_block_id.
BlockTree builds the children-by-parent index once and answers traversal
queries with an explicit stack, so walking the tree is O(n) overall.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator, Sequence
from typing import Any

from pydantic import BaseModel, Field

from docnex.schemas.entities import DocumentBlock


class TreeIssues(BaseModel):
    """Structural problems found in a block list."""

    orphans: list[str] = Field(default_factory=list, description="Blocks whose parent is missing")
    cycles: list[str] = Field(default_factory=list, description="Blocks unreachable from any root")
    duplicate_order: list[list[str]] = Field(
        default_factory=list,
        description="Sibling groups sharing an order_index",
    )

    @property
    def ok(self) -> bool:
        return not (self.orphans or self.cycles or self.duplicate_order)


class BlockTree:
    """Read-only hierarchy over DocumentBlock records.

    Deleted blocks are excluded unless ``include_deleted`` is set. Blocks
    whose parent is absent are treated as roots (and reported as orphans).

    Args:
        blocks: Flat block list, any order
        include_deleted: Keep soft-deleted blocks in the tree
    """

    def __init__(self, blocks: Sequence[DocumentBlock], include_deleted: bool = False) -> None:
        self._blocks: dict[str, DocumentBlock] = {
            b.id: b for b in blocks if include_deleted or not b.is_deleted
        }
        children: dict[str | None, list[DocumentBlock]] = defaultdict(list)
        self._orphans: list[str] = []

        for block in self._blocks.values():
            parent = block.parent_block_id
            if parent is not None and parent not in self._blocks:
                self._orphans.append(block.id)
                parent = None
            children[parent].append(block)

        for siblings in children.values():
            siblings.sort(key=lambda b: (b.order_index, b.id))
        self._children = dict(children)

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def get(self, block_id: str) -> DocumentBlock | None:
        return self._blocks.get(block_id)

    @property
    def roots(self) -> list[DocumentBlock]:
        return list(self._children.get(None, []))

    def children(self, block_id: str | None) -> list[DocumentBlock]:
        """Direct children in order; ``None`` returns the roots."""
        return list(self._children.get(block_id, []))

    def walk(self, root_id: str | None = None) -> Iterator[tuple[DocumentBlock, int]]:
        """Yield ``(block, depth)`` in document (preorder) order.

        Args:
            root_id: Start below this block; ``None`` walks the whole tree
        """
        stack = [(b, 0) for b in reversed(self.children(root_id))]
        seen: set[str] = set()
        while stack:
            block, depth = stack.pop()
            if block.id in seen:
                continue
            seen.add(block.id)
            yield block, depth
            stack.extend((child, depth + 1) for child in reversed(self.children(block.id)))

    def descendants(self, block_id: str) -> list[DocumentBlock]:
        return [block for block, _ in self.walk(block_id)]

    def ancestors(self, block_id: str) -> list[DocumentBlock]:
        """Parents from nearest to the root. Stops on a cycle."""
        result: list[DocumentBlock] = []
        seen = {block_id}
        current = self._blocks.get(block_id)
        while current is not None and current.parent_block_id is not None:
            parent = self._blocks.get(current.parent_block_id)
            if parent is None or parent.id in seen:
                break
            result.append(parent)
            seen.add(parent.id)
            current = parent
        return result

    def depth(self, block_id: str) -> int:
        return len(self.ancestors(block_id))

    def preorder(self) -> list[DocumentBlock]:
        return [block for block, _ in self.walk()]

    def validate(self) -> TreeIssues:
        """Report orphans, cycles and duplicate sibling order indexes."""
        reachable = {block.id for block in self.preorder()}
        cycles = sorted(block_id for block_id in self._blocks if block_id not in reachable)

        duplicates: list[list[str]] = []
        for siblings in self._children.values():
            by_order: dict[float, list[str]] = defaultdict(list)
            for block in siblings:
                by_order[block.order_index].append(block.id)
            duplicates.extend(ids for ids in by_order.values() if len(ids) > 1)

        return TreeIssues(orphans=sorted(self._orphans), cycles=cycles, duplicate_order=duplicates)

    def normalized_order(self) -> dict[str, int]:
        """Contiguous 0-based order_index per sibling group, keeping current order."""
        return {
            block.id: position
            for siblings in self._children.values()
            for position, block in enumerate(siblings)
        }

    def to_nested(self, root_id: str | None = None) -> list[dict[str, Any]]:
        """Nested dicts (``block`` fields plus ``children``) for rendering."""
        nodes: dict[str, dict[str, Any]] = {}
        top: list[dict[str, Any]] = []
        for block, depth in self.walk(root_id):
            node = {**block.model_dump(mode="json"), "depth": depth, "children": []}
            nodes[block.id] = node
            parent = nodes.get(block.parent_block_id) if block.parent_block_id else None
            if parent is None:
                top.append(node)
            else:
                parent["children"].append(node)
        return top
