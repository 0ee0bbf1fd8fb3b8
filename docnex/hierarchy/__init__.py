"""Block hierarchy indexing and validation."""

from docnex.hierarchy.tree import BlockTree, TreeIssues


__all__ = ["BlockTree", "TreeIssues"]
