"""DOCNEX: hierarchical document blocks with AI splitting and semantic links."""

__version__ = "0.1.0"
