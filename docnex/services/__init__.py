"""Application services."""

from docnex.services.editor import DocumentAIService, inject_context


__all__ = ["DocumentAIService", "inject_context"]
