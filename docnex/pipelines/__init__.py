"""Multi-agent pipelines."""

from docnex.pipelines.cognitive import (
    BatchImportResult,
    CognitivePipeline,
    StructuredDocument,
    flatten_blocks,
)


__all__ = ["BatchImportResult", "CognitivePipeline", "StructuredDocument", "flatten_blocks"]
