"""Persistence layer: database protocol, Supabase client and the document store."""

from docnex.persistence.database import DatabaseClient, Filter, Order, Row
from docnex.persistence.snapshots import SnapshotService, get_snapshot_description
from docnex.persistence.store import DocumentStore, ResearchContextBlock
from docnex.persistence.supabase import SupabaseClient, apply_filter


__all__ = [
    "DatabaseClient",
    "DocumentStore",
    "Filter",
    "Order",
    "ResearchContextBlock",
    "Row",
    "SnapshotService",
    "SupabaseClient",
    "apply_filter",
    "get_snapshot_description",
]
