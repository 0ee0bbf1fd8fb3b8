"""Shared constants: table names, block levels and fixed titles.

Centralized so the persistence layer, the splitters and the agents agree on
the same literals.
"""

from enum import IntEnum, StrEnum


API_VERSION = "v1"
API_PREFIX = f"/{API_VERSION}"


# =============================================================================
# Supabase tables
# =============================================================================

class Table(StrEnum):
    """Remote table names."""

    PROJECTS = "projects"
    DOCUMENTS = "documents"
    DOCUMENT_BLOCKS = "document_blocks"
    RESOURCES = "resources"
    BLOCK_RESOURCE_LINKS = "block_resource_links"
    RESOURCE_EXTRACTS = "resource_extracts"
    BLOCK_COMMENTS = "block_comments"
    BLOCK_COMMENT_REPLIES = "block_comment_replies"
    BLOCK_VERSIONS = "block_versions"
    DOCUMENT_HISTORY = "document_history"
    SEMANTIC_LINKS = "semantic_links"
    REGULATORY_RESOURCES = "regulatory_resources"
    COGNITIVE_MEMORY = "ai_cognitive_memory"
    INTERACTION_LOGS = "ai_interaction_logs"


# =============================================================================
# Block hierarchy
# =============================================================================

class HierarchyLevel(IntEnum):
    """Legal hierarchy levels produced by the librarian."""

    TITULO = 0
    CAPITULO = 1
    ARTICULO = 2


LEVEL_TAGS: dict[int, str] = {
    HierarchyLevel.TITULO: "TÍTULO",
    HierarchyLevel.CAPITULO: "CAPÍTULO",
    HierarchyLevel.ARTICULO: "ARTÍCULO",
}

MAX_HIERARCHY_LEVEL = HierarchyLevel.ARTICULO


# =============================================================================
# Fixed titles used by the splitters
# =============================================================================

TITLE_PRE_CONTENT = "Contenido Inicial / Portada"
TITLE_HTML_PRE_CONTENT = "Introducción / Portada"
TITLE_EMPTY_HEADER = "Sin Título"
TITLE_UNTITLED = "Untitled"
TITLE_IMPORTED = "Imported Text"
TITLE_FULL_DOCUMENT = "Documento Completo"


# Cognitive memory key for learned splitting criteria
DIVISION_PREFERENCES_KEY = "division_preferences"
