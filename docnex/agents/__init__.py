"""DOCNEX agents.

- ImportAgent: splits pasted text into draft blocks
- LibrarianAgent: legal structure with a self-critique loop
- ResearcherAgent: cross-project analogies and compliance review
- RelationalAgent: relations between blocks
- BriefingAgent: external research briefing and visual annex
"""

from docnex.agents.base import BaseAgent
from docnex.agents.briefing import BriefingAgent, BriefingInput, BriefingResult
from docnex.agents.importer import ImportAgent, ImportChatContext, ImportRequest, SplitOptions
from docnex.agents.librarian import LibrarianAgent, LibrarianInput
from docnex.agents.relational import DiscoveredLink, RelationalAgent, RelationalInput
from docnex.agents.researcher import (
    ResearchContextProvider,
    ResearcherAgent,
    ResearchInput,
    ResearchInsight,
)


__all__ = [
    "BaseAgent",
    "BriefingAgent",
    "BriefingInput",
    "BriefingResult",
    "DiscoveredLink",
    "ImportAgent",
    "ImportChatContext",
    "ImportRequest",
    "LibrarianAgent",
    "LibrarianInput",
    "RelationalAgent",
    "RelationalInput",
    "ResearchContextProvider",
    "ResearchInput",
    "ResearchInsight",
    "ResearcherAgent",
    "SplitOptions",
]
