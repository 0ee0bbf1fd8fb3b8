"""Librarian agent package."""

from docnex.agents.librarian.agent import LibrarianAgent
from docnex.agents.librarian.state import LibrarianInput, LibrarianState


__all__ = ["LibrarianAgent", "LibrarianInput", "LibrarianState"]
