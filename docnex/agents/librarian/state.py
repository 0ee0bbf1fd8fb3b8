"""Librarian agent state models."""

from pydantic import BaseModel, Field

from docnex.schemas.analysis import AIContext
from docnex.schemas.blocks import BlockItem


class LibrarianInput(BaseModel):
    """Text to structure plus the criteria learned from earlier imports."""

    text: str = Field(..., description="Document text to split")
    criteria: str = Field(default="", description="Learned division criteria")
    context: AIContext | None = Field(default=None, description="Global AI persona")


class LibrarianState(BaseModel):
    """State flowing through the analyze/critique loop.

    ``proposed_blocks`` is cleared when the critic rejects a proposal, which
    routes the graph back to ``analyze`` until ``max_iterations`` is reached.
    """

    text: str
    criteria: str = ""
    context: AIContext | None = None
    proposed_blocks: list[BlockItem] = Field(default_factory=list)
    iterations: int = 0
    max_iterations: int = 3
    approved: bool = False
    errors: list[str] = Field(default_factory=list)
    current_node: str = ""
