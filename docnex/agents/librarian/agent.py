"""Librarian agent.

Splits legal documents into a three-level TÍTULO / CAPÍTULO / ARTÍCULO
tree with a self-critique loop, and learns segmentation rules from the
edits users make to its proposals.
"""

from __future__ import annotations

from langgraph.graph import END, StateGraph

from docnex.agents.base import BaseAgent
from docnex.agents.librarian.nodes import analyze, critique, learn_rule, route_after_critique
from docnex.agents.librarian.state import LibrarianInput, LibrarianState
from docnex.clients.protocols import LLMClient
from docnex.core.config import Settings, get_settings
from docnex.core.logging import get_logger
from docnex.schemas.analysis import AIContext
from docnex.schemas.blocks import BlockItem


logger = get_logger(__name__)


class LibrarianAgent(BaseAgent[LibrarianInput, list[BlockItem]]):
    """Structures documents into hierarchical blocks.

    Workflow states (LangGraph):
    - analyze: propose a block tree
    - critique: approve, or reject with feedback and loop back to analyze

    The loop ends on approval or after ``max_iterations`` analyze attempts.
    """

    def __init__(self, llm: LLMClient, settings: Settings | None = None) -> None:
        super().__init__(name="librarian_agent")
        settings = settings or get_settings()
        self.llm = llm
        self.max_iterations = settings.librarian_max_iterations
        self.text_limit = settings.librarian_text_limit
        self._compiled_workflow = self._build_workflow().compile()

    @property
    def description(self) -> str:
        return "Splits legal documents into TÍTULO / CAPÍTULO / ARTÍCULO blocks."

    async def validate_input(self, input_data: LibrarianInput) -> bool:
        return bool(input_data.text.strip())

    async def _analyze(self, state: LibrarianState) -> dict:
        return await analyze(state, self.llm, self.text_limit)

    async def _critique(self, state: LibrarianState) -> dict:
        return await critique(state, self.llm)

    def _build_workflow(self) -> StateGraph:
        workflow = StateGraph(LibrarianState)
        workflow.add_node("analyze", self._analyze)
        workflow.add_node("critique", self._critique)

        workflow.set_entry_point("analyze")
        workflow.add_edge("analyze", "critique")
        workflow.add_conditional_edges(
            "critique",
            route_after_critique,
            {"analyze": "analyze", END: END},
        )
        return workflow

    async def run(self, input_data: LibrarianInput) -> list[BlockItem]:
        """Structure the document and return the proposed root blocks.

        Returns an empty list when every attempt failed.

        Raises:
            ValueError: If the text is empty
            AgentExecutionError: If the workflow fails
        """
        if not await self.validate_input(input_data):
            raise ValueError("Text to structure is empty")

        state = LibrarianState(
            text=input_data.text,
            criteria=input_data.criteria,
            context=input_data.context,
            max_iterations=self.max_iterations,
        )
        final = LibrarianState.model_validate(await self._invoke(state))

        logger.info(
            "Librarian finished",
            iterations=final.iterations,
            approved=final.approved,
            root_blocks=len(final.proposed_blocks),
            errors=len(final.errors),
        )
        return final.proposed_blocks

    async def structure_document(
        self,
        text: str,
        criteria: str = "",
        context: AIContext | None = None,
    ) -> list[BlockItem]:
        return await self.run(LibrarianInput(text=text, criteria=criteria, context=context))

    async def learn_from_feedback(
        self,
        original: list[BlockItem],
        final: list[BlockItem],
    ) -> str | None:
        """Return the segmentation rule implied by the user's edits, or None."""
        return await learn_rule(self.llm, original, final)
