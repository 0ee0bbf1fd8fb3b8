"""Relational agent: discovers logical relations between blocks of a document."""

from __future__ import annotations

from collections.abc import Sequence

from langgraph.graph import END, StateGraph
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docnex.agents.base import BaseAgent
from docnex.clients.protocols import LLMClient
from docnex.core.exceptions import AIError
from docnex.core.logging import get_logger
from docnex.schemas.blocks import BlockItem
from docnex.text.json_extract import extract_json_object


logger = get_logger(__name__)

RELATION_TYPES = ("contradice", "amplía", "requiere", "cita")

DISCOVER_PROMPT = """Actúa como un Arquitecto de Grafos Cognitivos.
Tu tarea es analizar los siguientes bloques de un documento y encontrar RELACIONES lógicas entre ellos.

CONTEXTO DEL DOCUMENTO:
{context}

BLOQUES A ANALIZAR:
{blocks}

TIPOS DE RELACIÓN:
- "contradice": El bloque A tiene información opuesta al bloque B.
- "amplía": El bloque B da más detalle sobre algo mencionado en A.
- "requiere": Para entender el bloque B, es necesario haber leído el A.
- "cita": El bloque B hace mención explícita al título o contenido de A.

REGLA:
Responde SOLO con un JSON en este formato:
{{
  "links": [
    {{ "source_index": number, "target_index": number, "type": string, "reason": string }}
  ]
}}

Encuentra al menos las 3 relaciones más importantes. Si no hay relaciones obvias, busca dependencias lógicas sugeridas."""


class DiscoveredLink(BaseModel):
    """A relation between two blocks, by position in the analyzed list."""

    model_config = ConfigDict(extra="ignore")

    source_index: int = Field(..., ge=0)
    target_index: int = Field(..., ge=0)
    type: str = Field(..., description="contradice, amplía, requiere or cita")
    reason: str = ""


class RelationalInput(BaseModel):
    blocks: list[BlockItem]
    document_context: str = ""


class RelationalState(BaseModel):
    blocks: list[BlockItem] = Field(default_factory=list)
    document_context: str = ""
    links: list[DiscoveredLink] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    current_node: str = ""


def summarize_blocks(blocks: Sequence[BlockItem]) -> str:
    return "\n\n".join(
        f"[ID:{i}] Título: {b.title}\nContenido: {b.content[:300]}..."
        for i, b in enumerate(blocks)
    )


def parse_links(reply: str, block_count: int) -> list[DiscoveredLink]:
    """Parse ``{"links": [...]}``, dropping malformed, self and out-of-range links."""
    links = []
    for item in extract_json_object(reply).get("links") or []:
        try:
            link = DiscoveredLink.model_validate(item)
        except ValidationError as e:
            logger.warning("Discarding malformed link", error=str(e))
            continue
        if link.source_index >= block_count or link.target_index >= block_count:
            logger.warning(
                "Discarding link outside block range",
                source_index=link.source_index,
                target_index=link.target_index,
                block_count=block_count,
            )
            continue
        if link.source_index == link.target_index:
            continue
        links.append(link)
    return links


class RelationalAgent(BaseAgent[RelationalInput, list[DiscoveredLink]]):
    """Finds contradicts / extends / requires / cites relations between blocks.

    Workflow states (LangGraph):
    - discover: a single LLM call over a summary of every block
    """

    def __init__(self, llm: LLMClient) -> None:
        super().__init__(name="relational_agent")
        self.llm = llm
        self._compiled_workflow = self._build_workflow().compile()

    @property
    def description(self) -> str:
        return "Discovers semantic relations between the blocks of a document."

    async def validate_input(self, input_data: RelationalInput) -> bool:
        return len(input_data.blocks) > 1

    def _build_workflow(self) -> StateGraph:
        workflow = StateGraph(RelationalState)
        workflow.add_node("discover", self._discover)
        workflow.set_entry_point("discover")
        workflow.add_edge("discover", END)
        return workflow

    async def _discover(self, state: RelationalState) -> dict:
        prompt = DISCOVER_PROMPT.format(
            context=state.document_context,
            blocks=summarize_blocks(state.blocks),
        )
        try:
            links = parse_links(await self.llm.generate(prompt), len(state.blocks))
        except AIError as e:
            logger.error("Link discovery failed", code=e.code, error=e.message)
            return {"current_node": "discover", "links": [], "errors": [*state.errors, e.message]}

        logger.info("Links discovered", blocks=len(state.blocks), links=len(links))
        return {"current_node": "discover", "links": links}

    async def run(self, input_data: RelationalInput) -> list[DiscoveredLink]:
        """Return the discovered links; fewer than two blocks yields none.

        Raises:
            AgentExecutionError: If the workflow fails
        """
        if not await self.validate_input(input_data):
            return []

        state = RelationalState(blocks=input_data.blocks, document_context=input_data.document_context)
        final = RelationalState.model_validate(await self._invoke(state))
        return final.links

    async def discover_links(
        self,
        blocks: list[BlockItem],
        document_context: str = "",
    ) -> list[DiscoveredLink]:
        return await self.run(RelationalInput(blocks=blocks, document_context=document_context))
