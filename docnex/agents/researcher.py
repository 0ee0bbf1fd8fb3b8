"""Researcher agent.

Reviews a document against two sources of knowledge: blocks written in
other projects (analogies) and the article blocks of the regulation library
(compliance). Each step adds insights; a failing step leaves the ones
already gathered untouched.
"""

from __future__ import annotations

from typing import Literal, Protocol

from langgraph.graph import END, StateGraph
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docnex.agents.base import BaseAgent
from docnex.clients.protocols import LLMClient
from docnex.core.config import Settings, get_settings
from docnex.core.exceptions import AIError, DatabaseClientError
from docnex.core.logging import get_logger
from docnex.persistence.store import ResearchContextBlock
from docnex.schemas.analysis import AIContext
from docnex.schemas.entities import DocumentBlock
from docnex.services.editor import inject_context
from docnex.text.json_extract import extract_json_array


logger = get_logger(__name__)

CONTENT_LIMIT = 5000

ANALOGIES_PROMPT = """Actúa como un Investigador Urbanístico Senior.
Analiza el "CONTENIDO ACTUAL" y busca patrones o soluciones similares en el "CONOCIMIENTO HISTÓRICO".

CONTENIDO ACTUAL:
{content}

CONOCIMIENTO HISTÓRICO DE OTROS PROYECTOS:
{history}

TAREA:
Identifica si hay soluciones redactadas anteriormente que puedan servir de inspiración o analogía.
Si encuentras algo, devuelve un array JSON de objetos: {{ "type": "analogy", "project": "Nombre", "suggestion": "Breve explicación" }}
Si no hay nada relevante, devuelve un array vacío []."""

COMPLIANCE_PROMPT = """Actúa como un Consultor Legal Urbanístico experto en la normativa de Andalucía.
Cruza el "TEXTO DEL PROYECTO" con la "REFERENCIA NORMATIVA" de la Biblioteca.

TEXTO DEL PROYECTO:
{content}

REFERENCIA NORMATIVA:
{library}

TAREA:
Identifica posibles incumplimientos o necesidades de cita.
Devuelve un array JSON de objetos: {{ "type": "compliance", "severity": "high|medium|low", "message": "Descripción del problema o sugerencia", "article": "Referencia al artículo" }}
Si todo parece correcto, devuelve un array vacío []."""


# =============================================================================
# Models
# =============================================================================

class ResearchContextProvider(Protocol):
    """Where the researcher looks for prior knowledge (DocumentStore in production)."""

    async def list_blocks_outside_project(
        self,
        project_id: str,
        limit: int = 10,
    ) -> list[ResearchContextBlock]:
        ...

    async def list_article_blocks(self, limit: int = 10) -> list[DocumentBlock]:
        ...


class ResearchInsight(BaseModel):
    """An analogy with another project or a compliance finding."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["analogy", "compliance"]
    project: str | None = None
    suggestion: str | None = None
    severity: Literal["high", "medium", "low"] | None = None
    message: str | None = None
    article: str | None = None


class ResearchInput(BaseModel):
    content: str = Field(..., description="Document content to review")
    project_id: str = Field(..., description="Project the document belongs to")
    context: AIContext | None = None


class ResearcherState(BaseModel):
    content: str
    project_id: str
    context: AIContext | None = None
    insights: list[ResearchInsight] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    current_node: str = ""


def format_history(blocks: list[ResearchContextBlock]) -> str:
    return "\n\n---\n\n".join(
        f"PROYECTO: {b.project_title} | DOC: {b.document_title}\n"
        f"BLOQUE: {b.title}\n"
        f"CONTENIDO: {b.content[:300]}"
        for b in blocks
    )


def format_library(blocks: list[DocumentBlock]) -> str:
    return "\n".join(f"{b.title}: {b.content[:200]}" for b in blocks)


def parse_insights(reply: str) -> list[ResearchInsight]:
    """Parse a JSON array of insights, skipping items that do not validate."""
    insights = []
    for item in extract_json_array(reply):
        try:
            insights.append(ResearchInsight.model_validate(item))
        except ValidationError as e:
            logger.warning("Discarding malformed insight", error=str(e))
    return insights


# =============================================================================
# Agent
# =============================================================================

class ResearcherAgent(BaseAgent[ResearchInput, list[ResearchInsight]]):
    """Finds cross-project analogies and regulatory compliance issues.

    Workflow states (LangGraph):
    - analogies: compare with blocks from other projects
    - compliance: compare with ARTICULO blocks from the library
    """

    def __init__(
        self,
        llm: LLMClient,
        context_provider: ResearchContextProvider,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(name="researcher_agent")
        settings = settings or get_settings()
        self.llm = llm
        self.context_provider = context_provider
        self.context_limit = settings.research_context_limit
        self._compiled_workflow = self._build_workflow().compile()

    @property
    def description(self) -> str:
        return "Finds analogies in other projects and checks regulatory compliance."

    async def validate_input(self, input_data: ResearchInput) -> bool:
        return bool(input_data.content.strip()) and bool(input_data.project_id)

    def _build_workflow(self) -> StateGraph:
        workflow = StateGraph(ResearcherState)
        workflow.add_node("analogies", self._find_analogies)
        workflow.add_node("compliance", self._monitor_compliance)

        workflow.set_entry_point("analogies")
        workflow.add_edge("analogies", "compliance")
        workflow.add_edge("compliance", END)
        return workflow

    async def _find_analogies(self, state: ResearcherState) -> dict:
        result: dict = {"current_node": "analogies"}
        try:
            blocks = await self.context_provider.list_blocks_outside_project(
                state.project_id,
                limit=self.context_limit,
            )
            prompt = ANALOGIES_PROMPT.format(
                content=state.content[:CONTENT_LIMIT],
                history=format_history(blocks),
            )
            found = parse_insights(await self.llm.generate(inject_context(prompt, state.context)))
        except (AIError, DatabaseClientError) as e:
            logger.error("Analogy search failed", project_id=state.project_id, error=str(e))
            result["errors"] = [*state.errors, f"analogies: {e}"]
            return result

        logger.info("Analogy search completed", found=len(found))
        result["insights"] = [*state.insights, *found]
        return result

    async def _monitor_compliance(self, state: ResearcherState) -> dict:
        result: dict = {"current_node": "compliance"}
        try:
            articles = await self.context_provider.list_article_blocks(limit=self.context_limit)
            prompt = COMPLIANCE_PROMPT.format(
                content=state.content[:CONTENT_LIMIT],
                library=format_library(articles),
            )
            found = parse_insights(await self.llm.generate(inject_context(prompt, state.context)))
        except (AIError, DatabaseClientError) as e:
            logger.error("Compliance check failed", project_id=state.project_id, error=str(e))
            result["errors"] = [*state.errors, f"compliance: {e}"]
            return result

        logger.info("Compliance check completed", found=len(found))
        result["insights"] = [*state.insights, *found]
        return result

    async def run(self, input_data: ResearchInput) -> list[ResearchInsight]:
        """Run both research steps and return the collected insights.

        Raises:
            ValueError: If content or project id is missing
            AgentExecutionError: If the workflow fails
        """
        if not await self.validate_input(input_data):
            raise ValueError("Content and project_id are required")

        state = ResearcherState(
            content=input_data.content,
            project_id=input_data.project_id,
            context=input_data.context,
        )
        final = ResearcherState.model_validate(await self._invoke(state))
        return final.insights

    async def run_analysis(
        self,
        content: str,
        project_id: str,
        context: AIContext | None = None,
    ) -> list[ResearchInsight]:
        return await self.run(ResearchInput(content=content, project_id=project_id, context=context))
