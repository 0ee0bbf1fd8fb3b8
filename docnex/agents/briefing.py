"""Briefing agent.

Produces two markdown documents for work outside DOCNEX: a research briefing
for notebook-style research tools and a visual annex of image-generation
prompts.
"""

from __future__ import annotations

from langgraph.graph import END, StateGraph
from pydantic import BaseModel, Field

from docnex.agents.base import BaseAgent
from docnex.clients.protocols import LLMClient
from docnex.core.exceptions import AIError
from docnex.core.logging import get_logger


logger = get_logger(__name__)

BRIEFING_FALLBACK = "Error al generar el briefing de investigación externa."
VISUAL_ANNEX_FALLBACK = "Error al generar el anexo visual."

BRIEFING_PROMPT = """Actúa como un Director de Inteligencia Artificial y Estrategia.
Tu objetivo es redactar un "EXTERNAL INTELLIGENCE BRIEFING" para que un usuario humano lo utilice en NotebookLM o herramientas similares.

CONTEXTO DEL PROYECTO:
{project_context}

OBJETIVO DEL TRABAJO:
{objective}

AUDIENCIA:
{target_audience}

TAREA:
Crea un briefing de alta ingeniería de prompts. Debe incluir:
1. "Misión de Investigación": Qué debe buscar el usuario fuera de DOCNEX.
2. "Fuentes Sugeridas": Qué tipo de documentos debe subir el usuario a NotebookLM (ej. BOE, Informes de Mercado, etc.).
3. "The Master Prompt": Un prompt extremadamente detallado y estructurado para NotebookLM que exprima al máximo el contexto externo y lo alinee con el proyecto actual.

Formato: Markdown profesional y elegante."""

VISUAL_ANNEX_PROMPT = """Actúa como un Director de Arte y Especialista en Visualización de Datos Técnicos.
Tu objetivo es crear un "ANEXO DE SÍNTESIS VISUAL" para guiar a una IA generadora de imágenes (como Midjourney o DALL-E 3).

CONTENIDO DEL INFORME:
{project_context}

ESTILO REQUERIDO:
Arquitectónico, técnico moderno, profesional, limpio, colores corporativos (azul DOCNEX, ámbar, gris pizarra), estilo "Glassmorphism" y diagramas de alta gama.

TAREA:
Genera 3-4 prompts de alta calidad para:
1. Una infografía central que resuma los cambios legales.
2. Un gráfico de representación de datos sobre plazos y optimización.
3. Un render conceptual que ilustre la "vivienda del futuro" bajo esta ley.
4. Una tabla comparativa visualizada.

Cada prompt debe ser en inglés (mejor para las IAs de imagen) pero explicado en español para el usuario."""


class BriefingInput(BaseModel):
    project_context: str = Field(..., description="Project summary or report content")
    objective: str = ""
    target_audience: str = ""


class BriefingResult(BaseModel):
    briefing: str
    image_prompts: str


class BriefingState(BaseModel):
    project_context: str
    objective: str = ""
    target_audience: str = ""
    briefing: str | None = None
    image_prompts: str | None = None
    current_node: str = ""


class BriefingAgent(BaseAgent[BriefingInput, BriefingResult]):
    """Writes an external research briefing and a visual annex.

    Workflow states (LangGraph):
    - briefing: research mission, suggested sources and a master prompt
    - visual_annex: image-generation prompts for the report
    """

    def __init__(self, llm: LLMClient) -> None:
        super().__init__(name="briefing_agent")
        self.llm = llm
        self._compiled_workflow = self._build_workflow().compile()

    @property
    def description(self) -> str:
        return "Generates an external research briefing and a visual synthesis annex."

    async def validate_input(self, input_data: BriefingInput) -> bool:
        return bool(input_data.project_context.strip())

    def _build_workflow(self) -> StateGraph:
        workflow = StateGraph(BriefingState)
        workflow.add_node("briefing", self._generate_briefing)
        workflow.add_node("visual_annex", self._generate_visual_annex)

        workflow.set_entry_point("briefing")
        workflow.add_edge("briefing", "visual_annex")
        workflow.add_edge("visual_annex", END)
        return workflow

    async def _generate_briefing(self, state: BriefingState) -> dict:
        prompt = BRIEFING_PROMPT.format(
            project_context=state.project_context,
            objective=state.objective,
            target_audience=state.target_audience,
        )
        try:
            briefing = await self.llm.generate(prompt)
        except AIError as e:
            logger.error("Briefing generation failed", code=e.code, error=e.message)
            briefing = BRIEFING_FALLBACK
        return {"current_node": "briefing", "briefing": briefing}

    async def _generate_visual_annex(self, state: BriefingState) -> dict:
        prompt = VISUAL_ANNEX_PROMPT.format(project_context=state.project_context[:3000])
        try:
            image_prompts = await self.llm.generate(prompt)
        except AIError as e:
            logger.error("Visual annex generation failed", code=e.code, error=e.message)
            image_prompts = VISUAL_ANNEX_FALLBACK
        return {"current_node": "visual_annex", "image_prompts": image_prompts}

    async def run(self, input_data: BriefingInput) -> BriefingResult:
        """Generate both documents.

        Raises:
            ValueError: If the project context is empty
            AgentExecutionError: If the workflow fails
        """
        if not await self.validate_input(input_data):
            raise ValueError("Project context is required")

        state = BriefingState(**input_data.model_dump())
        final = BriefingState.model_validate(await self._invoke(state))
        return BriefingResult(
            briefing=final.briefing or BRIEFING_FALLBACK,
            image_prompts=final.image_prompts or VISUAL_ANNEX_FALLBACK,
        )

    async def generate(
        self,
        project_context: str,
        objective: str = "",
        target_audience: str = "",
    ) -> BriefingResult:
        return await self.run(
            BriefingInput(
                project_context=project_context,
                objective=objective,
                target_audience=target_audience,
            )
        )
