"""AI helpers behind the document editor and the import wizard.

Each operation builds one prompt, optionally extended with the user's global
AI persona, and makes a single LLM call. Most operations degrade to a safe
fallback instead of raising; the exceptions are noted per method.
"""

from __future__ import annotations

from pydantic import ValidationError

from docnex.clients.protocols import LLMClient
from docnex.core.config import Settings, get_settings
from docnex.core.constants import TITLE_FULL_DOCUMENT
from docnex.core.exceptions import AIError, AIValidationError
from docnex.core.logging import get_logger
from docnex.schemas.analysis import (
    AIContext,
    AnalysisType,
    ChatContext,
    DeepAnalysisResult,
    EditProposal,
    TransformInstruction,
)
from docnex.schemas.blocks import BlockItem, DocumentSplitResult, format_validation_errors
from docnex.text.json_extract import extract_json_object


logger = get_logger(__name__)

DEFAULT_SPLIT_INSTRUCTIONS = (
    "Divide este documento en bloques lógicos según su estructura natural "
    "(títulos, secciones, etc.)"
)
CHAT_FALLBACK_REPLY = "Lo siento, ha ocurrido un error. Por favor, inténtalo de nuevo."
ANALYZE_FALLBACK_REPLY = "Error al analizar el texto."

_SPLIT_PROMPT = """Eres un experto en análisis de documentos legales, técnicos y académicos.
Tu tarea es dividir documentos en bloques estructurados según las instrucciones del usuario.

REGLAS CRÍTICAS:
1. Respeta SIEMPRE la estructura natural del documento (encabezados, artículos, capítulos).
2. Cada bloque debe tener un título descriptivo y contenido completo.
3. Mantén el formato original (HTML/Markdown) intacto.
4. Responde SOLO con JSON válido en este formato:
{{
  "blocks": [
    {{"title": "Título del bloque", "content": "Contenido...", "target": "active_version"}}
  ]
}}

INSTRUCCIONES DEL USUARIO:
{instructions}

DOCUMENTO A ANALIZAR:
{text}"""

_CHAT_PROMPT = """Eres un asistente IA experto integrado en DOCNEX, una app de gestión documental.
Ayudas al usuario a entender, dividir y organizar documentos complejos.
{context}
Sé conciso, útil y profesional."""

_CHAT_CONTEXT = """
CONTEXTO ACTUAL:
- Vista previa del documento: {preview}
- Estrategia actual: {strategy}
- Instrucciones previas: {instructions}
"""

_ANALYSIS_PROMPTS: dict[str, str] = {
    "summary": "Resume este documento en 2-3 párrafos, destacando lo más importante:",
    "key_points": "Extrae los 5 puntos clave más importantes de este documento como lista:",
    "structure": (
        "Analiza profundamente la estructura de este documento para propósitos de "
        "segmentación semántica (Chunking).\n"
        "Identifica:\n"
        "1. La jerarquía principal (Títulos, Capítulos, Secciones).\n"
        "2. Patrones recurrentes (Artículos, Cláusulas, Fechas).\n"
        "3. La granularidad ideal para dividirlo.\n\n"
        "Devuelve una RECOMENDACIÓN ESTRATÉGICA clara de cómo dividir este documento.\n"
        "Ejemplo de salida:\n"
        "\"Se detecta una estructura legal. Recomiendo dividir por 'Títulos' como bloques "
        "padres y 'Artículos' como bloques hijos. Ignorar índices o anexos irrelevantes.\""
    ),
}

_DEEP_ANALYSIS_PROMPT = """Eres un arquitecto de información experto en análisis de documentos JSON.
Tu objetivo es analizar un documento y devolver un informe estructural detallado en formato JSON STRICTO.

ANALIZA:
1. Tema y Resumen.
2. Jerarquía visual y semántica (¿Tiene Títulos? ¿Capítulos? ¿Artículos?).
3. Palabras clave para etiquetado automático.
4. LA MEJOR ESTRATEGIA para dividir este documento en bloques manejables.

FORMATO DE RESPUESTA (JSON):
{{
  "summary": "Resumen conciso...",
  "topic": "Tema principal (Legal, Técnico, Literario, etc)",
  "structure": {{
    "hierarchy": ["Nivel 1 (ej. Título)", "Nivel 2 (ej. Capítulos)", "Nivel 3"],
    "pattern": "Descripción del patrón (ej. Estructura arborescente profunda...)"
  }},
  "tags": ["tag1", "tag2", "tag3"],
  "recommendation": {{
    "strategy": "Nombre corto de la estrategia (ej. Segmentación por Artículos)",
    "reasoning": "Por qué es la mejor forma...",
    "instructions": "Instrucciones precisas para el splitter: 'Divide por...'"
  }}
}}

DOCUMENTO (Primeros 50k caracteres):
{text}"""

_TRANSFORM_TASKS: dict[str, str] = {
    "simplify": "Rewrite the following text to be simpler and more concise.",
    "expand": "Expand the following text to include more detail and explanation.",
    "tone_professional": "Rewrite the following text to have a formal, legal-professional tone.",
    "grammar": "Correct all grammar and spelling errors in the following text.",
}

_PROPOSAL_PROMPT = """You are an expert editor AI.
Task: Apply the user instruction to the text.

Original Text:
"{text}"

User Instruction:
"{instruction}"

Output Format (JSON Only):
{{
  "thoughtProcess": "Short explanation (1 sentence) of why changes were made",
  "newText": "The complete new text after changes",
  "diffHtml": "HTML string highlighting changes. Use <span class='bg-red-200 line-through text-red-800'>deleted</span> and <span class='bg-green-200 text-green-800 font-bold'>added</span>. Keep unchanged text normal."
}}"""


def inject_context(prompt: str, context: AIContext | None) -> str:
    """Append the global AI persona block to ``prompt``."""
    if context is None:
        return prompt
    return (
        f"{prompt}\n\n"
        "==================================================\n"
        "GLOBAL AI CONTEXT (STRICTLY FOLLOW THESE TRAITS):\n"
        f"- ROLE: {context.role}\n"
        f"- TONE: {context.tone}\n"
        f"- OBJECTIVE: {context.objective}\n"
        f"- CUSTOM INSTRUCTIONS: {context.custom_instructions}\n"
        "==================================================\n"
    )


class DocumentAIService:
    """Single-call AI operations for the editor and import wizard.

    Attributes:
        llm: Language model client
        text_limit: Characters of document text included in split and
            analysis prompts
    """

    def __init__(self, llm: LLMClient, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.llm = llm
        self.text_limit = settings.split_text_limit

    async def split_document(
        self,
        text: str,
        instructions: str = DEFAULT_SPLIT_INSTRUCTIONS,
        context: AIContext | None = None,
        fallback: bool = True,
    ) -> list[BlockItem]:
        """Split ``text`` into blocks following natural-language instructions.

        Args:
            text: Document text (HTML or Markdown)
            instructions: How the user wants it divided
            context: Optional global AI persona
            fallback: On failure, return the whole document as one block
                instead of raising

        Raises:
            AIError: Only when ``fallback`` is False
        """
        prompt = inject_context(
            _SPLIT_PROMPT.format(instructions=instructions, text=text[: self.text_limit]),
            context,
        )
        try:
            data = extract_json_object(await self.llm.generate(prompt))
            try:
                result = DocumentSplitResult.model_validate(data)
            except ValidationError as e:
                raise AIValidationError(
                    "Split response does not match the block schema",
                    format_validation_errors(e),
                ) from e
        except AIError as e:
            if not fallback:
                raise
            logger.warning("AI split failed, returning whole document", error=str(e), code=e.code)
            return [BlockItem(title=TITLE_FULL_DOCUMENT, content=text)]

        logger.info("AI split completed", blocks=len(result.blocks))
        return result.blocks

    async def chat(
        self,
        message: str,
        context: ChatContext | None = None,
        ai_context: AIContext | None = None,
    ) -> str:
        """Answer a question about the document being imported."""
        chat_context = ""
        if context is not None:
            chat_context = _CHAT_CONTEXT.format(
                preview=(context.document_preview or "")[:20000] or "No disponible",
                strategy=context.current_strategy or "Ninguna",
                instructions=context.user_instructions or "Ninguna",
            )
        prompt = inject_context(_CHAT_PROMPT.format(context=chat_context), ai_context)

        try:
            return await self.llm.generate(f"{prompt}\n\nUSER: {message}")
        except AIError as e:
            logger.warning("AI chat failed", error=str(e), code=e.code)
            return CHAT_FALLBACK_REPLY

    async def analyze_text(
        self,
        text: str,
        analysis_type: AnalysisType = "summary",
        ai_context: AIContext | None = None,
    ) -> str:
        """Summary, key points or a splitting recommendation for ``text``."""
        prompt = inject_context(
            f"{_ANALYSIS_PROMPTS[analysis_type]}\n\nDOCUMENTO:\n{text[: self.text_limit]}",
            ai_context,
        )
        try:
            return await self.llm.generate(prompt)
        except AIError as e:
            logger.warning("AI analysis failed", analysis_type=analysis_type, error=str(e))
            return ANALYZE_FALLBACK_REPLY

    async def analyze_document_deeply(
        self,
        text: str,
        ai_context: AIContext | None = None,
    ) -> DeepAnalysisResult | None:
        """Structured report (topic, hierarchy, tags, strategy); None on failure."""
        prompt = inject_context(_DEEP_ANALYSIS_PROMPT.format(text=text[: self.text_limit]), ai_context)
        try:
            data = extract_json_object(await self.llm.generate(prompt))
            return DeepAnalysisResult.model_validate(data)
        except (AIError, ValidationError) as e:
            logger.warning("Deep analysis failed", error=str(e))
            return None

    async def transform_text(
        self,
        text: str,
        instruction: TransformInstruction,
        ai_context: AIContext | None = None,
    ) -> str:
        """Rewrite ``text``; returns it unchanged if the model call fails."""
        prompt = inject_context(
            f"Task: {_TRANSFORM_TASKS[instruction]}\n\n"
            f'Text to Transform:\n"{text}"\n\n'
            "Return ONLY the transformed text.",
            ai_context,
        )
        try:
            return await self.llm.generate(prompt)
        except AIError as e:
            logger.warning("Text transformation failed", instruction=instruction, error=str(e))
            return text

    async def generate_edit_proposal(
        self,
        original_text: str,
        instruction: str,
        ai_context: AIContext | None = None,
    ) -> EditProposal:
        """Apply a free-form instruction and return the new text with a diff.

        Raises:
            AIError: Model failure or a reply that is not a valid proposal
        """
        prompt = inject_context(
            _PROPOSAL_PROMPT.format(text=original_text, instruction=instruction),
            ai_context,
        )
        data = extract_json_object(await self.llm.generate(prompt))
        try:
            return EditProposal.model_validate(data)
        except ValidationError as e:
            raise AIValidationError(
                "Edit proposal does not match the expected schema",
                format_validation_errors(e),
            ) from e
