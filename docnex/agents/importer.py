"""Import agent: turns pasted text into draft blocks.

Deterministic strategies run the regex splitters directly. The ``semantic``
and ``smart`` strategies ask the LLM first and fall back to the paragraph
splitter when the model is unavailable, slow or returns garbage.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from docnex.agents.base import BaseAgent
from docnex.core.config import Settings, get_settings
from docnex.core.constants import TITLE_EMPTY_HEADER, TITLE_IMPORTED
from docnex.core.exceptions import AIError
from docnex.core.logging import get_logger
from docnex.schemas.analysis import AIContext
from docnex.schemas.blocks import AIChatResponse, BlockItem, ImportTarget, SplitItem, SplitStrategy
from docnex.security.rate_limit import RateLimiter
from docnex.security.sanitizer import ensure_safe_input
from docnex.services.editor import DEFAULT_SPLIT_INSTRUCTIONS, DocumentAIService
from docnex.splitting import (
    SMART_NUMBERING,
    PatternSuggestion,
    build_hierarchy,
    detect_index,
    generate_patterns_from_examples,
    header_pattern,
    split_by_header,
    split_by_index,
    split_by_paragraphs,
    split_by_pattern,
    split_by_smart_numbering,
    suggest_target,
)


logger = get_logger(__name__)

_INDEX_LINE = re.compile(r"^\d+|•|-|SECTION|CHAPTER|CAPÍTULO|ARTÍCULO", re.IGNORECASE)


# =============================================================================
# Models
# =============================================================================

class SplitOptions(BaseModel):
    """Strategy parameters chosen in the import wizard."""

    model_config = ConfigDict(populate_by_name=True)

    header_level: int = Field(
        default=2,
        ge=1,
        le=6,
        validation_alias=AliasChoices("header_level", "headerLevel"),
    )
    custom_pattern: str = Field(
        default="",
        validation_alias=AliasChoices("custom_pattern", "customPattern"),
    )
    child_pattern: str = Field(
        default="",
        validation_alias=AliasChoices("child_pattern", "childPattern"),
    )
    is_hierarchical: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_hierarchical", "isHierarchical"),
    )
    index_text: str = Field(default="", validation_alias=AliasChoices("index_text", "indexText"))
    instructions: str = DEFAULT_SPLIT_INSTRUCTIONS
    ai_context: AIContext | None = Field(
        default=None,
        validation_alias=AliasChoices("ai_context", "aiContext"),
    )


class ImportRequest(BaseModel):
    text: str
    strategy: SplitStrategy
    options: SplitOptions = Field(default_factory=SplitOptions)


class ImportChatContext(BaseModel):
    """Wizard state sent along with a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    strategy: SplitStrategy
    current_pattern: str = Field(
        default="",
        validation_alias=AliasChoices("current_pattern", "currentPattern"),
    )
    text_preview: str = Field(default="", validation_alias=AliasChoices("text_preview", "textPreview"))
    is_sub_block: bool = Field(default=False, validation_alias=AliasChoices("is_sub_block", "isSubBlock"))


def _looks_like_index(message: str) -> bool:
    lines = [line.strip() for line in message.split("\n") if line.strip()]
    return len(lines) >= 3 and all(_INDEX_LINE.search(line) or "..." in line for line in lines)


def _to_split_items(blocks: Sequence[BlockItem], depth: int = 0) -> list[SplitItem]:
    valid_targets = {t.value for t in ImportTarget}
    return [
        SplitItem(
            title=block.title.strip() or TITLE_EMPTY_HEADER,
            content=block.content,
            target=ImportTarget(block.target) if block.target in valid_targets else ImportTarget.ACTIVE_VERSION,
            level=block.hierarchy_level if block.hierarchy_level is not None else depth,
            children=_to_split_items(block.children, depth + 1) if block.children else None,
        )
        for block in blocks
    ]


# =============================================================================
# Agent
# =============================================================================

class ImportAgent(BaseAgent[ImportRequest, list[SplitItem]]):
    """Splits imported text into draft blocks and assists the import wizard.

    Args:
        ai: Editor AI service used by the semantic strategies, or None to
            always use the deterministic fallback
        rate_limiter: Optional limiter applied to AI split calls
        settings: Application settings
    """

    def __init__(
        self,
        ai: DocumentAIService | None = None,
        rate_limiter: RateLimiter | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(name="import_agent")
        settings = settings or get_settings()
        self.ai = ai
        self.rate_limiter = rate_limiter
        self.max_input_length = settings.max_input_length
        self.split_timeout = settings.split_timeout_seconds

    @property
    def description(self) -> str:
        return "Splits pasted documents into hierarchical draft blocks."

    async def validate_input(self, input_data: ImportRequest) -> bool:
        if input_data.strategy is SplitStrategy.CUSTOM and not input_data.options.custom_pattern:
            return False
        return bool(input_data.text.strip())

    async def run(self, input_data: ImportRequest) -> list[SplitItem]:
        if not await self.validate_input(input_data):
            raise ValueError("Import text is empty or the custom pattern is missing")
        return await self.process_text(input_data.text, input_data.strategy, input_data.options)

    async def process_text(
        self,
        text: str,
        strategy: SplitStrategy,
        options: SplitOptions | None = None,
    ) -> list[SplitItem]:
        """Split ``text`` with the given strategy.

        Raises:
            AIValidationError: Empty input
            AISecurityError: Input blocked by the sanitizer
            ValueError: Missing or invalid custom pattern
        """
        options = options or SplitOptions()
        text = ensure_safe_input(text, self.max_input_length)

        if strategy is SplitStrategy.INDEX and options.index_text.strip():
            return split_by_index(text, options.index_text)

        hierarchical = options.is_hierarchical and (
            strategy is SplitStrategy.HEADER
            or (strategy is SplitStrategy.CUSTOM and options.custom_pattern != SMART_NUMBERING)
        )
        if hierarchical:
            parent = (
                header_pattern(options.header_level)
                if strategy is SplitStrategy.HEADER
                else options.custom_pattern
            )
            child = options.child_pattern or header_pattern(options.header_level + 1)
            return self._with_pattern(build_hierarchy, text.split("\n"), parent, child)

        match strategy:
            case SplitStrategy.HEADER:
                return split_by_header(text, options.header_level)
            case SplitStrategy.CUSTOM:
                if options.custom_pattern == SMART_NUMBERING:
                    return split_by_smart_numbering(text)
                if not options.custom_pattern:
                    raise ValueError("custom strategy requires a pattern")
                return self._with_pattern(split_by_pattern, text, options.custom_pattern)
            case SplitStrategy.SEMANTIC | SplitStrategy.SMART:
                return await self._split_with_ai(text, options)
            case _:
                return [SplitItem(title=TITLE_IMPORTED, content=text)]

    @staticmethod
    def _with_pattern(splitter, *args) -> list[SplitItem]:
        try:
            return splitter(*args)
        except re.error as e:
            raise ValueError(f"Invalid pattern: {e}") from e

    async def _split_with_ai(self, text: str, options: SplitOptions) -> list[SplitItem]:
        if self.ai is None:
            logger.info("No AI configured, using paragraph splitter")
            return split_by_paragraphs(text)

        try:
            if self.rate_limiter is not None:
                self.rate_limiter.acquire()
            blocks = await asyncio.wait_for(
                self.ai.split_document(
                    text,
                    options.instructions,
                    options.ai_context,
                    fallback=False,
                ),
                timeout=self.split_timeout,
            )
        except TimeoutError:
            logger.warning("AI split timed out, using paragraph splitter", timeout=self.split_timeout)
            return split_by_paragraphs(text)
        except AIError as e:
            logger.warning("AI split failed, using paragraph splitter", code=e.code, error=e.message)
            return split_by_paragraphs(text)

        if not blocks:
            logger.warning("AI split returned no blocks, using paragraph splitter")
            return split_by_paragraphs(text)
        return _to_split_items(blocks)

    # =========================================================================
    # Wizard helpers
    # =========================================================================

    def generate_patterns(self, examples: str) -> PatternSuggestion:
        return generate_patterns_from_examples(examples)

    def detect_index(self, text: str) -> str | None:
        return detect_index(text)

    def suggest_target(self, content: str) -> ImportTarget:
        return suggest_target(content)

    def chat(
        self,
        message: str,
        context: ImportChatContext,
        ai_context: AIContext | None = None,
    ) -> AIChatResponse:
        """Rule-based assistant that turns instructions into wizard actions."""
        if ai_context is not None:
            logger.debug("Import chat with global AI context", role=ai_context.role, tone=ai_context.tone)

        lower = message.lower()

        if context.strategy is SplitStrategy.INDEX:
            if _looks_like_index(message):
                return AIChatResponse.model_validate({
                    "reply": "He actualizado el Índice Maestro con el contenido que me has proporcionado.",
                    "action": {"type": "set_index", "value": message},
                })
            if "primeras líneas" in lower or "skip" in lower or "ignora" in lower:
                return AIChatResponse(
                    reply=(
                        "Entendido. Para refinar el índice, por favor edita el texto del índice "
                        "directamente en el área de texto o pega solo la parte válida."
                    ),
                )
            if "patrón" in lower or "regex" in lower or "empieza por" in lower:
                patterns = generate_patterns_from_examples(message)
                return AIChatResponse.model_validate({
                    "reply": (
                        "Intuyo que prefieres definir un patrón manual en lugar de un índice "
                        "explícito. He configurado el patrón según tu descripción."
                    ),
                    "action": {"type": "set_pattern", "value": patterns.parent_pattern},
                })
            return AIChatResponse(
                reply=(
                    "No estoy seguro si eso es un índice o una instrucción. Si es el índice, "
                    "asegúrate de pegarlo completo (varias líneas). Si es una instrucción, trata "
                    "de ser más específico sobre qué deben tener los bloques (ej. 'Los bloques "
                    "empiezan por Párrafo X')."
                ),
            )

        if context.strategy in (SplitStrategy.CUSTOM, SplitStrategy.HEADER):
            if "capítulo" in lower or "chapter" in lower:
                return AIChatResponse.model_validate({
                    "reply": "Entendido. He configurado el patrón para detectar 'Capítulo' seguido de un número.",
                    "action": {"type": "set_pattern", "value": r"^CAP[ÍI]TULO\s+\d+"},
                })
            if "artículo" in lower or "article" in lower:
                return AIChatResponse.model_validate({
                    "reply": "He configurado el patrón para Artículos legales (Artículo X).",
                    "action": {"type": "set_pattern", "value": r"^ART[ÍI]CULO\s+\d+"},
                })
            patterns = generate_patterns_from_examples(message)
            return AIChatResponse.model_validate({
                "reply": (
                    f'He intentado traducir tu instrucción a un patrón: "{patterns.parent_pattern}". '
                    "Pruébala."
                ),
                "action": {"type": "set_pattern", "value": patterns.parent_pattern},
            })

        return AIChatResponse(
            reply="Por favor, selecciona una estrategia (Índice o Instrucciones) para poder ayudarte mejor.",
        )
