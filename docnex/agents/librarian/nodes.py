"""Librarian workflow nodes.

analyze: ask the LLM for a TÍTULO / CAPÍTULO / ARTÍCULO block tree.
critique: ask the LLM to review the proposed titles; reject to retry.
"""

from __future__ import annotations

import json
from typing import Literal

from langgraph.graph import END
from pydantic import TypeAdapter, ValidationError

from docnex.agents.librarian.state import LibrarianState
from docnex.clients.protocols import LLMClient
from docnex.core.exceptions import AIError, AIValidationError
from docnex.core.logging import get_logger
from docnex.schemas.blocks import BlockItem, format_validation_errors
from docnex.services.editor import inject_context
from docnex.text.json_extract import extract_json_object


logger = get_logger(__name__)

APPROVAL_TOKEN = "APROBADO"
NO_CRITERIA = (
    "No hay criterios previos. Usa tu mejor juicio profesional para detectar la estructura legal."
)

_blocks_adapter = TypeAdapter(list[BlockItem])

ANALYZE_PROMPT = """Actúa como un Bibliotecario y Arquitecto de Información experto especializado en NORMATIVA OFICIAL.
Tu tarea es dividir el siguiente texto en bloques lógicos con una JERARQUÍA DE 3 NIVELES.

## DETECCIÓN DE NORMATIVA OFICIAL
Si el documento es una norma jurídica (Decreto, Ley, Orden, Reglamento, Real Decreto):

**NIVEL 0 (Raíz) - TÍTULOS:**
- Identificar con: "TITULO I", "TITULO II", "TITULO PRELIMINAR"...
- hierarchy_level: 0

**NIVEL 1 - CAPÍTULOS:**
- Identificar con: "CAPITULO 1", "CAPITULO I", "CAPITULO PRIMERO"...
- hierarchy_level: 1
- Van DENTRO de un TÍTULO (como children)

**NIVEL 2 - ARTÍCULOS:**
- Identificar con: "ARTICULO 1", "ARTICULO 14", "Art. 3"...
- hierarchy_level: 2
- Van DENTRO de un CAPÍTULO (como children)

## REGLA CRÍTICA: TÍTULOS CORTOS
Los títulos de bloques deben ser CORTOS (máximo 20 caracteres) usando SOLO el identificador.
- ✅ CORRECTO: "TITULO I", "CAPITULO 3", "ARTICULO 14"
- ❌ INCORRECTO: "TITULO I - DISPOSICIONES GENERALES Y ÁMBITO DE APLICACIÓN"

El contenido completo del encabezado (incluyendo la descripción larga) va en el campo "content".

## CRITERIOS DE DIVISIÓN APRENDIDOS:
{criteria}

## TEXTO A PROCESAR:
{text}

## FORMATO DE RESPUESTA (JSON):
{{
  "blocks": [
    {{
      "title": "TITULO I",
      "content": "TITULO I. DISPOSICIONES GENERALES\\n...",
      "target": "active_version",
      "hierarchy_level": 0,
      "children": [
        {{
          "title": "CAPITULO 1",
          "content": "CAPITULO 1. Del ámbito de aplicación\\n...",
          "target": "active_version",
          "hierarchy_level": 1,
          "children": [
            {{
              "title": "ARTICULO 1",
              "content": "Artículo 1. Objeto.\\nLa presente ley...",
              "target": "active_version",
              "hierarchy_level": 2,
              "children": []
            }}
          ]
        }}
      ]
    }}
  ]
}}

Responde SOLO con el JSON válido."""

CRITIQUE_PROMPT = """Actúa como un Redactor Jefe revisando la propuesta de división de un Bibliotecario.
¿La división es coherente? ¿Se han perdido fragmentos de texto? ¿La jerarquía tiene sentido?

PROPUESTA:
{titles}

Si la propuesta tiene sentido, responde "APROBADO".
Si crees que hay errores (ej: bloques demasiado grandes o jerarquía rota), describe brevemente por qué."""

LEARN_PROMPT = """Actúa como un Analista de Procesos Cognitivos.
He propuesto una estructura documental a un usuario, pero el usuario la ha modificado antes de aceptarla.

PROPUESTA ORIGINAL (Títulos):
{original}

RESULTADO FINAL ACEPTADO POR USUARIO (Títulos):
{final}

TAREA:
Identifica la REGLA DE SEGMENTACIÓN que el usuario está aplicando.
Ejemplos de reglas: "Prefiere bloques más cortos", "No quiere que los anexos tengan sub-pasajes", "Usa numeración romana para secciones principales".

Devuelve una descripción CORTA y TÉCNICA de la regla aprendida para usarla en el futuro."""


def parse_blocks(reply: str) -> list[BlockItem]:
    """Parse the ``{"blocks": [...]}`` payload of an analyze reply.

    Raises:
        AIValidationError: Missing JSON or blocks that do not validate
    """
    data = extract_json_object(reply)
    try:
        return _blocks_adapter.validate_python(data.get("blocks") or [])
    except ValidationError as e:
        raise AIValidationError("Librarian blocks failed validation", format_validation_errors(e)) from e


async def analyze(state: LibrarianState, llm: LLMClient, text_limit: int) -> dict:
    """Propose a block tree for ``state.text``.

    Every attempt counts as an iteration, including failed ones.
    """
    iterations = state.iterations + 1
    prompt = inject_context(
        ANALYZE_PROMPT.format(
            criteria=state.criteria or NO_CRITERIA,
            text=state.text[:text_limit],
        ),
        state.context,
    )

    try:
        blocks = parse_blocks(await llm.generate(prompt))
    except AIError as e:
        logger.warning("Librarian analysis failed", iteration=iterations, code=e.code, error=e.message)
        return {
            "current_node": "analyze",
            "iterations": iterations,
            "proposed_blocks": [],
            "errors": [*state.errors, f"analyze: {e.message}"],
        }

    logger.info("Librarian proposal generated", iteration=iterations, root_blocks=len(blocks))
    return {"current_node": "analyze", "iterations": iterations, "proposed_blocks": blocks}


async def critique(state: LibrarianState, llm: LLMClient) -> dict:
    """Review the proposal; approve it or clear it with feedback for a retry.

    Reaching ``max_iterations`` approves whatever was proposed. A failing
    critic call also approves, since the proposal itself parsed correctly.
    """
    result: dict = {"current_node": "critique"}
    if not state.proposed_blocks:
        result["errors"] = [*state.errors, "critique: no blocks to review"]
        return result

    titles = json.dumps([b.title for b in state.proposed_blocks], ensure_ascii=False, indent=2)
    try:
        feedback = await llm.generate(CRITIQUE_PROMPT.format(titles=titles))
    except AIError as e:
        logger.warning("Librarian critique failed, accepting proposal", code=e.code, error=e.message)
        result["approved"] = True
        result["errors"] = [*state.errors, f"critique: {e.message}"]
        return result

    if APPROVAL_TOKEN in feedback or state.iterations >= state.max_iterations:
        logger.info("Librarian proposal accepted", iteration=state.iterations)
        result["approved"] = True
        return result

    logger.info("Librarian proposal rejected", iteration=state.iterations, feedback=feedback[:100])
    result["criteria"] = f"{state.criteria}\n\nFEEDBACK CRÍTICO ANTERIOR: {feedback}"
    result["proposed_blocks"] = []
    return result


def route_after_critique(state: LibrarianState) -> Literal["analyze", "__end__"]:
    """Loop back to ``analyze`` while there is no proposal and attempts remain."""
    if not state.proposed_blocks and state.iterations < state.max_iterations:
        return "analyze"
    return END


async def learn_rule(
    llm: LLMClient,
    original: list[BlockItem],
    final: list[BlockItem],
) -> str | None:
    """Describe the segmentation rule implied by the user's edits.

    Returns:
        The rule text, or None if the model call fails
    """
    prompt = LEARN_PROMPT.format(
        original=", ".join(b.title for b in original),
        final=", ".join(b.title for b in final),
    )
    try:
        return (await llm.generate(prompt)).strip()
    except AIError as e:
        logger.warning("Librarian learning failed", code=e.code, error=e.message)
        return None
