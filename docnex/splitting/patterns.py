"""Pattern inference from user examples and table-of-contents detection."""

import re

from pydantic import BaseModel

from docnex.schemas.blocks import ImportTarget


SMART_NUMBERING = "SMART_NUMBERING"

TOC_HEADER = re.compile(
    r"^#{0,3}\s*(?:Índice|Tabla de Contenidos|Table of Contents|Contenido|Sumario)"
    r"(?:\s+de\s+Contenido)?\s*$",
    re.IGNORECASE | re.MULTILINE,
)

_MARKDOWN_HEADER = re.compile(r"^(#{1,6})\s+")
_NUMBERED = re.compile(r"^\d+[.)]\s+.+")
_NUMBER_SEPARATOR = re.compile(r"^\d+([.)])")
_TITULO = re.compile(r"^t[íi]tulo", re.IGNORECASE)
_CAPITULO = re.compile(r"^cap[íi]tulo", re.IGNORECASE)
_LEADING_DIGITS = re.compile(r"^\d+")
_LETTER_ENUM = re.compile(r"^[A-Z]\.")
_PAGE_REFERENCE = re.compile(r"(?:\s*\.{2,}\s*|\s+)\d+\s*$")

MAX_TOC_LINES = 300


class PatternSuggestion(BaseModel):
    """Parent and child line patterns for the hierarchical splitter."""

    parent_pattern: str = ""
    child_pattern: str = ""


def generate_patterns_from_examples(examples: str) -> PatternSuggestion:
    """Infer split patterns from a few example heading lines.

    Recognized shapes, in priority order: markdown headers, ``a)`` sub-lists,
    ``1.``/``1)`` numbering, TÍTULO and CAPÍTULO legal headings, single
    uppercase lines. Anything else becomes an escaped literal prefix with a
    leading number or letter enumerator generalized.
    """
    trimmed = examples.strip()
    if not trimmed:
        return PatternSuggestion()

    low = trimmed.lower()

    header = _MARKDOWN_HEADER.match(trimmed)
    if header:
        return PatternSuggestion(parent_pattern=rf"^{header.group(1)}\s+.+")

    if "a)" in low or "b)" in low:
        return PatternSuggestion(parent_pattern=r"^\d+\.", child_pattern=r"^[a-z]\)")

    if _NUMBERED.match(trimmed):
        separator = _NUMBER_SEPARATOR.match(trimmed).group(1)
        return PatternSuggestion(parent_pattern=rf"^\d+\{separator}")

    if _TITULO.match(low):
        return PatternSuggestion(
            parent_pattern=r"^T[ÍI]TULO\s+[IVX0-9]+",
            child_pattern=r"^CAP[ÍI]TULO\s+\d+",
        )
    if _CAPITULO.match(low):
        return PatternSuggestion(
            parent_pattern=r"^CAP[ÍI]TULO\s+\d+",
            child_pattern=r"^ART[ÍI]CULO\s+\d+",
        )

    if "\n" not in trimmed and trimmed == trimmed.upper() and re.search(r"[A-Z]", trimmed):
        return PatternSuggestion(parent_pattern=r"^[A-ZÁÉÍÓÚÑ0-9\s]{3,}$")

    pattern = "^" + re.escape(trimmed)
    if _LEADING_DIGITS.match(trimmed):
        pattern = "^" + _LEADING_DIGITS.sub(r"\\d+", re.escape(trimmed), count=1)
    elif _LETTER_ENUM.match(trimmed):
        pattern = "^[A-Z]" + re.escape(trimmed)[1:]
    return PatternSuggestion(parent_pattern=pattern)


def detect_index(text: str) -> str | None:
    """Find a table of contents and return its entries, one per line.

    The entries are the non-empty lines after a TOC heading, up to the first
    blank line gap once entries have started, or up to the line where the
    first entry repeats (the body has begun). Trailing page numbers and
    leader dots are removed so each entry can be located in the body.

    Returns:
        The entries joined by newlines, or None when no TOC is found
    """
    if not text:
        return None

    header = TOC_HEADER.search(text)
    if header is None:
        return None

    entries: list[str] = []
    blank_run = 0
    for raw in text[header.end():].split("\n")[:MAX_TOC_LINES]:
        line = raw.strip()
        if not line:
            blank_run += 1
            if entries and blank_run >= 2:
                break
            continue
        blank_run = 0

        entry = _PAGE_REFERENCE.sub("", line).strip() or line
        if entries and entry.lower() == entries[0].lower():
            break
        entries.append(entry)

    return "\n".join(entries) if entries else None


def suggest_target(content: str) -> ImportTarget:
    """Short fragments default to notes, longer ones to the active version."""
    return ImportTarget.NOTE if len(content) < 200 else ImportTarget.ACTIVE_VERSION
